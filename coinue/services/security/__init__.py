"""Password hashing services."""

from coinue.services.security.hashing import (
    PasswordHasher,
    PlaintextHasher,
    WerkzeugPasswordHasher,
    get_password_hasher,
)

__all__ = [
    "PasswordHasher",
    "PlaintextHasher",
    "WerkzeugPasswordHasher",
    "get_password_hasher",
]
