"""
Password Hashing

The account index never compares raw passwords itself. It asks an
injected PasswordHasher to hash on register/reset and to verify on login.

Two schemes:
- WerkzeugPasswordHasher: werkzeug.security salted hashes
  ("scrypt:...$salt$hash"), self-describing so the method can change
  without invalidating stored values. The default.
- PlaintextHasher: stores the password as typed. Only for registries
  written by the old desktop client, which kept plaintext passwords.
"""

import hmac
from abc import ABC, abstractmethod
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash


class PasswordHasher(ABC):
    """Hash and verify passwords."""

    name: str = ""

    @abstractmethod
    def hash(self, password: str) -> str:
        pass

    @abstractmethod
    def verify(self, stored: Optional[str], password: Optional[str]) -> bool:
        """True if `password` matches the `stored` hash. Never raises."""
        pass


class WerkzeugPasswordHasher(PasswordHasher):
    """Salted hashes from werkzeug.security."""

    name = "werkzeug"

    def __init__(self, method: Optional[str] = None):
        # None keeps werkzeug's current default method
        self._method = method

    def hash(self, password: str) -> str:
        if self._method is None:
            return generate_password_hash(password)
        return generate_password_hash(password, method=self._method)

    def verify(self, stored: Optional[str], password: Optional[str]) -> bool:
        if not stored or password is None:
            return False
        try:
            return check_password_hash(stored, password)
        except (ValueError, TypeError):
            # Not a werkzeug hash, e.g. a plaintext value from an old registry
            return False


class PlaintextHasher(PasswordHasher):
    """Legacy scheme: the stored value is the password."""

    name = "plaintext"

    def hash(self, password: str) -> str:
        return password

    def verify(self, stored: Optional[str], password: Optional[str]) -> bool:
        if stored is None or password is None:
            return False
        return hmac.compare_digest(stored.encode("utf-8"), password.encode("utf-8"))


_HASHERS: dict[str, type[PasswordHasher]] = {
    WerkzeugPasswordHasher.name: WerkzeugPasswordHasher,
    PlaintextHasher.name: PlaintextHasher,
}


def get_password_hasher(name: str) -> PasswordHasher:
    """
    Build the hasher configured by name.

    Raises:
        ValueError: For an unknown scheme
    """
    try:
        return _HASHERS[name]()
    except KeyError:
        raise ValueError(f"Unknown password hasher: {name}") from None
