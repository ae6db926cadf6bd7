"""
Account Model

One entry of the account registry (data/users.json).

The registry was originally written by the Java desktop client, so JSON
keys are camelCase (securityQuestion, securityAnswer). Python code uses
snake_case attributes; both spellings are accepted when loading.

DESIGN DECISION: The model itself is permissive - every field is
optional. Registration rules live in AccountValidator so a bad form
submission becomes a REJECTED result with readable issues instead of a
pydantic ValidationError thrown at the UI.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Account(BaseModel):
    """
    A registered user.

    `password` holds whatever the configured PasswordHasher produced.
    Before registration it holds the raw password typed by the user.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    username: Optional[str] = Field(
        default=None,
        description="Unique login name (primary key)"
    )
    email: Optional[str] = Field(
        default=None,
        description="Unique email address (secondary key)"
    )
    password: Optional[str] = Field(
        default=None,
        description="Password hash (raw password before registration)"
    )
    security_question: Optional[str] = Field(
        default=None,
        description="Question asked before a password reset"
    )
    security_answer: Optional[str] = Field(
        default=None,
        description="Expected answer, compared exactly"
    )
    birthday: Optional[date] = None
