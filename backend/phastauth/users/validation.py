"""
Field presence checks and the Name / Email / Password value objects.

Value objects are built through ``parse`` which returns either the value
object or a ``ValidationFailure``; nothing here raises for bad input.
"""
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Mapping, Union

from pydantic import EmailStr, TypeAdapter, ValidationError

from ..core.crypto import PasswordHasher


@dataclass(frozen=True)
class ValidationFailure:
    field: str
    reason: str
    message: str


def require_fields(fields: Mapping[str, object]) -> ValidationFailure | None:
    """
    Returns a failure for the first field that is empty after trimming.
    """
    for name, value in fields.items():
        if value is None or not str(value).strip():
            return ValidationFailure(name, "required", f"Field '{name}' is required")
    return None


@dataclass(frozen=True)
class Name:
    MAX_LENGTH = 100
    EXTRA_CHARS = "'-"

    value: str

    @classmethod
    def _allowed(cls, char: str) -> bool:
        # letters (L*) and combining marks (M*)
        return unicodedata.category(char)[0] in "LM" or char.isspace() or char in cls.EXTRA_CHARS

    @classmethod
    def parse(cls, raw: str) -> Union["Name", ValidationFailure]:
        if not raw.strip():
            return ValidationFailure("name", "empty", "Name cannot be empty")

        if len(raw) > cls.MAX_LENGTH:
            return ValidationFailure(
                "name",
                "too-long",
                f"Name cannot be longer than {cls.MAX_LENGTH} characters",
            )

        if not all(cls._allowed(char) for char in raw):
            return ValidationFailure(
                "name",
                "bad-characters",
                "Name contains invalid characters. "
                "Only letters, spaces, apostrophes, and hyphens are allowed",
            )

        return cls(raw)


_email_adapter = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class Email:
    value: str

    @classmethod
    def parse(cls, raw: str) -> Union["Email", ValidationFailure]:
        try:
            normalized = _email_adapter.validate_python(raw.strip())
        except ValidationError:
            return ValidationFailure("email", "invalid", "Invalid email")
        return cls(normalized)


# (reason, pattern, message) in the order they are checked
PASSWORD_RULES = (
    ("missing-digit", re.compile(r"\d"), "Password must contain at least one digit"),
    ("missing-lowercase", re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    ("missing-uppercase", re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    ("missing-symbol", re.compile(r"\W"), "Password must contain at least one special character"),
)


def check_password_strength(raw: str) -> ValidationFailure | None:
    if len(raw) < Password.MIN_LENGTH:
        return ValidationFailure(
            "password",
            "too-short",
            f"Password must be at least {Password.MIN_LENGTH} characters long",
        )

    for reason, pattern, message in PASSWORD_RULES:
        if not pattern.search(raw):
            return ValidationFailure("password", reason, message)

    return None


@dataclass(frozen=True)
class Password:
    """
    Holds only the argon2id hash; the plaintext is dropped once validated.
    """

    MIN_LENGTH = 8

    value: str = field(repr=False)

    @classmethod
    def parse(cls, raw: str, hasher: PasswordHasher) -> Union["Password", ValidationFailure]:
        failure = check_password_strength(raw)
        if failure is not None:
            return failure
        return cls(hasher.hash(raw))


@dataclass(frozen=True)
class UserFields:
    name: Name
    email: Email
    password: Password


def parse_user_fields(
    data: Mapping[str, object], hasher: PasswordHasher
) -> UserFields | ValidationFailure:
    """
    Presence check, then name, email and password in that order.
    """
    raw = {key: str(data.get(key) or "") for key in ("name", "email", "password")}

    failure = require_fields(raw)
    if failure is not None:
        return failure

    name = Name.parse(raw["name"])
    if isinstance(name, ValidationFailure):
        return name

    email = Email.parse(raw["email"])
    if isinstance(email, ValidationFailure):
        return email

    password = Password.parse(raw["password"], hasher)
    if isinstance(password, ValidationFailure):
        return password

    return UserFields(name=name, email=email, password=password)
