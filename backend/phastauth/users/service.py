import enum
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from sqlalchemy.exc import SQLAlchemyError

from ..auth.token import RandomnessFailure, TokenCodec, TokenError
from ..core.crypto import PasswordHasher
from ..http.request import AuthorizationError
from .repository import UserRepository
from .validation import Email, ValidationFailure, parse_user_fields, require_fields

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials. Please check your email and password."
SESSION_EXPIRED = "Session expired. Please login again."


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    INVALID_CREDENTIALS = "invalid_credentials"
    AUTHORIZATION = "authorization"
    SESSION_EXPIRED = "session_expired"
    REFRESH_FAILED = "refresh_failed"
    USER_NOT_FOUND = "user_not_found"
    PERSISTENCE = "persistence"
    RANDOMNESS = "randomness"


@dataclass(frozen=True)
class ServiceResult:
    message: str
    error: ErrorKind | None = None
    token: str | None = None
    data: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, message: str, **kwargs: Any) -> "ServiceResult":
        return cls(message, **kwargs)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "ServiceResult":
        return cls(message, error=kind)


def service_boundary(operation: str) -> Callable:
    """
    Converts data-layer and randomness failures into error results so no
    exception of a known failure kind leaves a service operation.
    """

    def decorator(func: Callable[..., ServiceResult]) -> Callable[..., ServiceResult]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> ServiceResult:
            try:
                return func(*args, **kwargs)
            except SQLAlchemyError:
                logger.exception("%s failed in the data layer", operation)
                return ServiceResult.failure(
                    ErrorKind.PERSISTENCE,
                    f"{operation} failed due to a server error. Please try again later.",
                )
            except RandomnessFailure:
                logger.exception("%s failed: no secure random source", operation)
                return ServiceResult.failure(
                    ErrorKind.RANDOMNESS,
                    "Token generation failed. Please try again later.",
                )

        return wrapper

    return decorator


class UserService:
    """
    Sequences validation, persistence and token handling for the account
    endpoints. Every operation returns a ServiceResult.
    """

    def __init__(self, repository: UserRepository, codec: TokenCodec, hasher: PasswordHasher):
        self.repository = repository
        self.codec = codec
        self.hasher = hasher

    @service_boundary("Registration")
    def create(self, data: Mapping[str, Any]) -> ServiceResult:
        fields = parse_user_fields(data, self.hasher)
        if isinstance(fields, ValidationFailure):
            return ServiceResult.failure(ErrorKind.VALIDATION, fields.message)

        created = self.repository.create_user(
            fields.name.value, fields.email.value, fields.password.value
        )
        if not created:
            return ServiceResult.failure(
                ErrorKind.PERSISTENCE, "Account creation failed. Please try again."
            )

        return ServiceResult.success("Account created successfully")

    @service_boundary("Authentication")
    def auth(self, data: Mapping[str, Any]) -> ServiceResult:
        raw_email = str(data.get("email") or "")
        raw_password = str(data.get("password") or "")

        failure = require_fields({"email": raw_email, "password": raw_password})
        if failure is not None:
            return ServiceResult.failure(ErrorKind.VALIDATION, failure.message)

        invalid = ServiceResult.failure(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)

        email = Email.parse(raw_email)
        if isinstance(email, ValidationFailure):
            self.hasher.dummy_verify()
            return invalid

        stored_hash = self.repository.password_hash_by_email(email.value)
        if stored_hash is None:
            self.hasher.dummy_verify()
            return invalid

        try:
            matches = self.hasher.verify(raw_password, stored_hash)
        except ValueError:
            logger.warning("Stored password hash could not be identified")
            return invalid
        if not matches:
            return invalid

        user_id = self.repository.validate_login(email.value, stored_hash)
        if user_id is None:
            return invalid

        return ServiceResult.success("Login successful", token=self.codec.mint({"id": user_id}))

    @service_boundary("Token refresh")
    def refresh(self, authorization: str | AuthorizationError) -> ServiceResult:
        if not isinstance(authorization, str):
            return self._authorization_failure(authorization)

        try:
            token = self.codec.rotate(authorization)
        except TokenError as exc:
            logger.info("Token refresh rejected: %s", type(exc).__name__)
            return ServiceResult.failure(
                ErrorKind.REFRESH_FAILED, "Token refresh failed. Please login again."
            )

        return ServiceResult.success("Token refreshed successfully", token=token)

    @service_boundary("Data fetch")
    def fetch(self, authorization: str | AuthorizationError) -> ServiceResult:
        claims = self._session_claims(authorization)
        if isinstance(claims, ServiceResult):
            return claims

        user = self.repository.user_by_id(claims["sub"])
        if user is None:
            return ServiceResult.failure(ErrorKind.USER_NOT_FOUND, "User account not found.")

        return ServiceResult.success(
            "User data retrieved successfully", data=user.model_dump(mode="json")
        )

    @service_boundary("Update")
    def update(self, authorization: str | AuthorizationError, data: Mapping[str, Any]) -> ServiceResult:
        claims = self._session_claims(authorization)
        if isinstance(claims, ServiceResult):
            return claims

        fields = parse_user_fields(data, self.hasher)
        if isinstance(fields, ValidationFailure):
            return ServiceResult.failure(ErrorKind.VALIDATION, fields.message)

        updated = self.repository.update_user(
            claims["sub"], fields.name.value, fields.email.value, fields.password.value
        )
        if not updated:
            return ServiceResult.failure(
                ErrorKind.PERSISTENCE, "Account update failed. Please try again."
            )

        return ServiceResult.success("Account updated successfully")

    @service_boundary("Deletion")
    def delete(self, authorization: str | AuthorizationError) -> ServiceResult:
        claims = self._session_claims(authorization)
        if isinstance(claims, ServiceResult):
            return claims

        if not self.repository.delete_user(claims["sub"]):
            return ServiceResult.failure(
                ErrorKind.PERSISTENCE, "Account deletion failed. Please try again."
            )

        return ServiceResult.success("Account deleted successfully")

    def _session_claims(self, authorization: str | AuthorizationError) -> dict[str, Any] | ServiceResult:
        if not isinstance(authorization, str):
            return self._authorization_failure(authorization)

        try:
            claims = self.codec.verify(authorization)
        except TokenError as exc:
            logger.info("Session token rejected: %s", type(exc).__name__)
            return ServiceResult.failure(ErrorKind.SESSION_EXPIRED, SESSION_EXPIRED)

        if claims.get("sub") is None:
            logger.info("Session token rejected: no subject")
            return ServiceResult.failure(ErrorKind.SESSION_EXPIRED, SESSION_EXPIRED)

        return claims

    @staticmethod
    def _authorization_failure(authorization: Any) -> ServiceResult:
        message = getattr(authorization, "message", "Please enter a valid authorization header.")
        return ServiceResult.failure(ErrorKind.AUTHORIZATION, f"Authorization error: {message}")
