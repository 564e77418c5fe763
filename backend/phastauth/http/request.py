from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class AuthorizationError:
    """
    Result of a failed bearer token extraction.
    """

    message: str


@dataclass(frozen=True)
class ApiRequest:
    """
    Transport-neutral view of an inbound request.
    """

    method: str
    path: str = "/"
    body: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def authorization(self) -> str | AuthorizationError:
        """
        Returns the raw token of an `Authorization: Bearer <token>` header.
        """
        header = self.header("Authorization")
        if header is None:
            return AuthorizationError("Sorry, no authorization header found.")

        parts = header.split(" ")
        if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
            return AuthorizationError("Please enter a valid authorization header.")

        return parts[1]
