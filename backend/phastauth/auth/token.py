import hmac
import json
import logging
import secrets
import time
from typing import Any, Callable

from jose import jwk, jws
from jose.constants import ALGORITHMS
from jose.utils import base64url_decode, base64url_encode

from ..core.settings import Settings

logger = logging.getLogger(__name__)

RESERVED_CLAIMS = ("sub", "iat", "exp", "jti", "iss", "aud")
ROTATED_CLAIMS = ("exp", "iat", "jti")


class TokenError(Exception):
    """Base class for tokens that cannot be accepted."""


class MalformedToken(TokenError):
    pass


class InvalidSignature(TokenError):
    pass


class ExpiredToken(TokenError):
    pass


class RandomnessFailure(Exception):
    """
    The secure random source is unavailable. Fatal to the current operation only.
    """


class TokenCodec:
    """
    Mints, verifies and rotates HS256 signed tokens.

    The wire format is base64url(header).base64url(payload).base64url(hmac),
    without padding. The signature is checked before (and independently of)
    the expiry, so a tampered token and an expired one fail differently.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl_seconds: int = 3600,
        issuer: str = "phast-auth",
        audience: str = "phast-auth-client",
        refresh_grace_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.issuer = issuer
        self.audience = audience
        self.refresh_grace_seconds = refresh_grace_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            settings.JWT_SECRET_KEY,
            ttl_seconds=settings.TOKEN_TTL_SECONDS,
            issuer=settings.TOKEN_ISSUER,
            audience=settings.TOKEN_AUDIENCE,
            refresh_grace_seconds=settings.TOKEN_REFRESH_GRACE_SECONDS,
        )

    def mint(self, claims: dict[str, Any] | None = None) -> str:
        """
        Builds a signed token. The subject is taken from claims["id"];
        reserved claims always override caller supplied ones.
        """
        claims = dict(claims or {})
        now = int(self._clock())

        reserved: dict[str, Any] = {
            "iat": now,
            "exp": now + self.ttl_seconds,
            "jti": self._token_id(),
            "iss": self.issuer,
            "aud": self.audience,
        }
        if claims.get("id") is not None:
            reserved["sub"] = claims["id"]

        for key in RESERVED_CLAIMS:
            claims.pop(key, None)
        claims.update(reserved)

        return jws.sign(claims, self._secret, algorithm=ALGORITHMS.HS256)

    def verify(self, token: str) -> dict[str, Any]:
        """
        Returns the claims of a well-formed, correctly signed, unexpired token.
        """
        payload = self._load(token)

        exp = payload.get("exp")
        if exp is not None and exp < self._clock():
            raise ExpiredToken("Token has expired")

        return payload

    def rotate(self, old_token: str) -> str:
        """
        Re-mints a correctly signed token with fresh iat/exp/jti.
        Expiry is not required, only bounded by the optional grace period.
        """
        payload = self._load(old_token)

        exp = payload.get("exp")
        if (
            self.refresh_grace_seconds is not None
            and exp is not None
            and exp + self.refresh_grace_seconds < self._clock()
        ):
            raise ExpiredToken("Token is past its refresh window")

        for key in ROTATED_CLAIMS:
            payload.pop(key, None)

        return self.mint(payload)

    def _load(self, token: str) -> dict[str, Any]:
        if not isinstance(token, str):
            raise MalformedToken("Token must be a string")

        parts = token.split(".")
        if len(parts) != 3:
            raise MalformedToken("Token must have exactly three segments")

        encoded_header, encoded_payload, signature = parts
        expected = self._signature(encoded_header, encoded_payload)
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
            raise InvalidSignature("Token signature does not match")

        try:
            payload = json.loads(base64url_decode(encoded_payload.encode("ascii")))
        except ValueError as exc:
            raise MalformedToken("Token payload could not be decoded") from exc

        if not isinstance(payload, dict):
            raise MalformedToken("Token payload must be a JSON object")

        exp = payload.get("exp")
        if exp is not None and (isinstance(exp, bool) or not isinstance(exp, (int, float))):
            raise MalformedToken("Token expiry must be numeric")

        return payload

    def _signature(self, encoded_header: str, encoded_payload: str) -> str:
        key = jwk.construct(self._secret, ALGORITHMS.HS256)
        signing_input = f"{encoded_header}.{encoded_payload}".encode("utf-8")
        return base64url_encode(key.sign(signing_input)).decode("ascii")

    @staticmethod
    def _token_id() -> str:
        try:
            return secrets.token_hex(16)
        except (NotImplementedError, OSError) as exc:
            logger.critical("Secure random source unavailable")
            raise RandomnessFailure("Token generation failed") from exc
