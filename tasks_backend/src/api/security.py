"""Password hashing and identity token issuing/verification."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from .models import Identity
from .settings import Settings

logger = logging.getLogger(__name__)

PASSWORD_HASH_METHOD = "pbkdf2:sha256"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def hash_password(plaintext: str, method: str = PASSWORD_HASH_METHOD) -> str:
    """
    Hash a password for storing. A fresh random salt is embedded in every digest.

    method is a werkzeug method string, optionally with an iteration count
    (e.g. "pbkdf2:sha256:600000").
    """
    return generate_password_hash(plaintext, method=method)


# PUBLIC_INTERFACE
def verify_password(plaintext: str, digest: str) -> bool:
    """
    Check a password against a stored digest.

    Comparison is constant-time. A malformed digest or an unknown hash method
    yields False instead of raising.
    """
    if not digest:
        return False
    try:
        return check_password_hash(digest, plaintext)
    except ValueError:
        return False


# PUBLIC_INTERFACE
class TokenService:
    """
    Issues and verifies signed, time-limited identity tokens (JWT).

    Verification depends only on the token, the signing secret and the clock;
    it never touches a store. A token whose expiry equals the current second
    is already expired.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_seconds: int = 3600,
        clock: Optional[Clock] = None,
    ) -> None:
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings: Settings, clock: Optional[Clock] = None) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl_seconds=settings.token_ttl_seconds,
            clock=clock,
        )

    def _now_ts(self) -> int:
        return int(self._clock().timestamp())

    def issue(self, user_id: int, email: str, ttl_seconds: Optional[int] = None) -> str:
        """
        Create a token for a user.

        Args:
            user_id: Id of the user the token identifies
            email: Email of that user
            ttl_seconds: Lifetime override; the configured TTL is used when omitted

        Returns:
            Encoded JWT string carrying id, email, iat and exp claims
        """
        issued_at = self._now_ts()
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        payload = {
            "id": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Optional[Identity]:
        """
        Decode and validate a token.

        Returns:
            The Identity it carries, or None when the signature is wrong, the
            token is malformed or expired, or its claims have the wrong shape.
        """
        if not token:
            return None
        try:
            # Expiry is checked below against the injected clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp", "iat"]},
            )
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected token: %s", type(exc).__name__)
            return None

        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return None
        if exp <= self._now_ts():
            logger.debug("Rejected token: expired")
            return None

        user_id = payload.get("id")
        email = payload.get("email")
        if isinstance(user_id, bool) or not isinstance(user_id, int) or not isinstance(email, str):
            return None
        return Identity(id=user_id, email=email)
