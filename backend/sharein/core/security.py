import logging
import time
from datetime import timedelta
from typing import Callable

import bcrypt
import jwt

from .config import Settings
from .errors import InvalidToken

logger = logging.getLogger("sharein")

ACCESS = "access"
REFRESH = "refresh"


def get_password_hash(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


class TokenIssuer:
    """Signs and verifies stateless access and refresh tokens.

    Tokens carry ``sub`` (the user id), ``type`` (``access`` or ``refresh``),
    ``iat`` and ``exp``. A token stays valid up to and including the second
    named by ``exp``. Nothing is stored server side, so refresh tokens cannot
    be revoked before they expire.
    """

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time):
        self._secrets = {
            ACCESS: settings.ACCESS_TOKEN_SECRET,
            REFRESH: settings.REFRESH_TOKEN_SECRET,
        }
        self._ttls = {
            ACCESS: timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            REFRESH: timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        }
        self._algorithm = settings.JWT_ALGORITHM
        self._clock = clock

    def _issue(self, user_id: str, kind: str, expires_delta: timedelta | None = None) -> str:
        now = int(self._clock())
        ttl = expires_delta if expires_delta is not None else self._ttls[kind]
        payload = {
            "sub": str(user_id),
            "type": kind,
            "iat": now,
            "exp": now + int(ttl.total_seconds()),
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self._algorithm)

    def issue_access_token(self, user_id: str, expires_delta: timedelta | None = None) -> str:
        return self._issue(user_id, ACCESS, expires_delta)

    def issue_refresh_token(self, user_id: str, expires_delta: timedelta | None = None) -> str:
        return self._issue(user_id, REFRESH, expires_delta)

    def verify_token(self, token: str, kind: str = ACCESS) -> str:
        """Return the user id claimed by ``token`` or raise InvalidToken."""
        if kind not in self._secrets:
            raise ValueError(f"Unknown token kind: {kind}")
        try:
            # Expiry is checked against the injected clock below.
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": ["sub", "exp", "type"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected %s token: %s", kind, e)
            raise InvalidToken()

        if payload.get("type") != kind:
            raise InvalidToken()
        try:
            expires_at = int(payload["exp"])
        except (TypeError, ValueError):
            raise InvalidToken()
        if self._clock() > expires_at:
            raise InvalidToken("Token has expired")
        return str(payload["sub"])

    def refresh(self, refresh_token: str) -> str:
        user_id = self.verify_token(refresh_token, REFRESH)
        return self.issue_access_token(user_id)
