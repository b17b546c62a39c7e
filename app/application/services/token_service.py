from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable
import logging

import jwt

from ...exceptions import InvalidTokenError
from ...utils import to_unix_seconds, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    device_id: str
    expires_at: int


@dataclass(frozen=True)
class SessionTokenIssuer:
    """Mints and validates the bearer tokens that carry (user id, device id)."""
    secret: str = field(repr=False)
    algorithm: str = "HS256"
    clock: Callable[[], datetime] = utcnow

    def mint(self, user_id: str, device_id: str, ttl: timedelta) -> str:
        claims = {
            "sub": str(user_id),
            "device": str(device_id),
            "exp": to_unix_seconds(self.clock() + ttl),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def validate(self, token: str) -> SessionClaims:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "device", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired session token")
            raise InvalidTokenError()
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected session token: {type(e).__name__}")
            raise InvalidTokenError()

        device_id = payload.get("device")
        if not isinstance(device_id, str) or not device_id:
            raise InvalidTokenError("Invalid token: missing device ID")
        return SessionClaims(user_id=payload["sub"], device_id=device_id, expires_at=int(payload["exp"]))
