from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .context import AppContext
from .exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

# Auth scheme; missing headers are reported as 401 by get_authenticated_device, not 403
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedDevice:
    user_id: str
    device_id: str


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_authenticated_device(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ctx: AppContext = Depends(get_context),
) -> AuthenticatedDevice:
    if credentials is None or not credentials.credentials:
        raise InvalidTokenError("Missing bearer token")
    claims = ctx.tokens.validate(credentials.credentials)
    return AuthenticatedDevice(user_id=claims.user_id, device_id=claims.device_id)
