from datetime import timedelta
import logging

from fastapi import APIRouter, Depends, status

from ..context import AppContext
from ..dependencies import get_context
from ..schemas.auth.auth import (
    ConfirmRegisterRequest,
    ConfirmRegisterResponse,
    PhoneRegisterRequest,
    PhoneRegisterResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/register", tags=["Registration"])


@router.post("", response_model=PhoneRegisterResponse, status_code=status.HTTP_202_ACCEPTED)
def register_phone(payload: PhoneRegisterRequest, ctx: AppContext = Depends(get_context)):
    issued = ctx.verification.request_code(payload.phone_number)
    return PhoneRegisterResponse(expires_at=issued.expires_at)


@router.post("/confirm", response_model=ConfirmRegisterResponse)
def register_confirm(payload: ConfirmRegisterRequest, ctx: AppContext = Depends(get_context)):
    identity = ctx.verification.confirm_code(payload.phone_number, payload.otp)
    # Short-lived token: only good for finishing device setup
    token = ctx.tokens.mint(
        identity.user_id,
        identity.device_id,
        timedelta(hours=ctx.settings.REGISTRATION_TOKEN_TTL_HOURS),
    )
    return ConfirmRegisterResponse(user_id=identity.user_id, device_id=identity.device_id, auth_token=token)
