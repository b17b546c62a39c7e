import base64

from fastapi import APIRouter, Depends, Query

from ..application.services.message_service import MAX_PAGE_SIZE
from ..context import AppContext
from ..dependencies import AuthenticatedDevice, get_authenticated_device, get_context
from ..schemas.messages.message import MessageListResponse, MessageResponse

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.get("", response_model=MessageListResponse)
def get_messages(
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    auth: AuthenticatedDevice = Depends(get_authenticated_device),
    ctx: AppContext = Depends(get_context),
):
    messages = ctx.messages.list_messages(auth.user_id, auth.device_id, limit=limit, offset=offset)
    return MessageListResponse(data=[
        MessageResponse(
            id=m.id,
            sender_user_id=m.sender_user_id,
            sender_device_id=m.sender_device_id,
            recipient_user_id=m.recipient_user_id,
            recipient_device_id=m.recipient_device_id,
            ciphertext=base64.b64encode(m.ciphertext).decode("ascii"),
            message_type=m.message_type,
            protocol_version=m.protocol_version,
            delivered_at=m.delivered_at,
            created_at=m.created_at,
        )
        for m in messages
    ])
