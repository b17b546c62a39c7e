from fastapi import APIRouter, Depends
import logging

from ..context import AppContext
from ..dependencies import AuthenticatedDevice, get_authenticated_device, get_context
from ..schemas.devices.device import DeviceListResponse, DeviceSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/devices", tags=["Device Management"])


@router.get("", response_model=DeviceListResponse)
def get_devices(
    auth: AuthenticatedDevice = Depends(get_authenticated_device),
    ctx: AppContext = Depends(get_context),
):
    devices = ctx.key_bundles.list_devices(auth.user_id)
    return DeviceListResponse(data=[
        DeviceSummary(
            id=d.id,
            name=d.name,
            created_at=d.created_at,
            last_seen=d.last_seen,
            is_revoked=d.is_revoked,
        )
        for d in devices
    ])
