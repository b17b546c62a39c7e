import base64
import logging

from fastapi import APIRouter, Depends

from ..application.services.key_bundle_service import KeyBundleUpload
from ..context import AppContext
from ..dependencies import AuthenticatedDevice, get_authenticated_device, get_context
from ..schemas.keys.keys import (
    OneTimePrekeyResponse,
    PreKeyBundleResponse,
    PrekeyCountResponse,
    UploadKeysRequest,
    UploadKeysResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/keys", tags=["Keys"])


def _b64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


@router.post("", response_model=UploadKeysResponse)
def upload_keys(
    payload: UploadKeysRequest,
    auth: AuthenticatedDevice = Depends(get_authenticated_device),
    ctx: AppContext = Depends(get_context),
):
    accepted = ctx.key_bundles.upload_bundle(
        auth.user_id,
        auth.device_id,
        KeyBundleUpload(
            identity_key_pub=payload.identity_key_pub,
            signed_prekey_pub=payload.signed_prekey_pub,
            signed_prekey_signature=payload.signed_prekey_signature,
            one_time_prekeys=payload.one_time_prekeys,
            device_name=payload.device_name,
            push_token=payload.push_token,
        ),
    )
    return UploadKeysResponse(device_id=accepted.device_id, auth_token=accepted.auth_token)


@router.get("/count", response_model=PrekeyCountResponse)
def count_prekeys(
    auth: AuthenticatedDevice = Depends(get_authenticated_device),
    ctx: AppContext = Depends(get_context),
):
    return PrekeyCountResponse(count=ctx.key_bundles.remaining_prekeys(auth.device_id))


@router.get("/{device_id}", response_model=PreKeyBundleResponse)
def get_prekey_bundle(
    device_id: str,
    auth: AuthenticatedDevice = Depends(get_authenticated_device),
    ctx: AppContext = Depends(get_context),
):
    bundle = ctx.key_bundles.fetch_prekey_bundle(device_id)
    logger.info(f"Device {auth.device_id} fetched prekey bundle for {device_id}")
    one_time = None
    if bundle.one_time_prekey is not None:
        one_time = OneTimePrekeyResponse(id=bundle.one_time_prekey.id, prekey_pub=_b64(bundle.one_time_prekey.prekey_pub))
    return PreKeyBundleResponse(
        device_id=bundle.device_id,
        user_id=bundle.user_id,
        identity_key_pub=_b64(bundle.identity_key_pub),
        signed_prekey_pub=_b64(bundle.signed_prekey_pub),
        signed_prekey_signature=_b64(bundle.signed_prekey_signature),
        one_time_prekey=one_time,
    )
