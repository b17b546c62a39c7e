# app/schemas/keys/keys.py
from pydantic import BaseModel, Field
from typing import List, Optional

MAX_ONE_TIME_PREKEYS = 200


class UploadKeysRequest(BaseModel):
    identity_key_pub: str = Field(..., description="Base64 identity public key")
    signed_prekey_pub: str = Field(..., description="Base64 signed prekey")
    signed_prekey_signature: str = Field(..., description="Base64 signature over the signed prekey")
    one_time_prekeys: List[str] = Field(default_factory=list, max_length=MAX_ONE_TIME_PREKEYS)
    device_name: str = Field(..., min_length=1, max_length=100)
    push_token: Optional[str] = Field(None, max_length=4096)


class UploadKeysResponse(BaseModel):
    success: bool = True
    device_id: str
    auth_token: str


class OneTimePrekeyResponse(BaseModel):
    id: int
    prekey_pub: str


class PreKeyBundleResponse(BaseModel):
    device_id: str
    user_id: Optional[str] = None
    identity_key_pub: str
    signed_prekey_pub: str
    signed_prekey_signature: str
    one_time_prekey: Optional[OneTimePrekeyResponse] = None


class PrekeyCountResponse(BaseModel):
    count: int
