# app/schemas/devices/device.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class DeviceSummary(BaseModel):
    id: str
    name: str
    created_at: datetime
    last_seen: Optional[datetime] = None
    is_revoked: bool = False


class DeviceListResponse(BaseModel):
    data: List[DeviceSummary]
