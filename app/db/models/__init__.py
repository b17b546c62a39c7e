# Models package (re-export feature modules for stable imports)
from .users.user import User
from .auth.verification import VerificationCode
from .devices.device import Device, OneTimePrekey
from .messaging.message import Message

__all__ = [
    "User",
    "VerificationCode",
    "Device",
    "OneTimePrekey",
    "Message",
]
