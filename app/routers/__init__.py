# Routers package
from . import registration_router
from . import keys_router
from . import devices_router
from . import messages_router
from . import health_router

__all__ = [
    "registration_router",
    "keys_router",
    "devices_router",
    "messages_router",
    "health_router",
]
