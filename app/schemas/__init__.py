# Schemas package (re-export feature modules for stable imports)
from .auth.auth import *
from .keys.keys import *
from .devices.device import *
from .messages.message import *
from .common.common import *
