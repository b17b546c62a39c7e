import logging

from ...application.ports.code_sender import CodeSender
from ...utils import hash_phone_number

logger = logging.getLogger(__name__)


class LoggingCodeSender(CodeSender):
    """Development sender: codes are only written to the log when debug is on."""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def send(self, phone: str, code: str) -> None:
        if self.debug:
            logger.warning(f"Generated OTP code for {phone}: {code}")
        else:
            logger.info(f"No SMS provider configured; code for {hash_phone_number(phone)[:12]} not delivered")
