import logging
from typing import Optional

from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from ...application.ports.code_sender import CodeSender

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATE = "Your verification code is {code}. It expires in {minutes} minutes."


class TwilioCodeSender(CodeSender):
    def __init__(self, account_sid: str, auth_token: str, from_number: str,
                 expiry_minutes: int = 5, client: Optional[Client] = None):
        self.client = client or Client(account_sid, auth_token)
        self.from_number = from_number
        self.expiry_minutes = expiry_minutes

    def send(self, phone: str, code: str) -> None:
        try:
            message = self.client.messages.create(
                to=phone,
                from_=self.from_number,
                body=MESSAGE_TEMPLATE.format(code=code, minutes=self.expiry_minutes),
            )
        except TwilioException as e:
            logger.error(f"Twilio failed to deliver verification code: {e}")
            raise
        logger.info(f"Verification SMS queued: sid={message.sid}")
