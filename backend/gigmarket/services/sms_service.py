"""
SMS Gateway Client
Delivers OTP codes through an HTTP SMS provider
"""

import asyncio
import logging

import requests

from ..config import Settings
from ..utils.helpers import mask_phone
from ..utils.validators import format_mobile_e164

logger = logging.getLogger(__name__)


class SmsDeliveryError(Exception):
    pass


class SmsGateway:
    def __init__(self, config: Settings):
        self.config = config

    def _build_message(self, code: str) -> str:
        return (
            f"Your one-time OTP code is {code}. "
            f"Valid for {self.config.OTP_EXPIRE_MINUTES} minutes. Do not share this code."
        )

    def _post(self, payload: dict) -> requests.Response:
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.SMS_API_KEY}",
            "Content-Type": "application/json"
        }
        return requests.post(
            self.config.SMS_API_URL,
            json=payload,
            headers=headers,
            timeout=self.config.SMS_TIMEOUT_SECONDS
        )

    async def send_otp(self, phone_number: str, code: str) -> None:
        if not self.config.sms_configured:
            logger.warning(f"SMS gateway not configured, OTP for {mask_phone(phone_number)} was not delivered")
            return

        recipient = format_mobile_e164(phone_number, self.config.SMS_DEFAULT_COUNTRY_CODE)
        payload = {
            "recipient": recipient,
            "sender_id": self.config.SMS_SENDER_ID,
            "message": self._build_message(code)
        }

        # requests is blocking; keep it off the event loop
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(None, lambda: self._post(payload))
        except requests.RequestException as e:
            raise SmsDeliveryError(f"SMS sending failed: {str(e)}") from e

        if response.status_code >= 300:
            raise SmsDeliveryError(f"Failed to send SMS: HTTP {response.status_code}")

        logger.info(f"OTP SMS sent to {mask_phone(recipient)}")
