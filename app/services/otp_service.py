import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.core.config import settings
from app.core.exceptions import InvalidPhoneFormatException, SMSDeliveryException
from app.repositories.base import Repositories
from app.schemas.auth_schema import OTPSendResponse
from app.services.sms_service import SMSSender

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")


def generate_code(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


class OTPService:
    def __init__(
        self,
        repos: Repositories,
        sms_sender: Optional[SMSSender],
        development: bool,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repos = repos
        self.sms_sender = sms_sender
        self.development = development
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def send_code(self, phone: str) -> OTPSendResponse:
        phone = phone.strip()
        if not PHONE_PATTERN.match(phone):
            raise InvalidPhoneFormatException()

        code = generate_code(settings.OTP_LENGTH)
        now = self.clock()
        await self.repos.otps.insert(
            phone=phone,
            code=code,
            created_at=now,
            expires_at=now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        )

        if self.sms_sender is not None:
            try:
                await self.sms_sender.send(phone, f"Your MindMate verification code is: {code}")
                return OTPSendResponse(success=True)
            except SMSDeliveryException:
                if not self.development:
                    raise
                logger.warning("SMS delivery to %s failed; returning code in response", phone)
        elif not self.development:
            logger.error("SMS is not configured; cannot deliver OTP to %s", phone)
            raise SMSDeliveryException("SMS delivery is not configured.")

        logger.debug("Development OTP for %s: %s", phone, code)
        return OTPSendResponse(success=True, developmentOtp=code)
