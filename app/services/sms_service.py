"""SMS delivery through the Twilio REST API."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from app.core.config import Settings
from app.core.exceptions import SMSDeliveryException

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SMSSender(Protocol):
    async def send(self, to: str, body: str) -> None: ...


class TwilioSMSSender:
    """Sends text messages from a single Twilio number."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        account_sid: str,
        auth_token: str,
        from_number: str,
    ) -> None:
        self._client = client
        self._account_sid = account_sid
        self._auth = (account_sid, auth_token)
        self._from = from_number

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: Settings) -> TwilioSMSSender | None:
        """Returns ``None`` when Twilio credentials are not configured."""
        if not settings.sms_configured:
            return None
        return cls(
            client,
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_PHONE_NUMBER,
        )

    async def send(self, to: str, body: str) -> None:
        url = f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"
        try:
            resp = await self._client.post(
                url,
                data={"To": to, "From": self._from, "Body": body},
                auth=self._auth,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Twilio rejected message to %s: %s %s",
                to,
                exc.response.status_code,
                exc.response.text[:300],
            )
            raise SMSDeliveryException()
        except httpx.HTTPError as exc:
            logger.error("Twilio request error for %s: %s", to, exc)
            raise SMSDeliveryException()
        logger.info("SMS sent to %s (sid=%s)", to, resp.json().get("sid"))
