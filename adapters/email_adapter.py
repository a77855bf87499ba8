"""
Resend email API adapter.

Sends the end-of-survey result email. Failures are reported on the returned
EmailDelivery rather than raised, so a provider outage never affects a
response that has already been stored.
"""

import httpx
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from config import settings
from utils.rate_limiter import with_rate_limit

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    """
    Outbound email.

    Attributes:
        to: Recipient addresses
        subject: Subject line
        html: HTML body
        sender: From header, defaults to settings.email_from
    """
    to: List[str]
    subject: str
    html: str
    sender: Optional[str] = None


@dataclass
class EmailDelivery:
    """
    Result of one send attempt.

    Attributes:
        message_id: Provider message id when accepted
        error: Error message if the send failed
    """
    message_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_sent(self) -> bool:
        return self.error is None and self.message_id is not None


class ResendEmailAdapter:
    """
    Adapter for the Resend transactional email API.

    Environment Variables:
        RESEND_API_KEY: Resend API key; without it the adapter is unconfigured
        RESEND_BASE_URL: API root, overridable for tests

    Args:
        transport: Optional httpx transport, used by tests to stub the API
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = settings.resend_api_key
        self.base_url = settings.resend_base_url.rstrip("/")
        self.is_configured = bool(self.api_key)
        self.timeout = settings.request_timeout_seconds
        self._transport = transport

    async def send(self, message: EmailMessage) -> EmailDelivery:
        """
        Send an email.

        Args:
            message: Message to send

        Returns:
            EmailDelivery with the provider id or an error
        """
        if not self.is_configured:
            return EmailDelivery(error="Email provider not configured")
        try:
            return await self._post(message)
        except httpx.TimeoutException:
            logger.error(f"Resend API timeout sending to {message.to}")
            return EmailDelivery(error="API request timed out")
        except httpx.HTTPStatusError as e:
            logger.error(f"Resend API error {e.response.status_code}: {e}")
            return EmailDelivery(error=f"API error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Resend API request failed: {e}")
            return EmailDelivery(error=f"Request failed: {str(e)}")
        except Exception as e:
            logger.error(f"Resend API unexpected error: {e}")
            return EmailDelivery(error=f"Unexpected error: {str(e)}")

    @with_rate_limit("resend")
    async def _post(self, message: EmailMessage) -> EmailDelivery:
        payload = {
            "from": message.sender or settings.email_from,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(f"{self.base_url}/emails", json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()

        message_id = data.get("id") if isinstance(data, dict) else None
        logger.info(f"Result email accepted by Resend: {message_id}")
        return EmailDelivery(message_id=message_id, error=None if message_id else "No message id returned")
