# app/services/email_service.py
"""
Outbound email through the Resend HTTP API
"""

import logging
from typing import List, Optional, Union

import httpx

from app.config.settings import settings
from app.domain.errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    """Thin client for the Resend `POST /emails` endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.sender = sender or settings.RESEND_EMAIL_FROM
        self.api_url = api_url or settings.RESEND_API_URL
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        text: str,
        html: Optional[str] = None,
    ) -> Optional[dict]:
        """Send one message. Returns the provider response, or None when email is disabled."""
        if not self.enabled:
            logger.info(f"Email disabled (no RESEND_API_KEY), skipping '{subject}' to {to}")
            return None

        payload = {
            "from": self.sender,
            "to": to if isinstance(to, list) else [to],
            "subject": subject,
            "html": html or f"<p>{text}</p>",
            "text": text,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )

        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"Email provider returned {response.status_code}: {response.text}"
            )

        logger.info(f"Email '{subject}' sent to {to}")
        return response.json()


email_service = EmailService()
