"""SendGrid email adapter."""

import logging
from typing import Any

import httpx

from coursehub.adapters.email.base import AbstractEmailSender, DeliveryOutcome
from coursehub.core.logging import hash_identifier

logger = logging.getLogger(__name__)


class SendGridEmailSender(AbstractEmailSender):
    """Deliver verification codes through the SendGrid v3 ``mail/send`` API.

    SendGrid answers 202 when it accepts a message and 422 when the
    recipient cannot be addressed; anything else, including transport
    errors, is a provider failure. Nothing is retried.
    """

    def __init__(
        self,
        api_key: str,
        from_address: str,
        *,
        api_url: str = "https://api.sendgrid.com/v3/mail/send",
        subject: str = "Your verification code",
        expires_in_minutes: int = 15,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the sender.

        Args:
            api_key: SendGrid API key.
            from_address: Verified sender address.
            api_url: Send endpoint (overridable for regional hosts).
            subject: Subject line of verification emails.
            expires_in_minutes: Validity stated in the message body.
            timeout_seconds: Timeout for requests in seconds.
            client: Preconfigured async client (tests inject a mock transport).
        """
        self.api_url = api_url
        self.from_address = from_address
        self.subject = subject
        self.expires_in_minutes = expires_in_minutes
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._headers = {"Authorization": f"Bearer {api_key}"}

    def _build_message(self, recipient: str, code: str) -> dict[str, Any]:
        return {
            "personalizations": [{"to": [{"email": recipient}]}],
            "from": {"email": self.from_address},
            "subject": self.subject,
            "content": [
                {
                    "type": "text/plain",
                    "value": (
                        f"Your verification code is {code}.\n"
                        f"It expires in {self.expires_in_minutes} minutes. "
                        "If you did not request it, ignore this email."
                    ),
                }
            ],
        }

    async def send_code(self, recipient: str, code: str) -> DeliveryOutcome:
        recipient_hash = hash_identifier(recipient)
        try:
            response = await self.client.post(
                self.api_url,
                json=self._build_message(recipient, code),
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            logger.error(
                "email.transport_error",
                extra={"recipient_hash": recipient_hash, "error_type": type(exc).__name__},
            )
            return DeliveryOutcome.PROVIDER_FAILURE

        if response.status_code == 202:
            logger.info("email.accepted", extra={"recipient_hash": recipient_hash})
            return DeliveryOutcome.ACCEPTED

        if response.status_code == 422:
            logger.info("email.invalid_address", extra={"recipient_hash": recipient_hash})
            return DeliveryOutcome.INVALID_ADDRESS

        logger.error(
            "email.provider_error",
            extra={"recipient_hash": recipient_hash, "status_code": response.status_code},
        )
        return DeliveryOutcome.PROVIDER_FAILURE

    async def aclose(self) -> None:
        await self.client.aclose()
