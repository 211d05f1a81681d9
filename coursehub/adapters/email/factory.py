"""Factory for the configured email delivery provider."""

from coursehub.adapters.email.base import AbstractEmailSender
from coursehub.adapters.email.sendgrid_client import SendGridEmailSender
from coursehub.core.config import settings
from coursehub.core.errors import ValidationAppError


def create_email_sender() -> AbstractEmailSender:
    """Instantiate the email sender named by ``EMAIL_PROVIDER``.

    Returns:
        AbstractEmailSender: Configured sender instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    provider = settings.email.provider.lower()

    if provider == "sendgrid":
        if not settings.email.api_key:
            raise ValidationAppError(
                code="email_missing_api_key",
                message="SendGrid provider requires EMAIL_API_KEY environment variable",
            )
        return SendGridEmailSender(
            api_key=settings.email.api_key,
            from_address=settings.email.from_address,
            api_url=settings.email.api_url,
            subject=settings.email.subject,
            expires_in_minutes=max(1, settings.verification.ttl_seconds // 60),
            timeout_seconds=settings.email.timeout_seconds,
        )

    raise ValidationAppError(
        code="email_unknown_provider",
        message=f"Unknown email provider: '{provider}'. Supported providers: sendgrid",
    )
