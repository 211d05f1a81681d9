"""Factory for the configured captcha provider."""

import logging

from coursehub.adapters.captcha.base import AbstractCaptchaVerifier
from coursehub.adapters.captcha.recaptcha import DisabledCaptchaVerifier, RecaptchaVerifier
from coursehub.core.config import settings
from coursehub.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_captcha_verifier() -> AbstractCaptchaVerifier:
    """Instantiate the captcha verifier named by ``CAPTCHA_PROVIDER``.

    Returns:
        AbstractCaptchaVerifier: Configured verifier instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    provider = settings.captcha.provider.lower()

    if provider == "recaptcha":
        if not settings.captcha.secret:
            raise ValidationAppError(
                code="captcha_missing_secret",
                message="reCAPTCHA provider requires CAPTCHA_SECRET environment variable",
            )
        return RecaptchaVerifier(
            secret=settings.captcha.secret,
            verify_url=settings.captcha.verify_url,
            timeout_seconds=settings.captcha.timeout_seconds,
        )

    if provider == "disabled":
        logger.warning("captcha.disabled", extra={"app_env": settings.app_env})
        return DisabledCaptchaVerifier()

    raise ValidationAppError(
        code="captcha_unknown_provider",
        message=f"Unknown captcha provider: '{provider}'. Supported providers: recaptcha, disabled",
    )
