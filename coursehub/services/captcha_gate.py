"""Captcha check applied before anonymous writes."""

import logging

from coursehub.adapters.captcha.base import AbstractCaptchaVerifier
from coursehub.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


class CaptchaGate:
    def __init__(self, verifier: AbstractCaptchaVerifier) -> None:
        self.verifier = verifier

    async def require(self, token: str | None, remote_ip: str | None = None) -> None:
        """Raise unless the provider confirms ``token``.

        Raises:
            ValidationAppError: When the token is absent or rejected.
        """
        if token and await self.verifier.verify(token, remote_ip=remote_ip):
            return
        logger.info("captcha.failed", extra={"has_token": bool(token)})
        raise ValidationAppError(
            code="captcha_failed",
            message="Bad request. Check parameters.",
            details={"field": "captchaToken", "hint": "Solve the captcha again and resubmit."},
        )
