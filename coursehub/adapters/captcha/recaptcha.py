"""Google reCAPTCHA adapter."""

import logging

import httpx

from coursehub.adapters.captcha.base import AbstractCaptchaVerifier

logger = logging.getLogger(__name__)


class RecaptchaVerifier(AbstractCaptchaVerifier):
    """Verify tokens against the reCAPTCHA ``siteverify`` endpoint.

    A transport error or a non-2xx answer counts as a failed verification;
    the enclosing request fails and the client is expected to resubmit.
    """

    def __init__(
        self,
        secret: str,
        *,
        verify_url: str = "https://www.google.com/recaptcha/api/siteverify",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.secret = secret
        self.verify_url = verify_url
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def verify(self, token: str, *, remote_ip: str | None = None) -> bool:
        if not token:
            return False

        form = {"secret": self.secret, "response": token}
        if remote_ip:
            form["remoteip"] = remote_ip

        try:
            response = await self.client.post(self.verify_url, data=form)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("captcha.provider_error", extra={"error_type": type(exc).__name__})
            return False

        success = bool(payload.get("success"))
        if not success:
            logger.info(
                "captcha.rejected",
                extra={"error_codes": payload.get("error-codes", [])},
            )
        return success

    async def aclose(self) -> None:
        await self.client.aclose()


class DisabledCaptchaVerifier(AbstractCaptchaVerifier):
    """Accepts any non-empty token. Local development only."""

    async def verify(self, token: str, *, remote_ip: str | None = None) -> bool:
        return bool(token)
