from abc import ABC, abstractmethod


class AbstractCaptchaVerifier(ABC):
	"""Interface for third-party captcha token verification."""

	@abstractmethod
	async def verify(self, token: str, *, remote_ip: str | None = None) -> bool:
		"""Ask the provider whether ``token`` proves a human solved the challenge.

		Args:
			token: Opaque client-supplied token.
			remote_ip: Caller address, forwarded to providers that use it.

		Returns:
			bool: True only when the provider confirms the token.
		"""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the verifier."""
