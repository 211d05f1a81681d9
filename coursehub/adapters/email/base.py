from abc import ABC, abstractmethod
from enum import Enum


class DeliveryOutcome(str, Enum):
	"""What the provider said about a send attempt."""

	ACCEPTED = "accepted"
	INVALID_ADDRESS = "invalid_address"
	PROVIDER_FAILURE = "provider_failure"


class AbstractEmailSender(ABC):
	"""Interface for providers that deliver verification codes by email."""

	@abstractmethod
	async def send_code(self, recipient: str, code: str) -> DeliveryOutcome:
		"""Send ``code`` to ``recipient``.

		Implementations must not raise for provider or transport failures;
		those are reported as ``DeliveryOutcome.PROVIDER_FAILURE``.

		Args:
			recipient: Destination email address.
			code: One-time code to include in the message.

		Returns:
			DeliveryOutcome: Provider verdict for this message.
		"""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the sender."""
