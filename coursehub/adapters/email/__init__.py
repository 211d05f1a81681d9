"""Email delivery adapters for one-time verification codes."""

from coursehub.adapters.email.base import AbstractEmailSender, DeliveryOutcome
from coursehub.adapters.email.factory import create_email_sender
from coursehub.adapters.email.sendgrid_client import SendGridEmailSender

__all__ = [
    "AbstractEmailSender",
    "DeliveryOutcome",
    "SendGridEmailSender",
    "create_email_sender",
]
