"""One-time email verification codes.

An identity (a normalized email address) holds at most one live code at a
time. Codes are issued on request, delivered by email, and consumed by the
first successful check. Records live in a TTL map; an expired record behaves
exactly like a missing one.

State per identity::

    absent --issue--> live --check(match)--> absent
                      live --check(mismatch)--> live
                      live --ttl elapses--> absent
                      live --revoke--> absent
"""

from __future__ import annotations

import hmac
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from coursehub.adapters.email.base import AbstractEmailSender, DeliveryOutcome
from coursehub.core.logging import hash_identifier
from coursehub.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)

_ADDRESS = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_identity(username: str) -> str:
    """Key under which an email address's code is tracked."""
    return username.strip().lower()


def is_deliverable_address(username: str) -> bool:
    """Cheap syntactic check run before contacting the email provider."""
    return bool(_ADDRESS.match(username.strip()))


class VerificationResult(str, Enum):
    VERIFIED = "verified"
    MISMATCH = "mismatch"
    MISSING = "missing"


@dataclass(frozen=True)
class VerificationRecord:
    code: str


class VerificationService:
    """Issues, checks and revokes one-time codes.

    Attributes:
        ttl_seconds: Validity window of an issued code.
        cooldown_seconds: Window in which a repeated issuance is a no-op.
        code_length: Number of digits per code.
    """

    def __init__(
        self,
        ttl_seconds: int = 900,
        cooldown_seconds: int = 900,
        code_length: int = 6,
        *,
        records: SimpleTTLCache[VerificationRecord] | None = None,
    ) -> None:
        if code_length < 1:
            raise ValueError("code_length must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.cooldown_seconds = cooldown_seconds
        self.code_length = code_length
        self._records: SimpleTTLCache[VerificationRecord] = (
            records if records is not None else SimpleTTLCache(ttl_seconds=ttl_seconds)
        )

    def _new_record(self) -> VerificationRecord:
        code = "".join(secrets.choice("0123456789") for _ in range(self.code_length))
        return VerificationRecord(code=code)

    def has_live_code(self, username: str) -> bool:
        return self._records.get(normalize_identity(username)) is not None

    def issuance_age(self, username: str) -> timedelta | None:
        """Time since the live code was issued, or None when there is none."""
        age = self._records.age(normalize_identity(username))
        return timedelta(seconds=age) if age is not None else None

    def issue_code(self, username: str) -> str:
        """Issue a fresh code, replacing any live one."""
        record = self._new_record()
        identity = normalize_identity(username)
        self._records.set(identity, record)
        logger.info("verification.issued", extra={"identity_hash": hash_identifier(identity)})
        return record.code

    def issue_code_unless_recent(self, username: str) -> str | None:
        """Issue a code unless one was issued within the cooldown.

        The age check and the write happen under the map's lock, so two
        concurrent requests for the same identity issue at most one code.

        Returns:
            The new code, or None when a recent live code was kept.
        """
        identity = normalize_identity(username)
        record = self._records.set_unless_younger(identity, self.cooldown_seconds, self._new_record)
        if record is None:
            logger.info("verification.cooldown", extra={"identity_hash": hash_identifier(identity)})
            return None
        logger.info("verification.issued", extra={"identity_hash": hash_identifier(identity)})
        return record.code

    def check_code(self, username: str, code: str) -> VerificationResult:
        """Compare ``code`` with the live code, consuming it on a match.

        A mismatch leaves the record in place so the user can retry within
        the validity window.
        """
        identity = normalize_identity(username)
        candidate = str(code).strip()
        found, consumed = self._records.pop_if(
            identity,
            lambda record: hmac.compare_digest(record.code.encode(), candidate.encode()),
        )
        identity_hash = hash_identifier(identity)
        if not found:
            logger.info("verification.missing", extra={"identity_hash": identity_hash})
            return VerificationResult.MISSING
        if consumed is None:
            logger.info("verification.mismatch", extra={"identity_hash": identity_hash})
            return VerificationResult.MISMATCH
        logger.info("verification.verified", extra={"identity_hash": identity_hash})
        return VerificationResult.VERIFIED

    def verify_code(self, username: str, code: str) -> bool:
        return self.check_code(username, code) is VerificationResult.VERIFIED

    def revoke(self, username: str, code: str | None = None) -> bool:
        """Drop the identity's live code.

        Args:
            username: Address whose code is withdrawn.
            code: When given, only a record still holding this code is
                dropped; a code issued in the meantime stays live.

        Returns:
            True when a record was removed.
        """
        identity = normalize_identity(username)
        if code is None:
            return self._records.pop(identity) is not None
        _, removed = self._records.pop_if(identity, lambda record: record.code == code)
        if removed is None:
            logger.info("verification.revoke_skipped", extra={"identity_hash": hash_identifier(identity)})
        return removed is not None

    async def deliver(self, sender: AbstractEmailSender, username: str, code: str) -> DeliveryOutcome:
        """Send ``code`` to ``username``.

        Addresses that are not syntactically valid never reach the provider.
        """
        if not is_deliverable_address(username):
            logger.info(
                "verification.undeliverable_address",
                extra={"identity_hash": hash_identifier(normalize_identity(username))},
            )
            return DeliveryOutcome.INVALID_ADDRESS
        return await sender.send_code(username.strip(), code)

    def reset(self) -> None:
        self._records.clear()
