"""Contribution workflows: courses, sections, links, clicks and codes.

Each method validates its gate (captcha or one-time code), performs a single
conditional store mutation and maps the outcome to a domain error. Routes
only translate HTTP to these calls.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from coursehub.adapters.email.base import AbstractEmailSender, DeliveryOutcome
from coursehub.adapters.store.base import AbstractHierarchyStore, MutationOutcome
from coursehub.core.errors import (
    ConflictAppError,
    DeliveryAppError,
    GoneAppError,
    NotFoundAppError,
    UnauthorizedAppError,
    UnprocessableAppError,
)
from coursehub.core.logging import hash_identifier
from coursehub.schemas.courses import CourseCreate, LinkCreate, SectionCreate
from coursehub.schemas.verification import VerificationRequest
from coursehub.services.captcha_gate import CaptchaGate
from coursehub.services.verification_service import VerificationResult, VerificationService, normalize_identity

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ContributionService:
    """Anonymous writes to the course hierarchy.

    Attributes:
        store: Hierarchy store performing the conditional mutations.
        captcha: Gate applied to course, section and verification requests.
        verification: One-time code service gating link creation.
        email: Sender used to deliver verification codes.
    """

    def __init__(
        self,
        store: AbstractHierarchyStore,
        captcha: CaptchaGate,
        verification: VerificationService,
        email: AbstractEmailSender,
    ) -> None:
        self.store = store
        self.captcha = captcha
        self.verification = verification
        self.email = email

    async def create_course(self, payload: CourseCreate, remote_ip: str | None = None) -> str:
        """Create a course and return its derived code.

        Raises:
            ValidationAppError: Captcha failed.
            ConflictAppError: A course with the same code exists.
        """
        await self.captcha.require(payload.captcha_token, remote_ip)

        code = payload.code
        document = payload.model_dump(exclude={"captcha_token"})
        document.update(code=code, sections=[], createdAt=_now())

        outcome = await self.store.create_course(document)
        if outcome is MutationOutcome.CONFLICT:
            raise ConflictAppError(
                code="course_exists",
                message="Course already exists.",
                details={"course_code": code},
            )
        logger.info("course.created", extra={"course_code": code})
        return code

    async def create_section(self, code: str, payload: SectionCreate, remote_ip: str | None = None) -> None:
        """Add a named section to an existing course.

        Raises:
            ValidationAppError: Captcha failed.
            NotFoundAppError: No such course.
            ConflictAppError: The course already has a section with that name.
        """
        await self.captcha.require(payload.captcha_token, remote_ip)

        outcome = await self.store.create_section(code, {"name": payload.name, "links": [], "createdAt": _now()})
        if outcome is MutationOutcome.NOT_FOUND:
            raise NotFoundAppError(
                code="course_not_found",
                message="Course not found.",
                details={"course_code": code},
            )
        if outcome is MutationOutcome.CONFLICT:
            raise ConflictAppError(
                code="section_exists",
                message="Section already exists.",
                details={"course_code": code, "section": payload.name},
            )
        logger.info("section.created", extra={"course_code": code, "section": payload.name})

    async def create_link(self, code: str, section: str, payload: LinkCreate) -> None:
        """Add a link to a section, gated by the submitter's one-time code.

        The code is consumed before the store is touched; a link conflict
        afterwards still uses it up.

        Raises:
            GoneAppError: No live code for the submitter.
            UnauthorizedAppError: The code does not match.
            NotFoundAppError: No such course or section.
            ConflictAppError: The section already holds this url.
        """
        result = self.verification.check_code(payload.username, payload.code)
        if result is VerificationResult.MISSING:
            raise GoneAppError(
                code="verification_code_missing",
                message="No verification code was issued or it has expired. Request a new one.",
            )
        if result is VerificationResult.MISMATCH:
            raise UnauthorizedAppError(
                code="verification_code_mismatch",
                message="Verification code does not match.",
            )

        now = _now()
        link = {"type": payload.type, "url": payload.url, "clicks": 0, "createdAt": now, "updatedAt": now}
        outcome = await self.store.create_link(code, section, link)
        if outcome is MutationOutcome.NOT_FOUND:
            raise NotFoundAppError(
                code="section_not_found",
                message="Course or section not found.",
                details={"course_code": code, "section": section},
            )
        if outcome is MutationOutcome.CONFLICT:
            raise ConflictAppError(
                code="link_exists",
                message="Link already exists in this section.",
                details={"course_code": code, "section": section},
            )
        logger.info("link.created", extra={"course_code": code, "section": section})

    async def record_click(self, code: str, section: str, url: str) -> bool:
        """Count one click. Unknown links are ignored; returns whether one matched."""
        matched = await self.store.increment_link_clicks(code, section, url)
        if not matched:
            logger.debug("link.click_unmatched", extra={"course_code": code, "section": section})
        return matched

    async def request_verification(self, payload: VerificationRequest, remote_ip: str | None = None) -> bool:
        """Issue and email a one-time code unless one was sent recently.

        Returns:
            True when a new code was sent, False inside the cooldown.

        Raises:
            ValidationAppError: Captcha failed.
            UnprocessableAppError: The address cannot receive email.
            DeliveryAppError: The provider did not accept the message.
        """
        await self.captcha.require(payload.captcha_token, remote_ip)

        code = self.verification.issue_code_unless_recent(payload.username)
        if code is None:
            return False

        outcome = await self.verification.deliver(self.email, payload.username, code)
        if outcome is DeliveryOutcome.ACCEPTED:
            return True

        # Undelivered codes are withdrawn so the user can retry at once.
        self.verification.revoke(payload.username, code)
        identity_hash = hash_identifier(normalize_identity(payload.username))
        if outcome is DeliveryOutcome.INVALID_ADDRESS:
            raise UnprocessableAppError(
                code="invalid_email",
                message="Email address cannot receive messages.",
                details={"field": "username"},
            )
        logger.error("verification.delivery_failed", extra={"identity_hash": identity_hash})
        raise DeliveryAppError(
            code="email_delivery_failed",
            message="Email provider did not accept the verification message.",
            details={"provider": type(self.email).__name__},
        )
