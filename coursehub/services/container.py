"""Service wiring shared by the routes.

``build_services`` assembles the adapters named in settings. Tests build a
``Services`` directly from fakes and pass it to ``create_app``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from coursehub.adapters.captcha.base import AbstractCaptchaVerifier
from coursehub.adapters.captcha.factory import create_captcha_verifier
from coursehub.adapters.email.base import AbstractEmailSender
from coursehub.adapters.email.factory import create_email_sender
from coursehub.adapters.store.base import AbstractHierarchyStore, AbstractReportStore
from coursehub.adapters.store.factory import create_stores
from coursehub.core.config import settings
from coursehub.services.captcha_gate import CaptchaGate
from coursehub.services.catalog_service import CatalogService
from coursehub.services.contribution_service import ContributionService
from coursehub.services.moderation_service import ModerationIntake
from coursehub.services.verification_service import VerificationService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    store: AbstractHierarchyStore
    reports: AbstractReportStore
    captcha_verifier: AbstractCaptchaVerifier
    email: AbstractEmailSender
    verification: VerificationService
    contributions: ContributionService
    catalog: CatalogService
    moderation: ModerationIntake

    @classmethod
    def assemble(
        cls,
        store: AbstractHierarchyStore,
        reports: AbstractReportStore,
        captcha_verifier: AbstractCaptchaVerifier,
        email: AbstractEmailSender,
        verification: VerificationService | None = None,
    ) -> "Services":
        verification = verification or VerificationService(
            ttl_seconds=settings.verification.ttl_seconds,
            cooldown_seconds=settings.verification.cooldown_seconds,
            code_length=settings.verification.code_length,
        )
        gate = CaptchaGate(captcha_verifier)
        return cls(
            store=store,
            reports=reports,
            captcha_verifier=captcha_verifier,
            email=email,
            verification=verification,
            contributions=ContributionService(store, gate, verification, email),
            catalog=CatalogService(store),
            moderation=ModerationIntake(reports, gate),
        )

    async def startup(self) -> None:
        await self.store.ensure_indexes()
        logger.info("services.started", extra={"store": type(self.store).__name__})

    async def shutdown(self) -> None:
        await self.captcha_verifier.aclose()
        await self.email.aclose()
        await self.reports.close()
        await self.store.close()
        logger.info("services.stopped")


def build_services() -> Services:
    """Build the production service graph from settings."""
    store, reports = create_stores()
    return Services.assemble(
        store=store,
        reports=reports,
        captcha_verifier=create_captcha_verifier(),
        email=create_email_sender(),
    )
