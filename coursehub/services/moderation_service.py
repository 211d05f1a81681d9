"""Intake of user reports about links."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from coursehub.adapters.store.base import AbstractReportStore
from coursehub.schemas.reports import ReportCreate
from coursehub.services.captcha_gate import CaptchaGate

logger = logging.getLogger(__name__)


class ModerationIntake:
    def __init__(self, reports: AbstractReportStore, captcha: CaptchaGate) -> None:
        self.reports = reports
        self.captcha = captcha

    async def submit_report(self, payload: ReportCreate, caller_origin: str) -> None:
        """Store a report stamped with the caller's network origin.

        ``caller_origin`` comes from the connection; the body cannot set it.
        Duplicate reports are accepted.

        Raises:
            ValidationAppError: Captcha failed.
        """
        await self.captcha.require(payload.captcha_token, caller_origin)
        await self.reports.insert_report(
            {
                "link_id": payload.link_id,
                "reason": payload.reason,
                "ip": caller_origin,
                "createdAt": datetime.now(timezone.utc),
            }
        )
        logger.info("report.received", extra={"link_id": payload.link_id})
