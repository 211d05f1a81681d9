from __future__ import annotations

from fastapi import APIRouter, Depends

from coursehub.api.dependencies import get_caller, get_services
from coursehub.core.rate_limit import REPORT_SUBMISSION, admit
from coursehub.schemas.reports import ReportCreate, ReportCreated
from coursehub.services.container import Services

router = APIRouter(tags=["Reports"])


@router.post(
    "/report",
    status_code=201,
    response_model=ReportCreated,
    dependencies=[Depends(admit(REPORT_SUBMISSION))],
)
async def submit_report(
    payload: ReportCreate,
    services: Services = Depends(get_services),
    caller: str = Depends(get_caller),
) -> ReportCreated:
    await services.moderation.submit_report(payload, caller)
    return ReportCreated(link_id=payload.link_id, reason=payload.reason)
