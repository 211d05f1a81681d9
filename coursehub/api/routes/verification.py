from __future__ import annotations

from fastapi import APIRouter, Depends

from coursehub.api.dependencies import get_caller, get_services
from coursehub.core.rate_limit import VERIFICATION_CALLER, VERIFICATION_GLOBAL, admit
from coursehub.schemas.verification import VerificationRequest, VerificationRequested
from coursehub.services.container import Services

router = APIRouter(tags=["Verification"])


@router.post(
    "/verify/create",
    status_code=201,
    response_model=VerificationRequested,
    dependencies=[Depends(admit(VERIFICATION_CALLER, VERIFICATION_GLOBAL))],
)
async def request_verification_code(
    payload: VerificationRequest,
    services: Services = Depends(get_services),
    caller: str = Depends(get_caller),
) -> VerificationRequested:
    """Email a one-time code to ``username``.

    Repeating the request while a recent code is live succeeds without
    sending a new one.
    """
    await services.contributions.request_verification(payload, caller)
    return VerificationRequested(username=payload.username)
