from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from coursehub.core.rate_limit import COURSE_SEARCH, admit

router = APIRouter(tags=["Health"])


@router.get("/", response_class=PlainTextResponse, dependencies=[Depends(admit(COURSE_SEARCH))])
def liveness() -> str:
    return "Server is working."


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems; not rate limited.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}
