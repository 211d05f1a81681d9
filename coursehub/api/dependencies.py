"""Route dependencies resolving the per-application service container."""

from fastapi import Request

from coursehub.core.rate_limit import caller_identity
from coursehub.services.container import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_caller(request: Request) -> str:
    return caller_identity(request)
