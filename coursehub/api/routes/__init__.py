from __future__ import annotations

from coursehub.api.routes.courses import router as courses_router
from coursehub.api.routes.health import router as health_router
from coursehub.api.routes.reports import router as reports_router
from coursehub.api.routes.verification import router as verification_router

__all__ = ["courses_router", "health_router", "reports_router", "verification_router"]
