"""Read-only views of the course hierarchy."""

from __future__ import annotations

from typing import Any

from coursehub.adapters.store.base import AbstractHierarchyStore
from coursehub.core.errors import NotFoundAppError


class CatalogService:
    def __init__(self, store: AbstractHierarchyStore) -> None:
        self.store = store

    async def search(self, query: str | None = None, limit: int = 0) -> list[dict[str, Any]]:
        return await self.store.find_courses(query.strip() if query else None, limit)

    async def course(self, code: str) -> dict[str, Any]:
        course = await self.store.get_course(code)
        if course is None:
            raise NotFoundAppError(code="course_not_found", message="Course not found.", details={"course_code": code})
        return course

    async def global_stats(self) -> dict[str, int]:
        return {
            "link_count": await self.store.count_links(),
            "course_count": await self.store.count_courses(),
            "click_count": await self.store.total_clicks(),
        }

    async def course_stats(self, code: str) -> dict[str, Any]:
        links = await self.store.course_link_clicks(code)
        if links is None:
            raise NotFoundAppError(code="course_not_found", message="Course not found.", details={"course_code": code})
        return {"code": code, "click_count": sum(link["clicks"] for link in links), "links": links}
