"""In-process hierarchy and report stores for development and tests."""

from __future__ import annotations

import copy
import threading
import uuid
from typing import Any

from coursehub.adapters.store.base import AbstractHierarchyStore, AbstractReportStore, MutationOutcome


class InMemoryHierarchyStore(AbstractHierarchyStore):
    """Dict-backed store. One lock spans each whole operation, which gives
    the same per-document atomicity the Mongo conditional updates have."""

    def __init__(self) -> None:
        self._courses: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _section(course: dict[str, Any], name: str) -> dict[str, Any] | None:
        return next((s for s in course["sections"] if s["name"] == name), None)

    async def create_course(self, course: dict[str, Any]) -> MutationOutcome:
        with self._lock:
            if course["code"] in self._courses:
                return MutationOutcome.CONFLICT
            document = copy.deepcopy(course)
            document.setdefault("sections", [])
            self._courses[course["code"]] = document
            return MutationOutcome.CREATED

    async def create_section(self, code: str, section: dict[str, Any]) -> MutationOutcome:
        with self._lock:
            course = self._courses.get(code)
            if course is None:
                return MutationOutcome.NOT_FOUND
            if self._section(course, section["name"]) is not None:
                return MutationOutcome.CONFLICT
            document = copy.deepcopy(section)
            document.setdefault("links", [])
            course["sections"].append(document)
            return MutationOutcome.CREATED

    async def create_link(self, code: str, section_name: str, link: dict[str, Any]) -> MutationOutcome:
        with self._lock:
            course = self._courses.get(code)
            section = self._section(course, section_name) if course else None
            if section is None:
                return MutationOutcome.NOT_FOUND
            if any(existing["url"] == link["url"] for existing in section["links"]):
                return MutationOutcome.CONFLICT
            section["links"].append({"_id": uuid.uuid4().hex, "clicks": 0, **copy.deepcopy(link)})
            return MutationOutcome.CREATED

    async def increment_link_clicks(self, code: str, section_name: str, url: str) -> bool:
        with self._lock:
            course = self._courses.get(code)
            section = self._section(course, section_name) if course else None
            if section is None:
                return False
            matched = False
            for link in section["links"]:
                if link["url"] == url:
                    link["clicks"] += 1
                    matched = True
            return matched

    async def find_courses(self, query: str | None = None, limit: int = 0) -> list[dict[str, Any]]:
        fields = ("code", "name", "faculty", "subject", "number", "credits")
        with self._lock:
            rows = [{field: course[field] for field in fields} for course in self._courses.values()]
        if query:
            needle = query.lower()
            compact = query.replace(" ", "").lower()
            rows = [row for row in rows if needle in row["name"].lower() or compact in row["code"].lower()]
        return rows[:limit] if limit > 0 else rows

    async def get_course(self, code: str) -> dict[str, Any] | None:
        with self._lock:
            course = self._courses.get(code)
            return copy.deepcopy(course) if course else None

    async def count_courses(self) -> int:
        with self._lock:
            return len(self._courses)

    def _links(self) -> list[dict[str, Any]]:
        return [
            link
            for course in self._courses.values()
            for section in course["sections"]
            for link in section["links"]
        ]

    async def count_links(self) -> int:
        with self._lock:
            return len(self._links())

    async def total_clicks(self) -> int:
        with self._lock:
            return sum(link["clicks"] for link in self._links())

    async def course_link_clicks(self, code: str) -> list[dict[str, Any]] | None:
        with self._lock:
            course = self._courses.get(code)
            if course is None:
                return None
            return [
                {"section": section["name"], "type": link["type"], "url": link["url"], "clicks": link["clicks"]}
                for section in course["sections"]
                for link in section["links"]
            ]


class InMemoryReportStore(AbstractReportStore):
    def __init__(self) -> None:
        self.reports: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    async def insert_report(self, report: dict[str, Any]) -> None:
        with self._lock:
            self.reports.append(dict(report))
