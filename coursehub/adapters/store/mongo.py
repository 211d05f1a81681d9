"""MongoDB hierarchy and report stores (motor)."""

from __future__ import annotations

import logging
import re
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from coursehub.adapters.store.base import AbstractHierarchyStore, AbstractReportStore, MutationOutcome
from coursehub.core.errors import StoreAppError

logger = logging.getLogger(__name__)

SUMMARY_PROJECTION = {"_id": 0, "code": 1, "name": 1, "faculty": 1, "subject": 1, "number": 1, "credits": 1}


def _store_error(operation: str, exc: PyMongoError) -> StoreAppError:
    logger.error("store.operation_failed", extra={"operation": operation, "error_type": type(exc).__name__})
    return StoreAppError(
        code="store_unavailable",
        message=f"Store operation '{operation}' failed: {type(exc).__name__}",
    )


def _public_course(doc: dict[str, Any]) -> dict[str, Any]:
    doc.pop("_id", None)
    for section in doc.get("sections", []):
        for link in section.get("links", []):
            if "_id" in link:
                link["_id"] = str(link["_id"])
    return doc


class MongoHierarchyStore(AbstractHierarchyStore):
    """Courses are single documents embedding their sections and links.

    Every write is one conditional ``insert_one``/``update_one`` on the
    course document; MongoDB applies it atomically, so no application lock
    is taken. When a conditional update matches nothing, one read tells a
    missing parent from a duplicate for the caller.
    """

    def __init__(self, collection: AsyncIOMotorCollection, client: AsyncIOMotorClient | None = None) -> None:
        self.collection = collection
        self._client = client

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("code", unique=True)

    async def create_course(self, course: dict[str, Any]) -> MutationOutcome:
        document = {**course, "sections": list(course.get("sections", []))}
        try:
            await self.collection.insert_one(document)
        except DuplicateKeyError:
            logger.info("store.course_conflict", extra={"course_code": course["code"]})
            return MutationOutcome.CONFLICT
        except PyMongoError as exc:
            raise _store_error("create_course", exc) from exc
        return MutationOutcome.CREATED

    async def create_section(self, code: str, section: dict[str, Any]) -> MutationOutcome:
        name = section["name"]
        document = {**section, "links": list(section.get("links", []))}
        try:
            result = await self.collection.update_one(
                {"code": code, "sections.name": {"$ne": name}},
                {"$push": {"sections": document}},
            )
            if result.matched_count:
                return MutationOutcome.CREATED
            exists = await self.collection.find_one({"code": code}, {"_id": 1})
        except PyMongoError as exc:
            raise _store_error("create_section", exc) from exc

        if exists is None:
            return MutationOutcome.NOT_FOUND
        logger.info("store.section_conflict", extra={"course_code": code, "section": name})
        return MutationOutcome.CONFLICT

    async def create_link(self, code: str, section_name: str, link: dict[str, Any]) -> MutationOutcome:
        document = {"_id": ObjectId(), "clicks": 0, **link}
        try:
            result = await self.collection.update_one(
                {
                    "code": code,
                    "sections": {"$elemMatch": {"name": section_name, "links.url": {"$ne": link["url"]}}},
                },
                {"$push": {"sections.$.links": document}},
            )
            if result.matched_count:
                return MutationOutcome.CREATED
            exists = await self.collection.find_one({"code": code, "sections.name": section_name}, {"_id": 1})
        except PyMongoError as exc:
            raise _store_error("create_link", exc) from exc

        if exists is None:
            return MutationOutcome.NOT_FOUND
        logger.info("store.link_conflict", extra={"course_code": code, "section": section_name})
        return MutationOutcome.CONFLICT

    async def increment_link_clicks(self, code: str, section_name: str, url: str) -> bool:
        try:
            result = await self.collection.update_one(
                {"code": code},
                {"$inc": {"sections.$[sec].links.$[link].clicks": 1}},
                array_filters=[{"sec.name": section_name}, {"link.url": url}],
            )
        except PyMongoError as exc:
            raise _store_error("increment_link_clicks", exc) from exc
        return result.modified_count > 0

    async def find_courses(self, query: str | None = None, limit: int = 0) -> list[dict[str, Any]]:
        criteria: dict[str, Any] = {}
        if query:
            criteria["$or"] = [
                {"name": {"$regex": re.escape(query), "$options": "i"}},
                {"code": {"$regex": re.escape(query.replace(" ", "")), "$options": "i"}},
            ]
        try:
            cursor = self.collection.find(criteria, SUMMARY_PROJECTION, limit=max(limit, 0))
            return await cursor.to_list(length=None)
        except PyMongoError as exc:
            raise _store_error("find_courses", exc) from exc

    async def get_course(self, code: str) -> dict[str, Any] | None:
        try:
            doc = await self.collection.find_one({"code": code})
        except PyMongoError as exc:
            raise _store_error("get_course", exc) from exc
        return _public_course(doc) if doc else None

    async def count_courses(self) -> int:
        try:
            return await self.collection.count_documents({})
        except PyMongoError as exc:
            raise _store_error("count_courses", exc) from exc

    async def _sum_links(self, operation: str, value: Any) -> int:
        pipeline = [
            {"$unwind": "$sections"},
            {"$unwind": "$sections.links"},
            {"$group": {"_id": None, "total": {"$sum": value}}},
        ]
        try:
            rows = await self.collection.aggregate(pipeline).to_list(length=1)
        except PyMongoError as exc:
            raise _store_error(operation, exc) from exc
        return int(rows[0]["total"]) if rows else 0

    async def count_links(self) -> int:
        return await self._sum_links("count_links", 1)

    async def total_clicks(self) -> int:
        return await self._sum_links("total_clicks", "$sections.links.clicks")

    async def course_link_clicks(self, code: str) -> list[dict[str, Any]] | None:
        try:
            doc = await self.collection.find_one(
                {"code": code},
                {"_id": 0, "sections.name": 1, "sections.links.type": 1, "sections.links.url": 1, "sections.links.clicks": 1},
            )
        except PyMongoError as exc:
            raise _store_error("course_link_clicks", exc) from exc
        if doc is None:
            return None
        return [
            {"section": section["name"], "type": link["type"], "url": link["url"], "clicks": link.get("clicks", 0)}
            for section in doc.get("sections", [])
            for link in section.get("links", [])
        ]

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()


class MongoReportStore(AbstractReportStore):
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def insert_report(self, report: dict[str, Any]) -> None:
        try:
            await self.collection.insert_one(dict(report))
        except PyMongoError as exc:
            raise _store_error("insert_report", exc) from exc
