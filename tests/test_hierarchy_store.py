"""Behavioural tests shared by the hierarchy store backends.

The in-process store always runs. The MongoDB store runs the same tests against
a live server when ``COURSEHUB_TEST_MONGO_URI`` is set, e.g.::

    COURSEHUB_TEST_MONGO_URI=mongodb://localhost:27017 pytest tests/test_hierarchy_store.py

Each MongoDB test gets its own throwaway database.
"""

import asyncio
import os
import threading
import uuid

import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient

from coursehub.adapters.store.base import AbstractHierarchyStore, MutationOutcome
from coursehub.adapters.store.in_memory import InMemoryHierarchyStore, InMemoryReportStore
from coursehub.adapters.store.mongo import MongoHierarchyStore

MONGO_URI = os.getenv("COURSEHUB_TEST_MONGO_URI")

CODE = "ENGCS10043"


def _course(code: str = CODE, name: str = "Intro to Computing") -> dict:
    return {
        "code": code,
        "name": name,
        "faculty": "ENG",
        "subject": "CS",
        "number": "1004",
        "credits": "3",
    }


@pytest_asyncio.fixture(
    params=[
        "memory",
        pytest.param(
            "mongo",
            marks=pytest.mark.skipif(not MONGO_URI, reason="COURSEHUB_TEST_MONGO_URI not set"),
        ),
    ]
)
async def store(request: pytest.FixtureRequest):
    if request.param == "memory":
        yield InMemoryHierarchyStore()
        return

    client = AsyncIOMotorClient(MONGO_URI, serverSelectionTimeoutMS=2000)
    database = f"coursehub_test_{uuid.uuid4().hex}"
    mongo_store = MongoHierarchyStore(client[database]["courses"], client=client)
    await mongo_store.ensure_indexes()
    try:
        yield mongo_store
    finally:
        await client.drop_database(database)
        await mongo_store.close()


@pytest_asyncio.fixture
async def populated(store: AbstractHierarchyStore) -> AbstractHierarchyStore:
    await store.create_course(_course())
    await store.create_section(CODE, {"name": "Fall 2024"})
    return store


@pytest.mark.asyncio
async def test_course_code_is_unique(store: AbstractHierarchyStore) -> None:
    assert await store.create_course(_course()) is MutationOutcome.CREATED
    assert await store.create_course(_course(name="Other name")) is MutationOutcome.CONFLICT
    assert await store.count_courses() == 1


@pytest.mark.asyncio
async def test_section_requires_course(store: AbstractHierarchyStore) -> None:
    assert await store.create_section("MISSING", {"name": "A"}) is MutationOutcome.NOT_FOUND


@pytest.mark.asyncio
async def test_section_names_are_case_sensitive(populated: AbstractHierarchyStore) -> None:
    assert await populated.create_section(CODE, {"name": "Fall 2024"}) is MutationOutcome.CONFLICT
    assert await populated.create_section(CODE, {"name": "fall 2024"}) is MutationOutcome.CREATED


@pytest.mark.asyncio
async def test_concurrent_section_creation_creates_exactly_one(store: AbstractHierarchyStore) -> None:
    await store.create_course(_course())

    outcomes = await asyncio.gather(*(store.create_section(CODE, {"name": "A"}) for _ in range(20)))

    assert outcomes.count(MutationOutcome.CREATED) == 1
    assert outcomes.count(MutationOutcome.CONFLICT) == 19
    course = await store.get_course(CODE)
    assert [s["name"] for s in course["sections"]] == ["A"]


@pytest.mark.asyncio
async def test_link_requires_section(populated: AbstractHierarchyStore) -> None:
    link = {"type": "discord", "url": "https://discord.gg/x"}

    assert await populated.create_link("MISSING", "Fall 2024", link) is MutationOutcome.NOT_FOUND
    assert await populated.create_link(CODE, "Winter", link) is MutationOutcome.NOT_FOUND


@pytest.mark.asyncio
async def test_link_url_unique_within_section_only(populated: AbstractHierarchyStore) -> None:
    await populated.create_section(CODE, {"name": "Winter 2025"})
    link = {"type": "discord", "url": "https://discord.gg/x"}

    assert await populated.create_link(CODE, "Fall 2024", link) is MutationOutcome.CREATED
    assert await populated.create_link(CODE, "Fall 2024", link) is MutationOutcome.CONFLICT
    assert await populated.create_link(CODE, "Winter 2025", link) is MutationOutcome.CREATED


@pytest.mark.asyncio
async def test_concurrent_link_creation_creates_exactly_one(populated: AbstractHierarchyStore) -> None:
    link = {"type": "discord", "url": "https://discord.gg/x"}

    outcomes = await asyncio.gather(*(populated.create_link(CODE, "Fall 2024", link) for _ in range(20)))

    assert outcomes.count(MutationOutcome.CREATED) == 1
    assert await populated.count_links() == 1


@pytest.mark.asyncio
async def test_new_link_has_id_and_zero_clicks(populated: AbstractHierarchyStore) -> None:
    await populated.create_link(CODE, "Fall 2024", {"type": "discord", "url": "https://discord.gg/x"})

    course = await populated.get_course(CODE)
    link = course["sections"][0]["links"][0]
    assert link["clicks"] == 0
    assert isinstance(link["_id"], str) and link["_id"]


@pytest.mark.asyncio
async def test_concurrent_increments_are_all_counted(populated: AbstractHierarchyStore) -> None:
    url = "https://discord.gg/x"
    await populated.create_link(CODE, "Fall 2024", {"type": "discord", "url": url})

    results = await asyncio.gather(*(populated.increment_link_clicks(CODE, "Fall 2024", url) for _ in range(50)))

    assert all(results)
    assert await populated.total_clicks() == 50


def test_increments_from_threads_are_all_counted() -> None:
    store = InMemoryHierarchyStore()
    url = "https://discord.gg/x"
    asyncio.run(store.create_course(_course()))
    asyncio.run(store.create_section(CODE, {"name": "A"}))
    asyncio.run(store.create_link(CODE, "A", {"type": "discord", "url": url}))

    def _click() -> None:
        for _ in range(25):
            asyncio.run(store.increment_link_clicks(CODE, "A", url))

    threads = [threading.Thread(target=_click) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert asyncio.run(store.total_clicks()) == 200


@pytest.mark.asyncio
async def test_increment_unknown_link_creates_nothing(populated: AbstractHierarchyStore) -> None:
    assert await populated.increment_link_clicks(CODE, "Fall 2024", "https://nowhere") is False
    assert await populated.increment_link_clicks("MISSING", "Fall 2024", "https://nowhere") is False
    assert await populated.count_links() == 0


@pytest.mark.asyncio
async def test_find_courses_matches_name_or_code(store: AbstractHierarchyStore) -> None:
    await store.create_course(_course())
    await store.create_course(_course(code="SCIMATH1103", name="Calculus I"))

    assert [c["code"] for c in await store.find_courses("calc")] == ["SCIMATH1103"]
    assert [c["code"] for c in await store.find_courses("eng cs")] == [CODE]
    assert len(await store.find_courses()) == 2
    assert len(await store.find_courses(limit=1)) == 1
    assert "sections" not in (await store.find_courses())[0]


@pytest.mark.asyncio
async def test_get_course_returns_a_copy(populated: AbstractHierarchyStore) -> None:
    course = await populated.get_course(CODE)
    course["sections"].clear()

    assert len((await populated.get_course(CODE))["sections"]) == 1
    assert await populated.get_course("MISSING") is None


@pytest.mark.asyncio
async def test_course_link_clicks(populated: AbstractHierarchyStore) -> None:
    url = "https://discord.gg/x"
    await populated.create_link(CODE, "Fall 2024", {"type": "discord", "url": url})
    await populated.increment_link_clicks(CODE, "Fall 2024", url)

    assert await populated.course_link_clicks(CODE) == [
        {"section": "Fall 2024", "type": "discord", "url": url, "clicks": 1}
    ]
    assert await populated.course_link_clicks("MISSING") is None


@pytest.mark.asyncio
async def test_report_store_appends() -> None:
    reports = InMemoryReportStore()

    await reports.insert_report({"link_id": "abc", "reason": "spam", "ip": "10.0.0.1"})
    await reports.insert_report({"link_id": "abc", "reason": "spam", "ip": "10.0.0.1"})

    assert len(reports.reports) == 2
