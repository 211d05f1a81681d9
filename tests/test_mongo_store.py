"""Tests for the MongoDB store: each mutation is one conditional operation."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from coursehub.adapters.store.base import MutationOutcome
from coursehub.adapters.store.mongo import MongoHierarchyStore, MongoReportStore
from coursehub.core.errors import StoreAppError


def _update_result(matched: int, modified: int | None = None) -> MagicMock:
    return MagicMock(matched_count=matched, modified_count=matched if modified is None else modified)


@pytest.fixture
def collection() -> MagicMock:
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock(return_value=_update_result(1))
    collection.find_one = AsyncMock(return_value=None)
    collection.count_documents = AsyncMock(return_value=0)
    collection.create_index = AsyncMock()
    return collection


@pytest.fixture
def store(collection: MagicMock) -> MongoHierarchyStore:
    return MongoHierarchyStore(collection)


@pytest.mark.asyncio
async def test_ensure_indexes_creates_unique_code_index(store, collection) -> None:
    await store.ensure_indexes()

    collection.create_index.assert_awaited_once_with("code", unique=True)


@pytest.mark.asyncio
async def test_create_course_maps_duplicate_key_to_conflict(store, collection) -> None:
    collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

    assert await store.create_course({"code": "ENGCS10043"}) is MutationOutcome.CONFLICT


@pytest.mark.asyncio
async def test_create_course_inserts_with_empty_sections(store, collection) -> None:
    assert await store.create_course({"code": "ENGCS10043", "name": "Intro"}) is MutationOutcome.CREATED

    document = collection.insert_one.await_args.args[0]
    assert document == {"code": "ENGCS10043", "name": "Intro", "sections": []}


@pytest.mark.asyncio
async def test_create_section_is_a_single_conditional_push(store, collection) -> None:
    outcome = await store.create_section("ENGCS10043", {"name": "A"})

    assert outcome is MutationOutcome.CREATED
    filter_, update = collection.update_one.await_args.args
    assert filter_ == {"code": "ENGCS10043", "sections.name": {"$ne": "A"}}
    assert update == {"$push": {"sections": {"name": "A", "links": []}}}
    collection.find_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_section_classifies_unmatched_update(store, collection) -> None:
    collection.update_one.return_value = _update_result(0)

    collection.find_one.return_value = None
    assert await store.create_section("ENGCS10043", {"name": "A"}) is MutationOutcome.NOT_FOUND

    collection.find_one.return_value = {"_id": ObjectId()}
    assert await store.create_section("ENGCS10043", {"name": "A"}) is MutationOutcome.CONFLICT
    collection.insert_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_link_uses_elem_match_and_positional_push(store, collection) -> None:
    link = {"type": "discord", "url": "https://discord.gg/x"}

    assert await store.create_link("ENGCS10043", "A", link) is MutationOutcome.CREATED

    filter_, update = collection.update_one.await_args.args
    assert filter_ == {
        "code": "ENGCS10043",
        "sections": {"$elemMatch": {"name": "A", "links.url": {"$ne": "https://discord.gg/x"}}},
    }
    pushed = update["$push"]["sections.$.links"]
    assert isinstance(pushed["_id"], ObjectId)
    assert pushed["clicks"] == 0
    assert pushed["url"] == "https://discord.gg/x"


@pytest.mark.asyncio
async def test_create_link_classifies_unmatched_update(store, collection) -> None:
    collection.update_one.return_value = _update_result(0)
    link = {"type": "discord", "url": "https://discord.gg/x"}

    assert await store.create_link("ENGCS10043", "A", link) is MutationOutcome.NOT_FOUND
    assert collection.find_one.await_args.args[0] == {"code": "ENGCS10043", "sections.name": "A"}

    collection.find_one.return_value = {"_id": ObjectId()}
    assert await store.create_link("ENGCS10043", "A", link) is MutationOutcome.CONFLICT


@pytest.mark.asyncio
async def test_increment_uses_array_filters(store, collection) -> None:
    assert await store.increment_link_clicks("ENGCS10043", "A", "https://discord.gg/x") is True

    collection.update_one.assert_awaited_once_with(
        {"code": "ENGCS10043"},
        {"$inc": {"sections.$[sec].links.$[link].clicks": 1}},
        array_filters=[{"sec.name": "A"}, {"link.url": "https://discord.gg/x"}],
    )


@pytest.mark.asyncio
async def test_increment_reports_unmatched_link(store, collection) -> None:
    collection.update_one.return_value = _update_result(1, modified=0)

    assert await store.increment_link_clicks("ENGCS10043", "A", "https://nowhere") is False


@pytest.mark.asyncio
async def test_find_courses_escapes_query(store, collection) -> None:
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[{"code": "ENGCS10043"}])
    collection.find = MagicMock(return_value=cursor)

    rows = await store.find_courses("c++ 101", limit=5)

    assert rows == [{"code": "ENGCS10043"}]
    criteria, projection = collection.find.call_args.args
    assert criteria["$or"][0] == {"name": {"$regex": r"c\+\+\ 101", "$options": "i"}}
    assert criteria["$or"][1] == {"code": {"$regex": r"c\+\+101", "$options": "i"}}
    assert projection["_id"] == 0
    assert collection.find.call_args.kwargs["limit"] == 5


@pytest.mark.asyncio
async def test_get_course_stringifies_link_ids(store, collection) -> None:
    link_id = ObjectId()
    collection.find_one.return_value = {
        "_id": ObjectId(),
        "code": "ENGCS10043",
        "sections": [{"name": "A", "links": [{"_id": link_id, "url": "u", "type": "t"}]}],
    }

    course = await store.get_course("ENGCS10043")

    assert "_id" not in course
    assert course["sections"][0]["links"][0]["_id"] == str(link_id)


@pytest.mark.asyncio
async def test_totals_use_aggregation(store, collection) -> None:
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[{"_id": None, "total": 7}])
    collection.aggregate = MagicMock(return_value=cursor)

    assert await store.total_clicks() == 7
    pipeline = collection.aggregate.call_args.args[0]
    assert pipeline[-1]["$group"]["total"] == {"$sum": "$sections.links.clicks"}

    cursor.to_list.return_value = []
    assert await store.count_links() == 0


@pytest.mark.asyncio
async def test_driver_errors_become_store_errors(store, collection) -> None:
    collection.update_one.side_effect = ServerSelectionTimeoutError("no servers")

    with pytest.raises(StoreAppError) as exc_info:
        await store.create_section("ENGCS10043", {"name": "A"})
    assert exc_info.value.code == "store_unavailable"


@pytest.mark.asyncio
async def test_report_store_inserts_document() -> None:
    collection = MagicMock()
    collection.insert_one = AsyncMock()

    await MongoReportStore(collection).insert_report({"link_id": "abc", "reason": "spam", "ip": "10.0.0.1"})

    collection.insert_one.assert_awaited_once_with({"link_id": "abc", "reason": "spam", "ip": "10.0.0.1"})
