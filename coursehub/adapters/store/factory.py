"""Factory for the configured hierarchy and report stores."""

from motor.motor_asyncio import AsyncIOMotorClient

from coursehub.adapters.store.base import AbstractHierarchyStore, AbstractReportStore
from coursehub.adapters.store.in_memory import InMemoryHierarchyStore, InMemoryReportStore
from coursehub.adapters.store.mongo import MongoHierarchyStore, MongoReportStore
from coursehub.core.config import settings
from coursehub.core.errors import ValidationAppError

COURSES_COLLECTION = "courses"
REPORTS_COLLECTION = "reports"


def create_stores() -> tuple[AbstractHierarchyStore, AbstractReportStore]:
    """Instantiate the stores named by ``STORE_BACKEND``.

    Returns:
        tuple: ``(hierarchy_store, report_store)``.

    Raises:
        ValidationAppError: If the backend is unknown.
    """
    backend = settings.store.backend.lower()

    if backend == "memory":
        return InMemoryHierarchyStore(), InMemoryReportStore()

    if backend == "mongo":
        client = AsyncIOMotorClient(
            settings.store.mongo_uri,
            serverSelectionTimeoutMS=settings.store.server_selection_timeout_ms,
        )
        database = client[settings.store.database]
        return (
            MongoHierarchyStore(database[COURSES_COLLECTION], client=client),
            MongoReportStore(database[REPORTS_COLLECTION]),
        )

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: mongo, memory",
    )
