"""Document store adapters for the course hierarchy and reports."""

from coursehub.adapters.store.base import AbstractHierarchyStore, AbstractReportStore, MutationOutcome
from coursehub.adapters.store.factory import create_stores
from coursehub.adapters.store.in_memory import InMemoryHierarchyStore, InMemoryReportStore
from coursehub.adapters.store.mongo import MongoHierarchyStore, MongoReportStore

__all__ = [
    "AbstractHierarchyStore",
    "AbstractReportStore",
    "InMemoryHierarchyStore",
    "InMemoryReportStore",
    "MongoHierarchyStore",
    "MongoReportStore",
    "MutationOutcome",
    "create_stores",
]
