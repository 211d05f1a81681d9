from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class MutationOutcome(str, Enum):
	"""Result of a conditional hierarchy mutation."""

	CREATED = "created"
	CONFLICT = "conflict"
	NOT_FOUND = "not_found"


class AbstractHierarchyStore(ABC):
	"""Persistence for the course -> section -> link hierarchy.

	Each mutation is a single conditional operation: the existence and
	uniqueness checks are part of the write itself, so two concurrent
	requests for the same entry can never both succeed.
	"""

	@abstractmethod
	async def create_course(self, course: dict[str, Any]) -> MutationOutcome:
		"""Insert a course document unless one with the same ``code`` exists.

		Args:
			course: Course document. ``code`` is the unique key.

		Returns:
			MutationOutcome: CREATED or CONFLICT.
		"""
		...

	@abstractmethod
	async def create_section(self, code: str, section: dict[str, Any]) -> MutationOutcome:
		"""Append ``section`` to course ``code`` unless its name is taken.

		Returns:
			MutationOutcome: CREATED, CONFLICT or NOT_FOUND (no such course).
		"""
		...

	@abstractmethod
	async def create_link(self, code: str, section_name: str, link: dict[str, Any]) -> MutationOutcome:
		"""Append ``link`` to a section unless the section already holds its url.

		Returns:
			MutationOutcome: CREATED, CONFLICT or NOT_FOUND (no such course or section).
		"""
		...

	@abstractmethod
	async def increment_link_clicks(self, code: str, section_name: str, url: str) -> bool:
		"""Add one click to the matching link. Returns whether a link matched."""
		...

	@abstractmethod
	async def find_courses(self, query: str | None = None, limit: int = 0) -> list[dict[str, Any]]:
		"""List course summaries, optionally filtered by name or code (0 = no limit)."""
		...

	@abstractmethod
	async def get_course(self, code: str) -> dict[str, Any] | None:
		...

	@abstractmethod
	async def count_courses(self) -> int:
		...

	@abstractmethod
	async def count_links(self) -> int:
		...

	@abstractmethod
	async def total_clicks(self) -> int:
		...

	@abstractmethod
	async def course_link_clicks(self, code: str) -> list[dict[str, Any]] | None:
		"""Per-link click counts of one course, or None when it does not exist."""
		...

	async def ensure_indexes(self) -> None:
		"""Create the indexes the conditional writes rely on."""

	async def close(self) -> None:
		"""Release the underlying connection."""


class AbstractReportStore(ABC):
	"""Write-only sink for link reports."""

	@abstractmethod
	async def insert_report(self, report: dict[str, Any]) -> None:
		...

	async def close(self) -> None:
		"""Release the underlying connection."""
