from __future__ import annotations

from typing import Callable, Protocol, Sequence

from fleet_dedupe.models import BulkResult, CustomerRecord, MatchCandidate


class RecordStore(Protocol):
    """Read and merge access to the remote customer profile store."""

    async def query_records_excluding(
        self, self_id: str | None, limit: int
    ) -> list[CustomerRecord]:
        """Most recently created records, newest first, without ``self_id``."""
        ...

    async def fuzzy_name_search(self, search_name: str) -> list[CustomerRecord]:
        """Records whose name is close to ``search_name``; only id and name are set."""
        ...

    async def fetch_all_records(self, role: str = "customer") -> list[CustomerRecord]:
        ...

    async def merge_records(self, primary_id: str, duplicate_ids: Sequence[str]) -> None:
        """Reassign everything owned by ``duplicate_ids`` to ``primary_id``."""
        ...

    async def mark_merged(self, duplicate_ids: Sequence[str], primary_id: str) -> None:
        """Soft-delete ``duplicate_ids`` by pointing them at ``primary_id``."""
        ...


class DuplicateMatcher(Protocol):
    """Single-record check run while a customer form is being edited."""

    async def find_potential_duplicates(self, candidate: CustomerRecord) -> list[MatchCandidate]:
        ...


class DuplicateClusterer(Protocol):
    """Partition a whole customer table into duplicate clusters."""

    def find_bulk_duplicates(
        self,
        records: Sequence[CustomerRecord],
        similarity_threshold: float | None = None,
        processed_ids: set[str] | None = None,
        progress: Callable[[int, int], None] | None = None,
    ) -> BulkResult:
        ...
