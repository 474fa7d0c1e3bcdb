from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from rapidfuzz import fuzz, process

from fleet_dedupe.errors import RecordStoreError
from fleet_dedupe.models import CustomerRecord
from fleet_dedupe.steps.normalize import normalize_name


@dataclass(slots=True)
class _StoredProfile:
    record: CustomerRecord
    role: str
    merged_into: str | None = None
    owned: list[str] = field(default_factory=list)


class InMemoryRecordStore:
    """Local reference store.

    Insertion order stands in for creation time. ``owned`` ids model the rows
    (agreements, payments, ...) that reference a customer and move on merge.
    """

    def __init__(
        self,
        records: Iterable[CustomerRecord] = (),
        *,
        fuzzy_score_cutoff: float = 60.0,
        fuzzy_limit: int = 20,
    ) -> None:
        self._profiles: dict[str, _StoredProfile] = {}
        self._fuzzy_score_cutoff = fuzzy_score_cutoff
        self._fuzzy_limit = fuzzy_limit
        for record in records:
            self.add(record)

    def add(self, record: CustomerRecord, role: str = "customer", owned: Sequence[str] = ()) -> None:
        if not record.id:
            raise ValueError("stored records need an id")
        if record.id in self._profiles:
            raise ValueError(f"duplicate record id: {record.id}")
        self._profiles[record.id] = _StoredProfile(record=record, role=role, owned=list(owned))

    def owned_by(self, record_id: str) -> list[str]:
        return list(self._require(record_id).owned)

    def merged_into(self, record_id: str) -> str | None:
        return self._require(record_id).merged_into

    async def query_records_excluding(
        self, self_id: str | None, limit: int
    ) -> list[CustomerRecord]:
        newest_first = reversed(list(self._active()))
        return [p.record for p in newest_first if p.record.id != self_id][:limit]

    async def fuzzy_name_search(self, search_name: str) -> list[CustomerRecord]:
        query = normalize_name(search_name)
        if not query:
            return []
        choices = {
            p.record.id: normalize_name(p.record.full_name)
            for p in self._active()
            if p.record.full_name
        }
        hits = process.extract(
            query,
            choices,
            scorer=fuzz.token_sort_ratio,
            limit=self._fuzzy_limit,
            score_cutoff=self._fuzzy_score_cutoff,
        )
        return [
            CustomerRecord(id=record_id, full_name=self._profiles[record_id].record.full_name)
            for _, _, record_id in hits
        ]

    async def fetch_all_records(self, role: str = "customer") -> list[CustomerRecord]:
        return [p.record for p in self._active() if p.role == role]

    async def merge_records(self, primary_id: str, duplicate_ids: Sequence[str]) -> None:
        primary = self._require(primary_id)
        for duplicate_id in duplicate_ids:
            duplicate = self._require(duplicate_id)
            primary.owned.extend(duplicate.owned)
            duplicate.owned.clear()

    async def mark_merged(self, duplicate_ids: Sequence[str], primary_id: str) -> None:
        self._require(primary_id)
        for duplicate_id in duplicate_ids:
            self._require(duplicate_id).merged_into = primary_id

    def _active(self) -> Iterable[_StoredProfile]:
        return (p for p in self._profiles.values() if p.merged_into is None)

    def _require(self, record_id: str) -> _StoredProfile:
        try:
            return self._profiles[record_id]
        except KeyError:
            raise RecordStoreError(f"unknown customer record: {record_id}") from None
