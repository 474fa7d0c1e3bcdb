from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fleet_dedupe.schema import MatchReason


@dataclass(slots=True)
class CustomerRecord:
    """Identifying fields of a customer profile.

    ``id`` is ``None`` for a record that has not been saved yet.
    """

    id: str | None = None
    full_name: str | None = None
    phone_number: str | None = None
    email: str | None = None

    def has_identifying_fields(self) -> bool:
        return any(
            value and value.strip() for value in (self.full_name, self.phone_number, self.email)
        )


@dataclass(slots=True)
class MatchCandidate:
    """A record that probably duplicates another, with the signals that matched."""

    id: str | None
    full_name: str | None
    phone_number: str | None
    email: str | None
    similarity: float
    reasons: list[MatchReason] = field(default_factory=list)

    @classmethod
    def from_record(
        cls,
        record: CustomerRecord,
        similarity: float,
        reasons: list[MatchReason],
        *,
        with_contact: bool = True,
    ) -> "MatchCandidate":
        return cls(
            id=record.id,
            full_name=record.full_name,
            phone_number=record.phone_number if with_contact else None,
            email=record.email if with_contact else None,
            similarity=similarity,
            reasons=list(reasons),
        )

    def add_reason(self, reason: MatchReason, similarity: float) -> None:
        if reason not in self.reasons:
            self.reasons.append(reason)
        self.similarity = max(self.similarity, similarity)


@dataclass(slots=True)
class DuplicateCluster:
    """Records believed to be the same customer; the first member is the anchor."""

    members: list[MatchCandidate]
    similarity: float
    reasons: list[MatchReason]

    @property
    def anchor(self) -> MatchCandidate:
        return self.members[0]

    @property
    def duplicates(self) -> list[MatchCandidate]:
        return self.members[1:]

    @property
    def record_ids(self) -> list[str | None]:
        return [member.id for member in self.members]


@dataclass(slots=True)
class BulkResult:
    clusters: list[DuplicateCluster]
    total_duplicates: int
    processed_count: int
