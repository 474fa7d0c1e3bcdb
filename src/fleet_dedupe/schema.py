from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Mapping, Sequence

from fleet_dedupe.models import CustomerRecord


class FieldTag(StrEnum):
    ID = "ID"
    NAME = "NAME"
    PHONE = "PHONE"
    EMAIL = "EMAIL"


class MatchReason(StrEnum):
    """Why two customer records were considered duplicates."""

    EXACT_PHONE = "Exact phone number match"
    SIMILAR_PHONE = "Similar phone number"
    SIMILAR_NAME_PARTS = "Similar name parts"
    SIMILAR_SOUNDING_NAME = "Similar sounding name"
    EXACT_EMAIL = "Exact email match"
    SIMILAR_EMAIL = "Similar email address"

    @property
    def field(self) -> FieldTag:
        return _REASON_FIELDS[self]

    @property
    def is_exact(self) -> bool:
        return self in (MatchReason.EXACT_PHONE, MatchReason.EXACT_EMAIL)


_REASON_FIELDS = {
    MatchReason.EXACT_PHONE: FieldTag.PHONE,
    MatchReason.SIMILAR_PHONE: FieldTag.PHONE,
    MatchReason.SIMILAR_NAME_PARTS: FieldTag.NAME,
    MatchReason.SIMILAR_SOUNDING_NAME: FieldTag.NAME,
    MatchReason.EXACT_EMAIL: FieldTag.EMAIL,
    MatchReason.SIMILAR_EMAIL: FieldTag.EMAIL,
}


@dataclass(frozen=True)
class RecordSchema:
    """Maps source-system columns to the fields a customer record carries."""

    tag_to_columns: Mapping[FieldTag, tuple[str, ...]]

    @classmethod
    def from_mapping(cls, mapping: Mapping[FieldTag, Sequence[str]]) -> "RecordSchema":
        frozen = {tag: tuple(columns) for tag, columns in mapping.items()}
        return cls(tag_to_columns=frozen)

    def columns_for(self, tag: FieldTag) -> tuple[str, ...]:
        return self.tag_to_columns.get(tag, ())

    def value_for(self, row: Mapping[str, object], tag: FieldTag) -> str | None:
        """First non-blank value among the columns mapped to ``tag``."""
        for column in self.columns_for(tag):
            value = row.get(column)
            if value is None:
                continue
            text = str(value).strip()
            if text:
                return text
        return None

    def to_record(self, row: Mapping[str, object]) -> CustomerRecord:
        return CustomerRecord(
            id=self.value_for(row, FieldTag.ID),
            full_name=self.value_for(row, FieldTag.NAME),
            phone_number=self.value_for(row, FieldTag.PHONE),
            email=self.value_for(row, FieldTag.EMAIL),
        )

    def to_row(self, record: CustomerRecord) -> dict[str, str]:
        row: dict[str, str] = {}
        for tag, value in (
            (FieldTag.ID, record.id),
            (FieldTag.NAME, record.full_name),
            (FieldTag.PHONE, record.phone_number),
            (FieldTag.EMAIL, record.email),
        ):
            columns = self.columns_for(tag)
            if columns:
                row[columns[0]] = value or ""
        return row


PROFILE_SCHEMA = RecordSchema.from_mapping(
    {
        FieldTag.ID: ["id"],
        FieldTag.NAME: ["full_name"],
        FieldTag.PHONE: ["phone_number"],
        FieldTag.EMAIL: ["email"],
    }
)
