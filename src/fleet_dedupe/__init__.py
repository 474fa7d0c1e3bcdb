"""Duplicate customer-record detection for a fleet rental back office."""

from fleet_dedupe.config import MatchingConfig
from fleet_dedupe.models import BulkResult, CustomerRecord, DuplicateCluster, MatchCandidate
from fleet_dedupe.schema import FieldTag, MatchReason, RecordSchema

__all__ = [
    "BulkResult",
    "CustomerRecord",
    "DuplicateCluster",
    "FieldTag",
    "MatchCandidate",
    "MatchReason",
    "MatchingConfig",
    "RecordSchema",
]
