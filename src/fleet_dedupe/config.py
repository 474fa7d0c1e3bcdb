from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MatchingConfig:
    """Thresholds and limits shared by the interactive and bulk matchers."""

    result_limit: int = 5
    candidate_fetch_limit: int = 100

    interactive_name_threshold: float = 0.7
    phonetic_match_similarity: float = 0.9

    similar_phone_digits: int = 6
    similar_phone_similarity: float = 0.8

    email_local_max_edits: int = 3
    similar_email_similarity: float = 0.7

    bulk_similarity_threshold: float = 0.7
    batch_size: int = 50

    debounce_seconds: float = 0.5

    def __post_init__(self) -> None:
        if self.result_limit < 1:
            raise ValueError("result_limit must be positive")
        if self.batch_size < 1:
            raise ValueError("batch_size must be positive")
        if not 0.0 <= self.bulk_similarity_threshold <= 1.0:
            raise ValueError("bulk_similarity_threshold must be within [0, 1]")
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must not be negative")
