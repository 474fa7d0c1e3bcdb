from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence

from fleet_dedupe.config import MatchingConfig
from fleet_dedupe.models import BulkResult, CustomerRecord, DuplicateCluster, MatchCandidate
from fleet_dedupe.schema import MatchReason
from fleet_dedupe.steps.normalize import normalize_email, normalize_phone
from fleet_dedupe.steps.scoring import name_part_similarity, phonetic_key

logger = logging.getLogger(__name__)


class _BatchIndex:
    """Exact-key buckets over the unprocessed records of one batch."""

    def __init__(self, records: Sequence[CustomerRecord], processed_ids: set[str]) -> None:
        self.by_phone: dict[str, list[CustomerRecord]] = defaultdict(list)
        self.by_email: dict[str, list[CustomerRecord]] = defaultdict(list)
        self.by_name_key: dict[str, list[CustomerRecord]] = defaultdict(list)

        for record in records:
            if record.id in processed_ids:
                continue
            phone = normalize_phone(record.phone_number)
            if phone:
                self.by_phone[phone].append(record)
            email = normalize_email(record.email)
            if email:
                self.by_email[email].append(record)
            key = phonetic_key(record.full_name)
            if key:
                self.by_name_key[key].append(record)


class BulkDuplicateClusterer:
    """Groups a customer table into duplicate clusters, one per anchor record.

    Only the anchor is marked processed, and processed records are never
    matched again. A record found as someone else's duplicate can still anchor
    its own cluster later in the run, so clusters may share members.
    """

    def __init__(self, config: MatchingConfig | None = None) -> None:
        self._config = config or MatchingConfig()

    def find_bulk_duplicates(
        self,
        records: Sequence[CustomerRecord],
        similarity_threshold: float | None = None,
        processed_ids: set[str] | None = None,
        progress: Callable[[int, int], None] | None = None,
    ) -> BulkResult:
        threshold = (
            self._config.bulk_similarity_threshold
            if similarity_threshold is None
            else similarity_threshold
        )
        processed = processed_ids if processed_ids is not None else set()
        batch_size = self._config.batch_size

        clusters: list[DuplicateCluster] = []
        total_duplicates = 0
        processed_count = 0

        for start in range(0, len(records), batch_size):
            batch = records[start : start + batch_size]
            index = _BatchIndex(batch, processed)

            for record in batch:
                if record.id is None or record.id in processed:
                    continue
                processed_count += 1

                cluster = self._cluster_for(record, index, threshold, processed)
                if cluster is not None:
                    clusters.append(cluster)
                    total_duplicates += len(cluster.duplicates)
                processed.add(record.id)

            if progress is not None:
                progress(min(start + batch_size, len(records)), len(records))

        clusters.sort(key=lambda cluster: cluster.similarity, reverse=True)
        logger.info(
            "Clustered %d records: %d clusters, %d potential duplicates",
            processed_count,
            len(clusters),
            total_duplicates,
        )
        return BulkResult(
            clusters=clusters,
            total_duplicates=total_duplicates,
            processed_count=processed_count,
        )

    def _cluster_for(
        self,
        anchor: CustomerRecord,
        index: _BatchIndex,
        threshold: float,
        processed: set[str],
    ) -> DuplicateCluster | None:
        found: dict[str, MatchCandidate] = {}
        triggered: list[MatchReason] = []

        def add(record: CustomerRecord, similarity: float, reason: MatchReason) -> None:
            if record.id is None or record.id == anchor.id or record.id in processed:
                return
            if reason not in triggered:
                triggered.append(reason)
            if record.id in found:
                found[record.id].add_reason(reason, similarity)
            else:
                found[record.id] = MatchCandidate.from_record(record, similarity, [reason])

        phone = normalize_phone(anchor.phone_number)
        if phone:
            for other in index.by_phone.get(phone, ()):
                add(other, 1.0, MatchReason.EXACT_PHONE)

        email = normalize_email(anchor.email)
        if email:
            for other in index.by_email.get(email, ()):
                add(other, 1.0, MatchReason.EXACT_EMAIL)

        key = phonetic_key(anchor.full_name)
        if key:
            for other in index.by_name_key.get(key, ()):
                if other.id == anchor.id or other.id in processed:
                    continue
                similarity = name_part_similarity(anchor.full_name, other.full_name)
                if similarity >= threshold:
                    add(other, similarity, MatchReason.SIMILAR_NAME_PARTS)

        if not found:
            return None

        duplicates = list(found.values())
        head = MatchCandidate.from_record(anchor, 1.0, triggered)
        return DuplicateCluster(
            members=[head, *duplicates],
            similarity=max(member.similarity for member in duplicates),
            reasons=list(triggered),
        )
