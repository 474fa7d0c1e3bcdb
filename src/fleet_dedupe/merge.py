from __future__ import annotations

import logging
from collections.abc import Sequence

from fleet_dedupe.errors import MergeError
from fleet_dedupe.interfaces import RecordStore
from fleet_dedupe.models import DuplicateCluster

logger = logging.getLogger(__name__)


async def merge_cluster(store: RecordStore, primary_id: str, duplicate_ids: Sequence[str]) -> list[str]:
    """Fold ``duplicate_ids`` into ``primary_id``: reassign, then soft-delete.

    Returns the de-duplicated list of ids that were merged.
    """
    if not primary_id:
        raise MergeError("a primary record is required")
    losers = list(dict.fromkeys(duplicate_ids))
    if not losers:
        raise MergeError("no duplicate records selected")
    if primary_id in losers:
        raise MergeError(f"primary record {primary_id} cannot also be merged away")

    await store.merge_records(primary_id, losers)
    await store.mark_merged(losers, primary_id)
    logger.info("Merged %d records into %s", len(losers), primary_id)
    return losers


def duplicate_ids_for(cluster: DuplicateCluster, primary_id: str) -> list[str]:
    """Every cluster member except the chosen primary."""
    return [member.id for member in cluster.members if member.id is not None and member.id != primary_id]
