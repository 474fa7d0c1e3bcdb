from __future__ import annotations

import logging
from collections.abc import Callable

from fleet_dedupe.errors import BulkAnalysisError
from fleet_dedupe.interfaces import DuplicateClusterer, RecordStore
from fleet_dedupe.models import BulkResult

logger = logging.getLogger(__name__)


class BulkAnalysisRunner:
    """Fetches every customer once and clusters them.

    ``progress`` receives a percentage: 0 at start, 25 once records are
    fetched, then per clustered batch up to 100.
    """

    def __init__(
        self,
        store: RecordStore,
        clusterer: DuplicateClusterer,
        role: str = "customer",
    ) -> None:
        self._store = store
        self._clusterer = clusterer
        self._role = role

    async def run(
        self,
        similarity_threshold: float | None = None,
        progress: Callable[[int], None] | None = None,
    ) -> BulkResult:
        report = progress or (lambda percent: None)
        report(0)
        try:
            records = await self._store.fetch_all_records(self._role)
            report(25)
            result = self._clusterer.find_bulk_duplicates(
                records,
                similarity_threshold=similarity_threshold,
                progress=lambda done, total: report(25 + (75 * done) // max(total, 1)),
            )
        except Exception as exc:
            logger.exception("Error analyzing duplicates")
            raise BulkAnalysisError("Failed to analyze duplicates") from exc

        report(100)
        logger.info(
            "Analysis complete: found %d potential duplicates in %d clusters",
            result.total_duplicates,
            len(result.clusters),
        )
        return result
