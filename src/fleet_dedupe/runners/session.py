from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from fleet_dedupe.config import MatchingConfig
from fleet_dedupe.interfaces import DuplicateMatcher
from fleet_dedupe.models import CustomerRecord, MatchCandidate

logger = logging.getLogger(__name__)

WATCHED_FIELDS = frozenset({"full_name", "phone_number", "email"})


class DuplicateCheckSession:
    """Debounced duplicate checks for one customer form.

    Every ``schedule`` call starts a new generation. A check runs once the form
    has been quiet for ``debounce_seconds``; results of a check that is no
    longer the newest generation are dropped. Failed checks publish ``[]``,
    meaning duplicate status is unknown; they never block the form.
    """

    def __init__(
        self,
        matcher: DuplicateMatcher,
        on_result: Callable[[list[MatchCandidate]], None],
        config: MatchingConfig | None = None,
    ) -> None:
        self._matcher = matcher
        self._on_result = on_result
        self._debounce_seconds = (config or MatchingConfig()).debounce_seconds
        self._generation = 0
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()
        self.latest: list[MatchCandidate] = []

    @property
    def generation(self) -> int:
        return self._generation

    def on_field_change(self, field_name: str, candidate: CustomerRecord) -> None:
        if field_name in WATCHED_FIELDS:
            self.schedule(candidate)

    def schedule(self, candidate: CustomerRecord) -> None:
        self._generation += 1
        self._cancel_timer()
        self._timer = asyncio.ensure_future(self._fire_when_quiet(self._generation, candidate))

    def cancel(self) -> None:
        """Drop the pending check and ignore any check already running."""
        self._generation += 1
        self._cancel_timer()

    async def wait_idle(self) -> None:
        while True:
            tasks = (self._timer, *self._in_flight)
            pending = [task for task in tasks if task is not None and not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def _fire_when_quiet(self, generation: int, candidate: CustomerRecord) -> None:
        await asyncio.sleep(self._debounce_seconds)
        task = asyncio.ensure_future(self._check(generation, candidate))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _check(self, generation: int, candidate: CustomerRecord) -> None:
        try:
            matches = await self._matcher.find_potential_duplicates(candidate)
        except Exception as exc:
            logger.warning("Duplicate check failed, status unknown: %s", exc)
            matches = []

        if generation != self._generation:
            logger.debug("Discarding stale duplicate check %d (current %d)", generation, self._generation)
            return
        self.latest = matches
        self._on_result(matches)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
