import asyncio
import logging

import pytest

from fleet_dedupe.config import MatchingConfig
from fleet_dedupe.errors import RecordStoreError
from fleet_dedupe.models import CustomerRecord, MatchCandidate
from fleet_dedupe.runners import DuplicateCheckSession
from fleet_dedupe.schema import MatchReason

FAST = MatchingConfig(debounce_seconds=0.01)


class RecordingMatcher:
    """Echoes the candidate's name back as a single match after ``delays[name]`` seconds."""

    def __init__(self, delays=None, error=None):
        self.calls = []
        self._delays = delays or {}
        self._error = error

    async def find_potential_duplicates(self, candidate):
        self.calls.append(candidate.full_name)
        await asyncio.sleep(self._delays.get(candidate.full_name, 0))
        if self._error is not None:
            raise self._error
        return [
            MatchCandidate(
                id="dup",
                full_name=candidate.full_name,
                phone_number=None,
                email=None,
                similarity=0.9,
                reasons=[MatchReason.SIMILAR_SOUNDING_NAME],
            )
        ]


@pytest.mark.asyncio
class TestDuplicateCheckSession:
    async def test_rapid_edits_collapse_into_one_check(self) -> None:
        matcher = RecordingMatcher()
        results = []
        session = DuplicateCheckSession(matcher, results.append, FAST)

        for name in ("J", "Jo", "John"):
            session.schedule(CustomerRecord(full_name=name))
        await session.wait_idle()

        assert matcher.calls == ["John"]
        assert [[m.full_name for m in batch] for batch in results] == [["John"]]
        assert session.generation == 3

    async def test_stale_result_is_discarded(self) -> None:
        matcher = RecordingMatcher(delays={"slow": 0.2})
        results = []
        session = DuplicateCheckSession(matcher, results.append, FAST)

        session.schedule(CustomerRecord(full_name="slow"))
        await asyncio.sleep(0.05)
        session.schedule(CustomerRecord(full_name="fast"))
        await session.wait_idle()

        assert matcher.calls == ["slow", "fast"]
        assert [[m.full_name for m in batch] for batch in results] == [["fast"]]
        assert session.latest[0].full_name == "fast"

    async def test_failed_check_publishes_empty_result(self, caplog) -> None:
        matcher = RecordingMatcher(error=RecordStoreError("timeout"))
        results = []
        session = DuplicateCheckSession(matcher, results.append, FAST)

        with caplog.at_level(logging.WARNING):
            session.schedule(CustomerRecord(full_name="John"))
            await session.wait_idle()

        assert results == [[]]
        assert "status unknown" in caplog.text

    async def test_unexpected_failure_also_publishes_empty_result(self, caplog) -> None:
        matcher = RecordingMatcher(error=ValueError("Expecting value: line 1 column 1"))
        results = []
        session = DuplicateCheckSession(matcher, results.append, FAST)
        session.latest = ["previous match"]

        with caplog.at_level(logging.WARNING):
            session.schedule(CustomerRecord(full_name="John"))
            await session.wait_idle()

        assert results == [[]]
        assert session.latest == []
        assert "status unknown" in caplog.text

    async def test_only_identifying_fields_trigger_checks(self) -> None:
        matcher = RecordingMatcher()
        session = DuplicateCheckSession(matcher, lambda matches: None, FAST)

        session.on_field_change("nationality", CustomerRecord(full_name="John"))
        await session.wait_idle()
        assert matcher.calls == []

        session.on_field_change("phone_number", CustomerRecord(full_name="John"))
        await session.wait_idle()
        assert matcher.calls == ["John"]

    async def test_cancel_drops_pending_check(self) -> None:
        matcher = RecordingMatcher()
        results = []
        session = DuplicateCheckSession(matcher, results.append, FAST)

        session.schedule(CustomerRecord(full_name="John"))
        session.cancel()
        await session.wait_idle()

        assert matcher.calls == []
        assert results == []
