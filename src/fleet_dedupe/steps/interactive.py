from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from fleet_dedupe.config import MatchingConfig
from fleet_dedupe.interfaces import RecordStore
from fleet_dedupe.models import CustomerRecord, MatchCandidate
from fleet_dedupe.schema import MatchReason
from fleet_dedupe.steps.normalize import normalize_name, normalize_phone, split_email
from fleet_dedupe.steps.scoring import levenshtein_distance, name_part_similarity, phonetic_key

logger = logging.getLogger(__name__)


class InteractiveDuplicateMatcher:
    """Checks one customer being entered against the record store.

    Phone, name and email signals are evaluated in that order and unioned; a
    record found by an earlier signal keeps the entry it was found under.
    """

    def __init__(self, store: RecordStore, config: MatchingConfig | None = None) -> None:
        self._store = store
        self._config = config or MatchingConfig()

    async def find_potential_duplicates(self, candidate: CustomerRecord) -> list[MatchCandidate]:
        if not candidate.has_identifying_fields():
            return []

        phone = normalize_phone(candidate.phone_number)
        email = (candidate.email or "").strip()
        name = normalize_name(candidate.full_name)

        fetched = await asyncio.gather(
            self._fetch_pool(candidate.id, needed=bool(phone or email)),
            self._fetch_name_hits(candidate.full_name, needed=bool(name)),
            return_exceptions=True,
        )
        for outcome in fetched:
            if isinstance(outcome, BaseException):
                raise outcome
        pool, name_hits = fetched

        found: dict[str, MatchCandidate] = {}
        for match in self._phone_matches(phone, pool):
            found.setdefault(match.id, match)
        for match in self._name_matches(candidate, name_hits, found):
            found.setdefault(match.id, match)
        for match in self._email_matches(email, pool):
            found.setdefault(match.id, match)

        ranked = sorted(found.values(), key=lambda match: match.similarity, reverse=True)
        logger.debug(
            "Duplicate check for %r: %d candidates, returning %d",
            candidate.id,
            len(ranked),
            min(len(ranked), self._config.result_limit),
        )
        return ranked[: self._config.result_limit]

    async def _fetch_pool(self, self_id: str | None, *, needed: bool) -> list[CustomerRecord]:
        if not needed:
            return []
        records = await self._store.query_records_excluding(self_id, self._config.candidate_fetch_limit)
        return [record for record in records if record.id is not None and record.id != self_id]

    async def _fetch_name_hits(self, full_name: str | None, *, needed: bool) -> list[CustomerRecord]:
        if not needed or full_name is None:
            return []
        return await self._store.fuzzy_name_search(full_name.strip())

    def _phone_matches(self, phone: str, pool: Sequence[CustomerRecord]) -> list[MatchCandidate]:
        if not phone:
            return []
        suffix_len = self._config.similar_phone_digits
        matches: list[MatchCandidate] = []
        for record in pool:
            other = normalize_phone(record.phone_number)
            if not other:
                continue
            if other == phone:
                matches.append(MatchCandidate.from_record(record, 1.0, [MatchReason.EXACT_PHONE]))
            elif other[-suffix_len:] == phone[-suffix_len:]:
                matches.append(
                    MatchCandidate.from_record(
                        record,
                        self._config.similar_phone_similarity,
                        [MatchReason.SIMILAR_PHONE],
                    )
                )
        return matches

    def _name_matches(
        self,
        candidate: CustomerRecord,
        hits: Sequence[CustomerRecord],
        already_found: dict[str, MatchCandidate],
    ) -> list[MatchCandidate]:
        key = phonetic_key(candidate.full_name)
        matches: list[MatchCandidate] = []
        for record in hits:
            if record.id is None or record.id == candidate.id or record.id in already_found:
                continue
            part_similarity = name_part_similarity(candidate.full_name, record.full_name)
            sounds_alike = bool(key) and key == phonetic_key(record.full_name)
            similar_parts = part_similarity > self._config.interactive_name_threshold
            if not (similar_parts or sounds_alike):
                continue

            reasons: list[MatchReason] = []
            if similar_parts:
                reasons.append(MatchReason.SIMILAR_NAME_PARTS)
            if sounds_alike:
                reasons.append(MatchReason.SIMILAR_SOUNDING_NAME)
            similarity = max(
                part_similarity,
                self._config.phonetic_match_similarity if sounds_alike else 0.0,
            )
            matches.append(
                MatchCandidate.from_record(record, min(similarity, 1.0), reasons, with_contact=False)
            )
        return matches

    def _email_matches(self, email: str, pool: Sequence[CustomerRecord]) -> list[MatchCandidate]:
        if not email:
            return []
        local, domain = split_email(email)
        matches: list[MatchCandidate] = []
        for record in pool:
            other = (record.email or "").strip()
            if not other:
                continue
            if other == email:
                matches.append(MatchCandidate.from_record(record, 1.0, [MatchReason.EXACT_EMAIL]))
                continue
            other_local, other_domain = split_email(other)
            if (
                domain
                and domain == other_domain
                and levenshtein_distance(local, other_local) <= self._config.email_local_max_edits
            ):
                matches.append(
                    MatchCandidate.from_record(
                        record,
                        self._config.similar_email_similarity,
                        [MatchReason.SIMILAR_EMAIL],
                    )
                )
        return matches
