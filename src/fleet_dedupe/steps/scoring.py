from __future__ import annotations

import re

from fleet_dedupe.steps.normalize import normalize_name

NAME_PART_MIN_LENGTH = 3
NAME_PART_MAX_EDITS = 2

# Applied in order; later rules see the output of earlier ones.
_PHONETIC_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[aeiou]"), ""),
    (re.compile(r"ph"), "f"),
    (re.compile(r"[wy]"), ""),
    (re.compile(r"([^c])h"), r"\1"),
    (re.compile(r"ck"), "k"),
    (re.compile(r"[dg]ge"), "je"),
    (re.compile(r"([^p])gh"), r"\1"),
)


def levenshtein_distance(left: str, right: str) -> int:
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    prev = list(range(len(right) + 1))
    for i, c1 in enumerate(left, start=1):
        curr = [i]
        for j, c2 in enumerate(right, start=1):
            cost = 0 if c1 == c2 else 1
            curr.append(min(curr[j - 1] + 1, prev[j] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]


def phonetic_key(name: str | None) -> str:
    """Consonant skeleton used to bucket names that sound alike.

    A deliberately small folding, not Metaphone: short names collide easily,
    which is acceptable because it is only one of several signals.
    """
    key = normalize_name(name)
    for pattern, replacement in _PHONETIC_RULES:
        key = pattern.sub(replacement, key)
    return key.strip()


def name_part_similarity(left: str | None, right: str | None) -> float:
    """Share of name parts in ``left`` that have a counterpart in ``right``.

    Parts match when identical, or when both are longer than
    ``NAME_PART_MIN_LENGTH`` and one contains the other or they are within
    ``NAME_PART_MAX_EDITS`` edits. Order of parts does not matter.
    """
    left_parts = normalize_name(left).split()
    right_parts = normalize_name(right).split()
    if not left_parts or not right_parts:
        return 0.0

    matched = sum(1 for part in left_parts if any(_parts_match(part, other) for other in right_parts))
    return matched / max(len(left_parts), len(right_parts))


def _parts_match(left: str, right: str) -> bool:
    if left == right:
        return True
    if len(left) <= NAME_PART_MIN_LENGTH or len(right) <= NAME_PART_MIN_LENGTH:
        return False
    if left in right or right in left:
        return True
    return levenshtein_distance(left, right) <= NAME_PART_MAX_EDITS
