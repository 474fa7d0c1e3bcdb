from fleet_dedupe.steps.bulk import BulkDuplicateClusterer
from fleet_dedupe.steps.interactive import InteractiveDuplicateMatcher
from fleet_dedupe.steps.normalize import normalize_email, normalize_name, normalize_phone
from fleet_dedupe.steps.scoring import levenshtein_distance, name_part_similarity, phonetic_key

__all__ = [
    "BulkDuplicateClusterer",
    "InteractiveDuplicateMatcher",
    "levenshtein_distance",
    "name_part_similarity",
    "normalize_email",
    "normalize_name",
    "normalize_phone",
    "phonetic_key",
]
