from fleet_dedupe.datasets.profiles import PROFILE_COLUMNS, PROFILE_EXPORT_SCHEMA
from fleet_dedupe.datasets.reference import ReferenceDatasetGenerator

__all__ = ["PROFILE_COLUMNS", "PROFILE_EXPORT_SCHEMA", "ReferenceDatasetGenerator"]
