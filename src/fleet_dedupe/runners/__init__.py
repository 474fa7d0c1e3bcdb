from fleet_dedupe.runners.analysis import BulkAnalysisRunner
from fleet_dedupe.runners.session import DuplicateCheckSession

__all__ = ["BulkAnalysisRunner", "DuplicateCheckSession"]
