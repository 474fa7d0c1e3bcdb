class DedupeError(Exception):
    """Base class for errors raised by fleet_dedupe."""


class RecordStoreError(DedupeError):
    """The record store could not answer a query or apply a write."""


class BulkAnalysisError(DedupeError):
    """A bulk duplicate analysis run failed and produced no result."""


class MergeError(DedupeError):
    """A merge request was rejected before reaching the record store."""
