from __future__ import annotations


class BucketarrError(Exception):
    """Base error for every failure Bucketarr reports."""


# ------------------------------------------------------------
# Run-fatal (before any item is processed)
# ------------------------------------------------------------


class ConfigurationError(BucketarrError):
    """Missing/invalid parameter, or extraction tool not resolvable."""


class StoreUnavailable(BucketarrError):
    """Object store cannot be reached or rejected the credentials."""


class BucketMissing(BucketarrError):
    """Destination bucket does not exist and creation was not requested."""


class EnumerationFailed(BucketarrError):
    """The source URL could not be resolved into work items."""


# ------------------------------------------------------------
# Item-level
# ------------------------------------------------------------


class ItemError(BucketarrError):
    """Failure confined to a single work item."""

    kind = "item_failed"


class ProbeFailed(ItemError):
    kind = "probe_failed"


class ExtractionFailed(ItemError):
    kind = "extraction_failed"


class StoreWriteFailed(ItemError):
    kind = "store_write_failed"
