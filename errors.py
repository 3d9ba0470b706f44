"""
This module defines the exceptions raised while syncing Kinesis Firehose delivery streams.
Stage errors carry the pipeline stage (list, detail or tag) at which the sync aborted,
so the failure reported by update() tells you where to look.
"""

STAGE_LIST = "list"
STAGE_DETAIL = "detail"
STAGE_TAG = "tag"


class FirehoseSyncError(Exception):
    """Base class for errors that abort a stage of the delivery stream sync."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage


class ListingError(FirehoseSyncError):
    """Raised when listing delivery streams fails. No partial listing is recovered."""

    def __init__(self, message: str):
        super().__init__(STAGE_LIST, message)


class DetailFetchError(FirehoseSyncError):
    """Raised when describing a delivery stream fails with anything other than not-found."""

    def __init__(self, message: str, identifier: str = None):
        super().__init__(STAGE_DETAIL, message)
        self.identifier = identifier


class ColumnResolutionError(Exception):
    """Raised by a column extractor when a value cannot be resolved for one row."""


class TagResolutionError(ColumnResolutionError):
    """Raised when the tags of a single delivery stream cannot be listed."""

    def __init__(self, message: str):
        super().__init__(f"[{STAGE_TAG}] {message}")
        self.stage = STAGE_TAG


class SyncCancelledError(Exception):
    """Raised when the sync is cancelled or its deadline has passed."""
