"""
Failure taxonomy for the fetch-and-relay pipeline.

Each RelayError carries a short reason code that the pipeline uses to pick
the user-facing message and that the scheduler records in stats.
"""


class RelayError(Exception):
    """Base class for classified pipeline failures."""

    reason = "unexpected"


class ProviderNoData(Exception):
    """A provider answered, but without a usable direct media URL."""


class ResolutionFailed(RelayError):
    """Every provider in the chain was exhausted."""

    reason = "resolution_failed"


class TooLarge(RelayError):
    """Declared media size is above the upload ceiling."""

    reason = "too_large"

    def __init__(self, size_mb: float):
        super().__init__(f"Media is {size_mb:.2f}MB")
        self.size_mb = size_mb


class DownloadFailed(RelayError):
    """Network or timeout error while streaming media to transient storage."""

    reason = "download_failed"


class UploadFailed(RelayError):
    """The chat platform rejected the upload or the transport failed."""

    reason = "upload_failed"


__all__ = [
    'RelayError',
    'ProviderNoData',
    'ResolutionFailed',
    'TooLarge',
    'DownloadFailed',
    'UploadFailed',
]
