"""Errors raised by the remote database, blob store and local file services."""


class ServiceError(Exception):
    """Base class for service failures."""
    retryable = False


class FetchError(ServiceError):
    """A read from the network, blob storage or local disk failed."""
    retryable = True


class BlobTooLargeError(FetchError):
    """A blob exceeded the configured size cap."""
    retryable = False

    def __init__(self, path, max_bytes):
        self.path = path
        self.max_bytes = max_bytes
        super().__init__(f"Blob '{path}' exceeds {max_bytes} bytes")


class WriteError(ServiceError):
    """A write failed; the caller may retry it."""
    retryable = True


class SubmissionError(WriteError):
    """A completed form could not be written to the remote database."""


class CacheWriteError(WriteError):
    """An icon could not be written to the local cache."""


class ExportWriteError(WriteError):
    """An exported report could not be written to local disk."""


class TimesheetWriteError(WriteError):
    """A work session could not be started or stopped in the remote database."""
