class ScoutException(Exception):
    """Base exception for all Workshop Scout core errors."""


class CacheIOError(ScoutException):
    """Raised when a cache file cannot be read or written."""

    def __init__(self, path: str, original_error: Exception | None = None):
        super().__init__(f"Cache I/O failed for {path}: {original_error}")
        self.path = path
        self.original_error = original_error


class SerializationError(ScoutException):
    """Raised when cache content cannot be encoded or decoded."""

    def __init__(self, path: str, details: str):
        super().__init__(f"Cache at {path} is unreadable: {details}")
        self.path = path
        self.details = details


class ExternalAPIError(ScoutException):
    """
    Raised when the workshop platform reports a failure for a query.
    The message is surfaced to the caller verbatim.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FetchTimeoutError(ScoutException, TimeoutError):
    """Raised when the platform does not answer a query within the hard timeout."""

    def __init__(self, timeout: float):
        super().__init__(f"Operation timed out waiting for Steam response ({timeout:g}s)")
        self.timeout = timeout


class InternalTaskError(ScoutException):
    """
    Raised when the fetch worker crashed or was cancelled.
    This points at a bug in Workshop Scout, not at the platform.
    """

    def __init__(self, original_error: BaseException | None = None):
        super().__init__(f"Task error: {original_error!r}")
        self.original_error = original_error


class SteamPathError(ScoutException):
    """Raised when a Steam installation, library or app directory cannot be located."""
