"""Exception types for the debug log subsystem."""


class DebugLogError(Exception):
    """Base class for every debuglog failure."""


class ConfigurationError(DebugLogError):
    """Invalid or unusable configuration, raised once at startup."""


class SinkError(DebugLogError):
    """A failure while mutating the log series."""


class DirectoryUnavailable(SinkError):
    pass


class WriteFailed(SinkError):
    pass


class ClearFailed(SinkError):
    pass


class RetrievalError(DebugLogError):
    """A log file could not be read."""


class RetentionError(DebugLogError):
    """A sealed file could not be removed during a retention sweep."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"Failed to remove {path}: {cause}")
        self.path = path
        self.cause = cause
