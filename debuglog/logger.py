"""DebugLog facade — the public entry point used by host applications."""

import logging
import sys
from datetime import datetime, timezone

from debuglog.config import Config, validate_config
from debuglog.encoder import encode
from debuglog.errors import ConfigurationError
from debuglog.filter import level_index, should_log
from debuglog.models import Level, LogRecord, RetentionPolicy, RetentionResult, make_record
from debuglog.reader import tail as tail_series
from debuglog.writer import LogSink

logger = logging.getLogger(__name__)
mirror_logger = logging.getLogger("debuglog.mirror")

_MIRROR_LEVELS = {
    Level.DEBUG: logging.DEBUG,
    Level.INFO: logging.INFO,
    Level.WARNING: logging.WARNING,
    Level.ERROR: logging.ERROR,
}


class DebugLog:
    """Level-filtered, rotating debug log for one series.

    ``log()`` and the ``write_*`` helpers never raise. ``tail()``,
    ``clear()`` and ``enforce_retention()`` are operator actions and
    surface failures as exceptions.
    """

    def __init__(self, config: Config, time_func=None):
        self._config = validate_config(config)
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._sink = LogSink(config, time_func=self._time_func)
        self.degraded = False

    @classmethod
    def create(cls, config: Config, time_func=None) -> "DebugLog":
        """Build a DebugLog, falling back to stderr-only logging on bad config."""
        try:
            return cls(config, time_func=time_func)
        except ConfigurationError as e:
            logger.error("Debug log disabled, falling back to stderr: %s", e)
            return _StderrDebugLog(config, time_func=time_func)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def sink(self) -> LogSink:
        return self._sink

    def _emit(self, line: str, record: LogRecord):
        written = self._sink.append(line)
        if written and self._config.mirror_to_logging:
            mirror_logger.log(_MIRROR_LEVELS[record.level], "%s", line.rstrip("\n"))

    def log(self, record: LogRecord) -> None:
        if not should_log(record.level, self._config.minimum_level, self._config.enabled):
            return
        try:
            line = encode(record)
        except Exception as e:
            logger.error("Failed to encode debug log record: %s", e)
            return
        self._emit(line, record)

    def write_log(self, payload, level="info", caller: str = "unknown") -> None:
        """Log any value at the given level name, like a classic write_log() helper."""
        try:
            record = make_record(payload, level, caller, now=self._time_func())
        except ValueError as e:
            logger.error("Dropped debug log entry: %s", e)
            return
        except Exception as e:
            logger.error("Failed to build debug log record: %s", e)
            return
        self.log(record)

    def write_error_log(self, message: str, context=None, caller: str = "unknown", **details) -> None:
        """Log an ERROR entry carrying the message, a context mapping, and request details."""
        payload = {"message": message, "context": context or {}}
        payload.update(details)
        self.write_log(payload, Level.ERROR, caller)

    def tail(self, n: int = 100) -> list[str]:
        return tail_series(
            self._config.log_dir, self._config.log_filename, n, self._config.tail_chunk_size
        )

    def clear(self) -> None:
        self._sink.clear()

    def enforce_retention(self, policy: RetentionPolicy | None = None) -> RetentionResult:
        return self._sink.enforce_retention(policy)

    def close(self):
        self._sink.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class _StderrDebugLog(DebugLog):
    """Degraded mode: entries go to stderr, nothing touches the filesystem."""

    def __init__(self, config: Config, time_func=None):
        self._config = config
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._sink = None
        self.degraded = True

    def _emit(self, line: str, record: LogRecord):
        try:
            sys.stderr.write(line)
        except (OSError, ValueError):
            pass

    def log(self, record: LogRecord) -> None:
        if not self._config.enabled:
            return
        try:
            line = encode(record)
        except Exception as e:
            logger.error("Failed to encode debug log record: %s", e)
            return
        # the configured minimum may itself be the invalid setting
        if level_index(self._config.minimum_level) == -1 or should_log(record.level, self._config.minimum_level):
            self._emit(line, record)

    def tail(self, n: int = 100) -> list[str]:
        if n < 0:
            raise ValueError("n must be >= 0")
        return []

    def clear(self) -> None:
        return None

    def enforce_retention(self, policy: RetentionPolicy | None = None) -> RetentionResult:
        return RetentionResult()

    def close(self):
        return None
