"""Log record, payload variants, and on-disk file descriptors."""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import IntEnum

UNSERIALIZABLE = "<unserializable payload>"


class Level(IntEnum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @classmethod
    def parse(cls, value) -> "Level":
        """Accept a Level or a case-insensitive name ("WARN" means WARNING)."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper()
        if normalized == "WARN":
            normalized = "WARNING"
        try:
            return cls[normalized]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None


@dataclass(frozen=True)
class TextPayload:
    text: str


@dataclass(frozen=True)
class MappingPayload:
    items: Mapping


@dataclass(frozen=True)
class SequencePayload:
    items: tuple


Payload = TextPayload | MappingPayload | SequencePayload


def to_payload(value) -> Payload:
    """Wrap an arbitrary value in the matching payload variant."""
    if isinstance(value, (TextPayload, MappingPayload, SequencePayload)):
        return value
    if isinstance(value, Mapping):
        return MappingPayload(dict(value))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        try:
            return MappingPayload(dataclasses.asdict(value))
        except (TypeError, ValueError, RecursionError):
            return TextPayload(UNSERIALIZABLE)
    if isinstance(value, (list, tuple)):
        return SequencePayload(tuple(value))
    if isinstance(value, (set, frozenset)):
        return SequencePayload(tuple(sorted(value, key=repr)))
    if value is None:
        return TextPayload("")
    try:
        return TextPayload(str(value))
    except Exception:
        # a broken __str__ must not reach the caller
        return TextPayload(UNSERIALIZABLE)


@dataclass(frozen=True)
class LogRecord:
    timestamp: datetime
    level: Level
    caller: str
    payload: Payload


def make_record(payload, level="info", caller: str = "unknown", now: datetime | None = None) -> LogRecord:
    """Build a record stamped at whole-second UTC resolution.

    Raises ValueError for an unknown level name.
    """
    ts = now or datetime.now(timezone.utc)
    return LogRecord(
        timestamp=ts.replace(microsecond=0),
        level=Level.parse(level),
        caller=caller or "unknown",
        payload=to_payload(payload),
    )


@dataclass(frozen=True)
class RetentionPolicy:
    max_file_count: int = 10
    max_age: timedelta | None = None

    def __post_init__(self):
        if self.max_file_count < 1:
            raise ValueError("max_file_count must be at least 1")
        if self.max_age is not None and self.max_age < timedelta(0):
            raise ValueError("max_age must not be negative")


@dataclass(frozen=True)
class LogFile:
    path: str
    sequence: int | None   # None for the active file
    size: int
    modified: datetime

    @property
    def is_active(self) -> bool:
        return self.sequence is None


@dataclass
class RetentionResult:
    removed: list[str] = field(default_factory=list)
    errors: list = field(default_factory=list)   # RetentionError instances

    @property
    def count(self) -> int:
        return len(self.removed)
