"""Entry encoder — renders a LogRecord as one canonical text line."""

import dataclasses
import json
from datetime import date, datetime

from debuglog.models import UNSERIALIZABLE, LogRecord, MappingPayload, SequencePayload, TextPayload

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
NEWLINE_MARKER = "\\n"


def escape_newlines(text: str) -> str:
    """Replace CRLF, CR and LF with a visible marker so one record stays one line."""
    return (
        text.replace("\r\n", NEWLINE_MARKER)
        .replace("\r", NEWLINE_MARKER)
        .replace("\n", NEWLINE_MARKER)
    )


def _json_default(obj):
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=repr)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    return str(obj)


def _dump(value) -> str:
    try:
        return json.dumps(
            value,
            sort_keys=True,
            ensure_ascii=False,
            separators=(", ", ": "),
            default=_json_default,
        )
    except (TypeError, ValueError, RecursionError):
        # circular references, mixed-type keys, or nesting too deep
        return UNSERIALIZABLE


def render_payload(payload) -> str:
    """Render a payload variant; mappings and sequences become sorted one-line JSON."""
    if isinstance(payload, TextPayload):
        return payload.text
    if isinstance(payload, MappingPayload):
        return _dump(payload.items)
    if isinstance(payload, SequencePayload):
        return _dump(list(payload.items))
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def encode(record: LogRecord) -> str:
    """Return ``[timestamp] [LEVEL] [caller] payload`` terminated by a single newline."""
    timestamp = record.timestamp.strftime(TIMESTAMP_FORMAT)
    caller = escape_newlines(record.caller)
    text = escape_newlines(render_payload(record.payload))
    return f"[{timestamp}] [{record.level.name}] [{caller}] {text}\n"
