"""Bounded tail retrieval across the log series."""

import os

from debuglog.errors import RetrievalError
from debuglog.series import get_series

DEFAULT_CHUNK_SIZE = 8192
# re-reads allowed when the series is rotated underneath a tail
MAX_ATTEMPTS = 5


def tail_file(filepath: str, n: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Return up to the last n complete lines of one file, oldest-first.

    Reads backward in chunk_size blocks until n+1 newlines are buffered or the
    start of the file is reached, so memory stays proportional to the window.
    A trailing fragment with no newline is not a complete line and is dropped.
    """
    if n <= 0:
        return []
    with open(filepath, "rb") as f:
        f.seek(0, os.SEEK_END)
        pos = f.tell()
        chunks = []
        newlines = 0
        while pos > 0 and newlines <= n:
            step = min(chunk_size, pos)
            pos -= step
            f.seek(pos)
            chunk = f.read(step)
            newlines += chunk.count(b"\n")
            chunks.append(chunk)

    buf = b"".join(reversed(chunks))
    lines = buf.split(b"\n")
    lines.pop()  # text after the last newline: empty, or an incomplete write
    if pos > 0:
        lines.pop(0)  # cut mid-line by the chunk boundary
    return [line.decode("utf-8", errors="replace") for line in lines[-n:]]


def tail(log_dir: str, log_filename: str, n: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Return up to the last n lines across the series, oldest-first.

    The active file is read first; older sealed files are opened only while
    more lines are needed. If the file names change while reading, the read
    is repeated so the window reflects a single state of the series. Raises
    RetrievalError if a file cannot be read.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    if n == 0:
        return []

    lines: list[str] = []
    for _ in range(MAX_ATTEMPTS):
        series = _list_series(log_dir, log_filename)
        lines = _tail_series(series, n, chunk_size)
        # a rotation adds a sealed name, so an unchanged listing means no rotation mid-read
        if _names(_list_series(log_dir, log_filename)) == _names(series):
            return lines
    return lines


def _list_series(log_dir: str, log_filename: str) -> list:
    try:
        return get_series(log_dir, log_filename)
    except OSError as e:
        raise RetrievalError(f"Cannot list {log_dir}: {e}") from e


def _names(series) -> list[str]:
    return [entry.path for entry in series]


def _tail_series(series, n: int, chunk_size: int) -> list[str]:
    collected: list[list[str]] = []
    remaining = n
    for entry in reversed(series):
        try:
            lines = tail_file(entry.path, remaining, chunk_size)
        except FileNotFoundError:
            # purged or rotated after listing; the re-list catches the rotation
            continue
        except OSError as e:
            raise RetrievalError(f"Cannot read {entry.path}: {e}") from e
        collected.append(lines)
        remaining -= len(lines)
        if remaining == 0:
            break

    result = []
    for lines in reversed(collected):
        result.extend(lines)
    return result
