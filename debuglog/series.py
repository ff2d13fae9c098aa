"""Discovery of the active file and its sealed, sequence-numbered predecessors."""

import os
from datetime import datetime, timezone

from debuglog.models import LogFile

SEQUENCE_WIDTH = 6


def sealed_name(log_filename: str, sequence: int) -> str:
    return f"{log_filename}.{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(filename: str, log_filename: str) -> int | None:
    """Extract the sequence number from a sealed filename. Returns None on failure."""
    prefix = log_filename + "."
    if not filename.startswith(prefix):
        return None
    suffix = filename[len(prefix):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def _stat_file(path: str, sequence: int | None) -> LogFile | None:
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    return LogFile(
        path=path,
        sequence=sequence,
        size=st.st_size,
        modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
    )


def get_sealed_files(log_dir: str, log_filename: str) -> list[LogFile]:
    """List sealed files oldest-first (ascending sequence number)."""
    try:
        names = os.listdir(log_dir)
    except FileNotFoundError:
        return []
    numbered = []
    for name in names:
        seq = parse_sequence(name, log_filename)
        if seq is not None:
            numbered.append((seq, name))
    numbered.sort()

    files = []
    for seq, name in numbered:
        entry = _stat_file(os.path.join(log_dir, name), seq)
        if entry is not None:
            files.append(entry)
    return files


def get_series(log_dir: str, log_filename: str) -> list[LogFile]:
    """Sealed files oldest-first, followed by the active file when it exists."""
    files = get_sealed_files(log_dir, log_filename)
    active = _stat_file(os.path.join(log_dir, log_filename), None)
    if active is not None:
        files.append(active)
    return files


def next_sequence(log_dir: str, log_filename: str) -> int:
    sealed = get_sealed_files(log_dir, log_filename)
    return sealed[-1].sequence + 1 if sealed else 1
