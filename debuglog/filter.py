"""Log level filtering — pure functions for level comparison."""

from debuglog.models import Level


def level_index(level) -> int:
    """Return the severity rank of a level (DEBUG is 0), or -1 if unknown."""
    try:
        return int(Level.parse(level))
    except ValueError:
        return -1


def should_log(level, configured_minimum, enabled: bool = True) -> bool:
    """Return True if logging is enabled and level >= configured_minimum."""
    if not enabled:
        return False
    msg_idx = level_index(level)
    min_idx = level_index(configured_minimum)
    if msg_idx == -1 or min_idx == -1:
        return False
    return msg_idx >= min_idx
