"""Retention enforcement over sealed log files."""

import logging
import os
from datetime import datetime, timezone

from debuglog.errors import RetentionError
from debuglog.models import RetentionPolicy, RetentionResult
from debuglog.series import get_sealed_files

logger = logging.getLogger(__name__)


def _remove(path: str, result: RetentionResult) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        # already gone, e.g. swept by another process
        return
    except OSError as e:
        err = RetentionError(path, e)
        logger.error("%s", err)
        result.errors.append(err)
        return
    result.removed.append(os.path.basename(path))


def enforce_retention(log_dir: str, log_filename: str, policy: RetentionPolicy,
                      now: datetime | None = None) -> RetentionResult:
    """Delete sealed files that are too old or exceed max count.

    The active file is never touched. Individual deletion failures are
    collected in the result and do not stop the sweep.
    """
    now = now or datetime.now(timezone.utc)
    result = RetentionResult()
    sealed = get_sealed_files(log_dir, log_filename)

    # Age-based purge
    survivors = []
    if policy.max_age is not None:
        cutoff = now - policy.max_age
        for entry in sealed:
            if entry.modified < cutoff:
                _remove(entry.path, result)
            else:
                survivors.append(entry)
    else:
        survivors = list(sealed)

    # Count-based purge on survivors (oldest first, they're already sorted)
    excess = len(survivors) - policy.max_file_count
    for entry in survivors[:max(excess, 0)]:
        _remove(entry.path, result)

    if result.removed:
        logger.info("Purged %d file(s): %s", result.count, ", ".join(result.removed))
    return result
