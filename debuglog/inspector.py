"""Inspector logic: list the series, summarize configuration, format sizes."""

import os

from debuglog.config import Config
from debuglog.series import get_series


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    else:
        return f"{size / (1024 * 1024):.1f} MB"


def list_log_files(log_dir: str, log_filename: str) -> list[tuple[str, int]]:
    """Return (filename, size) for the series, sealed files oldest-first then the active file."""
    return [(os.path.basename(f.path), f.size) for f in get_series(log_dir, log_filename)]


def describe_config(config: Config) -> list[str]:
    """Human-readable configuration status lines."""
    policy = config.retention_policy
    max_age = f"{policy.max_age.total_seconds() / 86400:g}d" if policy.max_age else "unlimited"
    return [
        f"Logging: {'Enabled' if config.enabled else 'Disabled'}",
        f"Minimum level: {config.minimum_level}",
        f"Active file: {config.active_path}",
        f"Rotation threshold: {format_size(config.rotation_threshold_bytes)}",
        f"Retention: keep {policy.max_file_count} sealed file(s), max age {max_age}",
        f"Retention on rotate: {'Enabled' if config.retention_on_rotate else 'Disabled'}",
        f"Inter-process lock: {'Enabled' if config.interprocess_lock else 'Disabled'}",
        f"Mirror to logging: {'Enabled' if config.mirror_to_logging else 'Disabled'}",
    ]
