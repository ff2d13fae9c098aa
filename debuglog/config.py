"""Configuration module — frozen dataclass from defaults, an optional YAML file, and env vars."""

import logging
import os
import sys
from dataclasses import dataclass, field, replace
from datetime import timedelta

import yaml

from debuglog.errors import ConfigurationError
from debuglog.filter import level_index
from debuglog.models import RetentionPolicy

logger = logging.getLogger(__name__)

YAML_SECTION = "debug_log"


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_age(value) -> timedelta | None:
    """Days as a number; empty or None disables age-based retention."""
    if value is None or str(value).strip() == "":
        return None
    return timedelta(days=float(value))


@dataclass(frozen=True)
class Config:
    enabled: bool = True
    minimum_level: str = "DEBUG"
    log_dir: str = "./debug-logs"
    log_filename: str = "custom-debug.log"
    rotation_threshold_bytes: int = 10 * 1024 * 1024  # 10 MiB
    retention_policy: RetentionPolicy = field(default_factory=RetentionPolicy)
    retention_on_rotate: bool = True
    interprocess_lock: bool = False
    mirror_to_logging: bool = False
    tail_chunk_size: int = 8192

    @property
    def active_path(self) -> str:
        return os.path.join(self.log_dir, self.log_filename)


def load_yaml_config(path: str | None) -> dict:
    """Return the ``debug_log`` section of a YAML file, or {} when there is no file."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    section = data.get(YAML_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{YAML_SECTION}' in {path} must be a mapping")
    logger.info("Loaded YAML config from %s", path)
    return section


def _from_mapping(base: Config, values: dict) -> Config:
    changes = {}
    if "enabled" in values:
        changes["enabled"] = _parse_bool(values["enabled"])
    if "minimum_level" in values:
        changes["minimum_level"] = str(values["minimum_level"]).strip().upper()
    if "log_dir" in values:
        changes["log_dir"] = str(values["log_dir"])
    if "log_filename" in values:
        changes["log_filename"] = str(values["log_filename"])
    if "rotation_threshold_bytes" in values:
        changes["rotation_threshold_bytes"] = int(values["rotation_threshold_bytes"])
    elif "rotation_threshold_mb" in values:
        changes["rotation_threshold_bytes"] = int(float(values["rotation_threshold_mb"]) * 1024 * 1024)
    for key in ("retention_on_rotate", "interprocess_lock", "mirror_to_logging"):
        if key in values:
            changes[key] = _parse_bool(values[key])
    if "tail_chunk_size" in values:
        changes["tail_chunk_size"] = int(values["tail_chunk_size"])

    policy = base.retention_policy
    if "max_file_count" in values:
        policy = replace(policy, max_file_count=int(values["max_file_count"]))
    if "max_age_days" in values:
        policy = replace(policy, max_age=_parse_age(values["max_age_days"]))
    changes["retention_policy"] = policy
    return replace(base, **changes)


def _env_values() -> dict:
    env = os.environ
    values = {}
    mapping = {
        "DEBUG_LOG_ENABLED": "enabled",
        "DEBUG_LOG_MIN_LEVEL": "minimum_level",
        "LOG_DIR": "log_dir",
        "LOG_FILENAME": "log_filename",
        "MAX_FILE_COUNT": "max_file_count",
        "MAX_AGE_DAYS": "max_age_days",
        "RETENTION_ON_ROTATE": "retention_on_rotate",
        "INTERPROCESS_LOCK": "interprocess_lock",
        "MIRROR_TO_LOGGING": "mirror_to_logging",
        "TAIL_CHUNK_SIZE": "tail_chunk_size",
    }
    for var, key in mapping.items():
        if var in env:
            values[key] = env[var]
    # MAX_FILE_SIZE_BYTES takes precedence over MAX_FILE_SIZE_MB
    if "MAX_FILE_SIZE_BYTES" in env:
        values["rotation_threshold_bytes"] = env["MAX_FILE_SIZE_BYTES"]
    elif "MAX_FILE_SIZE_MB" in env:
        values["rotation_threshold_mb"] = env["MAX_FILE_SIZE_MB"]
    return values


def load_config(path: str | None = None) -> Config:
    """Build Config from defaults, then the YAML file, then environment variables.

    The YAML path defaults to ``DEBUG_LOG_CONFIG``. Numeric values that do
    not parse raise ConfigurationError.
    """
    path = path or os.environ.get("DEBUG_LOG_CONFIG")
    try:
        config = _from_mapping(Config(), load_yaml_config(path))
        return _from_mapping(config, _env_values())
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration value: {e}") from e


def validate_config(config: Config) -> Config:
    """Raise ConfigurationError if the subsystem cannot run with this config."""
    if level_index(config.minimum_level) == -1:
        raise ConfigurationError(f"Unknown minimum level: {config.minimum_level!r}")
    if config.rotation_threshold_bytes <= 0:
        raise ConfigurationError("rotation_threshold_bytes must be positive")
    if config.tail_chunk_size <= 0:
        raise ConfigurationError("tail_chunk_size must be positive")
    name = config.log_filename
    if not name or os.sep in name or (os.altsep and os.altsep in name) or name in (".", ".."):
        raise ConfigurationError(f"Invalid log filename: {name!r}")
    if not config.log_dir:
        raise ConfigurationError("log_dir must not be empty")
    if os.path.exists(config.log_dir):
        if not os.path.isdir(config.log_dir):
            raise ConfigurationError(f"Log path is not a directory: {config.log_dir}")
        if not os.access(config.log_dir, os.W_OK | os.X_OK):
            raise ConfigurationError(f"Log directory is not writable: {config.log_dir}")
    if config.interprocess_lock and sys.platform == "win32":
        raise ConfigurationError("interprocess_lock requires a POSIX platform")
    return config
