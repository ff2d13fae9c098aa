"""Append-only log sink with size-based rotation and a single critical section per series."""

import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timezone

from debuglog.config import Config
from debuglog.errors import ClearFailed, DirectoryUnavailable, SinkError, WriteFailed
from debuglog.models import RetentionPolicy, RetentionResult
from debuglog.retention import enforce_retention
from debuglog.series import next_sequence, sealed_name

logger = logging.getLogger(__name__)


class _InterProcessLock:
    """Advisory flock on a lock file beside the series, for multi-process hosts."""

    def __init__(self, path: str):
        self._path = path
        self._fh = None

    def _current(self) -> bool:
        """True while the open handle is still the file named by the lock path."""
        try:
            on_disk = os.stat(self._path)
        except FileNotFoundError:
            return False
        ours = os.fstat(self._fh.fileno())
        return (on_disk.st_dev, on_disk.st_ino) == (ours.st_dev, ours.st_ino)

    def acquire(self):
        import fcntl

        while True:
            if self._fh is None or self._fh.closed or not self._current():
                # the lock file was removed (e.g. with its directory); lock the new one
                self.close()
                self._fh = open(self._path, "a+")
            fcntl.flock(self._fh, fcntl.LOCK_EX)
            if self._current():
                return
            fcntl.flock(self._fh, fcntl.LOCK_UN)

    def release(self):
        import fcntl

        if self._fh is not None and not self._fh.closed:
            fcntl.flock(self._fh, fcntl.LOCK_UN)

    def close(self):
        if self._fh is not None and not self._fh.closed:
            self._fh.close()
        self._fh = None


class LogSink:
    def __init__(self, config: Config, time_func=None):
        self._config = config
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._file = None
        self._filepath = config.active_path
        self._process_lock = None
        if config.interprocess_lock:
            self._process_lock = _InterProcessLock(
                os.path.join(config.log_dir, f".{config.log_filename}.lock")
            )
        self.last_error: SinkError | None = None

    @contextmanager
    def _critical_section(self, create_dir: bool = True):
        with self._lock:
            if create_dir:
                self._ensure_dir()
            if self._process_lock is None:
                yield
                return
            if not os.path.isdir(self._config.log_dir):
                # nothing to coordinate on yet; the caller only reads or no-ops
                yield
                return
            self._process_lock.acquire()
            try:
                yield
            finally:
                self._process_lock.release()

    def _ensure_dir(self):
        if os.path.isdir(self._config.log_dir):
            return
        try:
            os.makedirs(self._config.log_dir, exist_ok=True)
        except OSError as e:
            raise DirectoryUnavailable(f"Cannot create {self._config.log_dir}: {e}") from e

    def _open(self):
        self._file = open(self._filepath, "a", encoding="utf-8", errors="backslashreplace")

    def _close(self):
        if self._file and not self._file.closed:
            self._file.close()
        self._file = None

    def _ensure_open(self):
        """Reopen when the path no longer names the file our handle points at."""
        if self._file is not None and not self._file.closed:
            try:
                on_disk = os.stat(self._filepath)
                ours = os.fstat(self._file.fileno())
                if (on_disk.st_dev, on_disk.st_ino) == (ours.st_dev, ours.st_ino):
                    return
            except FileNotFoundError:
                pass
            self._close()
        self._open()

    def _should_rotate(self) -> bool:
        try:
            size = os.fstat(self._file.fileno()).st_size
        except OSError:
            return False
        return size >= self._config.rotation_threshold_bytes

    def _rotate(self) -> str:
        """Rename-and-create rotation. Returns the path of the sealed file."""
        self._close()
        seq = next_sequence(self._config.log_dir, self._config.log_filename)
        sealed_path = os.path.join(self._config.log_dir, sealed_name(self._config.log_filename, seq))
        os.replace(self._filepath, sealed_path)
        self._open()
        logger.info("Rotated %s -> %s", self._filepath, sealed_path)
        return sealed_path

    def _report(self, err: SinkError):
        self.last_error = err
        logger.error("debug log append failed: %s", err)

    def append(self, line: str) -> bool:
        """Append one encoded line, rotating if the threshold is reached.

        Never raises; failures are reported on the fallback logger and
        recorded in ``last_error``. Returns True if the line was written.
        """
        if not line.endswith("\n"):
            line += "\n"
        try:
            with self._critical_section():
                try:
                    self._ensure_open()
                    self._file.write(line)
                    self._file.flush()
                    self.last_error = None
                except OSError as e:
                    self._close()
                    raise WriteFailed(f"Cannot write to {self._filepath}: {e}") from e

                if self._should_rotate():
                    try:
                        self._rotate()
                    except OSError as e:
                        # the line is already on disk; rotation is retried on the next append
                        logger.error("Rotation of %s failed: %s", self._filepath, e)
                        return True
                    if self._config.retention_on_rotate:
                        self._enforce(self._config.retention_policy)
                return True
        except SinkError as e:
            self._report(e)
            return False
        except OSError as e:
            # lock file or retention sweep failed
            self._report(WriteFailed(f"Append to {self._config.log_dir} failed: {e}"))
            return False

    def clear(self) -> None:
        """Truncate the active file. Missing file is a no-op. Raises ClearFailed."""
        try:
            with self._critical_section(create_dir=False):
                if not os.path.exists(self._filepath):
                    return
                if self._file is not None and not self._file.closed:
                    self._file.flush()
                with open(self._filepath, "r+b") as f:
                    f.truncate(0)
        except FileNotFoundError:
            return
        except OSError as e:
            raise ClearFailed(f"Cannot clear {self._filepath}: {e}") from e

    def _enforce(self, policy: RetentionPolicy) -> RetentionResult:
        return enforce_retention(
            self._config.log_dir, self._config.log_filename, policy, now=self._time_func()
        )

    def enforce_retention(self, policy: RetentionPolicy | None = None) -> RetentionResult:
        """Run a retention sweep inside the series critical section."""
        policy = policy or self._config.retention_policy
        try:
            with self._critical_section(create_dir=False):
                return self._enforce(policy)
        except OSError as e:
            raise SinkError(f"Cannot lock {self._config.log_dir}: {e}") from e

    def close(self):
        with self._lock:
            self._close()
            if self._process_lock is not None:
                self._process_lock.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
