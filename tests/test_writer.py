"""Tests for the log sink."""

import os
import shutil
import sys
import threading

import pytest

from debuglog.config import Config
from debuglog.errors import DirectoryUnavailable
from debuglog.models import RetentionPolicy
from debuglog.series import get_sealed_files
from debuglog.writer import LogSink


def _config(log_dir, **overrides):
    defaults = dict(
        log_dir=str(log_dir),
        log_filename="test.log",
        rotation_threshold_bytes=10 * 1024 * 1024,
        retention_on_rotate=False,
    )
    defaults.update(overrides)
    return Config(**defaults)


def _read(path):
    with open(path) as f:
        return f.read()


class TestAppend:
    def test_append_creates_directory_and_file(self, tmp_path):
        log_dir = tmp_path / "nested" / "logs"
        with LogSink(_config(log_dir)) as sink:
            assert sink.append("hello world\n") is True
        assert _read(log_dir / "test.log") == "hello world\n"

    def test_construction_does_not_touch_disk(self, tmp_path):
        sink = LogSink(_config(tmp_path / "logs"))
        sink.close()
        assert not (tmp_path / "logs").exists()

    def test_appends_newline_when_missing(self, tmp_path):
        with LogSink(_config(tmp_path)) as sink:
            sink.append("line1")
            sink.append("line2\n")
        assert _read(tmp_path / "test.log") == "line1\nline2\n"

    def test_recreates_deleted_directory(self, tmp_path):
        log_dir = tmp_path / "logs"
        with LogSink(_config(log_dir)) as sink:
            sink.append("before\n")
            os.remove(log_dir / "test.log")
            os.rmdir(log_dir)
            assert sink.append("after\n") is True
        assert _read(log_dir / "test.log") == "after\n"

    def test_reopens_after_external_rename(self, tmp_path):
        with LogSink(_config(tmp_path)) as sink:
            sink.append("one\n")
            os.replace(tmp_path / "test.log", tmp_path / "moved.log")
            sink.append("two\n")
        assert _read(tmp_path / "moved.log") == "one\n"
        assert _read(tmp_path / "test.log") == "two\n"

    def test_directory_failure_is_swallowed(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with LogSink(_config(blocker / "logs")) as sink:
            assert sink.append("lost\n") is False
            assert isinstance(sink.last_error, DirectoryUnavailable)

    def test_last_error_cleared_by_next_success(self, tmp_path):
        log_dir = tmp_path / "logs"
        log_dir.write_text("in the way")
        with LogSink(_config(log_dir)) as sink:
            assert sink.append("lost\n") is False
            assert sink.last_error is not None
            log_dir.unlink()
            assert sink.append("kept\n") is True
            assert sink.last_error is None
        assert _read(log_dir / "test.log") == "kept\n"


class TestRotation:
    def test_rotation_on_size(self, tmp_path):
        with LogSink(_config(tmp_path, rotation_threshold_bytes=50)) as sink:
            for i in range(20):
                sink.append(f"line {i:04d} padding data here\n")
        sealed = get_sealed_files(str(tmp_path), "test.log")
        assert len(sealed) >= 1
        assert os.path.exists(tmp_path / "test.log")

    def test_sealed_file_naming_and_sequence(self, tmp_path):
        with LogSink(_config(tmp_path, rotation_threshold_bytes=10)) as sink:
            for i in range(3):
                sink.append(f"entry {i} is long enough\n")
        names = sorted(os.listdir(tmp_path))
        assert names == ["test.log", "test.log.000001", "test.log.000002", "test.log.000003"]
        assert _read(tmp_path / "test.log") == ""

    def test_sequence_continues_after_existing_files(self, tmp_path):
        (tmp_path / "test.log.000007").write_text("old\n")
        with LogSink(_config(tmp_path, rotation_threshold_bytes=5)) as sink:
            sink.append("rotate me\n")
        assert (tmp_path / "test.log.000008").exists()

    def test_no_loss_no_duplication(self, tmp_path):
        lines = [f"record {i:05d} {'x' * (i % 17)}\n" for i in range(500)]
        with LogSink(_config(tmp_path, rotation_threshold_bytes=1024)) as sink:
            for line in lines:
                sink.append(line)

        content = ""
        for entry in get_sealed_files(str(tmp_path), "test.log"):
            content += _read(entry.path)
        content += _read(tmp_path / "test.log")

        assert content == "".join(lines)
        assert len(get_sealed_files(str(tmp_path), "test.log")) > 1

    def test_sealed_files_bounded_by_threshold_plus_one_line(self, tmp_path):
        with LogSink(_config(tmp_path, rotation_threshold_bytes=100)) as sink:
            for i in range(200):
                sink.append(f"line {i:04d}\n")
        for entry in get_sealed_files(str(tmp_path), "test.log"):
            assert entry.size < 100 + len("line 0000\n")

    def test_retention_on_rotate(self, tmp_path):
        cfg = _config(
            tmp_path,
            rotation_threshold_bytes=10,
            retention_on_rotate=True,
            retention_policy=RetentionPolicy(max_file_count=2),
        )
        with LogSink(cfg) as sink:
            for i in range(6):
                sink.append(f"entry {i} is long enough\n")
        sealed = get_sealed_files(str(tmp_path), "test.log")
        assert [e.sequence for e in sealed] == [5, 6]


class TestClear:
    def test_clear_truncates_active_only(self, tmp_path):
        (tmp_path / "test.log.000001").write_text("sealed\n")
        with LogSink(_config(tmp_path)) as sink:
            sink.append("active\n")
            sink.clear()
            assert _read(tmp_path / "test.log") == ""
            assert _read(tmp_path / "test.log.000001") == "sealed\n"

    def test_clear_is_idempotent(self, tmp_path):
        with LogSink(_config(tmp_path)) as sink:
            sink.append("x\n")
            sink.clear()
            sink.clear()
        assert _read(tmp_path / "test.log") == ""

    def test_clear_missing_file_is_noop(self, tmp_path):
        with LogSink(_config(tmp_path / "absent")) as sink:
            sink.clear()
        assert not (tmp_path / "absent").exists()

    def test_append_after_clear_starts_at_zero(self, tmp_path):
        with LogSink(_config(tmp_path)) as sink:
            sink.append("first\n")
            sink.clear()
            sink.append("second\n")
        assert _read(tmp_path / "test.log") == "second\n"


class TestConcurrentWrites:
    def test_concurrent_writes(self, tmp_path):
        """5 threads x 100 lines with rotation, no line lost or torn."""
        with LogSink(_config(tmp_path, rotation_threshold_bytes=2048)) as sink:
            errors = []

            def worker(thread_id):
                try:
                    for i in range(100):
                        sink.append(f"thread-{thread_id}-line-{i}\n")
                except Exception as e:
                    errors.append(e)

            threads = [threading.Thread(target=worker, args=(t,)) for t in range(5)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        assert errors == []
        all_lines = []
        for name in os.listdir(tmp_path):
            all_lines.extend(_read(tmp_path / name).splitlines(keepends=True))
        assert len(all_lines) == 500
        for line in all_lines:
            assert line.endswith("\n")
            assert line.strip().startswith("thread-")
        assert len(set(all_lines)) == 500


@pytest.mark.skipif(sys.platform == "win32", reason="fcntl is POSIX only")
class TestInterProcessLock:
    def test_lock_file_created_and_appends_work(self, tmp_path):
        with LogSink(_config(tmp_path, interprocess_lock=True, rotation_threshold_bytes=20)) as sink:
            for i in range(5):
                assert sink.append(f"locked line {i}\n") is True
        assert (tmp_path / ".test.log.lock").exists()
        assert len(get_sealed_files(str(tmp_path), "test.log")) == 2

    def test_two_sinks_share_a_series(self, tmp_path):
        cfg = _config(tmp_path, interprocess_lock=True, rotation_threshold_bytes=64)
        with LogSink(cfg) as a, LogSink(cfg) as b:
            for i in range(30):
                (a if i % 2 else b).append(f"shared line {i:03d}\n")

        lines = []
        for entry in get_sealed_files(str(tmp_path), "test.log"):
            lines.extend(_read(entry.path).splitlines())
        lines.extend(_read(tmp_path / "test.log").splitlines())
        assert lines == [f"shared line {i:03d}" for i in range(30)]

    def test_lock_follows_recreated_directory(self, tmp_path):
        import fcntl

        log_dir = tmp_path / "logs"
        with LogSink(_config(log_dir, interprocess_lock=True)) as sink:
            sink.append("before\n")
            shutil.rmtree(log_dir)
            assert sink.append("after\n") is True

            done = threading.Event()

            def locked_append():
                sink.append("waited\n")
                done.set()

            with open(log_dir / ".test.log.lock", "a+") as other:
                fcntl.flock(other, fcntl.LOCK_EX)
                worker = threading.Thread(target=locked_append)
                worker.start()
                assert not done.wait(0.3)
                fcntl.flock(other, fcntl.LOCK_UN)
                worker.join(5)
            assert done.is_set()
        assert _read(log_dir / "test.log") == "after\nwaited\n"
