"""Debug log smoke test — exercises every helper, then optionally bursts demo entries to drive rotation."""

import argparse
import logging
import random
import sys
import uuid

from debuglog.config import load_config
from debuglog.errors import ConfigurationError, RetrievalError
from debuglog.hooks import capture_warnings
from debuglog.inspector import describe_config
from debuglog.logger import DebugLog

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [debuglog] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

LEVELS = ["info", "info", "info", "info", "debug", "warning", "error"]
SERVICES = ["auth-api", "order-svc", "payment-gw", "user-svc", "catalog-api"]
MESSAGES = {
    "info": [
        "Request processed successfully",
        "Health check passed",
        "Cache hit for user session",
        "Database query completed in 12ms",
    ],
    "debug": [
        "Entering request handler",
        "Parsed request body",
        "Token validation started",
    ],
    "warning": [
        "Slow query detected (>500ms)",
        "Connection pool nearing capacity",
        "Retry attempt 2 for upstream call",
    ],
    "error": [
        "Failed to connect to database",
        "Timeout waiting for upstream response",
        "Unhandled exception in request handler",
    ],
}


def run_smoke_test(debug_log: DebugLog) -> bool:
    """Write one entry of each kind and read the log back. Returns True on success."""
    print("Test 1: simple log message")
    debug_log.write_log("Test log message from debug test script", "info", "main.py:smoke")

    print("Test 2: mapping payload")
    debug_log.write_log(
        {"test_id": "array_test", "test_array": ["item1", "item2", "item3"]},
        "info",
        "main.py:smoke",
    )

    print("Test 3: error log with context")
    debug_log.write_error_log(
        "Test error message",
        {"error_code": 999, "test_context": "debug_test_script"},
        caller="main.py:smoke",
    )

    print("Test 4: every level")
    for level in ("info", "warning", "error", "debug"):
        debug_log.write_log(f"{level.capitalize()} level message", level, "main.py:smoke")

    print("Test 5: configuration status")
    for line in describe_config(debug_log.config):
        print(f"  {line}")

    print("Test 6: recent debug logs")
    try:
        lines = debug_log.tail(20)
    except RetrievalError as e:
        print(f"  FAILED: {e}")
        return False
    if not lines:
        print("  FAILED: no debug logs found")
        return False
    for line in lines:
        print(f"  {line}")
    return True


def generate_entry() -> tuple[str, str, str]:
    level = random.choice(LEVELS)
    service = random.choice(SERVICES)
    req_id = uuid.uuid4().hex[:8]
    message = f"[{req_id}] {random.choice(MESSAGES[level])}"
    return message, level, service


def run_burst(debug_log: DebugLog, count: int) -> None:
    for _ in range(count):
        message, level, service = generate_entry()
        debug_log.write_log(message, level, service)
    logger.info("Burst complete: %d entries offered", count)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Debug log smoke test")
    parser.add_argument("--config", help="YAML config file (default: $DEBUG_LOG_CONFIG)")
    parser.add_argument("--burst", type=int, default=0, metavar="N",
                        help="Append N random demo entries after the smoke test")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 1

    debug_log = DebugLog.create(config)
    logger.info("Starting smoke test against %s", config.active_path)
    restore_warnings = capture_warnings(debug_log)
    try:
        ok = run_smoke_test(debug_log)
        if args.burst > 0:
            run_burst(debug_log, args.burst)
    finally:
        restore_warnings()
        debug_log.close()

    logger.info("Smoke test %s", "passed" if ok else "failed")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
