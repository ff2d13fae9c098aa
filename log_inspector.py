"""CLI log inspector — tail, list, clear, and purge the debug log series."""

import argparse
import logging
import sys

from debuglog.config import load_config
from debuglog.errors import ConfigurationError, RetrievalError, SinkError
from debuglog.filter import level_index
from debuglog.inspector import describe_config, format_size, list_log_files
from debuglog.logger import DebugLog

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [debuglog] %(levelname)s %(message)s",
    stream=sys.stderr,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and maintain the debug log")
    parser.add_argument("--config", help="YAML config file (default: $DEBUG_LOG_CONFIG)")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--tail", type=int, metavar="N", help="Show the last N lines")
    group.add_argument("--list", action="store_true", help="List active and sealed log files")
    group.add_argument("--clear", action="store_true", help="Truncate the active log file")
    group.add_argument("--purge", action="store_true", help="Apply the retention policy now")
    group.add_argument("--status", action="store_true", help="Show configuration status")
    group.add_argument("--write", metavar="MESSAGE", help="Append a message to the log")
    parser.add_argument("--level", default="info", help="Level for --write (default: info)")
    parser.add_argument("--caller", default="log_inspector", help="Caller label for --write")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        debug_log = DebugLog(config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with debug_log:
        try:
            if args.tail is not None:
                if args.tail < 0:
                    print("Error: --tail requires N >= 0", file=sys.stderr)
                    return 1
                lines = debug_log.tail(args.tail)
                if not lines:
                    print("No debug logs found.")
                for line in lines:
                    print(line)

            elif args.list:
                files = list_log_files(config.log_dir, config.log_filename)
                if not files:
                    print("No log files found.")
                for name, size in files:
                    print(f"  {name}  ({format_size(size)})")

            elif args.clear:
                debug_log.clear()
                print("Debug logs cleared.")

            elif args.purge:
                result = debug_log.enforce_retention()
                print(f"Removed {result.count} file(s).")
                for name in result.removed:
                    print(f"  {name}")
                for err in result.errors:
                    print(f"Error: {err}", file=sys.stderr)
                if result.errors:
                    return 1

            elif args.status:
                for line in describe_config(config):
                    print(line)

            elif args.write is not None:
                if level_index(args.level) == -1:
                    print(f"Error: unknown level {args.level!r}", file=sys.stderr)
                    return 1
                debug_log.write_log(args.write, args.level, args.caller)
                if debug_log.sink.last_error is not None:
                    print(f"Error: {debug_log.sink.last_error}", file=sys.stderr)
                    return 1

        except (RetrievalError, SinkError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
