"""Route uncaught exceptions and Python warnings into a DebugLog."""

import os
import sys
import threading
import traceback
import warnings
from typing import Callable

from debuglog.models import Level


def _origin(tb) -> tuple[str, int]:
    """File and line of the innermost frame of a traceback."""
    frames = traceback.extract_tb(tb) if tb is not None else []
    if not frames:
        return "unknown", 0
    last = frames[-1]
    return last.filename, last.lineno or 0


def format_uncaught(exc: BaseException, tb) -> tuple[str, str]:
    """Return (message, caller label) for an uncaught exception."""
    filename, lineno = _origin(tb)
    message = f"Uncaught Exception: {type(exc).__name__}: {exc} in {filename} on line {lineno}"
    return message, f"{os.path.basename(filename)}:{lineno}"


def install_exception_hook(debug_log) -> Callable[[], None]:
    """Log uncaught exceptions (main and worker threads) at ERROR, then chain.

    Returns a callable that restores the previous hooks.
    """
    previous_sys = sys.excepthook
    previous_thread = threading.excepthook

    def _sys_hook(exc_type, exc, tb):
        if not issubclass(exc_type, KeyboardInterrupt):
            message, caller = format_uncaught(exc, tb)
            debug_log.write_log(message, Level.ERROR, caller)
        previous_sys(exc_type, exc, tb)

    def _thread_hook(args):
        if args.exc_type is not SystemExit and args.exc_value is not None:
            message, caller = format_uncaught(args.exc_value, args.exc_traceback)
            debug_log.write_log(message, Level.ERROR, caller)
        previous_thread(args)

    sys.excepthook = _sys_hook
    threading.excepthook = _thread_hook

    def uninstall():
        sys.excepthook = previous_sys
        threading.excepthook = previous_thread

    return uninstall


def capture_warnings(debug_log, passthrough: bool = True) -> Callable[[], None]:
    """Record every displayed warning at WARNING level.

    With passthrough the original ``warnings.showwarning`` still runs.
    Returns a callable that restores it.
    """
    previous = warnings.showwarning

    def _showwarning(message, category, filename, lineno, file=None, line=None):
        text = f"{category.__name__}: {message} in {filename} on line {lineno}"
        debug_log.write_log(text, Level.WARNING, f"{os.path.basename(filename)}:{lineno}")
        if passthrough:
            previous(message, category, filename, lineno, file, line)

    warnings.showwarning = _showwarning

    def uninstall():
        warnings.showwarning = previous

    return uninstall
