"""
Discord AutoReply - Logging Utilities
Clean, organized logging with emoji indicators.
"""

import os
import traceback
from datetime import datetime

# Log levels
QUIET = 0   # Only errors
NORMAL = 1  # Errors + important events
VERBOSE = 2 # Everything

_LEVEL_NAMES = {"quiet": QUIET, "normal": NORMAL, "verbose": VERBOSE}

# AUTOREPLY_LOG_LEVEL=quiet|normal|verbose
LOG_LEVEL = _LEVEL_NAMES.get(os.getenv("AUTOREPLY_LOG_LEVEL", "normal").lower(), NORMAL)


class Colors:
    """ANSI color codes for terminal output."""
    OK = '\033[92m'      # Green
    WARN = '\033[93m'    # Yellow
    FAIL = '\033[91m'    # Red
    INFO = '\033[94m'    # Blue
    DIM = '\033[90m'     # Gray
    BOLD = '\033[1m'
    END = '\033[0m'


def _timestamp():
    """Get current time as HH:MM:SS."""
    return datetime.now().strftime("%H:%M:%S")


def _log(icon: str, color: str, msg: str, scope: str = None, level: int = NORMAL):
    """Internal logging function."""
    if level > LOG_LEVEL:
        return

    ts = f"{Colors.DIM}{_timestamp()}{Colors.END}"
    prefix = f"[{scope}] " if scope else ""
    print(f"{ts} {color}{icon}{Colors.END} {prefix}{msg}")


# Public logging functions
def ok(msg: str, scope: str = None):
    """Log success message."""
    _log("✓", Colors.OK, msg, scope, NORMAL)


def warn(msg: str, scope: str = None):
    """Log warning message."""
    _log("⚠", Colors.WARN, msg, scope, NORMAL)


def error(msg: str, scope: str = None):
    """Log error message."""
    _log("✗", Colors.FAIL, msg, scope, QUIET)


def exception(msg: str, exc: BaseException, scope: str = None):
    """Log an error with its traceback (traceback only in verbose mode)."""
    error(f"{msg}: {exc}", scope)
    if LOG_LEVEL >= VERBOSE:
        print(''.join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip())


def info(msg: str, scope: str = None):
    """Log info message."""
    _log("ℹ", Colors.INFO, msg, scope, NORMAL)


def debug(msg: str, scope: str = None):
    """Log debug message (only in verbose mode)."""
    _log("•", Colors.DIM, msg, scope, VERBOSE)


def startup(msg: str):
    """Log startup message (always shown)."""
    print(f"{Colors.BOLD}{msg}{Colors.END}")


def online(msg: str, scope: str = None):
    """Log online status (always shown)."""
    ts = f"{Colors.DIM}{_timestamp()}{Colors.END}"
    prefix = f"[{scope}] " if scope else ""
    print(f"{ts} {Colors.OK}●{Colors.END} {prefix}{msg}")


def divider():
    """Print a divider line."""
    print(f"{Colors.DIM}{'─' * 50}{Colors.END}")
