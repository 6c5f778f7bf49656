"""Colored, severity-tagged console output."""

from __future__ import annotations

import sys

# Verbosity thresholds
QUIET = 0
WARNINGS = 1
NORMAL = 2
DEBUG = 3
TRACE = 4

DEFAULT_VERBOSITY = NORMAL


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"

    @classmethod
    def disable(cls) -> None:
        """Disable colors for non-TTY output."""
        cls.RESET = ""
        cls.BOLD = ""
        cls.DIM = ""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.BLUE = ""
        cls.MAGENTA = ""
        cls.CYAN = ""


class Logger:
    """Logger with colored output and numeric verbosity levels.

    Errors are always written to stderr. Everything else is gated on
    ``verbosity``: warnings from 1, regular progress from 2, debug detail
    from 3 and echoed commands from 4.
    """

    def __init__(self, verbosity: int = DEFAULT_VERBOSITY) -> None:
        self.verbosity = verbosity
        if not sys.stdout.isatty():
            Colors.disable()

    def _enabled(self, level: int) -> bool:
        return self.verbosity >= level

    def fatal(self, message: str) -> None:
        """Print a fatal message (always shown)."""
        print(f"{Colors.RED}{Colors.BOLD}[FATAL]{Colors.RESET} {message}", file=sys.stderr)

    def abort(self, message: str) -> None:
        """Print an abort message (always shown)."""
        print(f"{Colors.MAGENTA}{Colors.BOLD}[ABORT]{Colors.RESET} {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        """Print error message (always shown)."""
        print(f"{Colors.RED}✗{Colors.RESET} {message}", file=sys.stderr)

    def warning(self, message: str) -> None:
        """Print warning message."""
        if self._enabled(WARNINGS):
            print(f"{Colors.YELLOW}⚠{Colors.RESET} {message}")

    def info(self, message: str) -> None:
        """Print info message."""
        if self._enabled(NORMAL):
            print(f"{Colors.BLUE}ℹ{Colors.RESET} {message}")

    def success(self, message: str) -> None:
        """Print success message."""
        if self._enabled(NORMAL):
            print(f"{Colors.GREEN}✓{Colors.RESET} {message}")

    def header(self, message: str) -> None:
        """Print header message."""
        if self._enabled(NORMAL):
            print(f"\n{Colors.BOLD}{Colors.CYAN}{message}{Colors.RESET}")

    def status_line(self, label: str, value: str, color: str = "") -> None:
        """Print a status line with label and value."""
        if self._enabled(NORMAL):
            print(f"  {Colors.DIM}{label}:{Colors.RESET} {color}{value}{Colors.RESET}")

    def debug(self, message: str) -> None:
        """Print debug message."""
        if self._enabled(DEBUG):
            print(f"{Colors.DIM}  {message}{Colors.RESET}")

    def trace(self, message: str) -> None:
        """Print an executed command."""
        if self._enabled(TRACE):
            print(f"{Colors.DIM}  $ {message}{Colors.RESET}")

    def passthrough(self, line: str) -> None:
        """Echo a line of child process output unchanged."""
        if self._enabled(NORMAL):
            sys.stdout.write(line)
            sys.stdout.flush()


# Global logger instance
logger = Logger()


def configure(verbosity: int) -> Logger:
    """Set the verbosity of the shared logger instance."""
    logger.verbosity = verbosity
    return logger
