# File: crudgen/utils.py
"""
crudgen - Utility Functions & Helpers
=====================================
Identifier conversion for generated Go/Vue names, checksum and line-count
helpers, the ``Timer`` context manager used for step metrics, and the small
terminal helpers (status lines, yes/no prompt) the exporter relies on.

All naming helpers split on ``_`` only and capitalise the first letter of
each token, leaving the rest of the token untouched: ``user_ID`` becomes
``UserID``, not ``UserId``.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import sys
import time
from typing import Callable, List, Optional, TextIO

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.utils")

# ---------------------------------------------------------------------------
# Cached identifier conversions
# ---------------------------------------------------------------------------


def _title(token: str) -> str:
    return token[:1].upper() + token[1:]


@functools.lru_cache(maxsize=None)
def camel_case(name: str) -> str:
    """
    Convert an underscore-delimited name to CamelCase.

    Examples:
        >>> camel_case("user_profile")
        'UserProfile'
        >>> camel_case("createdAt")
        'CreatedAt'
    """
    return "".join(_title(tok) for tok in name.split("_"))


@functools.lru_cache(maxsize=None)
def lower_camel_case(name: str) -> str:
    """
    Convert an underscore-delimited name to lowerCamelCase.

    The first token is kept as-is (only trimmed):
        >>> lower_camel_case("very_important_person")
        'veryImportantPerson'
    """
    tokens: List[str] = [tok.strip() for tok in name.split("_")]
    if not tokens:
        return ""
    return tokens[0] + "".join(_title(tok) for tok in tokens[1:])


@functools.lru_cache(maxsize=None)
def url_style(name: str) -> str:
    """``Order_Items`` -> ``order-items``."""
    return "-".join(tok.strip().lower() for tok in name.split("_"))


@functools.lru_cache(maxsize=None)
def go_file_stem(table_name: str) -> str:
    """
    File stem for per-table Go files. The stem is always followed by a role
    suffix (``Model.go``, ``Controller.go``...), so ``user_test`` yields
    ``UserTestModel.go`` and never a Go test source.
    """
    return camel_case(table_name)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for the orchestrator's step metrics.

    Usage:
        with Timer("read schema") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Terminal helpers
# ---------------------------------------------------------------------------

_GREEN_BOLD: str = "\x1b[32m\x1b[1m"
_RESET: str = "\x1b[0m"


def print_status(action: str, path: str, stream: Optional[TextIO] = None) -> None:
    """Print a ``create  path`` status line, green when writing to a TTY."""
    out: TextIO = stream if stream is not None else sys.stdout
    isatty: Callable[[], bool] = getattr(out, "isatty", lambda: False)
    if isatty():
        out.write(f"\t{_GREEN_BOLD}{action}{_RESET}\t {path}\n")
    else:
        out.write(f"\t{action}\t {path}\n")
    out.flush()


def ask_for_confirmation(
    prompt: str,
    input_func: Callable[[str], str] = input,
) -> bool:
    """
    Ask a yes/no question until a recognisable answer is given.

    A closed stdin counts as "no".
    """
    while True:
        try:
            answer: str = input_func(prompt)
        except EOFError:
            logger.warning("No answer on stdin; treating as 'no'.")
            return False
        normalised: str = answer.strip().lower()
        if normalised in ("y", "yes"):
            return True
        if normalised in ("n", "no"):
            return False
        prompt = "Please type yes or no and then press enter: "


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "camel_case",
    "lower_camel_case",
    "url_style",
    "go_file_stem",
    "sha256_hex",
    "count_lines",
    "Timer",
    "print_status",
    "ask_for_confirmation",
]

logger.debug("crudgen.utils loaded (%d public symbols).", len(__all__))
