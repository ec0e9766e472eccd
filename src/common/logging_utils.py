"""Centralized logging helpers.

Configures the root logger once for the CLI and offers small helpers for
structured DEBUG events (``extra_context``), URL redaction and timing.
Log output always goes to stderr because stdout may carry archive bytes.
"""
from __future__ import annotations

import logging
import os
import re
import sys
import time
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from constants import Constants

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_SENSITIVE_KEYS = re.compile(r"(token|key|secret|password|auth)", re.IGNORECASE)
_REDACTED = "[REDACTED]"


def verbosity_to_level(verbosity: int) -> int:
    """Map a -v/-q balance to a logging level.

    0 is INFO; each -v goes one step more verbose (DEBUG, then TRACE),
    each -q one step quieter (WARNING, ERROR, CRITICAL).
    """
    if verbosity >= 2:
        return TRACE
    if verbosity == 1:
        return logging.DEBUG
    if verbosity == 0:
        return logging.INFO
    if verbosity == -1:
        return logging.WARNING
    if verbosity == -2:
        return logging.ERROR
    return logging.CRITICAL


def level_from_name(name: Optional[str]) -> Optional[int]:
    """Translate a level name (TRACE included) to its number, or None."""
    if not name:
        return None
    name = name.strip().upper()
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else None


def configure_logging(
    level: Optional[int] = None,
    logfile: Optional[str] = None,
) -> None:
    """Configure the root logger.

    An explicit ``level`` wins; otherwise ``$CARGO_DOWNLOAD_LOG_LEVEL`` is
    consulted, falling back to INFO.
    """
    if level is None:
        level = level_from_name(os.environ.get(Constants.ENV_LOG_LEVEL))
    if level is None:
        level = logging.INFO

    handlers = [logging.StreamHandler(sys.stderr)]
    if logfile:
        handlers.append(logging.FileHandler(logfile, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=Constants.LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG events would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def trace(logger: logging.Logger, msg: str, *args: Any, **kwargs: Any) -> None:
    """Log ``msg`` at TRACE level."""
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, msg, *args, **kwargs)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records, dropping None values."""
    return {k: v for k, v in fields.items() if v is not None}


def redact(text: str) -> str:
    """Mask ``key=value`` pairs whose key looks like a credential."""
    return re.sub(
        r"(?i)\b(\w*(?:token|key|secret|password|auth)\w*)=([^&\s]+)",
        lambda m: f"{m.group(1)}={_REDACTED}",
        text,
    )


def safe_url(url: str) -> str:
    """Return ``url`` with userinfo and credential-like query values masked."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.netloc
    if "@" in netloc:
        netloc = f"{_REDACTED}@{netloc.rsplit('@', 1)[1]}"
    query = parts.query
    if query:
        pairs = [
            (k, _REDACTED if _SENSITIVE_KEYS.search(k) else v)
            for k, v in parse_qsl(query, keep_blank_values=True)
        ]
        query = urlencode(pairs, safe="[]")
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self):
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
