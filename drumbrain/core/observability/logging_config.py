"""
Logging configuration — one setup call for the whole CLI process.

The user-facing progress of a setup run is printed with click; logging
carries what sits behind it: every command line run, every file
written, every failure that was tolerated and why.

Console level precedence:
    --debug / --verbose / --quiet  >  DRUMBRAIN_LOG_LEVEL  >  WARNING

A log file can be added with DRUMBRAIN_LOG_FILE (and an independent
level with DRUMBRAIN_LOG_FILE_LEVEL), which is handy when provisioning
over a flaky SSH session.
"""

from __future__ import annotations

import logging
import sys

# (format, datefmt) per console verbosity; the first threshold that fits wins
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d - %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(levelname)s: %(message)s", None),
]

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d - %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Only urllib is used (kit download); keep its chatter out of -v output
_NOISY_LOGGERS = ("urllib", "urllib3")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path of a log file to append to.
        log_file_level: Level for the log file; defaults to ``level``.
        quiet_third_party: Hold library loggers at WARNING unless debugging.
    """
    console_level = _parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
            break
    return handler


def _parse_level(level: str | None) -> int:
    """Level name to numeric constant; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
