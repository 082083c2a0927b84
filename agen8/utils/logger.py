# agen8/utils/logger.py
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

ROOT_LOGGER = "agen8"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ANSI colour per minimum level, highest first
_COLORS = (
    (logging.ERROR, "\033[91m"),    # red
    (logging.WARNING, "\033[93m"),  # yellow
    (logging.INFO, "\033[92m"),     # green
)


def parse_level(name: Optional[str], default: int = logging.INFO) -> int:
    """'debug' / 'WARN' / '10' -> logging level; unknown names give `default`."""
    if not name:
        return default
    text = name.strip().upper()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text)
    return level if isinstance(level, int) else default


class _ColorFormatter(logging.Formatter):
    """Colours whole lines by level, only when stderr is a terminal."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if not sys.stderr.isatty():
            return line
        for min_level, color in _COLORS:
            if record.levelno >= min_level:
                return f"{color}{line}\033[0m"
        return line


def _file_handler(log_dir: Path, file_name: str, max_mb: int, backups: int) -> RotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(
        filename=str(log_dir / file_name),
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backups,
        encoding="utf-8",
    )
    fh.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return fh


def init_logger(
    name: str = ROOT_LOGGER,
    level: Optional[int] = None,
    log_dir: Union[str, Path, None] = None,
    file_name: str = "agen8.log",
    file_max_mb: int = 5,
    file_backup: int = 3,
) -> logging.Logger:
    """
    (Re)configure the package logger.

    Records go to stderr so command output on stdout stays machine-readable;
    with `log_dir` they are also written to a rotating file. The level comes
    from `level`, else $LOG_LEVEL, else INFO. Calling it again replaces the
    handlers, which is how the CLI applies --log-level / --log-dir.
    """
    logger = logging.getLogger(name)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = False
    logger.setLevel(level if level is not None else parse_level(os.getenv("LOG_LEVEL")))

    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(_ColorFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(sh)

    if log_dir:
        logger.addHandler(_file_handler(Path(log_dir), file_name, file_max_mb, file_backup))

    return logger


# Convenience default logger
log = init_logger()


def get_logger(child: str) -> logging.Logger:
    """Child of the package logger, e.g. get_logger("structural.repair") -> "agen8.structural.repair"."""
    return logging.getLogger(ROOT_LOGGER).getChild(child)
