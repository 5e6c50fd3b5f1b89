from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(*, verbose: bool = False, logfile: str | None = None) -> logging.Handler:
    """Configure the diagnostic sink.

    Messages go to stderr by default, to stdout when ``logfile`` is ``"-"``,
    otherwise they are appended to ``logfile``.
    """
    if logfile is None:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
    elif logfile == "-":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.FileHandler(logfile, mode="a", encoding="utf-8")
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[handler],
        force=True,
    )
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
