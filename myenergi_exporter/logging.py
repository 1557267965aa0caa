from __future__ import annotations

import logging
import sys
from typing import Iterable


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _default_logger_name() -> logging.Logger:
    return logging.getLogger("myenergi")


class ConsoleLog:
    """Configure console logging for the exporter."""

    def __init__(self, level: str = "INFO", quiet: bool = False, debug_modules: Iterable[str] | None = None):
        self.level = level.upper()
        self.quiet = quiet
        self.debug_modules = list(debug_modules or [])

    def setup(self) -> logging.Logger:
        # Root logger handles all levels; handlers control visibility.
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.DEBUG)

        if not self.quiet:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(getattr(logging, self.level, logging.INFO))
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(handler)

        # urllib3 logs every pooled connection at DEBUG.
        if self.level != "DEBUG":
            logging.getLogger("urllib3").setLevel(logging.WARNING)

        for name in self.debug_modules:
            logging.getLogger(name).setLevel(logging.DEBUG)

        return _default_logger_name()


def setup_logging(debug: bool = False, quiet: bool = False) -> logging.Logger:
    """
    Configure root logger according to CLI flags.
    """
    level = logging.DEBUG if debug else logging.INFO
    if quiet:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    return _default_logger_name()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
