"""
Logging setup for CGI programs.

stdout carries the HTTP response, so logs go to stderr (which most web
servers copy into their error log) or to a file.

    text:  2026-01-01 12:00:00 [DEBUG] cgikit.multipart: found 2 multipart chunks
    json:  {"time": "2026-01-01 12:00:00", "level": "DEBUG", "logger": ...}

Library modules only call logging.getLogger("cgikit.<module>"); nothing
is printed until setup_logging() (or the application's own logging
configuration) attaches a handler.
"""

import json
import logging
from typing import Optional

from .config import CGIConfig

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pid": record.process,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(config: Optional[CGIConfig] = None) -> logging.Logger:
    """
    Attach a handler to the "cgikit" logger according to ``config``.

    Calling it again replaces the handler installed by the previous call
    instead of adding a second one.
    """
    config = config or CGIConfig()
    level = getattr(logging, config.log_level.upper(), logging.WARNING)

    if config.log_file:
        handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()  # stderr

    if config.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))
    handler.set_name("cgikit")

    logger = logging.getLogger("cgikit")
    for old in list(logger.handlers):
        if old.get_name() == "cgikit":
            logger.removeHandler(old)
            old.close()
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
