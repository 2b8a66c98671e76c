# ------------------------------------------------------------
# Module: visual_editor/core/logging.py
# Purpose: Logging setup and per-document logger adapters.
# ------------------------------------------------------------

"""Logging for the editor core and its HTTP surface.

Summary:
    One stdout handler and format for FastAPI, Uvicorn and `visual_editor.*`.
    Individual loggers can be tuned with `LOG_LEVELS` (urllib3, pulled in by
    `requests`, defaults to WARNING so engine calls do not flood the log).

Developer Guidance:
    - Call `configure_logging()` once in `create_app()`.
    - Module loggers are named `visual_editor.<area>`.
    - Code acting on one document logs through `document_logger(...)` so every
      line carries `doc=<id>`.
"""

import logging
import sys

from visual_editor.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging() -> None:
    """Install the stdout handler and apply `LOG_LEVEL`, `LOG_LEVELS` and `ACCESS_LOG`."""
    if settings.MUTE_ALL_LOGS:
        logging.disable(logging.CRITICAL)
        return

    logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT, stream=sys.stdout)
    for name in ("visual_editor", "uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(settings.LOG_LEVEL)

    for name, level in settings.LOG_LEVELS.items():
        if level not in logging.getLevelNamesMapping():
            logging.getLogger("visual_editor").warning("ignoring log level %r for %s", level, name)
            continue
        logging.getLogger(name).setLevel(level)

    logging.getLogger("uvicorn.access").disabled = not settings.ACCESS_LOG


class DocumentLogger(logging.LoggerAdapter):
    """Prefixes messages with the document id (`doc=<id> ...`)."""

    def process(self, msg, kwargs):
        return f"doc={self.extra['doc']} {msg}", kwargs


def document_logger(logger: logging.Logger, doc_id: str) -> DocumentLogger:
    return DocumentLogger(logger, {"doc": doc_id})


__all__ = ["DocumentLogger", "configure_logging", "document_logger"]
