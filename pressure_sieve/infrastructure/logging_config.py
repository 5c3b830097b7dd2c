"""Structured logging configuration.

JSON lines for batch runs whose logs are collected, plain text for
interactive sessions. Logs go to stderr so they never interleave with the
operator prompts on stdout.

Security Impact:
    - Modules never log raw personalId values or full records
    - Record-level detail is logged at DEBUG only
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Optional

PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
PLAIN_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Attributes a caller may attach with ``extra=`` to tie a line to the run
CONTEXT_ATTRIBUTES = ("run_id", "stage", "record_id")


class StructuredFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(
            (name, getattr(record, name)) for name in CONTEXT_ATTRIBUTES if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(use_json: bool = False, log_level: str = "INFO", stream: Optional[IO[str]] = None):
    """Install a single root handler.

    Parameters:
        use_json: Emit JSON lines instead of plain text
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        stream: Destination (defaults to stderr)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        StructuredFormatter() if use_json else logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATE_FORMAT)
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
