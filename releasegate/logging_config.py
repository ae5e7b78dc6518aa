"""Logging setup for the releasegate CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the command-line entry point.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for CI log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO", fmt: str = "rich") -> None:
    """Install a single handler on the root logger.

    Parameters
    ----------
    level:
        Level name (``DEBUG``, ``INFO``, ...).  Unknown names fall back to INFO.
    fmt:
        ``"json"`` for JSON lines, anything else for Rich console output
        on stderr.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric)
    root_logger.handlers.clear()

    handler: logging.Handler
    if fmt.lower() == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    handler.setLevel(numeric)
    root_logger.addHandler(handler)
