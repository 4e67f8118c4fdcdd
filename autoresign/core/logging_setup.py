"""Log setup for the worker process: one stream, `time [LEVEL] message {meta}` lines."""

import json
import logging
import sys
from datetime import datetime, timezone


class MetaFormatter(logging.Formatter):
    """Append the `meta` dict passed through `extra={"meta": {...}}` as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        line = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"

        meta = getattr(record, "meta", None)
        if meta:
            line += " " + json.dumps(meta, default=str, sort_keys=True)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "info") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(MetaFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # SQL echo is noise at info level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
