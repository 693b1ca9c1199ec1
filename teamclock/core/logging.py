import json
import logging
import os
from datetime import datetime, timezone

SERVICE_NAME = "teamclock"

_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra=`` fields land under ``"extra"``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {k: v for k, v in record.__dict__.items() if k not in _RESERVED}
        if extras:
            payload["extra"] = extras

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _level(name: str, default: int) -> int:
    return getattr(logging, os.getenv(name, "").upper(), default)


def configure_logging() -> None:
    level = _level("LOG_LEVEL", logging.INFO)

    logging.basicConfig(level=level, format="%(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setFormatter(JsonFormatter())

    # the request middleware already logs method/path/status/duration
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(_level("SQL_LOG_LEVEL", logging.WARNING))
