import json  # JSON serialization
import logging
from datetime import datetime, timezone

# Noisy client libraries; their request lines duplicate our own step logs.
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "sqlalchemy.engine")


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON line.

    Structured context goes in ``extra={"extra_data": {...}}`` and is emitted
    under ``data``, so quota, rate-limit and provider events can be filtered
    by ``limit_type``, ``scope`` or ``step`` without parsing the message.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        data = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = getattr(record, "extra_data", None)
        if extra:
            data["data"] = extra
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def setup_logging(level: str | int = logging.INFO) -> None:
    """Route the root logger through :class:`JsonFormatter`."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
