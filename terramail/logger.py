import json  # JSON serialization
import logging
from datetime import datetime, timezone

# attributes every LogRecord carries; anything else arrived through ``extra=``
_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Format log records as JSON, one object per line.

    Context passed with ``extra=`` (ip, user_id, outcome, ...) is merged into
    the object so audit lines can be filtered without parsing the message.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        data = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_FIELDS and not key.startswith("_"):
                data.setdefault(key, value)
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure root logger with JSON formatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler])
