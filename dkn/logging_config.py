"""
Logging setup for the DKN service.

Every record is stamped with the request correlation id and, once the bearer
token has been resolved, the acting account id. Production writes one JSON
object per line; other environments get a compact text line.

    from dkn.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Flag resolved", extra={"flag_id": str(flag_id)})
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
account_id_var: ContextVar[Optional[str]] = ContextVar("account_id", default=None)

UNSET = "-"

# Third-party loggers and the level they are held at
QUIET_LOGGERS: Dict[str, int] = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "asyncio": logging.WARNING,
}

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "request_id", "account_id"}


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def bind_account(account_id: Any) -> None:
    """Attach the acting account to log records for the rest of this request."""
    account_id_var.set(str(account_id) if account_id is not None else None)


class RequestContextFilter(logging.Filter):
    """Copy request_id and account_id from the context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or UNSET  # type: ignore[attr-defined]
        record.account_id = account_id_var.get() or UNSET  # type: ignore[attr-defined]
        return True


def structured_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields a caller passed through extra=, coerced to JSON-safe values."""
    fields: Dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_ATTRS or key.startswith("_") or value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            fields[key] = value
            continue
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            value = str(value)
        fields[key] = value
    return fields


class JsonFormatter(logging.Formatter):
    """One JSON object per record, keyed for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("request_id", "account_id"):
            value = getattr(record, key, UNSET)
            if value != UNSET:
                entry[key] = value

        entry.update(structured_fields(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class TextFormatter(logging.Formatter):
    """Single-line development format with context ids and extra fields."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-5s [%(name)s] req=%(request_id)s acct=%(account_id)s %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        for key in ("request_id", "account_id"):
            if not hasattr(record, key):
                setattr(record, key, UNSET)
        line = super().format(record)
        fields = structured_fields(record)
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        return line


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Safe to call more than once; earlier handlers are replaced. ``debug``
    forces DEBUG regardless of ``log_level``.
    """
    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else TextFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
