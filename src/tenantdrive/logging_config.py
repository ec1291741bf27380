"""Structured logging configuration for TenantDrive.

Log records emitted while a tenant operation runs carry that tenant's root
prefix. ``bind_tenant`` sets it for the current task; the handler installed
by ``configure_logging`` stamps it onto every record.
"""

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone

_EXTRA_FIELDS = ("operation", "tenant", "key", "object_count", "duration_ms")

# Chatty client libraries stay at WARNING unless DEBUG is requested
_QUIET_LOGGERS = ("botocore", "aiobotocore", "urllib3")

_current_tenant: ContextVar[str | None] = ContextVar("tenantdrive_tenant", default=None)


def bind_tenant(root_prefix: str) -> Token:
    """Attach ``root_prefix`` to log records from the current task."""
    return _current_tenant.set(root_prefix)


def reset_tenant(token: Token) -> None:
    _current_tenant.reset(token)


class TenantFilter(logging.Filter):
    """Sets ``record.tenant`` from the bound tenant ("-" when unbound)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "tenant", None) is None:
            record.tenant = _current_tenant.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Fields: timestamp, level, logger, message, plus any extras. An unbound
    tenant ("-") is left out.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        for name in _EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None and value != "-":
                entry[name] = value
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: 'text' for human-readable lines or 'json' for one object per line.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.addFilter(TenantFilter())
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(tenant)s]: %(message)s")
        )
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
