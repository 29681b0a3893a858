"""Logging configuration.

The application calls ``configure_logging`` once at startup. Modules log
through ``logging.getLogger(__name__)``; security events go to the
``uniboard.audit`` logger via ``audit_event``.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

AUDIT_LOGGER_NAME = "uniboard.audit"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        if getattr(handler, "_uniboard", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._uniboard = True  # type: ignore[attr-defined]
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
    root.addHandler(handler)

    # SQL echo is controlled by SQL_DEBUG on the engine
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def audit_event(
    action: str,
    *,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    ip_address: Optional[str] = None,
    success: bool = True,
    **details: Any,
) -> None:
    """Record a security-relevant event on the audit logger."""
    fields = {
        "action": action,
        "user_id": user_id,
        "email": email,
        "ip_address": ip_address,
        "success": success,
    }
    if details:
        fields["details"] = details
    logging.getLogger(AUDIT_LOGGER_NAME).info(
        "%s user=%s email=%s ip=%s success=%s",
        action,
        user_id,
        email,
        ip_address,
        success,
        extra={"extra_fields": fields},
    )
