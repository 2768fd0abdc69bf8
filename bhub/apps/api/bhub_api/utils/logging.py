"""Structured JSON logging utilities.

Every record is rendered as one JSON object carrying the call site, the
request/actor/operation context and any ``extra={...}`` fields. Extra
values go through the sanitizer before they are serialized.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from bhub_api.context import actor_id_var, operation_var, request_id_var
from bhub_api.utils.sanitize import sanitize_exc, sanitize_obj, sanitize_str

_CONTEXT_FIELDS = (
    ("request_id", request_id_var),
    ("actor_id", actor_id_var),
    ("operation", operation_var),
)

# Attributes of a bare LogRecord; anything else on a record came from extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """JSON log formatter with request/actor context.

    Fields: timestamp (ISO 8601 UTC), level, message, module, func, line,
    then request_id / actor_id / operation when set, exc_info when present,
    then the sanitized extra fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": sanitize_str(record.getMessage()),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }

        for name, var in _CONTEXT_FIELDS:
            value = var.get()
            if value:
                log_data[name] = value

        if record.exc_info:
            log_data["exc_info"] = sanitize_exc(record.exc_info)

        log_data.update(
            (key, sanitize_obj(value))
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        )
        return json.dumps(log_data, default=str)


def configure_json_logging(log_level: str = "INFO") -> None:
    """Replace root handlers with a single JSON stream handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)
