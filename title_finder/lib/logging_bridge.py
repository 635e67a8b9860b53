from __future__ import annotations

import logging
from typing import Any

from .. import logging_utils as _logging_backend


def activity(record: dict[str, Any]) -> None:
    """
    Write an activity record to the JSONL activity log when file logging is
    enabled. Falls back to stdlib logging as structured info.
    """
    payload = _logging_backend.redact(record)
    if _logging_backend.is_enabled():
        try:
            _logging_backend.write_activity_log(payload)
            return
        except Exception:
            # Fall through to std logging
            pass
    logging.getLogger("title_finder.activity").info(payload)


def error(record: dict[str, Any]) -> None:
    """
    Write an error record to the JSONL error log when file logging is
    enabled. Falls back to stdlib logging as structured error.
    """
    payload = _logging_backend.redact(record)
    if _logging_backend.is_enabled():
        try:
            _logging_backend.write_error_log(payload)
            return
        except Exception:
            # Fall through to std logging
            pass
    logging.getLogger("title_finder.error").error(payload)
