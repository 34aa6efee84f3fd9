from __future__ import annotations

import logging
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from flask import jsonify

from ..core.exceptions import (
    AuthError,
    DomainError,
    NetworkError,
    NotCheckedInError,
    OnBreakError,
    RequestInFlightError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _status_for(error: DomainError) -> int:
    if isinstance(error, AuthError):
        return 401
    if isinstance(error, (NotCheckedInError, OnBreakError, RequestInFlightError)):
        return 409
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NetworkError):
        return 502
    return 400


def to_json(value: Any) -> Any:
    """Dataclass-friendly JSON projection (enums by value, datetimes as ISO)."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {to_json(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return {name: to_json(getattr(value, name)) for name in value.__dataclass_fields__ if name != "timers"}
    return value


def ok(data: Any = None, *, status: int = 200, message: str = ""):
    body = {"success": True, "data": to_json(data)}
    if message:
        body["message"] = message
    return jsonify(body), status


def error_response(error: DomainError):
    status = _status_for(error)
    if status >= 500:
        logger.error("Request failed: %s", error)
    return jsonify({"success": False, "message": str(error), "error": type(error).__name__}), status
