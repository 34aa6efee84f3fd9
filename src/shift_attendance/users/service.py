from __future__ import annotations

from typing import Any, Optional

from ..common.validators import require_non_empty
from ..core.exceptions import AuthError
from .model import SessionContext


def build_session_context(settings: Any) -> SessionContext:
    """Session context from the settings module (kiosk / service account)."""
    return SessionContext(
        employee_id=str(getattr(settings, "EMPLOYEE_ID", "") or ""),
        token=getattr(settings, "API_TOKEN", None) or None,
        email=getattr(settings, "EMPLOYEE_EMAIL", None) or None,
        name=getattr(settings, "EMPLOYEE_NAME", None) or None,
    )


def require_authenticated(context: Optional[SessionContext]) -> SessionContext:
    if context is None or not context.token:
        raise AuthError("Not authenticated. Please log in again.")
    require_non_empty(context.employee_id, "Employee id")
    return context
