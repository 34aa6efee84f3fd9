from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class SessionContext:
    """Who is acting, passed explicitly into every engine operation.

    Built once at session start instead of being read from ambient storage.
    """

    employee_id: str
    token: Optional[str]
    email: Optional[str] = None
    name: Optional[str] = None
    device_info: str = "shift-attendance"

    @classmethod
    def from_stored(cls, stored: Mapping[str, Any], *, token: Optional[str] = None) -> "SessionContext":
        """Build from a stored user dict (``{"employeeId": ..., "email": ...}``)."""
        user = dict(stored.get("user") or stored)
        employee_id = user.get("employeeId") or user.get("employee_id") or user.get("id")
        return cls(
            employee_id=str(employee_id) if employee_id is not None else "",
            token=token or stored.get("token") or stored.get("authToken"),
            email=user.get("email"),
            name=user.get("name") or user.get("fullName"),
        )

    @property
    def authenticated(self) -> bool:
        return bool(self.token) and bool(self.employee_id)
