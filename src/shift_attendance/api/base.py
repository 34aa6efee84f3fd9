from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..core.exceptions import AuthError, NetworkError
from ..users.model import SessionContext
from .connection import ApiConnection

logger = logging.getLogger(__name__)


def auth_headers(context: Optional[SessionContext]) -> Dict[str, str]:
    if context is None:
        return {}
    if not context.token:
        raise AuthError("No authentication token available")
    return {"Authorization": f"Bearer {context.token}"}


def request_json(
    conn: ApiConnection,
    method: str,
    path: str,
    *,
    context: Optional[SessionContext] = None,
    params: Optional[Dict[str, Any]] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Send one request and return the decoded JSON envelope.

    Non-2xx, non-JSON and ``success: false`` responses all become NetworkError
    carrying the server's message when it sent one.
    """
    url = conn.url(path)
    try:
        response = conn.session.request(
            method,
            url,
            headers=auth_headers(context),
            params=params,
            json=payload,
            timeout=conn.config.timeout,
        )
    except requests.RequestException as e:
        raise NetworkError(f"{method} {path} failed: {e}") from e

    try:
        body = response.json()
    except ValueError:
        body = None

    if not response.ok:
        message = (body or {}).get("message") if isinstance(body, dict) else None
        if response.status_code in (401, 403):
            raise AuthError(message or f"{method} {path} rejected: {response.status_code}")
        raise NetworkError(
            message or f"{method} {path} failed: {response.status_code} {response.reason}",
            status_code=response.status_code,
        )

    if not isinstance(body, dict):
        raise NetworkError(f"{method} {path} returned a non-JSON body", status_code=response.status_code)
    if body.get("success") is False:
        raise NetworkError(body.get("message") or f"{method} {path} was not successful", status_code=response.status_code)

    logger.debug("%s %s -> %s", method, path, response.status_code)
    return body


def unwrap_data(body: Dict[str, Any]) -> Any:
    return body.get("data")


def unwrap_list(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    data = body.get("data")
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)
