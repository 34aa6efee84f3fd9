from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import requests

from ..core.constants import DEFAULT_API_TIMEOUT_SECONDS


@dataclass
class ApiConfig:
    base_url: str
    version: str = "v1"
    timeout: float = DEFAULT_API_TIMEOUT_SECONDS

    @property
    def prefix(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/{self.version}"


class ApiConnection:
    """Singleton-like HTTP session factory for the HR backend.

    Note: One pooled ``requests.Session`` per API prefix is shared by every gateway.
    """

    _instances: Dict[str, "ApiConnection"] = {}

    def __init__(self, config: ApiConfig, *, session: Optional[requests.Session] = None):
        self._config = config
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @classmethod
    def get_instance(cls, config: ApiConfig) -> "ApiConnection":
        instance = cls._instances.get(config.prefix)
        if instance is None:
            instance = cls._instances[config.prefix] = ApiConnection(config)
        return instance

    @property
    def config(self) -> ApiConfig:
        return self._config

    @property
    def session(self) -> requests.Session:
        return self._session

    def url(self, path: str) -> str:
        return f"{self._config.prefix}/{path.lstrip('/')}"

    def close(self) -> None:
        self._session.close()
