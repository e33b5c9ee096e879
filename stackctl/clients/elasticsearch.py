"""Minimal Elasticsearch HTTP client for health and identity lookups."""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..constants import CLUSTER_HEALTH_PATH, ROOT_INFO_PATH
from ..models import ClusterStatus, StackContext

log = logging.getLogger(__name__)


class ElasticsearchClient:
    """Read-only access to ``/_cluster/health`` and ``/`` under basic auth."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            auth=httpx.BasicAuth(username, password),
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
            headers={"User-Agent": "stackctl/1.0"},
            transport=transport,
        )

    @classmethod
    def from_context(
        cls,
        context: StackContext,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "ElasticsearchClient":
        es = context.config.elasticsearch
        return cls(
            base_url=context.elasticsearch_url,
            username=es.username,
            password=es.password,
            timeout=es.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ElasticsearchClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def cluster_health(self) -> ClusterStatus:
        """Fetch the cluster status; raises httpx.HTTPError or ValueError on failure."""
        payload = self._get_json(CLUSTER_HEALTH_PATH)
        return ClusterStatus.parse(payload.get("status"))

    def info(self) -> dict[str, Any]:
        """Fetch the root endpoint (version and cluster name)."""
        return self._get_json(ROOT_INFO_PATH)

    def _get_json(self, path: str) -> dict[str, Any]:
        response = self.client.get(path)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected response body from {self.base_url}{path}")
        return payload


def version_number(info: dict[str, Any]) -> Optional[str]:
    version = info.get("version")
    if not isinstance(version, dict):
        return None
    number = version.get("number")
    return number if isinstance(number, str) and number else None


def cluster_name(info: dict[str, Any]) -> Optional[str]:
    name = info.get("cluster_name")
    return name if isinstance(name, str) and name else None
