"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List
from unittest.mock import MagicMock, patch

import httpx
import pytest

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from stackctl.clients.elasticsearch import ElasticsearchClient
from stackctl.models import StackConfig, StackContext
from stackctl.storage import ConfigRepository


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Return a valid sample configuration."""
    return {
        "stack_version": "9.2.0",
        "host_ip": "192.0.2.10",
        "elasticsearch": {"port": 9200, "username": "elastic", "password": "changeme-es"},
        "kibana": {
            "port": 5601,
            "system_password": "changeme-kibana",
            "encryption_key": "0123456789abcdef0123456789abcdef",
        },
        "compose": {"project_name": "elk-test"},
        "health": {"max_attempts": 30, "interval": 10},
    }


@pytest.fixture
def stack_config(sample_config: Dict[str, Any]) -> StackConfig:
    return StackConfig.model_validate(sample_config)


@pytest.fixture
def stack_context(stack_config: StackConfig) -> StackContext:
    return StackContext(config=stack_config, host_address="192.0.2.10")


@pytest.fixture
def config_repo(temp_dir: Path, sample_config: Dict[str, Any]) -> ConfigRepository:
    """Create a ConfigRepository with a sample stack.yaml."""
    import yaml
    (temp_dir / "stack.yaml").write_text(yaml.dump(sample_config))
    return ConfigRepository(temp_dir)


@pytest.fixture
def mock_docker() -> Generator[MagicMock, None, None]:
    """Mock docker CLI invocations."""
    with patch("stackctl.runtime.docker.subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock_run


@pytest.fixture
def no_sleep() -> Generator[MagicMock, None, None]:
    with patch("time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def es_client_factory(stack_context: StackContext) -> Callable[..., ElasticsearchClient]:
    """Build an ElasticsearchClient backed by an httpx.MockTransport handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> ElasticsearchClient:
        return ElasticsearchClient.from_context(
            stack_context, transport=httpx.MockTransport(handler)
        )

    return factory


@pytest.fixture
def health_sequence() -> Callable[[List[Any]], Callable[[httpx.Request], httpx.Response]]:
    """Factory for handlers answering /_cluster/health with each entry of ``statuses`` in turn.

    An entry may be a status string, None (field absent) or an exception
    class to raise as a transport failure. The last entry repeats. The
    returned handler exposes ``calls["count"]``.
    """

    def build(statuses: List[Any]) -> Callable[[httpx.Request], httpx.Response]:
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            index = min(calls["count"], len(statuses) - 1)
            calls["count"] += 1
            entry = statuses[index]
            if isinstance(entry, type) and issubclass(entry, Exception):
                raise entry("simulated failure", request=request)
            if entry is None:
                return httpx.Response(200, json={"cluster_name": "elk-cluster"})
            return httpx.Response(200, json={"status": entry, "cluster_name": "elk-cluster"})

        handler.calls = calls  # type: ignore[attr-defined]
        return handler

    return build
