"""Pydantic models for stack configuration and observed runtime state."""
from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import (
    DEFAULT_ELASTIC_PASSWORD,
    DEFAULT_ENCRYPTION_KEY,
    DEFAULT_EXIT_POLL_INTERVAL,
    DEFAULT_HEALTH_INTERVAL,
    DEFAULT_HEALTH_MAX_ATTEMPTS,
    DEFAULT_HOST_PORTS,
    DEFAULT_KIBANA_SYSTEM_PASSWORD,
    DEFAULT_PROJECT_NAME,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_STACK_VERSION,
    ELASTIC_USERNAME,
    MIN_ENCRYPTION_KEY_LENGTH,
    MISSING_MARKER,
    MISSING_VALUE,
)


class Action(str, Enum):
    start = "start"
    status = "status"
    stop = "stop"
    destroy = "destroy"


class ClusterStatus(str, Enum):
    green = "green"
    yellow = "yellow"
    red = "red"
    unknown = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "ClusterStatus":
        """Map a raw ``status`` field to a member, ``unknown`` when unrecognised."""
        if not isinstance(value, str):
            return cls.unknown
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.unknown


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


def _ensure_quotable(value: str) -> str:
    # Secrets are written single-quoted to .env, where no escape exists.
    if "'" in value:
        raise ValueError("secrets must not contain single quotes")
    return value


class ElasticsearchConfig(_Frozen):
    port: int = Field(default=DEFAULT_HOST_PORTS["elasticsearch"], ge=1, le=65535)
    username: str = ELASTIC_USERNAME
    password: str = DEFAULT_ELASTIC_PASSWORD
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)

    @field_validator("password")
    def ensure_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Elasticsearch password must not be empty")
        return _ensure_quotable(value)


class KibanaConfig(_Frozen):
    port: int = Field(default=DEFAULT_HOST_PORTS["kibana"], ge=1, le=65535)
    system_password: str = DEFAULT_KIBANA_SYSTEM_PASSWORD
    encryption_key: str = DEFAULT_ENCRYPTION_KEY

    @field_validator("system_password")
    def ensure_system_password(cls, value: str) -> str:
        return _ensure_quotable(value)

    @field_validator("encryption_key")
    def ensure_key_length(cls, value: str) -> str:
        if len(value) < MIN_ENCRYPTION_KEY_LENGTH:
            raise ValueError(
                f"encryption_key must be at least {MIN_ENCRYPTION_KEY_LENGTH} characters"
            )
        return _ensure_quotable(value)


class ComposeConfig(_Frozen):
    project_name: str = DEFAULT_PROJECT_NAME
    compose_file: Optional[Path] = None


class HealthPolicy(_Frozen):
    max_attempts: int = Field(default=DEFAULT_HEALTH_MAX_ATTEMPTS, ge=1)
    interval: float = Field(default=DEFAULT_HEALTH_INTERVAL, ge=0)
    acceptable: List[ClusterStatus] = Field(
        default_factory=lambda: [ClusterStatus.green, ClusterStatus.yellow]
    )

    @field_validator("acceptable")
    def ensure_acceptable(cls, value: List[ClusterStatus]) -> List[ClusterStatus]:
        if not value:
            raise ValueError("At least one acceptable cluster status is required")
        if ClusterStatus.unknown in value:
            raise ValueError("'unknown' cannot be an acceptable cluster status")
        return value


class ReaperConfig(_Frozen):
    verify_exit: bool = False
    exit_poll_interval: float = Field(default=DEFAULT_EXIT_POLL_INTERVAL, ge=0)


class StackConfig(_Frozen):
    stack_version: str = DEFAULT_STACK_VERSION
    host_ip: Optional[str] = None
    elasticsearch: ElasticsearchConfig = Field(default_factory=ElasticsearchConfig)
    kibana: KibanaConfig = Field(default_factory=KibanaConfig)
    compose: ComposeConfig = Field(default_factory=ComposeConfig)
    health: HealthPolicy = Field(default_factory=HealthPolicy)
    reaper: ReaperConfig = Field(default_factory=ReaperConfig)

    @field_validator("host_ip")
    def ensure_ipv4(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        try:
            ipaddress.IPv4Address(value)
        except ValueError as exc:
            raise ValueError(f"host_ip must be an IPv4 address, got {value!r}") from exc
        return value


class StackContext(_Frozen):
    """Configuration plus the host address resolved once at process start."""

    config: StackConfig
    host_address: str

    @property
    def elasticsearch_url(self) -> str:
        return f"http://{self.host_address}:{self.config.elasticsearch.port}"

    @property
    def kibana_url(self) -> str:
        return f"http://{self.host_address}:{self.config.kibana.port}"


# ---------------------------------------------------------------------------
# Observed state
# ---------------------------------------------------------------------------


class ClusterHealthSnapshot(BaseModel):
    status: ClusterStatus = ClusterStatus.unknown
    version: Optional[str] = None
    cluster_name: Optional[str] = None


class ContainerDescriptor(_Frozen):
    """Read-only projection of a container as reported by docker compose."""

    name: str
    state: str = MISSING_VALUE
    health: str = MISSING_MARKER
    status: str = MISSING_VALUE
    ports: str = MISSING_MARKER

    @classmethod
    def from_compose(cls, entry: dict[str, Any]) -> "ContainerDescriptor":
        def text(key: str, default: str) -> str:
            value = entry.get(key)
            if value is None or value == "":
                return default
            return str(value)

        ports = text("Ports", "")
        if not ports:
            ports = _format_publishers(entry.get("Publishers")) or MISSING_MARKER

        return cls(
            name=text("Name", MISSING_VALUE),
            state=text("State", MISSING_VALUE),
            health=text("Health", MISSING_MARKER),
            status=text("Status", MISSING_VALUE),
            ports=ports,
        )


def _format_publishers(publishers: Any) -> str:
    """Render compose ``Publishers`` entries the way ``docker ps`` shows ports."""
    if not isinstance(publishers, list):
        return ""
    parts: List[str] = []
    for item in publishers:
        if not isinstance(item, dict) or not item.get("PublishedPort"):
            continue
        url = item.get("URL") or "0.0.0.0"
        parts.append(
            f"{url}:{item['PublishedPort']}->{item.get('TargetPort')}/{item.get('Protocol', 'tcp')}"
        )
    return ", ".join(parts)


@dataclass
class RetryBudget:
    """Attempt counter scoped to a single polling operation."""

    max_attempts: int
    interval: float
    attempts: int = 0

    def consume(self) -> None:
        self.attempts += 1

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    @property
    def ceiling_seconds(self) -> float:
        return self.max_attempts * self.interval


class StageEvent(BaseModel):
    stage: str
    status: Literal["started", "ok", "failed"]
    detail: Optional[str] = None


class RenderResult(BaseModel):
    compose_path: Path
    env_path: Path


class StatusReport(BaseModel):
    """Everything the status summary shows, collected in one pass."""

    elasticsearch_url: str
    kibana_url: str
    username: str
    password: str
    reachable: bool = False
    health: Optional[ClusterHealthSnapshot] = None
    containers: List[ContainerDescriptor] = Field(default_factory=list)
    containers_error: Optional[str] = None
