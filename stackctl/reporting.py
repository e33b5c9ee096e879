"""Status summary: cluster identity, Kibana login and per-container state."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

import httpx

from .clients.elasticsearch import ElasticsearchClient, cluster_name, version_number
from .constants import LOGS_HINT, MISSING_VALUE
from .errors import StackError
from .models import ClusterHealthSnapshot, ClusterStatus, StackContext, StatusReport
from .runtime.docker import DockerComposeRunner

log = logging.getLogger(__name__)

ROW_FORMAT = "{:<40}  {:<10}  {:<10}  {:<24}  {}"


class StatusReporter:
    """Collects a StatusReport; never raises for an unreachable or stopped stack."""

    def __init__(
        self,
        context: StackContext,
        client: ElasticsearchClient,
        runner: DockerComposeRunner,
    ) -> None:
        self.context = context
        self.client = client
        self.runner = runner

    def collect(self) -> StatusReport:
        es = self.context.config.elasticsearch
        report = StatusReport(
            elasticsearch_url=self.context.elasticsearch_url,
            kibana_url=self.context.kibana_url,
            username=es.username,
            password=es.password,
        )
        snapshot = self.snapshot()
        if snapshot is not None:
            report.reachable = True
            report.health = snapshot

        try:
            report.containers = self.runner.ps()
        except StackError as exc:
            log.debug("Container listing failed: %s", exc)
            report.containers_error = str(exc)
        return report

    def snapshot(self) -> Optional[ClusterHealthSnapshot]:
        """Query health and root info independently; None when neither answers."""
        status: Optional[ClusterStatus] = None
        try:
            status = self.client.cluster_health()
        except (httpx.HTTPError, ValueError) as exc:
            log.debug("Cluster health unavailable: %s", exc)

        info = None
        try:
            info = self.client.info()
        except (httpx.HTTPError, ValueError) as exc:
            log.debug("Cluster info unavailable: %s", exc)

        version = version_number(info) if info else None
        name = cluster_name(info) if info else None
        if (status is None or status == ClusterStatus.unknown) and version is None:
            return None
        return ClusterHealthSnapshot(
            status=status or ClusterStatus.unknown,
            version=version,
            cluster_name=name,
        )

    def report(self, echo: Callable[[str], None] = print) -> StatusReport:
        report = self.collect()
        echo(render_report(report))
        return report


def render_report(report: StatusReport) -> str:
    lines: List[str] = ["", "Health Summary (Compose Project)", "-" * 35]

    lines.append("Elasticsearch:")
    if report.reachable and report.health is not None:
        health = report.health
        lines.append(f"  URL:       {report.elasticsearch_url}")
        lines.append(f"  Status:    {health.status.value}")
        lines.append(f"  Version:   {health.version or MISSING_VALUE}")
        lines.append(f"  Cluster:   {health.cluster_name or MISSING_VALUE}")
    else:
        lines.append(f"  Not reachable at {report.elasticsearch_url}")

    lines.extend(
        [
            "",
            "Kibana Login:",
            f"  URL:       {report.kibana_url}",
            f"  Username:  {report.username}",
            f"  Password:  {report.password}",
            "",
        ]
    )

    if report.containers_error:
        lines.append(f"Unable to list containers: {report.containers_error}")
    elif not report.containers:
        lines.append("No containers found for this compose project.")
    else:
        lines.append(ROW_FORMAT.format("Container", "State", "Health", "Status/Uptime", "Ports"))
        lines.append(ROW_FORMAT.format("-" * 40, "-" * 10, "-" * 10, "-" * 24, "-----"))
        for container in report.containers:
            lines.append(
                ROW_FORMAT.format(
                    container.name,
                    container.state,
                    container.health,
                    container.status,
                    container.ports,
                )
            )

    lines.extend(["", f"Tip: view live logs with: {LOGS_HINT}"])
    return "\n".join(lines)
