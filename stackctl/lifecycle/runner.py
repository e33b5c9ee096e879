"""Stack lifecycle workflows: start, stop, destroy and status."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..clients.elasticsearch import ElasticsearchClient
from ..models import StackContext, StageEvent
from ..rendering import ComposeRenderer
from ..reporting import StatusReporter
from ..runtime.docker import DockerComposeRunner
from .health import HealthPoller, describe_outcome
from .reaper import ContainerReaper

log = logging.getLogger(__name__)

BANNER = "=" * 32


@dataclass
class StackController:
    context: StackContext
    runner: DockerComposeRunner
    poller: HealthPoller
    reaper: ContainerReaper
    reporter: StatusReporter
    renderer: Optional[ComposeRenderer] = None
    generated_dir: Optional[Path] = None
    echo: Callable[[str], None] = print
    events: List[StageEvent] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        context: StackContext,
        generated_dir: Path,
        echo: Callable[[str], None] = print,
    ) -> "StackController":
        """Wire the default collaborators for a resolved context."""
        config = context.config
        renderer: Optional[ComposeRenderer] = None
        compose_path = config.compose.compose_file
        if compose_path is None:
            renderer = ComposeRenderer()
            compose_path = generated_dir / "docker-compose.yml"
        runner = DockerComposeRunner(compose_path, project_name=config.compose.project_name)
        client = ElasticsearchClient.from_context(context)
        return cls(
            context=context,
            runner=runner,
            poller=HealthPoller(client, echo=echo),
            reaper=ContainerReaper(
                runner,
                verify_exit=config.reaper.verify_exit,
                exit_poll_interval=config.reaper.exit_poll_interval,
                echo=echo,
            ),
            reporter=StatusReporter(context, client, runner),
            renderer=renderer,
            generated_dir=generated_dir,
            echo=echo,
        )

    # Workflows ---------------------------------------------------------------

    def start(self) -> List[StageEvent]:
        self._header(f"Starting ELK Stack v{self.context.config.stack_version}...")
        self._render()

        self._record("deploy.compose", "started")
        result = self.runner.up()
        self._record("deploy.compose", "ok", result.detail)
        self._print_access_points()

        self._record("wait.elasticsearch", "started")
        outcome = self.poller.wait_with_policy(self.context.config.health)
        self._record("wait.elasticsearch", "ok" if outcome.ok else "failed", describe_outcome(outcome))
        outcome.raise_for_timeout()

        removed = self.reaper.reap_exited()
        self._record("reap", "ok", ", ".join(removed) if removed else "nothing to remove")

        self.reporter.report(echo=self.echo)
        self._record("report", "ok")
        return self.events

    def stop(self) -> List[StageEvent]:
        self._header("Stopping ELK Stack (containers + volumes)")
        self._render()
        self._record("teardown.compose", "started")
        result = self.runner.down(remove_volumes=True, remove_images=False)
        self._record("teardown.compose", "ok", result.detail)
        self.echo("Stopped containers and removed named volumes.")
        return self.events

    def destroy(self) -> List[StageEvent]:
        self._header("Destroying ELK Stack (containers + volumes + images)")
        self._render()
        self._record("teardown.compose", "started")
        result = self.runner.down(remove_volumes=True, remove_images=True)
        self._record("teardown.compose", "ok", result.detail)

        self.echo("Pruning dangling resources (images/containers/networks/build cache) and anonymous volumes...")
        # Host-wide cleanup is best effort; a failed prune leaves the stack destroyed.
        prune_results = self.runner.prune()
        failed = [" ".join(r.command) for r in prune_results if not r.ok]
        self._record("prune", "ok", f"ignored failures: {', '.join(failed)}" if failed else "ok")
        self.echo("Destroy complete.")
        return self.events

    def status(self) -> List[StageEvent]:
        report = self.reporter.report(echo=self.echo)
        self._record("report", "ok", "reachable" if report.reachable else "elasticsearch not reachable")
        return self.events

    def close(self) -> None:
        self.poller.client.close()

    # Helpers -----------------------------------------------------------------

    def _render(self) -> None:
        if self.renderer is None or self.generated_dir is None:
            return
        result = self.renderer.render(self.context, self.generated_dir)
        self._record("render", "ok", f"{result.compose_path.name},{result.env_path.name}")

    def _print_access_points(self) -> None:
        es = self.context.config.elasticsearch
        self.echo("")
        self._header("ELK Stack should be starting up!")
        self.echo("Access points:")
        self.echo(f"  - Elasticsearch: {self.context.elasticsearch_url}")
        self.echo(f"  - Kibana:        {self.context.kibana_url}")
        self.echo("")
        self.echo("Credentials:")
        self.echo(f"  - Username: {es.username}")
        self.echo(f"  - Password: {es.password}")
        self.echo("")

    def _header(self, title: str) -> None:
        self.echo(BANNER)
        self.echo(title)
        self.echo(BANNER)

    def _record(self, stage: str, status: str, detail: Optional[str] = None) -> None:
        event = StageEvent(stage=stage, status=status, detail=detail)
        self.events.append(event)
        log.info("%s %s%s", stage, status, f" ({detail})" if detail else "")
