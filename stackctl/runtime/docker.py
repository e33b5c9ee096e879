"""Utilities for invoking docker compose and docker CLI commands."""
from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from ..constants import EXIT_COMMAND_NOT_FOUND, EXIT_FAILURE
from ..errors import StackError
from ..models import ContainerDescriptor

log = logging.getLogger(__name__)


class ComposeCommandError(StackError):
    """Raised when a runtime command exits non-zero; carries its exit status."""

    def __init__(self, command: List[str], returncode: int, detail: str) -> None:
        super().__init__(
            f"`{' '.join(command)}` failed with exit code {returncode}: {detail}",
            hint="check the runtime output above or run `docker compose logs`",
        )
        self.command = command
        self.returncode = returncode
        self.exit_code = returncode or EXIT_FAILURE


class RuntimeNotFoundError(StackError):
    """Raised when the docker binary is not installed."""

    exit_code = EXIT_COMMAND_NOT_FOUND


@dataclass
class CommandResult:
    """Outcome of one runtime command."""

    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def detail(self) -> str:
        detail = self.stdout.strip() if self.ok else self.stderr.strip()
        if not detail:
            detail = "ok" if self.ok else "failed"
        return detail


class DockerComposeRunner:
    """Wrapper around docker compose for bringing the stack up or down."""

    def __init__(self, compose_path: Path, project_name: str = "elk") -> None:
        self.compose_path = compose_path
        self.project_name = project_name
        self.workdir = compose_path.parent

    # Declarative operations ------------------------------------------------

    def up(self) -> CommandResult:
        """Run `docker compose up -d`; already-running services are left alone."""
        return self._run(self._compose("up", "-d"), check=True)

    def down(self, remove_volumes: bool = True, remove_images: bool = False) -> CommandResult:
        args = ["down"]
        if remove_volumes:
            args.append("-v")
        if remove_images:
            args.extend(["--rmi", "all"])
        return self._run(self._compose(*args), check=True)

    def prune(self) -> List[CommandResult]:
        """Prune dangling host resources. Results are informational only."""
        results = [
            self._run(["docker", "system", "prune", "-f"], check=False),
            self._run(["docker", "volume", "prune", "-f"], check=False),
        ]
        for result in results:
            if not result.ok:
                log.warning("Ignoring failed cleanup step `%s`: %s", " ".join(result.command), result.detail)
        return results

    # Observation -------------------------------------------------------------

    def ps(self) -> List[ContainerDescriptor]:
        """List every container in the project, running or not."""
        result = self._run(self._compose("ps", "-a", "--format", "json"), check=True)
        try:
            entries = parse_compose_ps(result.stdout)
        except json.JSONDecodeError as exc:
            raise StackError(f"Unable to parse `docker compose ps` output: {exc}") from exc
        return [ContainerDescriptor.from_compose(entry) for entry in entries]

    def inspect_state(self, name: str) -> Optional[str]:
        """Return the container's run state, or None when it does not exist."""
        result = self._run(
            ["docker", "inspect", "-f", "{{.State.Status}}", name],
            check=False,
        )
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def remove(self, name: str) -> CommandResult:
        return self._run(["docker", "rm", name], check=False)

    # Helpers -----------------------------------------------------------------

    def _compose(self, *args: str) -> List[str]:
        command = ["docker", "compose"]
        # Project-scoped commands such as `ps` work without the file.
        if self.compose_path.exists():
            command.extend(["-f", str(self.compose_path)])
        command.extend(["--project-name", self.project_name, *args])
        return command

    def _run(self, command: List[str], check: bool) -> CommandResult:
        env = os.environ.copy()
        env.setdefault("COMPOSE_PROJECT_NAME", self.project_name)
        log.debug("Running %s", " ".join(command))
        workdir = self.workdir if self.workdir.is_dir() else Path.cwd()
        try:
            process = subprocess.run(
                command,
                cwd=str(workdir),
                env=env,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise RuntimeNotFoundError(
                f"Unable to run {command[0]}: {exc}",
                hint="install Docker with the compose v2 plugin",
            ) from exc
        result = CommandResult(
            command=command,
            returncode=process.returncode,
            stdout=process.stdout or "",
            stderr=process.stderr or "",
        )
        if check and not result.ok:
            raise ComposeCommandError(command, result.returncode, result.detail)
        return result


def parse_compose_ps(output: str) -> List[dict[str, Any]]:
    """Parse `docker compose ps --format json` output.

    Older compose v2 releases print one JSON array, newer ones print one
    object per line.
    """
    text = output.strip()
    if not text:
        return []
    if text.startswith("["):
        entries = json.loads(text)
        return [entry for entry in entries if isinstance(entry, dict)]
    entries: List[dict[str, Any]] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        entry = json.loads(line)
        if isinstance(entry, dict):
            entries.append(entry)
    return entries
