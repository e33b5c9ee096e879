"""Removal of exited one-shot containers belonging to the compose project."""
from __future__ import annotations

import logging
import time
from typing import Callable, List

from ..runtime.docker import DockerComposeRunner

log = logging.getLogger(__name__)

EXITED = "exited"


class ContainerReaper:
    """Finds exited containers in the project scope and removes them."""

    def __init__(
        self,
        runner: DockerComposeRunner,
        verify_exit: bool = False,
        exit_poll_interval: float = 5.0,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.runner = runner
        self.verify_exit = verify_exit
        self.exit_poll_interval = exit_poll_interval
        self.echo = echo

    def reap_exited(self) -> List[str]:
        """Remove every exited project container; returns the names removed."""
        exited = [c.name for c in self.runner.ps() if c.state == EXITED]
        if not exited:
            self.echo("No exited containers found for this compose project.")
            return []

        self.echo("Found exited containers:")
        for name in exited:
            self.echo(f"  - {name}")

        removed: List[str] = []
        for name in exited:
            if self.verify_exit:
                if self.wait_for_exit(name):
                    removed.append(name)
                continue
            self.echo(f"Removing exited container: {name}")
            result = self.runner.remove(name)
            if result.ok:
                removed.append(name)
            else:
                log.warning("Could not remove %s: %s", name, result.detail)
        return removed

    def wait_for_exit(self, name: str) -> bool:
        """Block until ``name`` has exited, then remove it.

        Returns False when the container disappears or cannot be removed.
        """
        self.echo(f"Monitoring container: {name}")
        while True:
            state = self.runner.inspect_state(name)
            if state is None:
                self.echo(f"Container '{name}' not found. Skipping removal.")
                return False
            if state == EXITED:
                self.echo(f"Container '{name}' has exited. Proceeding with removal.")
                result = self.runner.remove(name)
                if not result.ok:
                    log.warning("Could not remove %s: %s", name, result.detail)
                return result.ok
            self.echo(f"Current status: {state} (checking again in {self.exit_poll_interval:g}s)")
            time.sleep(self.exit_poll_interval)
