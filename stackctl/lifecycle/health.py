"""Fixed-interval polling of the Elasticsearch cluster health endpoint.

Every failed attempt, whether the cluster answered with a non-acceptable
status or did not answer at all, consumes one unit of the retry budget.
Transport errors are never raised out of the loop.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable

import httpx

from ..constants import EXIT_FAILURE, LOGS_HINT
from ..errors import StackError
from ..models import ClusterStatus, HealthPolicy, RetryBudget
from ..clients.elasticsearch import ElasticsearchClient

log = logging.getLogger(__name__)


class HealthTimeoutError(StackError):
    """Raised when the cluster never reached an acceptable status."""

    exit_code = EXIT_FAILURE


@dataclass
class PollOutcome:
    """Result of one complete polling operation."""

    ok: bool
    status: ClusterStatus
    attempts: int
    ceiling_seconds: float

    def raise_for_timeout(self) -> None:
        if self.ok:
            return
        raise HealthTimeoutError(
            "Elasticsearch did not reach a healthy state after "
            f"{self.ceiling_seconds:g} seconds (last status: {self.status.value}).",
            hint=f"check logs with: {LOGS_HINT}",
        )


class HealthPoller:
    """Polls until an acceptable status is seen or the budget runs out."""

    def __init__(
        self,
        client: ElasticsearchClient,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.client = client
        self.echo = echo

    def wait(
        self,
        acceptable: Iterable[ClusterStatus] = (ClusterStatus.green, ClusterStatus.yellow),
        max_attempts: int = 30,
        interval: float = 10.0,
    ) -> PollOutcome:
        accepted = set(acceptable)
        budget = RetryBudget(max_attempts=max_attempts, interval=interval)
        wanted = "/".join(sorted(status.value for status in accepted))
        self.echo(f"Waiting for Elasticsearch cluster to reach a healthy state ({wanted})...")

        while True:
            status = self.check_once()
            if status in accepted:
                self.echo(f"Elasticsearch cluster is healthy (status: {status.value})")
                return PollOutcome(
                    ok=True,
                    status=status,
                    attempts=budget.attempts + 1,
                    ceiling_seconds=budget.ceiling_seconds,
                )

            budget.consume()
            if budget.exhausted:
                log.debug("Health budget exhausted after %d attempts", budget.attempts)
                return PollOutcome(
                    ok=False,
                    status=status,
                    attempts=budget.attempts,
                    ceiling_seconds=budget.ceiling_seconds,
                )

            self.echo(
                f"Current status: {status.value} "
                f"(retry {budget.attempts}/{budget.max_attempts}), waiting {budget.interval:g}s..."
            )
            time.sleep(budget.interval)

    def wait_with_policy(self, policy: HealthPolicy) -> PollOutcome:
        return self.wait(
            acceptable=policy.acceptable,
            max_attempts=policy.max_attempts,
            interval=policy.interval,
        )

    def check_once(self) -> ClusterStatus:
        """One health request; any transport or decoding failure is ``unknown``."""
        try:
            return self.client.cluster_health()
        except (httpx.HTTPError, ValueError) as exc:
            log.debug("Health check failed (%s: %s)", exc.__class__.__name__, exc)
            return ClusterStatus.unknown


def describe_outcome(outcome: PollOutcome) -> str:
    state = "healthy" if outcome.ok else "timeout"
    return f"{state} status={outcome.status.value} attempts={outcome.attempts}"
