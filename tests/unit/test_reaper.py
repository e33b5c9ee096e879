"""Tests for exited-container reaping."""
from __future__ import annotations

import pytest
from pathlib import Path
from typing import List
from unittest.mock import MagicMock

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from stackctl.lifecycle.reaper import ContainerReaper
from stackctl.models import ContainerDescriptor
from stackctl.runtime.docker import CommandResult, ComposeCommandError


def _containers(states: List[str]) -> List[ContainerDescriptor]:
    return [ContainerDescriptor(name=f"elk-svc-{i}", state=state) for i, state in enumerate(states)]


def _result(name: str, ok: bool = True) -> CommandResult:
    return CommandResult(command=["docker", "rm", name], returncode=0 if ok else 1, stderr="" if ok else "boom")


@pytest.fixture
def runner() -> MagicMock:
    runner = MagicMock()
    runner.remove.side_effect = lambda name: _result(name)
    return runner


class TestReapExited:
    """Only containers in the exact 'exited' state are removed."""

    def test_removes_exactly_k_exited(self, runner: MagicMock):
        runner.ps.return_value = _containers(["running", "exited", "exited", "created", "exited"])
        removed = ContainerReaper(runner, echo=lambda line: None).reap_exited()

        assert runner.remove.call_count == 3
        assert removed == ["elk-svc-1", "elk-svc-2", "elk-svc-4"]

    def test_failure_does_not_block_remaining(self, runner: MagicMock):
        runner.ps.return_value = _containers(["exited", "exited", "exited"])
        runner.remove.side_effect = lambda name: _result(name, ok=name != "elk-svc-1")

        removed = ContainerReaper(runner, echo=lambda line: None).reap_exited()

        assert [c.args[0] for c in runner.remove.call_args_list] == [
            "elk-svc-0",
            "elk-svc-1",
            "elk-svc-2",
        ]
        assert removed == ["elk-svc-0", "elk-svc-2"]

    def test_no_exited_is_noop(self, runner: MagicMock):
        runner.ps.return_value = _containers(["running", "restarting"])
        lines: List[str] = []
        removed = ContainerReaper(runner, echo=lines.append).reap_exited()

        assert removed == []
        runner.remove.assert_not_called()
        assert any("No exited containers" in line for line in lines)

    def test_state_match_is_exact(self, runner: MagicMock):
        runner.ps.return_value = _containers(["Exited", "exited (0)", "dead"])
        ContainerReaper(runner, echo=lambda line: None).reap_exited()
        runner.remove.assert_not_called()

    def test_listing_failure_propagates(self, runner: MagicMock):
        runner.ps.side_effect = ComposeCommandError(["docker", "compose", "ps"], 1, "daemon down")
        with pytest.raises(ComposeCommandError):
            ContainerReaper(runner, echo=lambda line: None).reap_exited()


class TestWaitForExit:
    """Optional verify mode polls each container before removing it."""

    def test_waits_until_exited(self, runner: MagicMock, no_sleep):
        runner.inspect_state.side_effect = ["running", "running", "exited"]
        reaper = ContainerReaper(runner, exit_poll_interval=5, echo=lambda line: None)

        assert reaper.wait_for_exit("elk-setup-1") is True
        assert no_sleep.call_count == 2
        runner.remove.assert_called_once_with("elk-setup-1")

    def test_missing_container_is_skipped(self, runner: MagicMock, no_sleep):
        runner.inspect_state.return_value = None
        reaper = ContainerReaper(runner, echo=lambda line: None)

        assert reaper.wait_for_exit("elk-setup-1") is False
        runner.remove.assert_not_called()

    def test_verify_mode_used_by_reap(self, runner: MagicMock, no_sleep):
        runner.ps.return_value = _containers(["exited"])
        runner.inspect_state.return_value = "exited"
        removed = ContainerReaper(runner, verify_exit=True, echo=lambda line: None).reap_exited()

        assert removed == ["elk-svc-0"]
        runner.inspect_state.assert_called_once_with("elk-svc-0")
