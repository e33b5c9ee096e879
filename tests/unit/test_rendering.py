"""Tests for compose topology rendering."""
from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
import yaml

from stackctl.models import StackConfig, StackContext
from stackctl.rendering import ComposeRenderer

FAKE_CURL = r"""#!/bin/sh
printf '%s\n' "$*" >> "$CURL_LOG"
case "$*" in
  *_password*) echo '{}' ;;
  *) echo '{"status":"green"}' ;;
esac
"""


def _read_env(path: Path) -> Dict[str, str]:
    return dict(
        line.split("=", 1)
        for line in path.read_text().splitlines()
        if line and not line.startswith("#")
    )


def test_render_writes_compose_and_env(stack_context, temp_dir: Path):
    result = ComposeRenderer().render(stack_context, temp_dir / "generated")

    assert result.compose_path == temp_dir / "generated" / "docker-compose.yml"
    compose = yaml.safe_load(result.compose_path.read_text())
    assert set(compose["services"]) == {"elasticsearch", "kibana", "setup"}
    assert compose["name"] == "elk-test"
    assert compose["services"]["setup"]["restart"] == "no"
    assert "discovery.type=single-node" in compose["services"]["elasticsearch"]["environment"]

    env = _read_env(result.env_path)
    assert env["STACK_VERSION"] == "9.2.0"
    assert env["HOST_IP"] == "192.0.2.10"
    assert env["ELASTIC_PASSWORD"] == "'changeme-es'"
    assert env["KIBANA_PASSWORD"] == "'changeme-kibana'"
    assert env["ENCRYPTION_KEY"] == "'0123456789abcdef0123456789abcdef'"
    assert env["ES_PORT"] == "9200"
    assert env["COMPOSE_PROJECT_NAME"] == "elk-test"


def test_render_is_repeatable(stack_context, temp_dir: Path):
    renderer = ComposeRenderer()
    first = renderer.render(stack_context, temp_dir).compose_path.read_text()
    second = renderer.render(stack_context, temp_dir).compose_path.read_text()
    assert first == second


def test_dollar_in_secrets_is_kept_literal(sample_config, temp_dir: Path):
    sample_config["elasticsearch"]["password"] = "pa$word"
    sample_config["kibana"]["system_password"] = "$HOME-kibana"
    context = StackContext(
        config=StackConfig.model_validate(sample_config),
        host_address="192.0.2.10",
    )

    env = _read_env(ComposeRenderer().render(context, temp_dir).env_path)

    # Single-quoted .env values are not interpolated by docker compose.
    assert env["ELASTIC_PASSWORD"] == "'pa$word'"
    assert env["KIBANA_PASSWORD"] == "'$HOME-kibana'"


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")
def test_setup_job_sets_kibana_password_once(stack_context, temp_dir: Path):
    result = ComposeRenderer().render(stack_context, temp_dir / "generated")
    compose = yaml.safe_load(result.compose_path.read_text())
    # docker compose turns "$$" into a literal "$" before running the command.
    command = compose["services"]["setup"]["command"].replace("$$", "$")

    bin_dir = temp_dir / "bin"
    bin_dir.mkdir()
    curl = bin_dir / "curl"
    curl.write_text(FAKE_CURL)
    curl.chmod(0o755)
    curl_log = temp_dir / "curl.log"

    env = {
        "PATH": f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}",
        "CURL_LOG": str(curl_log),
        "ELASTIC_PASSWORD": "changeme-es",
        "KIBANA_PASSWORD": "changeme-kibana",
    }
    completed = subprocess.run(
        ["bash", "-c", command],
        env=env,
        capture_output=True,
        text=True,
        timeout=30,
    )

    assert completed.returncode == 0, completed.stderr
    assert "Setup complete" in completed.stdout
    assert "command not found" not in completed.stderr

    calls = curl_log.read_text().splitlines()
    posts = [call for call in calls if "-X POST" in call]
    assert len(posts) == 1
    post = posts[0]
    assert "-u elastic:changeme-es" in post
    assert "-H Content-Type: application/json" in post
    assert "http://elasticsearch:9200/_security/user/kibana_system/_password" in post
    assert '-d {"password":"changeme-kibana"}' in post
