"""Helpers for reading stack configuration from disk and the environment."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from .errors import ConfigError
from .models import StackConfig

log = logging.getLogger(__name__)

# Environment variable -> (section, key) in the stack.yaml layout.
ENV_OVERRIDES: dict[str, tuple[Optional[str], str]] = {
    "STACK_VERSION": (None, "stack_version"),
    "HOST_IP": (None, "host_ip"),
    "ES_PORT": ("elasticsearch", "port"),
    "ELASTIC_PASSWORD": ("elasticsearch", "password"),
    "KIBANA_PORT": ("kibana", "port"),
    "KIBANA_PASSWORD": ("kibana", "system_password"),
    "ENCRYPTION_KEY": ("kibana", "encryption_key"),
    "COMPOSE_PROJECT_NAME": ("compose", "project_name"),
    "COMPOSE_FILE": ("compose", "compose_file"),
}


class ConfigRepository:
    """File-backed stack configuration rooted at a working directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.stack_path = root / "stack.yaml"
        self.generated_dir = root / "generated"

    def load_stack(self, environ: Optional[Mapping[str, str]] = None) -> StackConfig:
        """Load stack.yaml (defaults when absent) and apply environment overrides."""
        data = self._read_stack_file()
        data = apply_env_overrides(data, os.environ if environ is None else environ)
        try:
            config = StackConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid stack configuration: {exc}",
                hint=f"fix {self.stack_path} or the overriding environment variables",
            ) from exc
        compose_file = config.compose.compose_file
        if compose_file is not None and not compose_file.is_absolute():
            compose = config.compose.model_copy(update={"compose_file": self.root / compose_file})
            config = config.model_copy(update={"compose": compose})
        return config

    def _read_stack_file(self) -> dict[str, Any]:
        if not self.stack_path.exists():
            log.debug("No stack configuration at %s, using defaults", self.stack_path)
            return {}
        try:
            data = yaml.safe_load(self.stack_path.read_text())
        except yaml.YAMLError as exc:
            raise ConfigError(f"Unable to parse {self.stack_path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{self.stack_path} must contain a mapping at the top level")
        return data


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of ``data`` with any set override variables merged in."""
    merged: dict[str, Any] = {
        key: dict(value) if isinstance(value, dict) else value for key, value in data.items()
    }
    for variable, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if not value:
            continue
        if section is None:
            merged[key] = value
            continue
        target = merged.setdefault(section, {})
        if not isinstance(target, dict):
            raise ConfigError(f"Section '{section}' in stack configuration must be a mapping")
        target[key] = value
        log.debug("Configuration %s.%s overridden by $%s", section, key, variable)
    return merged
