"""Rendering helpers for the docker compose topology and its env file."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

from .constants import KIBANA_SYSTEM_USERNAME
from .models import RenderResult, StackContext

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


@dataclass
class TemplateBundle:
    compose: Template
    env: Template


class ComposeRenderer:
    """Renders docker-compose.yml and .env from Jinja templates."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        self.template_dir = template_dir
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def load_templates(self) -> TemplateBundle:
        return TemplateBundle(
            compose=self.env.get_template("docker-compose.yml.j2"),
            env=self.env.get_template("env.j2"),
        )

    def _build_context(self, context: StackContext) -> dict:
        return {
            "config": context.config.model_dump(mode="json"),
            "host_address": context.host_address,
            "kibana_system_username": KIBANA_SYSTEM_USERNAME,
        }

    def render(self, context: StackContext, output_dir: Path) -> RenderResult:
        output_dir.mkdir(parents=True, exist_ok=True)
        templates = self.load_templates()
        values = self._build_context(context)
        compose_path = output_dir / "docker-compose.yml"
        env_path = output_dir / ".env"
        compose_path.write_text(templates.compose.render(**values))
        env_path.write_text(templates.env.render(**values))
        return RenderResult(compose_path=compose_path, env_path=env_path)
