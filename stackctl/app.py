"""Read-only FastAPI surface exposing the stack status summary."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException

from .errors import StackError
from .lifecycle.runner import StackController
from .models import StackConfig, StackContext, StatusReport
from .storage import ConfigRepository
from .system import resolve_host_address

ROOT_DIR = Path(os.getenv("STACKCTL_ROOT", Path.cwd()))
MASK = "********"

app = FastAPI(title="stackctl", version="0.1.0")
repo = ConfigRepository(ROOT_DIR)


def _load_config() -> StackConfig:
    try:
        return repo.load_stack()
    except StackError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def mask_config(config: StackConfig) -> dict[str, Any]:
    payload = config.model_dump(mode="json")
    payload["elasticsearch"]["password"] = MASK
    payload["kibana"]["system_password"] = MASK
    payload["kibana"]["encryption_key"] = MASK
    return payload


@app.get("/api/config")
def get_config() -> dict[str, Any]:
    """Return the effective configuration with secrets masked."""
    return mask_config(_load_config())


@app.get("/api/status", response_model=StatusReport)
def get_status() -> StatusReport:
    """Collect a fresh status summary; an unreachable cluster is not an error."""
    config = _load_config()
    context = StackContext(config=config, host_address=resolve_host_address(config.host_ip))
    controller = StackController.build(context, generated_dir=repo.generated_dir)
    try:
        report = controller.reporter.collect()
    finally:
        controller.close()
    return report.model_copy(update={"password": MASK})
