"""Exceptions that end a stackctl invocation with a specific exit code."""
from __future__ import annotations

from typing import Optional

from .constants import EXIT_FAILURE


class StackError(Exception):
    """Base error; ``exit_code`` is what the CLI returns to the shell."""

    exit_code: int = EXIT_FAILURE

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigError(StackError):
    """Raised when stack.yaml or the environment holds invalid values."""
