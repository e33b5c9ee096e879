"""Command-line entry point: pick one action and run its workflow."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .constants import EXIT_INTERRUPTED, EXIT_OK, EXIT_USAGE
from .errors import StackError
from .lifecycle.runner import StackController
from .models import Action, StackContext, StageEvent
from .storage import ConfigRepository
from .system import resolve_host_address

log = logging.getLogger(__name__)

CHOICES = "/".join(action.value for action in Action)
PROMPT = f"Choose action [{CHOICES}]: "


def parse_action(value: str) -> Action:
    """Case-insensitive keyword lookup; raises ValueError for anything else."""
    return Action(value.strip().lower())


class PromptState(str, Enum):
    awaiting = "awaiting"
    accepted = "accepted"


class ActionPrompt:
    """Input validation for the interactive prompt.

    Stays in ``awaiting`` until one line names a valid action, then moves to
    the terminal ``accepted`` state and ignores further input.
    """

    def __init__(self) -> None:
        self.state = PromptState.awaiting
        self.action: Optional[Action] = None

    @property
    def done(self) -> bool:
        return self.state is PromptState.accepted

    @property
    def accepted_action(self) -> Action:
        if self.action is None:
            raise RuntimeError("no action has been accepted yet")
        return self.action

    def feed(self, line: str) -> bool:
        if self.done:
            return True
        try:
            self.action = parse_action(line)
        except ValueError:
            return False
        self.state = PromptState.accepted
        return True


def prompt_for_action(
    read: Optional[Callable[[str], str]] = None,
    echo: Callable[[str], None] = print,
) -> Action:
    """Keep asking until a valid action is entered. EOFError propagates."""
    read = read or input
    prompt = ActionPrompt()
    echo("No action provided.")
    while not prompt.feed(read(PROMPT)):
        echo("Invalid choice. Please enter 'start', 'status', 'stop', or 'destroy'.")
    return prompt.accepted_action


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackctl",
        description="Start, stop, destroy or report on the Elasticsearch + Kibana stack.",
    )
    parser.add_argument(
        "action",
        nargs="?",
        default="",
        metavar="{start,status,stop,destroy}",
        help="action to run (prompted for when omitted; case-insensitive)",
    )
    return parser


def dispatch(controller: StackController, action: Action) -> List[StageEvent]:
    workflows: Dict[Action, Callable[[], List[StageEvent]]] = {
        Action.start: controller.start,
        Action.status: controller.status,
        Action.stop: controller.stop,
        Action.destroy: controller.destroy,
    }
    log.debug("Dispatching %s", action.value)
    return workflows[action]()


def build_controller(root: Path) -> StackController:
    repo = ConfigRepository(root)
    config = repo.load_stack()
    context = StackContext(config=config, host_address=resolve_host_address(config.host_ip))
    return StackController.build(context, generated_dir=repo.generated_dir)


def configure_logging() -> None:
    level = os.getenv("STACKCTL_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.action.strip():
        try:
            action = parse_action(args.action)
        except ValueError:
            parser.print_usage(sys.stderr)
            print(f"Invalid argument: '{args.action}'", file=sys.stderr)
            return EXIT_USAGE
    else:
        try:
            action = prompt_for_action()
        except EOFError:
            print("\nNo action selected.", file=sys.stderr)
            return EXIT_USAGE
        except KeyboardInterrupt:
            print("", file=sys.stderr)
            return EXIT_INTERRUPTED

    root = Path(os.getenv("STACKCTL_ROOT", Path.cwd()))
    try:
        controller = build_controller(root)
        try:
            dispatch(controller, action)
        finally:
            controller.close()
    except StackError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if exc.hint:
            print(f"Hint: {exc.hint}", file=sys.stderr)
        return exc.exit_code
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
