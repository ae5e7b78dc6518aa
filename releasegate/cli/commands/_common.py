"""Helpers shared by CLI commands: config loading and event parsing."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from releasegate.config import ReleaseConfig
from releasegate.logging_config import configure_logging
from releasegate.models.run import TriggerEvent

# Usage errors (bad event file, bad config) exit 2, distinct from a failed run.
USAGE_EXIT_CODE = 2


def load_config(console: Console, **overrides: Any) -> ReleaseConfig:
    """Read settings from the environment, apply non-None *overrides*,
    and configure logging."""
    try:
        config = ReleaseConfig()
    except ValidationError as exc:
        console.print(f"[bold red]Invalid configuration:[/bold red]\n{escape(str(exc))}")
        raise typer.Exit(code=USAGE_EXIT_CODE)
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        config = config.model_copy(update=updates)
    configure_logging(config.log_level, config.log_format)
    return config


def load_event(console: Console, path: Path) -> TriggerEvent:
    """Parse a trigger event JSON file or exit with a usage error."""
    try:
        return TriggerEvent.from_json_file(path)
    except FileNotFoundError:
        console.print(f"[bold red]Event file not found:[/bold red] {path}")
    except ValueError as exc:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        console.print(f"[bold red]Invalid event file {path}:[/bold red]\n{escape(str(exc))}")
    raise typer.Exit(code=USAGE_EXIT_CODE)
