"""``releasegate run --event EVENT.json``: run the whole release pipeline.

Classifies the event, evaluates the publication gate, builds every target
in parallel, stages the artifacts, publishes them (if authorized), and
prints install instructions.  The process exit code is the run's:
non-zero for build, staging or publish failures; zero for success,
rejection, or an ignored event.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from releasegate.builders.command import CommandBuilder
from releasegate.cli.commands._common import USAGE_EXIT_CODE, load_config, load_event
from releasegate.core.pipeline import ReleasePipeline
from releasegate.core.preflight import ConfigError
from releasegate.models.outcome import RunStatus
from releasegate.report.renderer import OutcomeRenderer

console = Console()


def run_cmd(
    event_file: Path = typer.Option(
        ...,
        "--event",
        "-e",
        help="Path to the trigger event JSON document.",
    ),
    source_dir: Path = typer.Option(
        Path("."),
        "--source",
        "-s",
        help="Checkout containing the flake to build.",
    ),
    build_command: str = typer.Option(
        None,
        "--build-command",
        help="Build with this shell command template instead of nix "
        "(placeholders: {target} {arch} {os} {revision} {output}).",
    ),
    store_backend: str = typer.Option(
        None,
        "--store",
        help="Content store backend: local or s3.",
    ),
    build_when_rejected: bool = typer.Option(
        None,
        "--build-when-rejected/--skip-build-when-rejected",
        help="Build and stage runs the gate rejects (they are never published).",
    ),
    instructions_out: Path = typer.Option(
        None,
        "--instructions-out",
        help="Also write install instructions to this file.",
    ),
) -> None:
    """Run the release pipeline for one trigger event."""
    config = load_config(
        console,
        store_backend=store_backend,
        build_when_rejected=build_when_rejected,
    )
    event = load_event(console, event_file)

    builder = (
        CommandBuilder(build_command, binary_name=config.binary_name)
        if build_command
        else None
    )
    try:
        pipeline = ReleasePipeline.from_config(
            config, builder=builder, source_dir=source_dir
        )
    except ConfigError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/bold red]")
        raise typer.Exit(code=USAGE_EXIT_CODE)

    outcome = pipeline.run(event)

    if outcome.status is RunStatus.IGNORED:
        console.print("[dim]Event is not a release trigger; nothing to do.[/dim]")
    else:
        OutcomeRenderer(console=console).print_outcome(outcome)

    if instructions_out is not None and outcome.instructions:
        instructions_out.write_text(outcome.instructions, encoding="utf-8")

    raise typer.Exit(code=outcome.exit_code)
