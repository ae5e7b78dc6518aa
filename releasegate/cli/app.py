"""Main Typer application — imports and registers all CLI commands.

Entry point: ``releasegate`` (configured via pyproject.toml console_scripts).

Commands: run, authorize, observe, instructions, targets.
"""

from __future__ import annotations

import typer

from releasegate.cli.commands.authorize import authorize_cmd
from releasegate.cli.commands.instructions import instructions_cmd
from releasegate.cli.commands.observe import observe_cmd
from releasegate.cli.commands.run import run_cmd

app = typer.Typer(
    name="releasegate",
    help="releasegate: parallel multi-platform builds with gated publishing.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="run", help="Run the release pipeline for a trigger event.")(run_cmd)
app.command(name="authorize", help="Evaluate the publication gate for an event.")(
    authorize_cmd
)
app.command(name="observe", help="Record a pull request's opt-in.")(observe_cmd)
app.command(name="instructions", help="Print install commands for a revision.")(
    instructions_cmd
)


@app.command(name="targets", help="List the build targets.")
def targets_cmd() -> None:
    """List configured build targets and their artifact names."""
    from rich.console import Console
    from rich.table import Table

    from releasegate.cli.commands._common import load_config

    console = Console()
    config = load_config(console)

    table = Table(title="Build targets")
    table.add_column("Target", style="cyan")
    table.add_column("Arch")
    table.add_column("OS")
    table.add_column("Artifact", style="green")
    for target in config.targets:
        table.add_row(
            target.value, target.arch, target.os, target.artifact_name(config.binary_name)
        )
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
