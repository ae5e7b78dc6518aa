"""``releasegate observe --event EVENT.json``: the opt-in listener.

Feeds one pull-request event to the opt-in ledger.  Meant to run on every
PR event (including label changes) so that later events see the PR's
opt-in even if they do not carry the label themselves.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from releasegate.cli.commands._common import USAGE_EXIT_CODE, load_config, load_event
from releasegate.core.opt_in import OptInLedger, OptInListener

console = Console()


def observe_cmd(
    event_file: Path = typer.Option(
        None,
        "--event",
        "-e",
        help="Path to the trigger event JSON document.",
    ),
    list_all: bool = typer.Option(
        False,
        "--list",
        help="List every recorded opt-in instead of observing an event.",
    ),
) -> None:
    """Record a pull request's opt-in, or list recorded opt-ins."""
    config = load_config(console)
    ledger = OptInLedger(config.opt_in_db_path)

    if list_all:
        rows = ledger.list_opt_ins()
        if not rows:
            console.print("[dim]No pull requests have opted in.[/dim]")
            return
        table = Table(title="Opted-in pull requests")
        table.add_column("Repository", style="cyan")
        table.add_column("PR", justify="right")
        table.add_column("First revision")
        for repo, pr_number, revision in rows:
            table.add_row(escape(repo), str(pr_number), revision)
        console.print(table)
        return

    if event_file is None:
        console.print("[bold red]Pass --event EVENT.json or --list.[/bold red]")
        raise typer.Exit(code=USAGE_EXIT_CODE)

    event = load_event(console, event_file)
    listener = OptInListener(ledger, config.opt_in_label)
    opted_in = listener.observe(event)
    if event.pr_number is None:
        console.print("[dim]Not a pull-request event; nothing recorded.[/dim]")
    elif opted_in:
        console.print(f"PR #{event.pr_number}: [green]opted in[/green]")
    else:
        console.print(f"PR #{event.pr_number}: [dim]not opted in[/dim]")
