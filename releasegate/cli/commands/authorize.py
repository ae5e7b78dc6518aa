"""``releasegate authorize --event EVENT.json``: evaluate the gate only.

Runs trigger classification (which updates the opt-in ledger) and the
publication gate, then prints the decision.  Nothing is built or
published.  Exits 0 when the event would publish, 1 when it is rejected
or ignored, so CI can branch on it.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from releasegate.cli.commands._common import load_config, load_event
from releasegate.core.gate import PublicationGate
from releasegate.core.opt_in import OptInLedger, OptInListener
from releasegate.core.trigger import TriggerClassifier

console = Console()


def authorize_cmd(
    event_file: Path = typer.Option(
        ...,
        "--event",
        "-e",
        help="Path to the trigger event JSON document.",
    ),
) -> None:
    """Print whether an event would be allowed to publish."""
    config = load_config(console)
    event = load_event(console, event_file)

    listener = OptInListener(OptInLedger(config.opt_in_db_path), config.opt_in_label)
    classifier = TriggerClassifier(config.tracked_branches, listener, config.pr_actions)
    run = classifier.classify(event)
    if run is None:
        reason = classifier.ignore_reason(event) or "not a release trigger"
        console.print(f"[dim]ignored:[/dim] {escape(reason)}")
        raise typer.Exit(code=1)

    decision = PublicationGate(config.canonical_repo).authorize(run)
    if decision.authorized:
        console.print(
            f"[bold green]authorized[/bold green] {escape(run.label)}: "
            f"{escape(decision.reason)}"
        )
        raise typer.Exit(code=0)
    console.print(
        f"[bold yellow]rejected[/bold yellow] {escape(run.label)}: "
        f"{escape(decision.reason)}"
    )
    raise typer.Exit(code=1)
