"""Rich terminal renderer for pipeline outcomes.

Color scheme
------------
- green   : built / published
- red     : failed / timed out
- yellow  : rejected (not an error)
- dim     : ignored or not built
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from releasegate.models.outcome import GateDecision, PipelineOutcome, RunStatus
from releasegate.models.results import ArtifactBundle, BuildFailure, PartialFailure
from releasegate.models.targets import sorted_targets

_STATUS_STYLES: dict[RunStatus, str] = {
    RunStatus.IGNORED: "dim",
    RunStatus.REJECTED: "yellow",
    RunStatus.VALIDATED: "green",
    RunStatus.BUILD_FAILED: "red",
    RunStatus.COLLECT_FAILED: "red",
    RunStatus.PUBLISHED: "green",
    RunStatus.PUBLISH_FAILED: "red",
}


class OutcomeRenderer:
    """Renders ``PipelineOutcome`` as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def build_table(self, build: ArtifactBundle | PartialFailure) -> Table:
        """One row per target: status, size, digest or failure cause."""
        table = Table(title=f"Builds for {build.revision}", expand=False)
        table.add_column("Target", style="cyan", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Size", justify="right")
        table.add_column("Detail")

        if isinstance(build, ArtifactBundle):
            results = dict(build.artifacts)
        else:
            results = {**build.succeeded, **build.failed}

        for target in sorted_targets(results):
            result = results[target]
            if isinstance(result, BuildFailure):
                label = "TIMED OUT" if result.timed_out else "FAILED"
                status = f"[bold red]{label}[/bold red]"
                first_line = (result.cause.splitlines() or [""])[0]
                table.add_row(target.value, status, "-", escape(first_line))
            else:
                table.add_row(
                    target.value,
                    "[green]OK[/green]",
                    f"{result.size_bytes:,}",
                    f"[dim]sha256:{result.sha256[:16]}[/dim]",
                )
        return table

    def decision_text(self, decision: GateDecision) -> str:
        if decision.authorized:
            return f"[green]authorized[/green] ({escape(decision.reason)})"
        return f"[yellow]rejected[/yellow] ({escape(decision.reason)})"

    def print_outcome(self, outcome: PipelineOutcome) -> None:
        """Print the build table, a summary panel, and install instructions."""
        if outcome.build is not None:
            self.console.print(self.build_table(outcome.build))

        style = _STATUS_STYLES[outcome.status]
        title = outcome.status.value.replace("_", " ").upper()
        lines = [f"[bold {style}]{title}[/bold {style}]", ""]
        if outcome.run is not None:
            lines.append(f"[bold]Run:[/bold]       {outcome.run.run_id}")
            lines.append(f"[bold]Trigger:[/bold]   {outcome.run.label}")
        if outcome.decision is not None:
            lines.append(f"[bold]Gate:[/bold]      {self.decision_text(outcome.decision)}")
        if outcome.receipt is not None:
            lines.append(f"[bold]Addresses:[/bold] {', '.join(outcome.receipt.address.keys)}")
            if outcome.receipt.skipped_keys:
                lines.append(
                    f"[dim]{len(outcome.receipt.skipped_keys)} revision object(s) "
                    "were already published[/dim]"
                )
        if outcome.error:
            lines += ["", f"[red]{escape(outcome.error)}[/red]"]
        lines.append(f"[bold]Exit code:[/bold] {outcome.exit_code}")

        self.console.print(
            Panel(
                "\n".join(lines),
                title="[bold]Release[/bold]",
                border_style=style,
                padding=(1, 2),
            )
        )
        if outcome.instructions:
            # Plain text so the commands copy-paste cleanly.
            self.console.print(
                outcome.instructions, markup=False, highlight=False, soft_wrap=True
            )
