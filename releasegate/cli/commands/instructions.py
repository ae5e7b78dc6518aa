"""``releasegate instructions REVISION``: print install commands.

Renders the same text the pipeline prints after a publish, for a
revision and optionally its branch or pull request.
"""

from __future__ import annotations

import typer
from rich.console import Console

from releasegate.cli.commands._common import USAGE_EXIT_CODE, load_config
from releasegate.core.instructions import render_instructions
from releasegate.models.publish import PointerKind, PublishAddress
from releasegate.models.run import is_valid_segment

console = Console()


def instructions_cmd(
    revision: str = typer.Argument(..., help="Published revision."),
    branch: str = typer.Option(None, "--branch", "-b", help="Branch pointer."),
    pr_number: int = typer.Option(None, "--pr", "-p", help="Pull request pointer."),
) -> None:
    """Print install instructions for a published revision."""
    config = load_config(console)

    if branch is not None and pr_number is not None:
        console.print("[bold red]--branch and --pr are mutually exclusive.[/bold red]")
        raise typer.Exit(code=USAGE_EXIT_CODE)
    if not is_valid_segment(revision) or (branch is not None and not is_valid_segment(branch)):
        console.print("[bold red]Revision and branch must be plain path segments.[/bold red]")
        raise typer.Exit(code=USAGE_EXIT_CODE)

    if branch is not None:
        address = PublishAddress(
            revision=revision, pointer_kind=PointerKind.BRANCH, pointer_name=branch
        )
    elif pr_number is not None:
        address = PublishAddress(
            revision=revision, pointer_kind=PointerKind.PR, pointer_name=str(pr_number)
        )
    else:
        address = PublishAddress(revision=revision)

    text = render_instructions(address, config.install_host, config.product)
    console.print(text, markup=False, highlight=False, soft_wrap=True)
