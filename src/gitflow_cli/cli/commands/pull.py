"""``git-flow pull``: fetch a branch and merge it locally."""

from __future__ import annotations

from typing import Optional

import typer
from typing_extensions import Annotated

from gitflow_cli.cli.helpers import open_engine, workflow_errors
from gitflow_cli.cli.ui import console, describe_outcome, fetch_progress_display
from gitflow_cli.core.constants import DEFAULT_REMOTE


def pull(
    ctx: typer.Context,
    remote: Annotated[str, typer.Argument(help="Remote to pull from")] = DEFAULT_REMOTE,
    branch: Annotated[Optional[str], typer.Argument(help="Branch to pull (default: current)")] = None,
) -> None:
    """Pull a branch from a remote and merge it into the local branch."""
    with workflow_errors():
        engine = open_engine(ctx)
        progress, on_progress = fetch_progress_display()
        with progress:
            outcome = engine.pull(remote=remote, branch=branch, on_progress=on_progress)

    console.print(f"[green]✓[/green] {outcome.target}: {describe_outcome(outcome)}")


__all__ = ["pull"]
