"""``git-flow init`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from gitflow_cli.cli.helpers import get_state, message_provider, workflow_errors
from gitflow_cli.cli.ui import console
from gitflow_cli.core.messages import DefaultMessages, PromptMessages
from gitflow_cli.vcs.detection import get_backend
from gitflow_cli.workflow.engine import WorkflowEngine

from .config_cmd import config_table


def init(
    ctx: typer.Context,
    path: Annotated[Optional[Path], typer.Argument(help="The path to be initialized")] = None,
    defaults: Annotated[
        bool,
        typer.Option("--defaults", "-d", help="Accept every default without prompting"),
    ] = False,
) -> None:
    """Initialize a new git repo with support for the branching model."""
    state = get_state(ctx)
    target = path or state.repo

    with workflow_errors():
        backend = get_backend(target, create=True)
        messages = DefaultMessages() if defaults else message_provider(state)
        if isinstance(messages, PromptMessages):
            console.print("[cyan]How to name your branches? Press Enter to accept the default.[/cyan]")
        engine = WorkflowEngine(backend, messages=messages)
        result = engine.init()
        table = config_table(engine.config.snapshot())

    if result.root_commit:
        console.print(f"[green]✓[/green] Created initial commit {result.root_commit[:10]}")
    console.print(table)
    console.print(f"[green]✓[/green] init {target} success, on branch [cyan]{result.develop}[/cyan]")


__all__ = ["init"]
