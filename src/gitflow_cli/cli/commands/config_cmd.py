"""Top-level ``git-flow config`` command.

Without arguments, shows every ``gitflow.*`` key. With a key, prints its
value; with a key and a value, stores it.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table
from typing_extensions import Annotated

from gitflow_cli.cli.helpers import open_engine, workflow_errors
from gitflow_cli.cli.ui import console
from gitflow_cli.core.config import qualify_key
from gitflow_cli.exceptions import ConfigMissingError


def config_table(snapshot: dict[str, str | None]) -> Table:
    table = Table(title="git-flow configuration", show_lines=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="bold")
    for key, value in snapshot.items():
        if value is None:
            shown = "[red]not set[/red]"
        elif value == "":
            shown = "[dim](empty)[/dim]"
        else:
            shown = value
        table.add_row(key, shown)
    return table


def config(
    ctx: typer.Context,
    key: Annotated[Optional[str], typer.Argument(help="Key to read or write, e.g. prefix.feature")] = None,
    value: Annotated[Optional[str], typer.Argument(help="New value for KEY")] = None,
) -> None:
    """Manage your git-flow configuration."""
    with workflow_errors():
        engine = open_engine(ctx)
        if key is None:
            console.print(config_table(engine.config.snapshot()))
            return

        full_key = qualify_key(key)
        if value is None:
            current = engine.backend.config_get(full_key)
            if current is None:
                raise ConfigMissingError(full_key)
            console.print(current)
            return

        engine.config.set(full_key, value)
        console.print(f"[green]✓[/green] {full_key} = {value}")


__all__ = ["config", "config_table"]
