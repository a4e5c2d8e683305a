"""Shared plumbing for CLI commands: state, engine construction, error mapping."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import typer
from rich.logging import RichHandler

from gitflow_cli.core.messages import MessageProvider, select_message_provider
from gitflow_cli.exceptions import GitFlowError, GitFlowIOError, MergeConflictError
from gitflow_cli.vcs.detection import get_backend
from gitflow_cli.workflow.engine import WorkflowEngine

from .ui import console, err_console


@dataclass
class CliState:
    """Options given to the top-level command."""

    repo: Path = Path(".")
    interactive: bool | None = None
    verbose: bool = False


def get_state(ctx: typer.Context) -> CliState:
    root = ctx.find_root()
    if not isinstance(root.obj, CliState):
        root.obj = CliState()
    return root.obj


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich on stderr."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose, rich_tracebacks=verbose)],
        force=True,
    )


def message_provider(state: CliState) -> MessageProvider:
    return select_message_provider(state.interactive)


def open_engine(ctx: typer.Context, path: Path | None = None, create: bool = False) -> WorkflowEngine:
    """Build a workflow engine for the repository selected on the command line."""
    state = get_state(ctx)
    backend = get_backend(path or state.repo, create=create)
    return WorkflowEngine(backend, messages=message_provider(state))


@contextmanager
def workflow_errors() -> Iterator[None]:
    """Translate workflow errors into a red message and the matching exit code."""
    try:
        yield
    except MergeConflictError as exc:
        console.print(f"[red]Merge conflict:[/red] {exc}")
        for path in exc.paths:
            console.print(f"  [yellow]both modified:[/yellow] {path}")
        raise typer.Exit(exc.exit_code)
    except GitFlowError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(exc.exit_code)
    except OSError as exc:
        console.print(f"[red]I/O error:[/red] {exc}")
        raise typer.Exit(GitFlowIOError.exit_code)


__all__ = [
    "CliState",
    "get_state",
    "configure_logging",
    "message_provider",
    "open_engine",
    "workflow_errors",
]
