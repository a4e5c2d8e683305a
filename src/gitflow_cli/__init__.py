"""
git-flow - branching model extensions for git.

Usage:
    git-flow init
    git-flow feature start <name>
    git-flow feature finish <name>
    git-flow release finish <version>
"""

from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from gitflow_cli.cli.commands import build_branch_app, config, init, pull
from gitflow_cli.cli.helpers import CliState, configure_logging
from gitflow_cli.core.branches import BranchKind

__version__ = "0.3.0"

app = typer.Typer(
    name="git-flow",
    help="Git extensions to provide high-level repository operations for the git-flow branching model",
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"git-flow {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    repo: Annotated[
        Path,
        typer.Option("--repo", "-C", envvar="GITFLOW_REPO", help="Run as if started in this directory"),
    ] = Path("."),
    interactive: Annotated[
        Optional[bool],
        typer.Option("--interactive/--no-interactive", help="Prompt for config values and messages"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every git operation")] = False,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit"),
    ] = None,
) -> None:
    """Git extensions for the git-flow branching model."""
    configure_logging(verbose)
    ctx.obj = CliState(repo=repo, interactive=interactive, verbose=verbose)


app.command("init")(init)
app.command("config")(config)
app.command("pull")(pull)

for _kind in BranchKind:
    app.add_typer(build_branch_app(_kind), name=_kind.value)


def main():
    app()


if __name__ == "__main__":
    main()
