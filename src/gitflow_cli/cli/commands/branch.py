"""Per-kind sub-commands: ``git-flow feature start``, ``git-flow release finish`` ...

Every supporting branch kind gets the same command set; ``build_branch_app``
binds the kind once and returns a Typer sub-app.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.syntax import Syntax
from typing_extensions import Annotated

from gitflow_cli.cli.helpers import open_engine, workflow_errors
from gitflow_cli.cli.ui import (
    StepTracker,
    branch_table,
    console,
    describe_outcome,
    fetch_progress_display,
)
from gitflow_cli.core.branches import BranchKind
from gitflow_cli.core.constants import DEFAULT_REMOTE
from gitflow_cli.exceptions import MergeConflictError
from gitflow_cli.vcs.credentials import select_credentials

_HELP = {
    BranchKind.FEATURE: "Manage your feature branches",
    BranchKind.BUGFIX: "Manage your bugfix branches",
    BranchKind.RELEASE: "Manage your release branches",
    BranchKind.HOTFIX: "Manage your hotfix branches",
    BranchKind.SUPPORT: "Manage your support branches",
}


def _finish_tag(kind: BranchKind, name: str, tag: str | None, no_tag: bool) -> str | None:
    """Release and hotfix branches are tagged with their name unless told otherwise."""
    if tag and not kind.merges_into_master:
        raise typer.BadParameter(
            f"{kind.value} branches are not tagged; --tag applies to release and hotfix only.",
            param_hint="--tag",
        )
    if no_tag:
        return None
    if tag:
        return tag
    return name if kind.merges_into_master else None


def build_branch_app(kind: BranchKind) -> typer.Typer:
    """Typer sub-app with the full command set for one branch kind."""
    app = typer.Typer(name=kind.value, help=_HELP[kind], no_args_is_help=True)
    noun = kind.value

    if kind is BranchKind.SUPPORT:

        @app.command("start")
        def start_support(
            ctx: typer.Context,
            name: Annotated[str, typer.Argument(help="Name of the support branch")],
            base: Annotated[str, typer.Argument(help="Branch or commit to start from")],
        ) -> None:
            """Start a new support branch from BASE."""
            with workflow_errors():
                branch = open_engine(ctx).start(kind, name, base=base)
            console.print(f"[green]✓[/green] Switched to a new branch [cyan]{branch.name}[/cyan]")

    else:

        @app.command("start", help=f"Start a new {noun} branch.")
        def start(
            ctx: typer.Context,
            name: Annotated[str, typer.Argument(help=f"Name of the {noun}")],
            base: Annotated[
                Optional[str],
                typer.Option("--base", "-b", help="Start from this branch or commit instead of HEAD"),
            ] = None,
        ) -> None:
            with workflow_errors():
                branch = open_engine(ctx).start(kind, name, base=base)
            console.print(f"[green]✓[/green] Switched to a new branch [cyan]{branch.name}[/cyan]")

    @app.command("finish", help=f"Merge a {noun} branch into its base branch(es).")
    def finish(
        ctx: typer.Context,
        name: Annotated[str, typer.Argument(help=f"Name of the {noun}")],
        message: Annotated[
            Optional[str], typer.Option("--message", "-m", help="Merge commit message")
        ] = None,
        tag: Annotated[
            Optional[str],
            typer.Option("--tag", "-t", help="Tag name (release/hotfix; defaults to NAME)"),
        ] = None,
        no_tag: Annotated[bool, typer.Option("--no-tag", help="Do not tag the finished branch")] = False,
        keep: Annotated[bool, typer.Option("--keep", "-k", help="Keep the branch after finishing")] = False,
    ) -> None:
        tag_name = _finish_tag(kind, name, tag, no_tag)
        tracker = StepTracker(f"Finish {noun} {name}")
        try:
            with workflow_errors():
                engine = open_engine(ctx)
                result = engine.finish(kind, name, message=message, tag=tag_name, keep_branch=keep)
        except typer.Exit:
            tracker.add("merge", "Merge")
            tracker.error("merge", "stopped; branch kept")
            console.print(tracker.render())
            raise

        for index, outcome in enumerate(result.outcomes):
            key = f"merge-{index}"
            tracker.add(key, f"{outcome.source} -> {outcome.target}")
            tracker.complete(key, describe_outcome(outcome))
        if result.tag:
            tracker.add("tag", "Tag")
            tracker.complete("tag", result.tag)
        tracker.add("delete", f"Delete {result.branch}")
        if result.deleted:
            tracker.complete("delete")
        else:
            tracker.skip("delete", "kept")
        console.print(tracker.render())

    @app.command("list", help=f"List existing {noun} branches.")
    def list_(ctx: typer.Context) -> None:
        with workflow_errors():
            engine = open_engine(ctx)
            branches = engine.list_branches(kind)
            current = engine.backend.current_branch()
        if not branches:
            console.print(f"[yellow]No {noun} branches exist.[/yellow]")
            return
        console.print(branch_table(f"{noun.capitalize()} branches", branches, current))

    @app.command("publish", help=f"Publish a {noun} branch to a remote.")
    def publish(
        ctx: typer.Context,
        name: Annotated[Optional[str], typer.Argument(help=f"Name of the {noun} (default: current)")] = None,
        remote: Annotated[str, typer.Option("--remote", "-r", help="Remote to push to")] = DEFAULT_REMOTE,
        ssh_key: Annotated[
            Optional[Path], typer.Option("--ssh-key", help="Private key for SSH remotes")
        ] = None,
        token: Annotated[
            Optional[str],
            typer.Option("--token", help="Access token for HTTPS remotes (or set GITFLOW_TOKEN)"),
        ] = None,
    ) -> None:
        credentials = select_credentials(ssh_key=ssh_key, token=token)
        with workflow_errors():
            branch = open_engine(ctx).publish(kind, name, remote=remote, credentials=credentials)
        console.print(
            f"[green]✓[/green] Published [cyan]{branch}[/cyan] to {remote} "
            f"[dim]({credentials.describe()})[/dim]"
        )

    @app.command("track", help=f"Start tracking a {noun} branch published on a remote.")
    def track(
        ctx: typer.Context,
        name: Annotated[str, typer.Argument(help=f"Name of the {noun}")],
        remote: Annotated[str, typer.Option("--remote", "-r", help="Remote to fetch from")] = DEFAULT_REMOTE,
    ) -> None:
        with workflow_errors():
            engine = open_engine(ctx)
            progress, on_progress = fetch_progress_display()
            with progress:
                branch = engine.track(kind, name, remote=remote, on_progress=on_progress)
        console.print(f"[green]✓[/green] Tracking [cyan]{branch.name}[/cyan] from {remote}")

    @app.command("diff", help=f"Show the changes a {noun} branch makes to its base.")
    def diff(
        ctx: typer.Context,
        name: Annotated[Optional[str], typer.Argument(help=f"Name of the {noun} (default: current)")] = None,
    ) -> None:
        with workflow_errors():
            patch = open_engine(ctx).diff(kind, name)
        if not patch.strip():
            console.print("[dim]No changes.[/dim]")
            return
        console.print(Syntax(patch, "diff", word_wrap=False))

    @app.command("rebase", help=f"Rebase a {noun} branch onto its base.")
    def rebase(
        ctx: typer.Context,
        name: Annotated[Optional[str], typer.Argument(help=f"Name of the {noun} (default: current)")] = None,
    ) -> None:
        with workflow_errors():
            engine = open_engine(ctx)
            try:
                operations = engine.rebase(kind, name)
            except MergeConflictError:
                console.print("[yellow]Resolve the conflicts, then run 'git rebase --continue'.[/yellow]")
                raise
        for op in operations:
            rewritten = (op.rewritten or "")[:10]
            console.print(f"  {op.kind} {op.original[:10]} -> {rewritten}")
        console.print(f"[green]✓[/green] Rebased {len(operations)} commit(s)")

    @app.command("checkout", help=f"Switch to a {noun} branch.")
    def checkout(
        ctx: typer.Context,
        name: Annotated[str, typer.Argument(help=f"Name of the {noun}")],
    ) -> None:
        with workflow_errors():
            branch = open_engine(ctx).checkout(kind, name)
        console.print(f"[green]✓[/green] Switched to branch [cyan]{branch.name}[/cyan]")

    @app.command("delete", help=f"Delete a {noun} branch.")
    def delete(
        ctx: typer.Context,
        name: Annotated[str, typer.Argument(help=f"Name of the {noun}")],
        force: Annotated[bool, typer.Option("--force", "-f", help="Delete even if not merged")] = False,
    ) -> None:
        with workflow_errors():
            branch = open_engine(ctx).delete(kind, name, force=force)
        console.print(f"[green]✓[/green] Deleted branch [cyan]{branch}[/cyan]")

    return app


__all__ = ["build_branch_app"]
