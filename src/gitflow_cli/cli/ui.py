"""Reusable UI helpers for git-flow CLI output."""

from __future__ import annotations

from typing import Callable

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.tree import Tree

from gitflow_cli.merge.coordinator import MergeOutcome, MergeStatus
from gitflow_cli.vcs.types import Branch, FetchProgress

console = Console()
err_console = Console(stderr=True)

_SYMBOLS = {
    "pending": "[green dim]○[/green dim]",
    "done": "[green]●[/green]",
    "error": "[red]●[/red]",
    "skipped": "[yellow]○[/yellow]",
}


class StepTracker:
    """Track and render workflow steps as a Rich tree."""

    def __init__(self, title: str):
        self.title = title
        self.steps: list[dict[str, str]] = []

    def add(self, key: str, label: str) -> None:
        if key not in [s["key"] for s in self.steps]:
            self.steps.append({"key": key, "label": label, "status": "pending", "detail": ""})

    def complete(self, key: str, detail: str = "") -> None:
        self._update(key, status="done", detail=detail)

    def error(self, key: str, detail: str = "") -> None:
        self._update(key, status="error", detail=detail)

    def skip(self, key: str, detail: str = "") -> None:
        self._update(key, status="skipped", detail=detail)

    def _update(self, key: str, status: str, detail: str) -> None:
        for s in self.steps:
            if s["key"] == key:
                s["status"] = status
                if detail:
                    s["detail"] = detail
                return
        self.steps.append({"key": key, "label": key, "status": status, "detail": detail})

    def render(self) -> Tree:
        tree = Tree(f"[cyan]{self.title}[/cyan]", guide_style="grey50")
        for step in self.steps:
            label = step["label"]
            detail_text = step["detail"].strip() if step["detail"] else ""
            symbol = _SYMBOLS.get(step["status"], " ")

            if step["status"] == "pending":
                text = f"{label} ({detail_text})" if detail_text else label
                line = f"{symbol} [bright_black]{text}[/bright_black]"
            elif detail_text:
                line = f"{symbol} [white]{label}[/white] [bright_black]({detail_text})[/bright_black]"
            else:
                line = f"{symbol} [white]{label}[/white]"

            tree.add(line)
        return tree


def describe_outcome(outcome: MergeOutcome) -> str:
    """One-line summary of a merge step."""
    short = (outcome.commit or "")[:10]
    if outcome.status is MergeStatus.FAST_FORWARDED:
        return f"fast-forwarded to {short}"
    if outcome.status is MergeStatus.MERGED:
        return f"merge commit {short}"
    if outcome.status is MergeStatus.CONFLICT:
        return f"conflicts in {len(outcome.conflicts)} file(s)"
    return "already up to date"


def branch_table(title: str, branches: list[Branch], current: str | None) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("", width=1)
    table.add_column("Branch", style="cyan")
    table.add_column("Commit", style="magenta")
    for branch in branches:
        marker = "[green]*[/green]" if branch.name == current else ""
        table.add_row(marker, branch.name, branch.commit[:10])
    return table


def fetch_progress_display() -> tuple[Progress, Callable[[FetchProgress], None]]:
    """Progress bar plus the callback that feeds it fetch events."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=err_console,
        transient=True,
    )
    tasks: dict[str, int] = {}

    def on_progress(event: FetchProgress) -> None:
        label = "Receiving objects" if event.phase == "receiving" else "Resolving deltas"
        if event.phase not in tasks:
            tasks[event.phase] = progress.add_task(label, total=event.total_objects or None)
        progress.update(
            tasks[event.phase],
            completed=event.received_objects,
            total=event.total_objects or None,
        )

    return progress, on_progress


__all__ = [
    "console",
    "err_console",
    "StepTracker",
    "describe_outcome",
    "branch_table",
    "fetch_progress_display",
]
