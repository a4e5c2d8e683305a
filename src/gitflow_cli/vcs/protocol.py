"""
Repository Backend Protocol
===========================

The capability interface the workflow core requires from a version-control
backend. The core only ever talks to this protocol; ``GitBackend`` is the
implementation shipped with the package.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable, Protocol, Sequence, runtime_checkable

from .types import Branch, FetchProgress, MergeAnalysis, MergeTreeResult, RebaseOperation

if TYPE_CHECKING:
    from .credentials import CredentialProvider


ProgressCallback = Callable[[FetchProgress], None]


@runtime_checkable
class RepositoryBackend(Protocol):
    """Operations the workflow engine performs against a repository."""

    @property
    def workdir(self) -> Path:
        """Root of the working tree."""
        ...

    # Configuration -----------------------------------------------------------

    def config_get(self, key: str) -> str | None:
        """Return the value of ``key``, or None when it is not set."""
        ...

    def config_set(self, key: str, value: str) -> None:
        """Persist ``key`` in the repository-local configuration."""
        ...

    # Refs and branches -------------------------------------------------------

    def resolve(self, rev: str) -> str | None:
        """Return the commit id ``rev`` names, or None."""
        ...

    def current_head(self) -> str | None:
        """Return the commit HEAD resolves to, or None for an unborn HEAD."""
        ...

    def current_branch(self) -> str | None:
        """Return the checked-out branch name, or None when detached."""
        ...

    def create_branch(self, name: str, start: str | None = None) -> Branch:
        """Create ``name`` at ``start`` (default HEAD).

        Raises:
            BranchExistsError: If ``name`` already exists.
        """
        ...

    def checkout(self, name: str) -> None:
        """Check out a branch or ref."""
        ...

    def find_branch(self, name: str) -> Branch | None:
        """Return the local branch ``name`` or None."""
        ...

    def list_branches(self, prefix: str = "") -> list[Branch]:
        """List local branches whose names start with ``prefix``."""
        ...

    def delete_branch(self, name: str, force: bool = False) -> None:
        """Delete local branch ``name``.

        Raises:
            BranchNotFoundError: If the branch does not exist.
        """
        ...

    def update_ref(self, name: str, commit: str, message: str) -> None:
        """Point branch ``name`` at ``commit``, recording ``message`` in the reflog."""
        ...

    def set_upstream(self, name: str, upstream: str) -> None:
        """Make local branch ``name`` track ``upstream`` (e.g. ``origin/x``)."""
        ...

    # Objects -----------------------------------------------------------------

    def write_tree(self) -> str:
        """Write the current index as a tree and return its id."""
        ...

    def commit(
        self,
        parents: Sequence[str],
        tree: str,
        message: str,
        ref: str | None = None,
    ) -> str:
        """Create a commit object and optionally advance ``ref`` to it."""
        ...

    # Merging -----------------------------------------------------------------

    def merge_analysis(self, source: str, target: str | None = None) -> MergeAnalysis:
        """Classify merging ``source`` into branch ``target`` (default HEAD)."""
        ...

    def merge_base(self, a: str, b: str) -> str | None:
        """Nearest common ancestor of two commits, or None if unrelated."""
        ...

    def merge_trees(self, base: str, ours: str, theirs: str) -> MergeTreeResult:
        """Three-way merge of commits without touching the working tree."""
        ...

    def checkout_conflicts(self, source: str, message: str) -> None:
        """Leave the conflicted merge of ``source`` into HEAD in the working tree."""
        ...

    def tag(self, commit: str, name: str, message: str) -> None:
        """Create an annotated tag ``name`` on ``commit``."""
        ...

    def rebase(self, branch: str, onto: str) -> list[RebaseOperation]:
        """Replay ``branch`` onto ``onto`` and report each replayed commit."""
        ...

    def diff(self, base: str, head: str) -> str:
        """Patch text between two commits."""
        ...

    # Remotes -----------------------------------------------------------------

    def fetch(
        self,
        remote: str,
        refs: Sequence[str],
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Fetch ``refs`` from ``remote``, forwarding transfer progress."""
        ...

    def push(
        self,
        remote: str,
        branch: str,
        credentials: "CredentialProvider | None" = None,
    ) -> None:
        """Push local ``branch`` to ``remote``."""
        ...

    # Layout ------------------------------------------------------------------

    def hooks_dir(self) -> Path:
        """Default directory holding repository hooks."""
        ...


__all__ = ["RepositoryBackend", "ProgressCallback"]
