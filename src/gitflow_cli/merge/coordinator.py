"""Merge coordination: fast-forward when possible, three-way otherwise.

The coordinator decides how a source commit is integrated into a target
branch and performs it through the repository backend:

1. Ask the backend how the source relates to the target tip.
2. Fast-forward (or a target that does not exist yet): move the target
   reference straight to the source; no commit object is created.
3. Diverged histories: merge the three trees (merge base, target tip,
   source). Conflicts are left in the working tree and reported, clean
   results become a commit with parents ``(target tip, source)``.
4. Anything else (already merged, unrelated histories) is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from gitflow_cli.core.messages import default_merge_message
from gitflow_cli.vcs.types import MergeAnalysis

if TYPE_CHECKING:
    from gitflow_cli.vcs.protocol import RepositoryBackend

__all__ = ["MergeCoordinator", "MergeOutcome", "MergeStatus"]

logger = logging.getLogger(__name__)


class MergeStatus(str, Enum):
    """What a merge step did."""

    FAST_FORWARDED = "fast_forwarded"
    MERGED = "merged"
    CONFLICT = "conflict"
    NO_OP = "no_op"


@dataclass(frozen=True)
class MergeOutcome:
    """Result of integrating ``source`` into ``target``.

    ``commit`` is the new target tip for fast-forwards and merges.
    ``conflicts`` lists the unresolved paths for ``CONFLICT``.
    """

    status: MergeStatus
    target: str
    source: str
    commit: str | None = None
    conflicts: tuple[str, ...] = ()

    @property
    def conflicted(self) -> bool:
        return self.status is MergeStatus.CONFLICT

    @classmethod
    def fast_forwarded(cls, target: str, source: str, commit: str) -> "MergeOutcome":
        return cls(MergeStatus.FAST_FORWARDED, target, source, commit=commit)

    @classmethod
    def merged(cls, target: str, source: str, commit: str) -> "MergeOutcome":
        return cls(MergeStatus.MERGED, target, source, commit=commit)

    @classmethod
    def conflict(cls, target: str, source: str, paths: tuple[str, ...]) -> "MergeOutcome":
        return cls(MergeStatus.CONFLICT, target, source, conflicts=paths)

    @classmethod
    def no_op(cls, target: str, source: str) -> "MergeOutcome":
        return cls(MergeStatus.NO_OP, target, source)


class MergeCoordinator:
    """Integrates commits into branches through a ``RepositoryBackend``."""

    def __init__(self, backend: "RepositoryBackend"):
        self._backend = backend

    def merge(
        self,
        target: str,
        source_commit: str,
        message: str | None = None,
        source_label: str | None = None,
    ) -> MergeOutcome:
        """Merge ``source_commit`` into branch ``target``.

        Args:
            target: Branch receiving the changes.
            source_commit: Commit id being integrated.
            message: Commit message for a three-way merge.
            source_label: Name used in logs and messages (e.g. the source
                branch); defaults to ``source_commit``.

        Returns:
            MergeOutcome describing what happened.
        """
        label = source_label or source_commit
        if not message:
            message = default_merge_message(label, target)

        analysis = self._backend.merge_analysis(source_commit, target)
        logger.debug("merge analysis %s -> %s: %s", label, target, analysis.value)

        if analysis in (MergeAnalysis.FAST_FORWARD, MergeAnalysis.UNBORN):
            return self._fast_forward(target, source_commit, label)
        if analysis is MergeAnalysis.NORMAL:
            return self._three_way(target, source_commit, label, message)

        logger.info("%s is already up to date with %s", target, label)
        return MergeOutcome.no_op(target, label)

    def _fast_forward(self, target: str, source_commit: str, label: str) -> MergeOutcome:
        if self._backend.find_branch(target) is None:
            self._backend.update_ref(target, source_commit, f"Setting {target} to {source_commit}")
        else:
            self._backend.update_ref(target, source_commit, f"fast-forward {target} to {source_commit}")
        self._backend.checkout(target)
        logger.info("Fast-forwarded %s to %s", target, label)
        return MergeOutcome.fast_forwarded(target, label, source_commit)

    def _three_way(self, target: str, source_commit: str, label: str, message: str) -> MergeOutcome:
        branch = self._backend.find_branch(target)
        if branch is None:
            return self._fast_forward(target, source_commit, label)
        tip = branch.commit

        base = self._backend.merge_base(tip, source_commit)
        if base is None:
            logger.warning("%s and %s share no history; nothing merged", target, label)
            return MergeOutcome.no_op(target, label)

        if self._backend.current_branch() != target:
            self._backend.checkout(target)

        result = self._backend.merge_trees(base, tip, source_commit)
        if not result.clean:
            self._backend.checkout_conflicts(source_commit, message)
            logger.warning("Merge conflicts detected merging %s into %s", label, target)
            return MergeOutcome.conflict(target, label, result.conflicts)

        commit = self._backend.commit([tip, source_commit], result.tree, message)
        self._backend.update_ref(target, commit, f"merge {label}: {message.splitlines()[0]}")
        logger.info("Merged %s into %s as %s", label, target, commit)
        return MergeOutcome.merged(target, label, commit)
