"""
VCS Types
=========

Enums and dataclasses shared by the repository backend protocol and its
implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# =============================================================================
# Enums
# =============================================================================


class MergeAnalysis(str, Enum):
    """How a source commit relates to a target branch tip."""

    FAST_FORWARD = "fast_forward"
    NORMAL = "normal"
    UP_TO_DATE = "up_to_date"
    UNBORN = "unborn"


# =============================================================================
# Dataclasses
# =============================================================================


@dataclass(frozen=True)
class Branch:
    """A local branch and the commit it points to."""

    name: str
    commit: str


@dataclass(frozen=True)
class MergeTreeResult:
    """Outcome of merging three trees without touching the working tree.

    ``tree`` is always the tree the backend wrote; when ``conflicts`` is
    non-empty it contains conflict markers and must not be committed.
    """

    tree: str
    conflicts: tuple[str, ...] = field(default_factory=tuple)

    @property
    def clean(self) -> bool:
        return not self.conflicts


@dataclass(frozen=True)
class FetchProgress:
    """Transfer progress reported while fetching.

    ``phase`` is ``"receiving"`` or ``"resolving"``. Counts never decrease
    within a phase.
    """

    phase: str
    received_objects: int
    total_objects: int
    received_bytes: int = 0


@dataclass(frozen=True)
class RebaseOperation:
    """One commit replayed by a rebase."""

    kind: str
    original: str
    rewritten: str | None = None


__all__ = [
    "MergeAnalysis",
    "Branch",
    "MergeTreeResult",
    "FetchProgress",
    "RebaseOperation",
]
