"""Branch kinds and their configuration keys."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from .constants import CONFIG_NAMESPACE

if TYPE_CHECKING:
    from .config import WorkflowConfig


class BranchKind(str, Enum):
    """The five supporting-branch kinds of the branching model."""

    FEATURE = "feature"
    BUGFIX = "bugfix"
    HOTFIX = "hotfix"
    RELEASE = "release"
    SUPPORT = "support"

    @property
    def prefix_key(self) -> str:
        return prefix_key(self)

    @property
    def default_prefix(self) -> str:
        return f"{self.value}/"

    @property
    def merges_into_master(self) -> bool:
        """Release and hotfix branches land on master before develop."""
        return self in (BranchKind.RELEASE, BranchKind.HOTFIX)


def prefix_key(kind: BranchKind) -> str:
    """Return the config key holding ``kind``'s prefix."""
    return f"{CONFIG_NAMESPACE}.prefix.{kind.value}"


def base_branch(kind: BranchKind, config: "WorkflowConfig") -> str:
    """Branch that ``kind``'s work is compared and rebased against."""
    if kind in (BranchKind.HOTFIX, BranchKind.SUPPORT):
        return config.get_master()
    return config.get_develop()


__all__ = ["BranchKind", "prefix_key", "base_branch"]
