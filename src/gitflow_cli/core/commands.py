"""Workflow commands: single-use requests consumed by ``WorkflowEngine.execute``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .branches import BranchKind


@dataclass(frozen=True)
class InitCommand:
    """Bootstrap the repository for the branching model."""


@dataclass(frozen=True)
class StartCommand:
    """Create ``prefix(kind) + suffix`` and check it out.

    ``base`` names the branch or commit to start from; HEAD when None.
    """

    kind: BranchKind | None
    suffix: str
    base: str | None = None


@dataclass(frozen=True)
class FinishCommand:
    """Merge ``prefix(kind) + suffix`` into its integration branches."""

    kind: BranchKind | None
    suffix: str
    message: str | None = None
    tag: str | None = None
    keep_branch: bool = False


WorkflowCommand = Union[InitCommand, StartCommand, FinishCommand]

__all__ = ["InitCommand", "StartCommand", "FinishCommand", "WorkflowCommand"]
