"""Merge subpackage for git-flow finish operations.

Modules:
    coordinator: Fast-forward vs. three-way merge decision and execution
"""

from __future__ import annotations

from .coordinator import MergeCoordinator, MergeOutcome, MergeStatus

__all__ = ["MergeCoordinator", "MergeOutcome", "MergeStatus"]
