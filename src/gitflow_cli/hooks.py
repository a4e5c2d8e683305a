"""Workflow hook execution.

Hooks live in the directory configured as ``gitflow.path.hooks`` and are
named ``<phase>-flow-<kind>-<action>``, e.g. ``pre-flow-feature-start``.
Each hook receives the branch suffix and the full branch name as
arguments and runs from the repository root.

A non-zero ``pre`` hook aborts the operation; a non-zero ``post`` hook is
only reported, since the operation has already happened.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from gitflow_cli.core.branches import BranchKind
from gitflow_cli.exceptions import GitFlowIOError, HookFailedError

logger = logging.getLogger(__name__)

HOOK_PHASES: tuple[str, ...] = ("pre", "post")


@dataclass(frozen=True)
class HookResult:
    """Outcome of one executed hook."""

    name: str
    path: Path
    returncode: int

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def hook_name(phase: str, kind: BranchKind, action: str) -> str:
    if phase not in HOOK_PHASES:
        raise ValueError(f"Unknown hook phase: {phase}")
    return f"{phase}-flow-{kind.value}-{action}"


def find_hook(hooks_dir: Path | None, name: str) -> Path | None:
    """Return the executable hook ``name`` in ``hooks_dir``, if any."""
    if hooks_dir is None:
        return None
    candidate = hooks_dir / name
    if candidate.is_file() and os.access(candidate, os.X_OK):
        return candidate
    return None


def run_hook(
    hooks_dir: Path | None,
    phase: str,
    kind: BranchKind,
    action: str,
    args: list[str],
    cwd: Path,
) -> HookResult | None:
    """Run one hook if it exists.

    Returns:
        HookResult, or None when no such hook is installed.

    Raises:
        HookFailedError: If a ``pre`` hook exits non-zero.
    """
    name = hook_name(phase, kind, action)
    path = find_hook(hooks_dir, name)
    if path is None:
        return None

    logger.info("Running hook %s", name)
    try:
        completed = subprocess.run([str(path), *args], cwd=str(cwd), check=False)
    except OSError as exc:
        raise GitFlowIOError(f"Could not run hook {path}: {exc}") from exc

    result = HookResult(name=name, path=path, returncode=completed.returncode)
    if not result.succeeded:
        if phase == "pre":
            raise HookFailedError(name, completed.returncode)
        logger.warning("Hook %s exited with %d", name, completed.returncode)
    return result


__all__ = ["HOOK_PHASES", "HookResult", "hook_name", "find_hook", "run_hook"]
