"""
VCS Detection Module
====================

Tool detection and the ``get_backend()`` factory. Detection results are
cached for the life of the process.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from gitflow_cli.exceptions import BackendError

from .git import GitBackend

if TYPE_CHECKING:
    from .protocol import RepositoryBackend

logger = logging.getLogger(__name__)

# ``git merge-tree --write-tree`` first shipped in 2.38; ``--merge-base`` in 2.40.
MIN_GIT_VERSION: tuple[int, int] = (2, 38)
MERGE_BASE_GIT_VERSION: tuple[int, int] = (2, 40)


# =============================================================================
# Tool Detection Functions
# =============================================================================


@lru_cache(maxsize=1)
def is_git_available() -> bool:
    """
    Check if git is installed and working.

    Returns:
        True if git is installed and responds to --version, False otherwise.
    """
    if shutil.which("git") is None:
        return False
    try:
        result = subprocess.run(
            ["git", "--version"],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (subprocess.TimeoutExpired, OSError):
        return False


@lru_cache(maxsize=1)
def get_git_version() -> str | None:
    """
    Get installed git version, or None if not installed.

    Returns:
        Version string (e.g., "2.43.0") or None if git is not available.
    """
    if not is_git_available():
        return None
    try:
        result = subprocess.run(
            ["git", "--version"],
            capture_output=True,
            timeout=5,
            text=True,
        )
        if result.returncode != 0:
            return None
        # git version format: "git version 2.43.0" or "git version 2.43.0.windows.1"
        output = result.stdout.strip()
        match = re.search(r"git version\s+(\d+\.\d+\.\d+)", output)
        if match:
            return match.group(1)
        if "git version " in output:
            return output.split("git version ")[1].strip()
        return "unknown"
    except (subprocess.TimeoutExpired, OSError):
        return None


def parse_git_version(version: str | None) -> tuple[int, int] | None:
    """Return ``(major, minor)`` from a version string, or None if unparseable."""
    if not version:
        return None
    match = re.match(r"(\d+)\.(\d+)", version)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def git_version_supported(
    version: str | None, minimum: tuple[int, int] = MIN_GIT_VERSION
) -> bool:
    """Return True if ``version`` is at least ``minimum``."""
    parsed = parse_git_version(version)
    return parsed is not None and parsed >= minimum


def is_repo(path: Path) -> bool:
    """Return True if ``path`` is inside a git working tree."""
    if not path.is_dir() or not is_git_available():
        return False
    result = subprocess.run(
        ["git", "rev-parse", "--is-inside-work-tree"],
        cwd=str(path),
        capture_output=True,
        text=True,
        check=False,
    )
    return result.returncode == 0 and result.stdout.strip() == "true"


# =============================================================================
# Factory Function
# =============================================================================


def _require_git() -> None:
    if not is_git_available():
        raise BackendError("git is not installed or not on PATH")
    version = get_git_version()
    parsed = parse_git_version(version)
    if parsed is None:
        logger.warning("Could not parse git version %r; assuming it is recent enough", version)
        return
    if parsed < MIN_GIT_VERSION:
        raise BackendError(
            f"git {version} is too old; git-flow needs git {MIN_GIT_VERSION[0]}.{MIN_GIT_VERSION[1]} or newer"
        )


def get_backend(path: Path, create: bool = False) -> "RepositoryBackend":
    """
    Return the repository backend for ``path``.

    Args:
        path: Directory inside (or, with ``create``, for) a repository.
        create: Initialize a new repository when none exists.

    Raises:
        BackendError: If git is unavailable or older than ``MIN_GIT_VERSION``,
            or ``path`` is not a repository.
    """
    _require_git()
    if create:
        return GitBackend.open_or_init(path)
    return GitBackend.open(path)


__all__ = [
    "MIN_GIT_VERSION",
    "MERGE_BASE_GIT_VERSION",
    "is_git_available",
    "get_git_version",
    "git_version_supported",
    "parse_git_version",
    "is_repo",
    "get_backend",
]
