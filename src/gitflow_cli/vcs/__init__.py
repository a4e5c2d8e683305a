"""
VCS Abstraction Package
=======================

The repository backend the workflow core calls into.

Usage:
    from gitflow_cli.vcs import (
        RepositoryBackend,
        GitBackend,
        get_backend,
        MergeAnalysis,
    )
"""

from __future__ import annotations

# Enums
from .types import MergeAnalysis

# Dataclasses
from .types import (
    Branch,
    FetchProgress,
    MergeTreeResult,
    RebaseOperation,
)

# Protocol
from .protocol import ProgressCallback, RepositoryBackend

# Implementations
from .git import GitBackend

# Credentials
from .credentials import (
    CredentialProvider,
    InteractiveCredentials,
    SSHKeyCredentials,
    TokenCredentials,
    select_credentials,
)

# Factory
from .detection import get_backend, get_git_version, is_git_available, is_repo

__all__ = [
    # Enums
    "MergeAnalysis",
    # Dataclasses
    "Branch",
    "FetchProgress",
    "MergeTreeResult",
    "RebaseOperation",
    # Protocol
    "RepositoryBackend",
    "ProgressCallback",
    # Implementations
    "GitBackend",
    # Credentials
    "CredentialProvider",
    "SSHKeyCredentials",
    "TokenCredentials",
    "InteractiveCredentials",
    "select_credentials",
    # Factory
    "get_backend",
    "get_git_version",
    "is_git_available",
    "is_repo",
]
