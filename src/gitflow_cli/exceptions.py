"""Exception hierarchy for git-flow workflow operations.

Every error carries the process exit code the CLI reports for it:

    1  generic workflow error
    2  no-head / unborn branch
    3  backend (version-control) error
    4  I/O error
"""

from __future__ import annotations

from typing import Sequence


class GitFlowError(Exception):
    """Base exception for git-flow errors."""

    exit_code: int = 1


class ConfigMissingError(GitFlowError):
    """A required ``gitflow.*`` configuration key was never set."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Configuration key '{key}' is not set. Run 'git-flow init' first."
        )


class StateError(GitFlowError):
    """Command invoked out of order (e.g. before ``init``)."""
    pass


class NoActiveKindError(StateError):
    """Start/finish invoked without a branch kind."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"No branch kind supplied for '{operation}'.")


class BranchExistsError(GitFlowError):
    """Refusing to overwrite an existing branch."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Branch '{name}' already exists.")


class BranchNotFoundError(GitFlowError):
    """Referenced branch does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Branch '{name}' does not exist.")


class MergeConflictError(GitFlowError):
    """A merge step left unresolved conflicts in the working tree.

    The working tree holds the conflicted state so the user can resolve it
    and commit. Nothing past the conflicting merge (tagging, further merges,
    branch deletion) has been performed.
    """

    def __init__(self, target: str, source: str, paths: Sequence[str]):
        self.target = target
        self.source = source
        self.paths = tuple(paths)
        listing = ", ".join(self.paths) if self.paths else "unknown paths"
        super().__init__(
            f"Merging '{source}' into '{target}' produced conflicts in: {listing}. "
            f"Resolve them, commit, and run finish again."
        )


class HookFailedError(GitFlowError):
    """A ``pre-flow-*`` hook exited non-zero."""

    def __init__(self, hook: str, returncode: int):
        self.hook = hook
        self.returncode = returncode
        super().__init__(f"Hook '{hook}' failed with exit code {returncode}; aborting.")


class NoHeadError(GitFlowError):
    """Repository has no commit to anchor a branch on."""

    exit_code = 2

    def __init__(self, message: str = "Repository has no commits (unborn HEAD)."):
        super().__init__(message)


class BackendError(GitFlowError):
    """Failure surfaced by the repository backend."""

    exit_code = 3

    def __init__(self, message: str, command: Sequence[str] | None = None, stderr: str = ""):
        self.command = tuple(command) if command else ()
        self.stderr = stderr
        super().__init__(message)


class GitFlowIOError(GitFlowError):
    """Backend storage could not be accessed."""

    exit_code = 4


__all__ = [
    "GitFlowError",
    "ConfigMissingError",
    "StateError",
    "NoActiveKindError",
    "BranchExistsError",
    "BranchNotFoundError",
    "MergeConflictError",
    "HookFailedError",
    "NoHeadError",
    "BackendError",
    "GitFlowIOError",
]
