"""Workflow engine: the git-flow state machine.

The engine has two states. ``uninitialized`` repositories accept only
``init``; once the integration branches are configured the engine is
``ready`` and every branch operation is available.

``finish`` is the only operation with real choreography::

    release/hotfix:  checkout master -> merge branch -> tag -> checkout develop
                     -> merge master -> delete branch
    feature/bugfix/support:
                     checkout develop -> merge branch -> delete branch

A conflicting merge stops the sequence immediately: nothing is tagged,
merged or deleted past the conflicting step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from transitions import Machine

from gitflow_cli.core.branches import BranchKind, base_branch
from gitflow_cli.core.commands import FinishCommand, InitCommand, StartCommand, WorkflowCommand
from gitflow_cli.core.config import WorkflowConfig
from gitflow_cli.core.constants import DEFAULT_REMOTE, INITIAL_COMMIT_MESSAGE
from gitflow_cli.core.messages import DefaultMessages
from gitflow_cli.exceptions import (
    BackendError,
    BranchExistsError,
    BranchNotFoundError,
    GitFlowError,
    MergeConflictError,
    NoActiveKindError,
    NoHeadError,
    StateError,
)
from gitflow_cli.hooks import run_hook
from gitflow_cli.merge.coordinator import MergeCoordinator, MergeOutcome, MergeStatus
from gitflow_cli.vcs.types import MergeAnalysis

if TYPE_CHECKING:
    from gitflow_cli.core.messages import MessageProvider
    from gitflow_cli.vcs.credentials import CredentialProvider
    from gitflow_cli.vcs.protocol import ProgressCallback, RepositoryBackend
    from gitflow_cli.vcs.types import Branch, RebaseOperation

__all__ = ["WorkflowEngine", "InitResult", "FinishResult", "ENGINE_STATES"]

logger = logging.getLogger(__name__)

ENGINE_STATES = ["uninitialized", "ready"]

_TRANSITIONS = [
    {"trigger": "mark_initialized", "source": ["uninitialized", "ready"], "dest": "ready"},
]


@dataclass
class InitResult:
    """What ``init`` did."""

    master: str
    develop: str
    root_commit: str | None = None
    config: dict[str, str] = field(default_factory=dict)


@dataclass
class FinishResult:
    """What ``finish`` did, in order."""

    branch: str
    outcomes: list[MergeOutcome] = field(default_factory=list)
    tag: str | None = None
    deleted: bool = False


class WorkflowEngine:
    """Coordinates init/start/finish and branch housekeeping.

    Args:
        backend: Repository the engine operates on.
        messages: Source of config answers and commit/tag messages.
            Defaults to ``DefaultMessages`` (no prompting).
    """

    def __init__(
        self,
        backend: "RepositoryBackend",
        messages: "MessageProvider | None" = None,
    ) -> None:
        self.backend = backend
        self.messages = messages or DefaultMessages()
        self.config = WorkflowConfig(backend)
        self.merger = MergeCoordinator(backend)
        # Machine replaces this with the initial state during construction.
        self.state: str = ""
        self._machine = Machine(
            model=self,
            states=ENGINE_STATES,
            transitions=_TRANSITIONS,
            initial="ready" if self.config.is_initialized() else "uninitialized",
            auto_transitions=False,
        )

    # ------------------------------------------------------------------
    # Command dispatch
    # ------------------------------------------------------------------

    def execute(self, command: WorkflowCommand) -> InitResult | "Branch" | FinishResult:
        """Run a single workflow command to completion."""
        if isinstance(command, InitCommand):
            return self.init()
        if isinstance(command, StartCommand):
            return self.start(command.kind, command.suffix, base=command.base)
        if isinstance(command, FinishCommand):
            return self.finish(
                command.kind,
                command.suffix,
                message=command.message,
                tag=command.tag,
                keep_branch=command.keep_branch,
            )
        raise StateError(f"Unsupported workflow command: {command!r}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_ready(self, operation: str) -> None:
        if self.state != "ready":
            raise StateError(
                f"Repository is not initialized for git-flow; run 'git-flow init' before '{operation}'."
            )

    def _resolve(
        self, kind: BranchKind | str | None, suffix: str, operation: str
    ) -> tuple[BranchKind, str, str]:
        """Return the kind, the trimmed suffix and the full branch name."""
        if kind is None:
            raise NoActiveKindError(operation)
        kind = BranchKind(kind)
        suffix = (suffix or "").strip()
        if not suffix:
            raise GitFlowError(f"A {kind.value} name is required for '{operation}'.")
        return kind, suffix, self.config.branch_name(kind, suffix)

    def _resolve_or_current(
        self, kind: BranchKind | str | None, suffix: str | None, operation: str
    ) -> tuple[BranchKind, str]:
        """Resolve ``suffix``, or fall back to the checked-out branch of ``kind``."""
        if suffix:
            kind, _, branch = self._resolve(kind, suffix, operation)
            return kind, branch
        if kind is None:
            raise NoActiveKindError(operation)
        kind = BranchKind(kind)
        prefix = self.config.get(kind)
        current = self.backend.current_branch()
        if current and current.startswith(prefix) and len(current) > len(prefix):
            return kind, current
        raise StateError(f"Not on a {kind.value} branch; name the {kind.value} to {operation}.")

    def _require_branch(self, name: str) -> "Branch":
        branch = self.backend.find_branch(name)
        if branch is None:
            raise BranchNotFoundError(name)
        return branch

    def _require_head(self) -> str:
        head = self.backend.current_head()
        if head is None:
            raise NoHeadError()
        return head

    def _hook(self, phase: str, kind: BranchKind, action: str, suffix: str, branch: str) -> None:
        run_hook(
            self.config.get_hooks_path(),
            phase,
            kind,
            action,
            [suffix, branch],
            cwd=self.backend.workdir,
        )

    def _suffix_of(self, kind: BranchKind, branch: str) -> str:
        prefix = self.config.get(kind)
        return branch[len(prefix):] if branch.startswith(prefix) else branch

    def _ensure_branch(self, name: str, start: str) -> bool:
        """Create ``name`` at ``start``; an existing branch is left alone."""
        try:
            self.backend.create_branch(name, start)
        except BranchExistsError:
            logger.debug("branch %s already exists", name)
            return False
        logger.info("Created branch %s", name)
        return True

    # ------------------------------------------------------------------
    # init / start / finish
    # ------------------------------------------------------------------

    def init(self) -> InitResult:
        """Bootstrap the repository for the branching model.

        Safe to run repeatedly: the root commit is only created for an
        empty repository and existing branches are kept.
        """
        root_commit = None
        if self.backend.current_head() is None:
            tree = self.backend.write_tree()
            root_commit = self.backend.commit([], tree, INITIAL_COMMIT_MESSAGE, ref="HEAD")
            logger.info("Created initial commit %s", root_commit)

        stored = self.config.initialize(self.messages)
        tip = self._require_head()
        master = self.config.get_master()
        develop = self.config.get_develop()

        self._ensure_branch(master, tip)
        self._ensure_branch(develop, tip)
        self.backend.checkout(develop)

        self.mark_initialized()
        logger.info("Initialized git-flow (master=%s, develop=%s)", master, develop)
        return InitResult(master=master, develop=develop, root_commit=root_commit, config=stored)

    def start(self, kind: BranchKind | str | None, suffix: str, base: str | None = None) -> "Branch":
        """Create ``prefix(kind) + suffix`` from HEAD (or ``base``) and check it out.

        Raises:
            BranchExistsError: If the branch already exists.
            NoHeadError: If the repository has no commits.
        """
        self._require_ready("start")
        kind, suffix, branch = self._resolve(kind, suffix, "start")
        self._require_head()

        if self.backend.find_branch(branch) is not None:
            raise BranchExistsError(branch)

        start_point = None
        if base:
            start_point = self.backend.resolve(base)
            if start_point is None:
                raise BranchNotFoundError(base)

        self._hook("pre", kind, "start", suffix, branch)
        created = self.backend.create_branch(branch, start_point)
        self.backend.checkout(branch)
        logger.info("Started %s branch %s", kind.value, branch)
        self._hook("post", kind, "start", suffix, branch)
        return created

    def finish(
        self,
        kind: BranchKind | str | None,
        suffix: str,
        message: str | None = None,
        tag: str | None = None,
        keep_branch: bool = False,
    ) -> FinishResult:
        """Merge the branch into its integration branches and delete it.

        Raises:
            MergeConflictError: If any merge step conflicts. The branch is
                kept and no later step runs.
            StateError: If a merge step leaves the branch unmerged (no common
                history). The branch is kept and no later step runs.
        """
        self._require_ready("finish")
        kind, suffix, branch = self._resolve(kind, suffix, "finish")
        self._require_head()
        source = self._require_branch(branch)
        develop = self.config.get_develop()

        self._hook("pre", kind, "finish", suffix, branch)
        result = FinishResult(branch=branch)

        if kind.merges_into_master:
            master = self.config.get_master()
            self._checkout_integration(master)
            result.outcomes.append(self._merge_step(master, source.commit, branch, message))

            if tag:
                result.tag = self._tag(master, tag, branch)

            master_tip = self._require_branch(master).commit
            self._checkout_integration(develop)
            result.outcomes.append(self._merge_step(develop, master_tip, master, None))
        else:
            self._checkout_integration(develop)
            result.outcomes.append(self._merge_step(develop, source.commit, branch, message))

        if not keep_branch:
            self.backend.delete_branch(branch, force=True)
            result.deleted = True

        logger.info("Finished %s branch %s", kind.value, branch)
        self._hook("post", kind, "finish", suffix, branch)
        return result

    def _checkout_integration(self, name: str) -> None:
        # A missing integration branch is created by the merge itself.
        if self.backend.find_branch(name) is not None:
            self.backend.checkout(name)

    def _merge_step(self, target: str, commit: str, label: str, message: str | None) -> MergeOutcome:
        if not message:
            message = self.messages.merge_message(label, target)
        outcome = self.merger.merge(target, commit, message, source_label=label)
        if outcome.conflicted:
            raise MergeConflictError(target=target, source=label, paths=outcome.conflicts)
        if outcome.status is MergeStatus.NO_OP and not self._is_merged(commit, target):
            raise StateError(
                f"'{label}' shares no history with '{target}' and was not merged; the branch is kept."
            )
        return outcome

    def _is_merged(self, commit: str, target: str) -> bool:
        return self.backend.merge_analysis(commit, target) is MergeAnalysis.UP_TO_DATE

    def _tag(self, target: str, tag: str, branch: str) -> str:
        prefix = self.config.get_version_tag_prefix()
        name = tag if tag.startswith(prefix) else f"{prefix}{tag}"
        tip = self._require_branch(target).commit
        self.backend.tag(tip, name, self.messages.tag_message(name, branch) or name)
        logger.info("Tagged %s as %s", target, name)
        return name

    # ------------------------------------------------------------------
    # Branch housekeeping
    # ------------------------------------------------------------------

    def list_branches(self, kind: BranchKind | str | None) -> list["Branch"]:
        """Local branches of ``kind``, sorted by name."""
        self._require_ready("list")
        if kind is None:
            raise NoActiveKindError("list")
        return self.backend.list_branches(self.config.get(BranchKind(kind)))

    def checkout(self, kind: BranchKind | str | None, suffix: str) -> "Branch":
        self._require_ready("checkout")
        kind, suffix, branch = self._resolve(kind, suffix, "checkout")
        found = self._require_branch(branch)
        self.backend.checkout(branch)
        return found

    def delete(self, kind: BranchKind | str | None, suffix: str, force: bool = False) -> str:
        """Delete a supporting branch; unmerged work needs ``force``."""
        self._require_ready("delete")
        kind, suffix, branch = self._resolve(kind, suffix, "delete")
        self._require_branch(branch)
        if self.backend.current_branch() == branch:
            raise StateError(f"Cannot delete '{branch}' while it is checked out.")
        self._hook("pre", kind, "delete", suffix, branch)
        self.backend.delete_branch(branch, force=force)
        logger.info("Deleted branch %s", branch)
        self._hook("post", kind, "delete", suffix, branch)
        return branch

    def diff(self, kind: BranchKind | str | None, suffix: str | None = None) -> str:
        """Changes on the branch that are not on its base branch."""
        self._require_ready("diff")
        kind, branch = self._resolve_or_current(kind, suffix, "diff")
        head = self._require_branch(branch)
        base = self._require_branch(base_branch(kind, self.config))
        fork_point = self.backend.merge_base(base.commit, head.commit) or base.commit
        return self.backend.diff(fork_point, head.commit)

    def rebase(self, kind: BranchKind | str | None, suffix: str | None = None) -> list["RebaseOperation"]:
        """Replay the branch onto the tip of its base branch."""
        self._require_ready("rebase")
        kind, branch = self._resolve_or_current(kind, suffix, "rebase")
        self._require_branch(branch)
        base = base_branch(kind, self.config)
        self._require_branch(base)
        operations = self.backend.rebase(branch, base)
        logger.info("Rebased %s onto %s (%d commits)", branch, base, len(operations))
        return operations

    def publish(
        self,
        kind: BranchKind | str | None,
        suffix: str | None = None,
        remote: str = DEFAULT_REMOTE,
        credentials: "CredentialProvider | None" = None,
    ) -> str:
        """Push the branch to ``remote``."""
        self._require_ready("publish")
        kind, branch = self._resolve_or_current(kind, suffix, "publish")
        self._require_branch(branch)
        short = self._suffix_of(kind, branch)
        self._hook("pre", kind, "publish", short, branch)
        self.backend.push(remote, branch, credentials)
        logger.info("Published %s to %s", branch, remote)
        self._hook("post", kind, "publish", short, branch)
        return branch

    def track(
        self,
        kind: BranchKind | str | None,
        suffix: str,
        remote: str = DEFAULT_REMOTE,
        on_progress: "ProgressCallback | None" = None,
    ) -> "Branch":
        """Create a local branch tracking ``remote``'s copy and check it out."""
        self._require_ready("track")
        kind, suffix, branch = self._resolve(kind, suffix, "track")
        if self.backend.find_branch(branch) is not None:
            raise BranchExistsError(branch)

        self._hook("pre", kind, "track", suffix, branch)
        remote_ref = f"refs/remotes/{remote}/{branch}"
        self.backend.fetch(remote, [f"refs/heads/{branch}:{remote_ref}"], on_progress)
        created = self.backend.create_branch(branch, remote_ref)
        self.backend.set_upstream(branch, f"{remote}/{branch}")
        self.backend.checkout(branch)
        logger.info("Tracking %s from %s", branch, remote)
        self._hook("post", kind, "track", suffix, branch)
        return created

    def pull(
        self,
        remote: str = DEFAULT_REMOTE,
        branch: str | None = None,
        on_progress: "ProgressCallback | None" = None,
        message: str | None = None,
    ) -> MergeOutcome:
        """Fetch ``branch`` from ``remote`` and merge it into the local branch."""
        if branch is None:
            branch = self.backend.current_branch()
            if branch is None:
                raise StateError("HEAD is detached; name the branch to pull.")

        self.backend.fetch(remote, [branch], on_progress)
        fetched = self.backend.resolve("FETCH_HEAD")
        if fetched is None:
            raise BackendError(f"Fetching {branch} from {remote} produced no FETCH_HEAD")

        if self.backend.find_branch(branch) is not None and self.backend.current_branch() != branch:
            self.backend.checkout(branch)

        outcome = self.merger.merge(
            branch,
            fetched,
            message or f"Pull {branch} from {remote} and merge",
            source_label=f"{remote}/{branch}",
        )
        if outcome.conflicted:
            raise MergeConflictError(target=branch, source=f"{remote}/{branch}", paths=outcome.conflicts)
        return outcome
