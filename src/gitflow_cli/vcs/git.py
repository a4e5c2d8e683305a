"""
Git Backend
===========

``RepositoryBackend`` implementation that drives the ``git`` executable.

Plumbing commands are used wherever the workflow core needs a precise
primitive (``merge-tree --write-tree`` for three-way merges, ``commit-tree``
and ``update-ref`` for commits and reference moves) so that the core keeps
control over parents, messages and ordering.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from gitflow_cli.exceptions import (
    BackendError,
    BranchExistsError,
    BranchNotFoundError,
    GitFlowIOError,
    MergeConflictError,
    NoHeadError,
)

from .types import Branch, FetchProgress, MergeAnalysis, MergeTreeResult, RebaseOperation

if TYPE_CHECKING:
    from .credentials import CredentialProvider
    from .protocol import ProgressCallback

logger = logging.getLogger(__name__)

_RECEIVING_RE = re.compile(
    r"Receiving objects:\s+\d+%\s+\((\d+)/(\d+)\)(?:,\s+([\d.]+)\s+(bytes|KiB|MiB|GiB))?"
)
_RESOLVING_RE = re.compile(r"Resolving deltas:\s+\d+%\s+\((\d+)/(\d+)\)")
_UNIT_FACTORS = {"bytes": 1, "KiB": 1024, "MiB": 1024**2, "GiB": 1024**3}


def _first_line(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""


def parse_progress_line(line: str) -> FetchProgress | None:
    """Parse one ``git fetch --progress`` stderr line into a progress event."""
    match = _RECEIVING_RE.search(line)
    if match:
        received_bytes = 0
        if match.group(3):
            received_bytes = int(float(match.group(3)) * _UNIT_FACTORS[match.group(4)])
        return FetchProgress(
            phase="receiving",
            received_objects=int(match.group(1)),
            total_objects=int(match.group(2)),
            received_bytes=received_bytes,
        )
    match = _RESOLVING_RE.search(line)
    if match:
        return FetchProgress(
            phase="resolving",
            received_objects=int(match.group(1)),
            total_objects=int(match.group(2)),
        )
    return None


class _ProgressForwarder:
    """Drops events that would move a phase's counters backwards."""

    def __init__(self, callback: "ProgressCallback"):
        self._callback = callback
        self._last: dict[str, FetchProgress] = {}

    def feed(self, event: FetchProgress) -> None:
        previous = self._last.get(event.phase)
        if previous is not None:
            if event.received_objects < previous.received_objects:
                return
            if event.received_bytes < previous.received_bytes:
                event = FetchProgress(
                    phase=event.phase,
                    received_objects=event.received_objects,
                    total_objects=event.total_objects,
                    received_bytes=previous.received_bytes,
                )
            if event == previous:
                return
        self._last[event.phase] = event
        self._callback(event)


class GitBackend:
    """Repository backend backed by the git command line."""

    def __init__(self, workdir: Path):
        self._workdir = Path(workdir).resolve()

    def __repr__(self) -> str:
        return f"GitBackend(workdir={str(self._workdir)!r})"

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def open(cls, path: Path) -> "GitBackend":
        """Open the repository containing ``path``.

        Raises:
            BackendError: If ``path`` is not inside a git working tree.
        """
        probe = cls(path)
        result = probe._run(["rev-parse", "--show-toplevel"], check=False)
        if result.returncode != 0:
            detail = _first_line(result.stderr) or "not a git repository"
            raise BackendError(f"Cannot open repository at {path}: {detail}", stderr=result.stderr)
        return cls(Path(result.stdout.strip()))

    @classmethod
    def open_or_init(cls, path: Path) -> "GitBackend":
        """Open the repository at ``path``, creating one if none exists."""
        path = Path(path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise GitFlowIOError(f"Cannot create {path}: {exc}") from exc

        probe = cls(path)
        result = probe._run(["rev-parse", "--show-toplevel"], check=False)
        if result.returncode == 0:
            return cls(Path(result.stdout.strip()))

        logger.info("No repository at %s, creating a new one", path)
        probe._run(["init", "--quiet"])
        return probe

    @property
    def workdir(self) -> Path:
        return self._workdir

    # -------------------------------------------------------------------------
    # Process plumbing
    # -------------------------------------------------------------------------

    def _run(
        self,
        args: Sequence[str],
        *,
        check: bool = True,
        input: str | None = None,
        extra_env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        if not self._workdir.is_dir():
            raise GitFlowIOError(f"Repository directory {self._workdir} is not accessible")

        command = ["git", *args]
        logger.debug("running %s", " ".join(command))
        env = {**os.environ, **extra_env} if extra_env else None
        try:
            completed = subprocess.run(
                command,
                cwd=str(self._workdir),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                input=input,
                env=env,
                check=False,
            )
        except FileNotFoundError as exc:
            raise BackendError("git executable not found on PATH", command) from exc
        except OSError as exc:
            raise GitFlowIOError(f"Could not run git: {exc}") from exc

        if check and completed.returncode != 0:
            detail = _first_line(completed.stderr) or _first_line(completed.stdout)
            raise BackendError(
                f"git {args[0]} failed: {detail or f'exit code {completed.returncode}'}",
                command,
                completed.stderr,
            )
        return completed

    def _identity_env(self) -> dict[str, str]:
        """Fall back to an ``unknown`` name when none is configured."""
        env: dict[str, str] = {}
        if self.config_get("user.name"):
            return env
        for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
            if not os.environ.get(var):
                env[var] = "unknown"
        return env

    def resolve(self, rev: str) -> str | None:
        """Return the commit id ``rev`` names, or None."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def _require(self, rev: str) -> str:
        commit = self.resolve(rev)
        if commit is None:
            raise BackendError(f"Cannot resolve '{rev}' to a commit")
        return commit

    def _is_ancestor(self, ancestor: str, descendant: str) -> bool:
        result = self._run(["merge-base", "--is-ancestor", ancestor, descendant], check=False)
        if result.returncode > 1:
            raise BackendError(
                f"git merge-base failed: {_first_line(result.stderr)}",
                ["git", "merge-base", "--is-ancestor", ancestor, descendant],
                result.stderr,
            )
        return result.returncode == 0

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def config_get(self, key: str) -> str | None:
        result = self._run(["config", "--get", key], check=False)
        if result.returncode == 1:
            return None
        if result.returncode != 0:
            raise BackendError(f"git config failed: {_first_line(result.stderr)}", stderr=result.stderr)
        return result.stdout.rstrip("\n")

    def config_set(self, key: str, value: str) -> None:
        self._run(["config", "--local", key, value])

    # -------------------------------------------------------------------------
    # Refs and branches
    # -------------------------------------------------------------------------

    def current_head(self) -> str | None:
        return self.resolve("HEAD")

    def current_branch(self) -> str | None:
        result = self._run(["symbolic-ref", "--quiet", "--short", "HEAD"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def find_branch(self, name: str) -> Branch | None:
        commit = self.resolve(f"refs/heads/{name}")
        if commit is None:
            return None
        return Branch(name=name, commit=commit)

    def list_branches(self, prefix: str = "") -> list[Branch]:
        result = self._run(
            ["for-each-ref", "--format=%(refname:strip=2)%00%(objectname)", "refs/heads/"]
        )
        branches = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            name, _, commit = line.partition("\x00")
            if name.startswith(prefix):
                branches.append(Branch(name=name, commit=commit))
        return sorted(branches, key=lambda b: b.name)

    def create_branch(self, name: str, start: str | None = None) -> Branch:
        if self.find_branch(name) is not None:
            raise BranchExistsError(name)
        if start is None:
            start_commit = self.current_head()
            if start_commit is None:
                raise NoHeadError(f"Cannot create '{name}': repository has no commits.")
        else:
            start_commit = self._require(start)
        self._run(["branch", "--no-track", name, start_commit])
        logger.debug("created branch %s at %s", name, start_commit)
        return Branch(name=name, commit=start_commit)

    def checkout(self, name: str) -> None:
        self._run(["checkout", "--quiet", name, "--"])

    def delete_branch(self, name: str, force: bool = False) -> None:
        if self.find_branch(name) is None:
            raise BranchNotFoundError(name)
        self._run(["branch", "-D" if force else "-d", name])
        logger.debug("deleted branch %s", name)

    def update_ref(self, name: str, commit: str, message: str) -> None:
        """Move branch ``name`` to ``commit``.

        When ``name`` is the checked-out branch the index and working tree
        follow the move; local modifications that would be overwritten make
        the update fail rather than being discarded.
        """
        if self.current_branch() == name:
            if self.current_head() is not None:
                self._run(
                    ["reset", "--quiet", "--keep", commit],
                    extra_env={"GIT_REFLOG_ACTION": message},
                )
                return
            self._run(["update-ref", "-m", message, f"refs/heads/{name}", commit])
            self._run(["read-tree", "-m", "-u", "HEAD"])
            return
        self._run(["update-ref", "-m", message, f"refs/heads/{name}", commit])

    def set_upstream(self, name: str, upstream: str) -> None:
        self._run(["branch", "--quiet", f"--set-upstream-to={upstream}", name])

    # -------------------------------------------------------------------------
    # Objects
    # -------------------------------------------------------------------------

    def write_tree(self) -> str:
        return self._run(["write-tree"]).stdout.strip()

    def tree_of(self, commit: str) -> str:
        return self._run(["rev-parse", "--verify", f"{commit}^{{tree}}"]).stdout.strip()

    def commit(
        self,
        parents: Sequence[str],
        tree: str,
        message: str,
        ref: str | None = None,
    ) -> str:
        args = ["commit-tree", tree]
        for parent in parents:
            args.extend(["-p", parent])
        args.extend(["-F", "-"])
        commit = self._run(args, input=message, extra_env=self._identity_env()).stdout.strip()
        if ref is not None:
            subject = _first_line(message) or "commit"
            reflog = f"commit (initial): {subject}" if not parents else f"commit: {subject}"
            self._run(["update-ref", "-m", reflog, ref, commit])
        logger.debug("created commit %s with parents %s", commit, list(parents))
        return commit

    def count_commits(self) -> int:
        """Number of commit objects reachable from any ref."""
        result = self._run(["rev-list", "--all", "--count"], check=False)
        if result.returncode != 0:
            return 0
        return int(result.stdout.strip() or "0")

    # -------------------------------------------------------------------------
    # Merging
    # -------------------------------------------------------------------------

    def merge_analysis(self, source: str, target: str | None = None) -> MergeAnalysis:
        if target is None:
            target_tip = self.current_head()
        else:
            target_tip = self.resolve(f"refs/heads/{target}")
        if target_tip is None:
            return MergeAnalysis.UNBORN

        source_commit = self._require(source)
        if source_commit == target_tip or self._is_ancestor(source_commit, target_tip):
            return MergeAnalysis.UP_TO_DATE
        if self._is_ancestor(target_tip, source_commit):
            return MergeAnalysis.FAST_FORWARD
        return MergeAnalysis.NORMAL

    def merge_base(self, a: str, b: str) -> str | None:
        result = self._run(["merge-base", a, b], check=False)
        if result.returncode == 1:
            return None
        if result.returncode != 0:
            raise BackendError(
                f"git merge-base failed: {_first_line(result.stderr)}",
                ["git", "merge-base", a, b],
                result.stderr,
            )
        return result.stdout.strip()

    def merge_trees(self, base: str, ours: str, theirs: str) -> MergeTreeResult:
        from . import detection

        args = ["merge-tree", "--write-tree", "--name-only", "--no-messages"]
        # Older git computes the same base itself from ours and theirs.
        if detection.git_version_supported(
            detection.get_git_version(), detection.MERGE_BASE_GIT_VERSION
        ):
            args.append(f"--merge-base={base}")
        args += [ours, theirs]
        result = self._run(args, check=False)
        if result.returncode not in (0, 1):
            raise BackendError(
                f"git merge-tree failed: {_first_line(result.stderr)}",
                ["git", *args],
                result.stderr,
            )
        lines = result.stdout.splitlines()
        tree = lines[0].strip() if lines else ""
        conflicts: list[str] = []
        if result.returncode == 1:
            for line in lines[1:]:
                path = line.strip()
                if path and path not in conflicts:
                    conflicts.append(path)
        return MergeTreeResult(tree=tree, conflicts=tuple(conflicts))

    def checkout_conflicts(self, source: str, message: str) -> None:
        result = self._run(
            ["merge", "--no-ff", "--no-commit", "-m", message, source],
            check=False,
            extra_env=self._identity_env(),
        )
        if result.returncode > 1:
            raise BackendError(
                f"git merge failed: {_first_line(result.stderr) or _first_line(result.stdout)}",
                ["git", "merge", "--no-ff", "--no-commit", source],
                result.stderr,
            )
        if result.returncode == 0:
            logger.warning("Expected conflicts merging %s but the merge applied cleanly", source)

    def conflicted_paths(self) -> list[str]:
        result = self._run(["diff", "--name-only", "--diff-filter=U"], check=False)
        return [line for line in result.stdout.splitlines() if line.strip()]

    def tag(self, commit: str, name: str, message: str) -> None:
        self._run(
            ["tag", "--annotate", name, commit, "-m", message],
            extra_env=self._identity_env(),
        )
        logger.debug("tagged %s as %s", commit, name)

    def rebase(self, branch: str, onto: str) -> list[RebaseOperation]:
        onto_commit = self._require(onto)
        branch_commit = self._require(f"refs/heads/{branch}")
        originals = self._log_subjects(f"{onto_commit}..{branch_commit}")

        result = self._run(["rebase", "--quiet", onto_commit, branch], check=False)
        if result.returncode != 0:
            paths = self.conflicted_paths()
            if paths:
                raise MergeConflictError(target=branch, source=onto, paths=paths)
            raise BackendError(
                f"git rebase failed: {_first_line(result.stderr) or _first_line(result.stdout)}",
                ["git", "rebase", onto_commit, branch],
                result.stderr,
            )

        rewritten_by_subject: dict[str, list[str]] = defaultdict(list)
        for commit, subject in self._log_subjects(f"{onto_commit}..refs/heads/{branch}"):
            rewritten_by_subject[subject].append(commit)

        operations = []
        for commit, subject in originals:
            candidates = rewritten_by_subject.get(subject)
            if candidates:
                operations.append(RebaseOperation(kind="pick", original=commit, rewritten=candidates.pop(0)))
            else:
                operations.append(RebaseOperation(kind="skip", original=commit))
        return operations

    def _log_subjects(self, revision_range: str) -> list[tuple[str, str]]:
        result = self._run(["log", "--reverse", "--no-merges", "--format=%H%x00%s", revision_range])
        entries = []
        for line in result.stdout.splitlines():
            if line.strip():
                commit, _, subject = line.partition("\x00")
                entries.append((commit, subject))
        return entries

    def diff(self, base: str, head: str) -> str:
        return self._run(["diff", base, head]).stdout

    # -------------------------------------------------------------------------
    # Remotes
    # -------------------------------------------------------------------------

    def fetch(
        self,
        remote: str,
        refs: Sequence[str],
        on_progress: "ProgressCallback | None" = None,
    ) -> None:
        command = ["git", "fetch", "--progress", "--tags", remote, *refs]
        logger.debug("running %s", " ".join(command))
        forwarder = _ProgressForwarder(on_progress) if on_progress else None
        stderr_lines: list[str] = []
        try:
            # Universal newlines turn git's carriage-return redraws into lines.
            with subprocess.Popen(
                command,
                cwd=str(self._workdir),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            ) as proc:
                assert proc.stderr is not None
                for line in proc.stderr:
                    stderr_lines.append(line)
                    if forwarder is not None:
                        event = parse_progress_line(line)
                        if event is not None:
                            forwarder.feed(event)
                returncode = proc.wait()
        except FileNotFoundError as exc:
            raise BackendError("git executable not found on PATH", command) from exc
        except OSError as exc:
            raise GitFlowIOError(f"Could not run git: {exc}") from exc

        if returncode != 0:
            stderr = "".join(stderr_lines)
            detail = ""
            for line in reversed(stderr_lines):
                if line.strip():
                    detail = line.strip()
                    break
            raise BackendError(f"git fetch failed: {detail}", command, stderr)

    def push(
        self,
        remote: str,
        branch: str,
        credentials: "CredentialProvider | None" = None,
    ) -> None:
        if self.find_branch(branch) is None:
            raise BranchNotFoundError(branch)
        env = credentials.git_environment() if credentials is not None else None
        if credentials is not None:
            logger.info("Pushing %s to %s using %s", branch, remote, credentials.describe())
        refspec = f"refs/heads/{branch}:refs/heads/{branch}"
        self._run(["push", remote, refspec], extra_env=env)

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def hooks_dir(self) -> Path:
        result = self._run(["rev-parse", "--git-path", "hooks"])
        path = Path(result.stdout.strip())
        if not path.is_absolute():
            path = self._workdir / path
        return path


__all__ = ["GitBackend", "parse_progress_line"]
