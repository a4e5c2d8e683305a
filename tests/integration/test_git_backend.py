"""GitBackend against real repositories."""

from __future__ import annotations

import pytest

from gitflow_cli.exceptions import (
    BackendError,
    BranchExistsError,
    BranchNotFoundError,
    GitFlowIOError,
    NoHeadError,
)
from gitflow_cli.vcs import detection
from gitflow_cli.vcs.detection import get_backend, is_repo
from gitflow_cli.vcs.git import GitBackend
from gitflow_cli.vcs.protocol import RepositoryBackend
from gitflow_cli.vcs.types import FetchProgress, MergeAnalysis


def test_backend_satisfies_protocol(backend):
    assert isinstance(backend, RepositoryBackend)


def test_open_rejects_non_repository(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()

    assert not is_repo(plain)
    with pytest.raises(BackendError):
        GitBackend.open(plain)


def test_open_finds_toplevel_from_subdirectory(seeded_repo):
    nested = seeded_repo / "src" / "pkg"
    nested.mkdir(parents=True)

    assert GitBackend.open(nested).workdir == seeded_repo.resolve()


def test_get_backend_creates_repository(tmp_path):
    target = tmp_path / "fresh" / "project"

    backend = get_backend(target, create=True)

    assert is_repo(target)
    assert backend.current_head() is None


def test_missing_workdir_is_io_error(tmp_path):
    with pytest.raises(GitFlowIOError):
        GitBackend(tmp_path / "gone").current_head()


def test_config_roundtrip(backend):
    assert backend.config_get("gitflow.branch.master") is None

    backend.config_set("gitflow.branch.master", "main")
    backend.config_set("gitflow.prefix.versiontag", "")

    assert backend.config_get("gitflow.branch.master") == "main"
    assert backend.config_get("gitflow.prefix.versiontag") == ""


def test_unborn_repository(backend):
    assert backend.current_head() is None
    assert backend.current_branch() == "master"
    with pytest.raises(NoHeadError):
        backend.create_branch("develop")


def test_branch_lifecycle(seeded_repo):
    backend = GitBackend(seeded_repo)
    head = backend.current_head()

    created = backend.create_branch("feature/a")
    backend.create_branch("feature/b", "master")
    backend.create_branch("hotfix/1")

    assert created.commit == head
    with pytest.raises(BranchExistsError):
        backend.create_branch("feature/a")

    assert [b.name for b in backend.list_branches("feature/")] == ["feature/a", "feature/b"]
    assert backend.find_branch("feature/zzz") is None

    backend.checkout("feature/a")
    assert backend.current_branch() == "feature/a"

    backend.checkout("master")
    backend.delete_branch("feature/b")
    assert backend.find_branch("feature/b") is None
    with pytest.raises(BranchNotFoundError):
        backend.delete_branch("feature/b")


def test_delete_unmerged_branch_needs_force(seeded_repo, commit_file):
    backend = GitBackend(seeded_repo)
    backend.create_branch("feature/wip")
    backend.checkout("feature/wip")
    commit_file(seeded_repo, "wip.txt", "wip\n")
    backend.checkout("master")

    with pytest.raises(BackendError):
        backend.delete_branch("feature/wip")
    backend.delete_branch("feature/wip", force=True)

    assert backend.find_branch("feature/wip") is None


def test_commit_and_update_ref_of_checked_out_branch(seeded_repo, git):
    backend = GitBackend(seeded_repo)
    base = backend.current_head()
    tree = backend.write_tree()

    commit = backend.commit([base], tree, "Empty change")
    backend.update_ref("master", commit, "test: move master")

    assert backend.current_head() == commit
    assert backend.tree_of(commit) == backend.tree_of(base)
    parents = git(["rev-list", "--parents", "-n", "1", commit], seeded_repo).stdout.split()
    assert parents == [commit, base]
    assert git(["log", "-1", "--format=%s"], seeded_repo).stdout.strip() == "Empty change"


def test_update_ref_moves_working_tree(seeded_repo, commit_file):
    backend = GitBackend(seeded_repo)
    backend.create_branch("develop")
    backend.checkout("develop")
    ahead = commit_file(seeded_repo, "feature.txt", "x\n")
    backend.checkout("master")

    backend.update_ref("master", ahead, "fast-forward master")

    assert backend.current_head() == ahead
    assert (seeded_repo / "feature.txt").exists()


def test_merge_analysis(seeded_repo, commit_file):
    backend = GitBackend(seeded_repo)
    root = backend.current_head()
    backend.create_branch("develop")
    backend.checkout("develop")
    ahead = commit_file(seeded_repo, "a.txt", "a\n")

    assert backend.merge_analysis(ahead, "master") is MergeAnalysis.FAST_FORWARD
    assert backend.merge_analysis(root, "develop") is MergeAnalysis.UP_TO_DATE
    assert backend.merge_analysis(ahead, "release/1.0") is MergeAnalysis.UNBORN

    backend.checkout("master")
    diverged = commit_file(seeded_repo, "b.txt", "b\n")
    assert backend.merge_analysis(ahead, "master") is MergeAnalysis.NORMAL
    assert backend.merge_base(ahead, diverged) == root


def test_merge_trees_reports_conflicts(seeded_repo, commit_file):
    backend = GitBackend(seeded_repo)
    root = backend.current_head()
    backend.create_branch("other")
    ours = commit_file(seeded_repo, "README.md", "ours\n")
    backend.checkout("other")
    theirs = commit_file(seeded_repo, "README.md", "theirs\n")

    result = backend.merge_trees(root, ours, theirs)

    assert not result.clean
    assert result.conflicts == ("README.md",)


def test_merge_trees_clean(seeded_repo, commit_file):
    backend = GitBackend(seeded_repo)
    root = backend.current_head()
    backend.create_branch("other")
    ours = commit_file(seeded_repo, "ours.txt", "ours\n")
    backend.checkout("other")
    theirs = commit_file(seeded_repo, "theirs.txt", "theirs\n")

    result = backend.merge_trees(root, ours, theirs)

    assert result.clean
    assert len(result.tree) == 40


@pytest.mark.parametrize(("version", "passes_base"), [("2.39.5", False), ("2.45.0", True)])
def test_merge_trees_passes_base_only_when_supported(seeded_repo, commit_file, monkeypatch, version, passes_base):
    monkeypatch.setattr(detection, "get_git_version", lambda: version)
    calls: list[list[str]] = []
    original = GitBackend._run

    def recording_run(self, args, **kwargs):
        calls.append(list(args))
        return original(self, args, **kwargs)

    monkeypatch.setattr(GitBackend, "_run", recording_run)
    backend = GitBackend(seeded_repo)
    root = backend.current_head()
    backend.create_branch("other")
    ours = commit_file(seeded_repo, "ours.txt", "ours\n")
    backend.checkout("other")
    theirs = commit_file(seeded_repo, "theirs.txt", "theirs\n")

    result = backend.merge_trees(root, ours, theirs)

    assert result.clean
    merge_tree = next(args for args in calls if args[0] == "merge-tree")
    assert (f"--merge-base={root}" in merge_tree) is passes_base
    assert merge_tree[-2:] == [ours, theirs]


def test_tag_and_diff(seeded_repo, commit_file, git):
    backend = GitBackend(seeded_repo)
    root = backend.current_head()
    head = commit_file(seeded_repo, "notes.txt", "line\n")

    backend.tag(head, "v1.0", "Release 1.0")

    assert git(["cat-file", "-t", "v1.0"], seeded_repo).stdout.strip() == "tag"
    assert backend.resolve("v1.0") == head
    patch = backend.diff(root, head)
    assert "+++ b/notes.txt" in patch


def test_hooks_dir_is_absolute(backend, repo_path):
    hooks = backend.hooks_dir()

    assert hooks.is_absolute()
    assert hooks == (repo_path / ".git" / "hooks").resolve()


def test_rebase_reports_rewritten_commits(seeded_repo, commit_file):
    backend = GitBackend(seeded_repo)
    backend.create_branch("develop")
    backend.create_branch("feature/x")
    backend.checkout("feature/x")
    original = commit_file(seeded_repo, "x.txt", "x\n", "Add x")
    backend.checkout("develop")
    develop_tip = commit_file(seeded_repo, "d.txt", "d\n", "Add d")

    operations = backend.rebase("feature/x", "develop")

    assert len(operations) == 1
    assert operations[0].kind == "pick"
    assert operations[0].original == original
    assert operations[0].rewritten == backend.find_branch("feature/x").commit
    assert backend.merge_base(develop_tip, operations[0].rewritten) == develop_tip


def test_push_and_fetch(seeded_repo, bare_remote, git):
    backend = GitBackend(seeded_repo)
    git(["remote", "add", "origin", str(bare_remote)], seeded_repo)
    backend.create_branch("feature/share")

    backend.push("origin", "feature/share")

    assert git(["rev-parse", "refs/heads/feature/share"], bare_remote).stdout.strip() == backend.current_head()

    events: list[FetchProgress] = []
    backend.fetch("origin", ["refs/heads/feature/share:refs/remotes/origin/feature/share"], events.append)
    assert backend.resolve("refs/remotes/origin/feature/share") == backend.current_head()


def test_push_unknown_branch(seeded_repo):
    with pytest.raises(BranchNotFoundError):
        GitBackend(seeded_repo).push("origin", "feature/nope")


def test_fetch_failure_is_backend_error(seeded_repo):
    with pytest.raises(BackendError):
        GitBackend(seeded_repo).fetch("nowhere", ["master"])
