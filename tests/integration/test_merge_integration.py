"""MergeCoordinator end to end on real repositories."""

from __future__ import annotations

from gitflow_cli.merge.coordinator import MergeCoordinator, MergeStatus
from gitflow_cli.vcs.git import GitBackend


def _parents(git, repo, commit):
    return git(["rev-list", "--parents", "-n", "1", commit], repo).stdout.split()[1:]


def test_fast_forward_creates_no_commit(seeded_repo, commit_file):
    backend = GitBackend(seeded_repo)
    backend.create_branch("develop")
    backend.checkout("develop")
    tip = commit_file(seeded_repo, "a.txt", "a\n")
    backend.checkout("master")
    before = backend.count_commits()

    outcome = MergeCoordinator(backend).merge("master", tip, source_label="develop")

    assert outcome.status is MergeStatus.FAST_FORWARDED
    assert backend.count_commits() == before
    assert backend.find_branch("master").commit == tip
    assert backend.current_branch() == "master"
    assert (seeded_repo / "a.txt").exists()


def test_merge_into_missing_branch_creates_it(seeded_repo):
    backend = GitBackend(seeded_repo)
    head = backend.current_head()

    outcome = MergeCoordinator(backend).merge("production", head)

    assert outcome.status is MergeStatus.FAST_FORWARDED
    assert backend.find_branch("production").commit == head


def test_three_way_merge_parent_order(seeded_repo, commit_file, git):
    backend = GitBackend(seeded_repo)
    backend.create_branch("feature/x")
    backend.checkout("feature/x")
    source = commit_file(seeded_repo, "x.txt", "x\n")
    backend.checkout("master")
    target_tip = commit_file(seeded_repo, "m.txt", "m\n")

    outcome = MergeCoordinator(backend).merge("master", source, "Merge feature/x", source_label="feature/x")

    assert outcome.status is MergeStatus.MERGED
    assert _parents(git, seeded_repo, outcome.commit) == [target_tip, source]
    assert backend.current_head() == outcome.commit
    assert (seeded_repo / "x.txt").exists()
    assert git(["status", "--porcelain"], seeded_repo).stdout.strip() == ""


def test_conflict_leaves_merge_in_progress(seeded_repo, commit_file, git):
    backend = GitBackend(seeded_repo)
    backend.create_branch("feature/x")
    backend.checkout("feature/x")
    source = commit_file(seeded_repo, "README.md", "feature\n")
    backend.checkout("master")
    target_tip = commit_file(seeded_repo, "README.md", "master\n")
    before = backend.count_commits()

    outcome = MergeCoordinator(backend).merge("master", source, "Merge feature/x")

    assert outcome.status is MergeStatus.CONFLICT
    assert outcome.conflicts == ("README.md",)
    assert backend.count_commits() == before
    assert backend.current_head() == target_tip
    assert (seeded_repo / ".git" / "MERGE_HEAD").exists()
    assert backend.conflicted_paths() == ["README.md"]
    assert "<<<<<<<" in (seeded_repo / "README.md").read_text(encoding="utf-8")


def test_already_merged_is_no_op(seeded_repo):
    backend = GitBackend(seeded_repo)
    backend.create_branch("develop")

    outcome = MergeCoordinator(backend).merge("develop", backend.current_head())

    assert outcome.status is MergeStatus.NO_OP
