"""MergeCoordinator decisions against a mocked backend."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from gitflow_cli.merge.coordinator import MergeCoordinator, MergeStatus
from gitflow_cli.vcs.types import Branch, MergeAnalysis, MergeTreeResult

TIP = "a" * 40
SOURCE = "b" * 40
BASE = "c" * 40


@pytest.fixture()
def backend() -> MagicMock:
    mock = MagicMock()
    mock.find_branch.return_value = Branch(name="develop", commit=TIP)
    mock.current_branch.return_value = "develop"
    mock.merge_base.return_value = BASE
    mock.merge_trees.return_value = MergeTreeResult(tree="d" * 40)
    mock.commit.return_value = "e" * 40
    return mock


def test_fast_forward_moves_ref_without_commit(backend):
    backend.merge_analysis.return_value = MergeAnalysis.FAST_FORWARD

    outcome = MergeCoordinator(backend).merge("develop", SOURCE, source_label="feature/x")

    assert outcome.status is MergeStatus.FAST_FORWARDED
    assert outcome.commit == SOURCE
    assert outcome.source == "feature/x"
    backend.update_ref.assert_called_once_with("develop", SOURCE, f"fast-forward develop to {SOURCE}")
    backend.checkout.assert_called_once_with("develop")
    backend.commit.assert_not_called()


def test_unborn_target_is_created_at_source(backend):
    backend.merge_analysis.return_value = MergeAnalysis.UNBORN
    backend.find_branch.return_value = None

    outcome = MergeCoordinator(backend).merge("master", SOURCE)

    assert outcome.status is MergeStatus.FAST_FORWARDED
    backend.update_ref.assert_called_once_with("master", SOURCE, f"Setting master to {SOURCE}")
    backend.commit.assert_not_called()


def test_up_to_date_is_a_no_op(backend):
    backend.merge_analysis.return_value = MergeAnalysis.UP_TO_DATE

    outcome = MergeCoordinator(backend).merge("develop", SOURCE)

    assert outcome.status is MergeStatus.NO_OP
    backend.update_ref.assert_not_called()
    backend.commit.assert_not_called()


def test_three_way_merge_commits_with_target_first(backend):
    backend.merge_analysis.return_value = MergeAnalysis.NORMAL

    outcome = MergeCoordinator(backend).merge("develop", SOURCE, "Merge it", source_label="feature/x")

    assert outcome.status is MergeStatus.MERGED
    assert outcome.commit == "e" * 40
    backend.merge_trees.assert_called_once_with(BASE, TIP, SOURCE)
    backend.commit.assert_called_once_with([TIP, SOURCE], "d" * 40, "Merge it")
    backend.update_ref.assert_called_once_with("develop", "e" * 40, "merge feature/x: Merge it")
    backend.checkout.assert_not_called()


def test_three_way_merge_checks_out_target_first(backend):
    backend.merge_analysis.return_value = MergeAnalysis.NORMAL
    backend.current_branch.return_value = "feature/x"

    MergeCoordinator(backend).merge("develop", SOURCE)

    backend.checkout.assert_called_once_with("develop")


def test_default_message_names_source(backend):
    backend.merge_analysis.return_value = MergeAnalysis.NORMAL

    MergeCoordinator(backend).merge("develop", SOURCE, source_label="feature/x")

    assert backend.commit.call_args.args[2] == "Merge branch 'feature/x' into develop"


def test_conflict_creates_no_commit(backend):
    backend.merge_analysis.return_value = MergeAnalysis.NORMAL
    backend.merge_trees.return_value = MergeTreeResult(tree="d" * 40, conflicts=("app.py",))

    outcome = MergeCoordinator(backend).merge("develop", SOURCE, "Merge it")

    assert outcome.conflicted
    assert outcome.conflicts == ("app.py",)
    backend.checkout_conflicts.assert_called_once_with(SOURCE, "Merge it")
    backend.commit.assert_not_called()
    backend.update_ref.assert_not_called()


def test_unrelated_histories_are_left_alone(backend):
    backend.merge_analysis.return_value = MergeAnalysis.NORMAL
    backend.merge_base.return_value = None

    outcome = MergeCoordinator(backend).merge("develop", SOURCE)

    assert outcome.status is MergeStatus.NO_OP
    backend.merge_trees.assert_not_called()
    backend.commit.assert_not_called()
