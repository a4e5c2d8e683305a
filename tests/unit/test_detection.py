from __future__ import annotations

import pytest

from gitflow_cli.exceptions import BackendError
from gitflow_cli.vcs import detection
from gitflow_cli.vcs.detection import (
    MERGE_BASE_GIT_VERSION,
    get_backend,
    git_version_supported,
    parse_git_version,
)


@pytest.mark.parametrize(
    ("version", "expected"),
    [
        ("2.40.1", (2, 40)),
        ("2.39.5 (Apple Git-154)", (2, 39)),
        ("", None),
        (None, None),
        ("unknown", None),
    ],
)
def test_parse_git_version(version, expected):
    assert parse_git_version(version) == expected


def test_git_version_supported_default_minimum():
    assert git_version_supported("2.38.0")
    assert git_version_supported("3.0")
    assert not git_version_supported("2.37.9")
    assert not git_version_supported(None)


def test_git_version_supported_with_minimum():
    assert git_version_supported("2.40.0", MERGE_BASE_GIT_VERSION)
    assert not git_version_supported("2.39.5", MERGE_BASE_GIT_VERSION)


def test_old_git_is_rejected(tmp_path, monkeypatch):
    monkeypatch.setattr(detection, "get_git_version", lambda: "2.37.1")

    with pytest.raises(BackendError, match="too old"):
        get_backend(tmp_path, create=True)


def test_git_without_merge_base_option_is_accepted(tmp_path, monkeypatch):
    monkeypatch.setattr(detection, "get_git_version", lambda: "2.39.5")

    backend = get_backend(tmp_path, create=True)

    assert backend.current_head() is None


def test_missing_git_is_rejected(tmp_path, monkeypatch):
    monkeypatch.setattr(detection, "is_git_available", lambda: False)

    with pytest.raises(BackendError, match="not installed"):
        get_backend(tmp_path)
