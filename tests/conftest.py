from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterator

import pytest

from gitflow_cli.core.messages import DefaultMessages
from gitflow_cli.vcs.git import GitBackend
from gitflow_cli.workflow.engine import WorkflowEngine


def run(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    """Run a git command for test setup, failing loudly."""
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise AssertionError(f"git {' '.join(args)} failed: {result.stderr}")
    return result


@pytest.fixture(autouse=True)
def _git_identity(tmp_path_factory, monkeypatch):
    """Isolate git from the user's global config and give it an identity."""
    home = tmp_path_factory.mktemp("home")
    global_config = home / ".gitconfig"
    global_config.write_text(
        "[init]\n\tdefaultBranch = master\n[commit]\n\tgpgsign = false\n[tag]\n\tgpgsign = false\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Git Flow")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "flow@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Git Flow")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "flow@example.com")
    for var in ("GITFLOW_TOKEN", "GH_TOKEN", "GITHUB_TOKEN", "GITFLOW_REPO"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def repo_path(tmp_path: Path) -> Iterator[Path]:
    """Empty repository with an unborn ``master``."""
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    run(["init", "--quiet"], cwd=repo_dir)
    yield repo_dir


@pytest.fixture()
def commit_file() -> Callable[..., str]:
    """Write ``name`` in ``repo`` and commit it on the current branch."""

    def _commit(repo: Path, name: str, content: str, message: str | None = None) -> str:
        path = repo / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        run(["add", name], cwd=repo)
        run(["commit", "--quiet", "-m", message or f"Update {name}"], cwd=repo)
        return run(["rev-parse", "HEAD"], cwd=repo).stdout.strip()

    return _commit


@pytest.fixture()
def seeded_repo(repo_path: Path, commit_file) -> Path:
    """Repository with one commit on ``master``."""
    commit_file(repo_path, "README.md", "hello\n", "Initial commit")
    return repo_path


@pytest.fixture()
def backend(repo_path: Path) -> GitBackend:
    return GitBackend(repo_path)


@pytest.fixture()
def engine(seeded_repo: Path) -> WorkflowEngine:
    """Engine over a seeded repository that has been through ``init``."""
    flow = WorkflowEngine(GitBackend(seeded_repo), messages=DefaultMessages())
    flow.init()
    return flow


@pytest.fixture()
def bare_remote(tmp_path: Path) -> Path:
    remote = tmp_path / "remote.git"
    run(["init", "--quiet", "--bare", str(remote)], cwd=tmp_path)
    return remote


@pytest.fixture()
def git() -> Callable[[list[str], Path], subprocess.CompletedProcess[str]]:
    return run
