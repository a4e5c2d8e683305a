"""Unit tests for push credential providers."""

from __future__ import annotations

import base64
from pathlib import Path

from gitflow_cli.vcs.credentials import (
    CredentialProvider,
    InteractiveCredentials,
    SSHKeyCredentials,
    TokenCredentials,
    select_credentials,
)


def test_ssh_key_sets_ssh_command():
    creds = SSHKeyCredentials(key_path=Path("/keys/id ed25519"))
    env = creds.git_environment()

    assert env["GIT_SSH_COMMAND"] == "ssh -i '/keys/id ed25519' -o IdentitiesOnly=yes"
    assert "id ed25519" in creds.describe()


def test_token_goes_through_environment_header():
    creds = TokenCredentials(token="s3cret")
    env = creds.git_environment()

    assert env["GIT_CONFIG_COUNT"] == "1"
    assert env["GIT_CONFIG_KEY_0"] == "http.extraHeader"
    header = env["GIT_CONFIG_VALUE_0"]
    assert header.startswith("Authorization: Basic ")
    decoded = base64.b64decode(header.split()[-1]).decode("utf-8")
    assert decoded == "x-access-token:s3cret"
    assert env["GIT_TERMINAL_PROMPT"] == "0"


def test_token_never_printed():
    creds = TokenCredentials(token="s3cret")

    assert "s3cret" not in repr(creds)
    assert "s3cret" not in creds.describe()


def test_token_from_env_precedence():
    env = {"GITHUB_TOKEN": "gh-actions", "GH_TOKEN": "  ", "GITFLOW_TOKEN": "flow"}
    assert TokenCredentials.from_env(env).token == "flow"

    env.pop("GITFLOW_TOKEN")
    assert TokenCredentials.from_env(env).token == "gh-actions"

    assert TokenCredentials.from_env({}) is None


def test_select_credentials_precedence(monkeypatch):
    monkeypatch.setenv("GH_TOKEN", "from-env")

    assert isinstance(select_credentials(ssh_key=Path("/k"), token="t"), SSHKeyCredentials)
    assert select_credentials(token=" explicit ").token == "explicit"
    assert select_credentials().token == "from-env"
    assert isinstance(select_credentials(use_env_token=False), InteractiveCredentials)


def test_interactive_allows_prompting():
    creds = InteractiveCredentials()

    assert creds.git_environment() == {"GIT_TERMINAL_PROMPT": "1"}
    assert isinstance(creds, CredentialProvider)
