"""Pluggable push credentials.

A provider turns the caller's choice of authentication into environment
variables for the ``git`` child process. Secrets travel through the
environment (``GIT_CONFIG_*`` / ``GIT_SSH_COMMAND``), never through argv.
"""

from __future__ import annotations

import base64
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

TOKEN_ENV_VARS: tuple[str, ...] = ("GITFLOW_TOKEN", "GH_TOKEN", "GITHUB_TOKEN")


@runtime_checkable
class CredentialProvider(Protocol):
    """Supplies authentication for a push."""

    def git_environment(self) -> dict[str, str]:
        """Extra environment for the git process."""
        ...

    def describe(self) -> str:
        """Human-readable label (never includes the secret)."""
        ...


@dataclass(frozen=True)
class SSHKeyCredentials:
    """Authenticate with a specific private key."""

    key_path: Path

    def git_environment(self) -> dict[str, str]:
        command = f"ssh -i {shlex.quote(str(self.key_path))} -o IdentitiesOnly=yes"
        return {"GIT_SSH_COMMAND": command}

    def describe(self) -> str:
        return f"ssh key {self.key_path}"


@dataclass(frozen=True)
class TokenCredentials:
    """Authenticate HTTPS remotes with a bearer-style access token."""

    token: str
    username: str = "x-access-token"

    def __repr__(self) -> str:
        return f"TokenCredentials(username={self.username!r}, token='***')"

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "TokenCredentials | None":
        """Build from the first non-empty token variable, or None."""
        source = os.environ if env is None else env
        for name in TOKEN_ENV_VARS:
            token = (source.get(name) or "").strip()
            if token:
                return cls(token=token)
        return None

    def git_environment(self) -> dict[str, str]:
        basic = base64.b64encode(f"{self.username}:{self.token}".encode("utf-8")).decode("ascii")
        return {
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": "http.extraHeader",
            "GIT_CONFIG_VALUE_0": f"Authorization: Basic {basic}",
            "GIT_TERMINAL_PROMPT": "0",
        }

    def describe(self) -> str:
        return f"token for {self.username}"


@dataclass(frozen=True)
class InteractiveCredentials:
    """Let git and its credential helpers prompt as usual."""

    def git_environment(self) -> dict[str, str]:
        return {"GIT_TERMINAL_PROMPT": "1"}

    def describe(self) -> str:
        return "interactive"


def select_credentials(
    ssh_key: Path | None = None,
    token: str | None = None,
    use_env_token: bool = True,
) -> CredentialProvider:
    """Choose a provider from CLI inputs.

    Precedence: explicit SSH key, explicit token, token from the environment,
    then interactive.
    """
    if ssh_key is not None:
        return SSHKeyCredentials(key_path=ssh_key)
    if token:
        return TokenCredentials(token=token.strip())
    if use_env_token:
        from_env = TokenCredentials.from_env()
        if from_env is not None:
            return from_env
    return InteractiveCredentials()


__all__ = [
    "CredentialProvider",
    "SSHKeyCredentials",
    "TokenCredentials",
    "InteractiveCredentials",
    "select_credentials",
    "TOKEN_ENV_VARS",
]
