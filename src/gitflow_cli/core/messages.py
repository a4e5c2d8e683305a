"""Message providers: where config answers and commit/tag messages come from.

The workflow engine never reads the terminal itself. It asks an injected
``MessageProvider``; the CLI picks ``PromptMessages`` on a terminal and
``DefaultMessages`` in CI or when input is piped.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping, Protocol, runtime_checkable

import typer

logger = logging.getLogger(__name__)


@runtime_checkable
class MessageProvider(Protocol):
    """Supplies user text to the workflow engine."""

    def config_value(self, key: str, prompt: str, default: str) -> str:
        """Answer for config ``key``. An empty string selects ``default``."""
        ...

    def merge_message(self, source: str, target: str) -> str:
        """Commit message for merging ``source`` into ``target``."""
        ...

    def tag_message(self, tag: str, branch: str) -> str:
        """Annotation for ``tag`` created while finishing ``branch``."""
        ...


def default_merge_message(source: str, target: str) -> str:
    return f"Merge branch '{source}' into {target}"


def default_tag_message(tag: str, branch: str) -> str:
    return f"Tag {tag} from {branch}"


class DefaultMessages:
    """Non-interactive provider.

    Config answers come from ``answers`` (keyed by full config key) and fall
    back to the documented default; messages use fixed templates.
    """

    def __init__(self, answers: Mapping[str, str] | None = None):
        self.answers = dict(answers or {})

    def config_value(self, key: str, prompt: str, default: str) -> str:
        return self.answers.get(key, "")

    def merge_message(self, source: str, target: str) -> str:
        return default_merge_message(source, target)

    def tag_message(self, tag: str, branch: str) -> str:
        return default_tag_message(tag, branch)


class PromptMessages:
    """Interactive provider backed by ``typer.prompt``."""

    def config_value(self, key: str, prompt: str, default: str) -> str:
        return typer.prompt(
            f"{prompt} [{default}]",
            default="",
            show_default=False,
        ).strip()

    def merge_message(self, source: str, target: str) -> str:
        return typer.prompt(
            f"Merge message for {source} -> {target}",
            default=default_merge_message(source, target),
        ).strip()

    def tag_message(self, tag: str, branch: str) -> str:
        return typer.prompt(
            f"Tag message for {tag}",
            default=default_tag_message(tag, branch),
        ).strip()


# --------------------------------------------------------------------------- #
# Non-interactive detection
# --------------------------------------------------------------------------- #

_CI_ENV_VARS = [
    "CI",
    "GITHUB_ACTIONS",
    "JENKINS_HOME",
    "GITLAB_CI",
    "CIRCLECI",
    "TRAVIS",
    "BUILDKITE",
]


def is_interactive() -> bool:
    """Detect if running in an interactive terminal.

    Returns:
        True if stdin is a TTY and no CI environment variable is set.
    """
    if not sys.stdin.isatty():
        return False

    for var in _CI_ENV_VARS:
        if os.getenv(var):
            return False

    return True


def select_message_provider(interactive: bool | None = None) -> MessageProvider:
    """Pick ``PromptMessages`` for terminals and ``DefaultMessages`` otherwise."""
    if interactive is None:
        interactive = is_interactive()
    if interactive:
        return PromptMessages()
    logger.info("Non-interactive mode detected; using default answers")
    return DefaultMessages()


__all__ = [
    "MessageProvider",
    "DefaultMessages",
    "PromptMessages",
    "default_merge_message",
    "default_tag_message",
    "is_interactive",
    "select_message_provider",
]
