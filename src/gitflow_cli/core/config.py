"""Typed view over the ``gitflow.*`` keys in the repository configuration.

Every read goes to the backend, so edits made with ``git config`` between
two calls are always observed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from gitflow_cli.exceptions import ConfigMissingError

from .branches import BranchKind, prefix_key
from .constants import (
    CONFIG_NAMESPACE,
    DEFAULT_DEVELOP,
    DEFAULT_MASTER,
    DEFAULT_VERSION_TAG_PREFIX,
    DEVELOP_KEY,
    HOOKS_PATH_KEY,
    MASTER_KEY,
    VERSION_TAG_PREFIX_KEY,
)

if TYPE_CHECKING:
    from gitflow_cli.vcs.protocol import RepositoryBackend

    from .messages import MessageProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigOption:
    """One key populated by ``init``.

    ``default`` is None for options whose default depends on the repository
    (the hooks directory).
    """

    key: str
    prompt: str
    default: str | None


CONFIG_OPTIONS: tuple[ConfigOption, ...] = (
    ConfigOption(MASTER_KEY, "Branch name for production releases", DEFAULT_MASTER),
    ConfigOption(DEVELOP_KEY, 'Branch name for "next release" development', DEFAULT_DEVELOP),
    ConfigOption(prefix_key(BranchKind.FEATURE), "Feature branches?", BranchKind.FEATURE.default_prefix),
    ConfigOption(prefix_key(BranchKind.BUGFIX), "Bugfix branches?", BranchKind.BUGFIX.default_prefix),
    ConfigOption(prefix_key(BranchKind.RELEASE), "Release branches?", BranchKind.RELEASE.default_prefix),
    ConfigOption(prefix_key(BranchKind.HOTFIX), "Hotfix branches?", BranchKind.HOTFIX.default_prefix),
    ConfigOption(prefix_key(BranchKind.SUPPORT), "Support branches?", BranchKind.SUPPORT.default_prefix),
    ConfigOption(VERSION_TAG_PREFIX_KEY, "Version tag prefix?", DEFAULT_VERSION_TAG_PREFIX),
    ConfigOption(HOOKS_PATH_KEY, "Hooks and filters directory?", None),
)


def qualify_key(key: str) -> str:
    """Prefix ``key`` with the namespace unless it already carries it."""
    if key.startswith(f"{CONFIG_NAMESPACE}."):
        return key
    return f"{CONFIG_NAMESPACE}.{key}"


class WorkflowConfig:
    """Read/write access to the workflow configuration of one repository."""

    def __init__(self, backend: "RepositoryBackend"):
        self._backend = backend

    def _require(self, key: str) -> str:
        value = self._backend.config_get(key)
        if value is None:
            raise ConfigMissingError(key)
        return value

    def get(self, kind: BranchKind) -> str:
        """Branch prefix for ``kind``.

        Raises:
            ConfigMissingError: If the prefix was never configured.
        """
        return self._require(prefix_key(kind))

    def get_master(self) -> str:
        return self._require(MASTER_KEY)

    def get_develop(self) -> str:
        return self._require(DEVELOP_KEY)

    def get_version_tag_prefix(self) -> str:
        return self._backend.config_get(VERSION_TAG_PREFIX_KEY) or ""

    def get_hooks_path(self) -> Path | None:
        value = self._backend.config_get(HOOKS_PATH_KEY)
        return Path(value) if value else None

    def set(self, key: str, value: str) -> None:
        self._backend.config_set(qualify_key(key), value)

    def branch_name(self, kind: BranchKind, suffix: str) -> str:
        """Full branch name: prefix followed by ``suffix``."""
        return f"{self.get(kind)}{suffix}"

    def is_initialized(self) -> bool:
        return (
            self._backend.config_get(MASTER_KEY) is not None
            and self._backend.config_get(DEVELOP_KEY) is not None
        )

    def initialize(self, messages: "MessageProvider") -> dict[str, str]:
        """Populate every option through prompt-or-default.

        An empty answer stores the documented default; anything else is
        stored verbatim.

        Returns:
            Mapping of config key to the value that was stored.
        """
        stored: dict[str, str] = {}
        for option in CONFIG_OPTIONS:
            default = option.default
            if default is None:
                default = str(self._backend.hooks_dir())
            answer = messages.config_value(option.key, option.prompt, default)
            value = answer if answer else default
            self._backend.config_set(option.key, value)
            stored[option.key] = value
            logger.debug("config %s = %r", option.key, value)
        return stored

    def snapshot(self) -> dict[str, str | None]:
        """Current value of every option, None where unset."""
        return {option.key: self._backend.config_get(option.key) for option in CONFIG_OPTIONS}


__all__ = ["ConfigOption", "CONFIG_OPTIONS", "WorkflowConfig", "qualify_key"]
