"""Configuration keys and defaults stored under the ``gitflow`` namespace."""

from __future__ import annotations

CONFIG_NAMESPACE = "gitflow"

MASTER_KEY = f"{CONFIG_NAMESPACE}.branch.master"
DEVELOP_KEY = f"{CONFIG_NAMESPACE}.branch.develop"
VERSION_TAG_PREFIX_KEY = f"{CONFIG_NAMESPACE}.prefix.versiontag"
HOOKS_PATH_KEY = f"{CONFIG_NAMESPACE}.path.hooks"

DEFAULT_MASTER = "master"
DEFAULT_DEVELOP = "develop"
DEFAULT_VERSION_TAG_PREFIX = ""

DEFAULT_REMOTE = "origin"
INITIAL_COMMIT_MESSAGE = "Initial commit"

__all__ = [
    "CONFIG_NAMESPACE",
    "MASTER_KEY",
    "DEVELOP_KEY",
    "VERSION_TAG_PREFIX_KEY",
    "HOOKS_PATH_KEY",
    "DEFAULT_MASTER",
    "DEFAULT_DEVELOP",
    "DEFAULT_VERSION_TAG_PREFIX",
    "DEFAULT_REMOTE",
    "INITIAL_COMMIT_MESSAGE",
]
