"""CLI command modules for git-flow."""

from .branch import build_branch_app
from .config_cmd import config
from .init import init
from .pull import pull

__all__ = ["build_branch_app", "config", "init", "pull"]
