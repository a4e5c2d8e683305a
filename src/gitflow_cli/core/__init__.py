"""Workflow vocabulary: branch kinds, configuration, commands and messages."""

from .branches import BranchKind, base_branch, prefix_key
from .commands import FinishCommand, InitCommand, StartCommand, WorkflowCommand
from .config import CONFIG_OPTIONS, ConfigOption, WorkflowConfig, qualify_key
from .messages import (
    DefaultMessages,
    MessageProvider,
    PromptMessages,
    is_interactive,
    select_message_provider,
)

__all__ = [
    "BranchKind",
    "base_branch",
    "prefix_key",
    "InitCommand",
    "StartCommand",
    "FinishCommand",
    "WorkflowCommand",
    "CONFIG_OPTIONS",
    "ConfigOption",
    "WorkflowConfig",
    "qualify_key",
    "MessageProvider",
    "DefaultMessages",
    "PromptMessages",
    "is_interactive",
    "select_message_provider",
]
