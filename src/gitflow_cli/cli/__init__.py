"""Command-line layer: Typer commands plus Rich output helpers."""

from .helpers import CliState, configure_logging, get_state, open_engine, workflow_errors
from .ui import StepTracker, console, err_console

__all__ = [
    "CliState",
    "configure_logging",
    "get_state",
    "open_engine",
    "workflow_errors",
    "StepTracker",
    "console",
    "err_console",
]
