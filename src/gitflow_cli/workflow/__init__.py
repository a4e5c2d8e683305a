"""Workflow engine package."""

from .engine import ENGINE_STATES, FinishResult, InitResult, WorkflowEngine

__all__ = ["WorkflowEngine", "InitResult", "FinishResult", "ENGINE_STATES"]
