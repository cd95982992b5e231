"""Trigger execution engine.

Builds a context per run, executes the trigger's actions in order through
the action registry, and reports failures back into the document.
"""

from tagflow.engine.context import build_context, task_snapshot
from tagflow.engine.dispatcher import TriggerDispatcher
from tagflow.engine.executor import ActionExecutor, normalize_binding, validate_bindings
from tagflow.engine.facade import TriggerEngine
from tagflow.engine.reporter import DefaultErrorReporter, error_variable
from tagflow.engine.sequence import SequenceRunner

__all__ = [
    "ActionExecutor",
    "DefaultErrorReporter",
    "SequenceRunner",
    "TriggerDispatcher",
    "TriggerEngine",
    "build_context",
    "error_variable",
    "normalize_binding",
    "task_snapshot",
    "validate_bindings",
]
