"""Tagflow: tag-bound automations for bulleted notes.

Tags in an outline bind to trigger configurations; when a task or line
hits a lifecycle event (checked, reset, committed, data received), the
engine runs the trigger's action sequence with isolated per-run state and
reports failures back into the document.
"""

from tagflow._version import __version__

# Engine entry point
from tagflow.engine import (
    ActionExecutor,
    DefaultErrorReporter,
    SequenceRunner,
    TriggerDispatcher,
    TriggerEngine,
    build_context,
)

# Configuration and runtime models
from tagflow.models import (
    ActionNode,
    ChildLine,
    EngineConfig,
    ExecutionContext,
    ExecutionResult,
    FileRef,
    Flow,
    Position,
    TaskUpdate,
    Trigger,
    TriggerConfig,
    TriggerType,
)

# Actions
from tagflow.actions import ActionRegistry, default_registry, interpolate

# Collaborator protocols
from tagflow.protocols import ActionHandler, Editor, NoteStore, Recurse, TaskLike

from tagflow.buffer import LineBuffer

# Exceptions
from tagflow.exceptions import (
    ActionError,
    ConfigError,
    FetchError,
    InvalidVariableNameError,
    PatternMatchError,
    TagflowError,
    TriggerNotFoundError,
    UnknownActionTypeError,
)

__all__ = [
    "__version__",
    "ActionError",
    "ActionExecutor",
    "ActionHandler",
    "ActionNode",
    "ActionRegistry",
    "ChildLine",
    "ConfigError",
    "DefaultErrorReporter",
    "Editor",
    "EngineConfig",
    "ExecutionContext",
    "ExecutionResult",
    "FetchError",
    "FileRef",
    "Flow",
    "InvalidVariableNameError",
    "LineBuffer",
    "NoteStore",
    "PatternMatchError",
    "Position",
    "Recurse",
    "SequenceRunner",
    "TagflowError",
    "TaskLike",
    "TaskUpdate",
    "Trigger",
    "TriggerConfig",
    "TriggerDispatcher",
    "TriggerEngine",
    "TriggerNotFoundError",
    "TriggerType",
    "UnknownActionTypeError",
    "build_context",
    "default_registry",
    "interpolate",
]
