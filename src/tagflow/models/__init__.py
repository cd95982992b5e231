"""Domain models for Tagflow."""

from tagflow.models.actions import ActionNode
from tagflow.models.config import EngineConfig
from tagflow.models.context import (
    ExecutionContext,
    ExecutionResult,
    FileRef,
    Flow,
    Position,
)
from tagflow.models.notes import ChildLine, TaskUpdate
from tagflow.models.trigger import Trigger, TriggerConfig, TriggerType

__all__ = [
    "ActionNode",
    "ChildLine",
    "EngineConfig",
    "ExecutionContext",
    "ExecutionResult",
    "FileRef",
    "Flow",
    "Position",
    "TaskUpdate",
    "Trigger",
    "TriggerConfig",
    "TriggerType",
]
