"""Protocol definitions for Tagflow.

Defines the collaborator interfaces the engine calls out to (tasks, the
note store, the editor) and the action handler calling contract. Pure
domain protocols: no I/O here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tagflow.models.actions import ActionNode
    from tagflow.models.context import ExecutionContext, Position
    from tagflow.models.notes import TaskUpdate


@runtime_checkable
class TaskLike(Protocol):
    """A task snapshot as produced by the outline indexer."""

    text: str
    path: str
    line: int
    status: str
    completed: bool
    tags: list[str]


@runtime_checkable
class NoteStore(Protocol):
    """Protocol for the note store that owns task text.

    Task lines are edited by handing it a TaskUpdate; the read action also
    asks it for file text and task children.
    """

    async def update_task(self, task: TaskLike, update: TaskUpdate) -> None:
        """Apply an update to the task's line and children."""
        ...

    async def read_text(self, path: str) -> str:
        """Full text of the note at path."""
        ...

    async def task_children(self, task: TaskLike) -> list[str]:
        """Text of the task's child bullets, without indentation or bullet."""
        ...


@runtime_checkable
class Editor(Protocol):
    """Protocol for the editor a line-bound trigger was fired from."""

    def get_cursor(self) -> Position:
        ...

    def get_line(self, n: int) -> str:
        ...

    def line_count(self) -> int:
        ...

    def replace_range(self, text: str, start: Position, end: Optional[Position] = None) -> None:
        """Replace the text between two positions (insert when end is None)."""
        ...

    def set_cursor(self, pos: Position) -> None:
        ...

    def get_selection(self) -> str:
        """Selected text (empty when nothing is selected)."""
        ...


# Runs one action through the executor (validation + error path included)
Recurse = Callable[["ActionNode", "ExecutionContext"], Awaitable["ExecutionContext"]]

# handler(node, context, recurse) -> context; raises on failure
ActionHandler = Callable[["ActionNode", "ExecutionContext", Recurse], Awaitable["ExecutionContext"]]

# Structured error variable: {"message", "name", "stack"}
ErrorVariable = dict[str, Any]
