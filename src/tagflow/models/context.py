"""Execution context and result models.

ExecutionContext is the single mutable record threaded through one trigger
run. It is created fresh per invocation by build_context() and never
shared between runs.
"""

from __future__ import annotations

import enum
import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

    from tagflow.models.config import EngineConfig
    from tagflow.models.trigger import TriggerType
    from tagflow.protocols import Editor, NoteStore, TaskLike


@dataclass(frozen=True)
class FileRef:
    """Reference to the note file a trigger runs against."""

    path: str
    name: str
    basename: str
    extension: str

    @classmethod
    def from_path(cls, path: str) -> FileRef:
        """Derive name, basename and extension from a vault-relative path.

        Example::

            FileRef.from_path("daily/2024-05-01.md")
            # FileRef(path="daily/2024-05-01.md", name="2024-05-01.md",
            #         basename="2024-05-01", extension="md")
        """
        name = posixpath.basename(path.replace("\\", "/"))
        basename, dot, extension = name.rpartition(".")
        if not dot or not basename:
            basename, extension = name, ""
        return cls(path=path, name=name, basename=basename, extension=extension)

    def to_dict(self) -> dict[str, str]:
        return {
            "path": self.path,
            "name": self.name,
            "basename": self.basename,
            "extension": self.extension,
        }


@dataclass(frozen=True)
class Position:
    """Editor cursor position (0-based line and character)."""

    line: int
    ch: int


class Flow(str, enum.Enum):
    """What the sequence runner does after one step."""

    CONTINUE = "continue"
    RETURN = "return"  # should-return flag set by an action
    HALT = "halt"  # error slot set


@dataclass
class ExecutionContext:
    """Mutable per-run state passed through every action.

    Attributes:
        file: The note file the trigger runs against.
        line: Current line text.
        task: Task the trigger fired for (None for editor-only triggers).
        editor: Editor handle, when the run was started from the editor.
        notes: Note store used to edit task lines.
        vars: Variable store read and written by actions.
        error: Pending error from the most recent failed action.
        return_value: Value set by an explicit return.
        should_return: Cooperative early-exit flag.
        trigger_type: Lifecycle event being handled.
        tag: Tag that owns the configuration.
        response: Body of the last fetch response.
        cursor: Cursor position requested by the last editor edit.
        config: Engine settings visible to actions.
        http: Shared HTTP client for the fetch action.
    """

    file: FileRef
    line: str = ""
    task: TaskLike | None = None
    editor: Editor | None = None
    notes: NoteStore | None = None
    vars: dict[str, Any] = field(default_factory=dict)
    error: Exception | None = None
    return_value: Any = None
    should_return: bool = False
    trigger_type: TriggerType | None = None
    tag: str | None = None
    response: Any = None
    cursor: Position | None = None
    config: EngineConfig | None = None
    http: httpx.AsyncClient | None = field(default=None, repr=False)

    def stop(self, value: Any = None) -> None:
        """Request that the enclosing sequence stop after the current action."""
        self.should_return = True
        if value is not None:
            self.return_value = value

    @property
    def flow(self) -> Flow:
        """The control-flow signal the current state implies."""
        if self.error is not None:
            return Flow.HALT
        if self.should_return:
            return Flow.RETURN
        return Flow.CONTINUE


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one trigger run.

    Immutable: produced once per dispatcher call.
    """

    success: bool
    context: ExecutionContext
    value: Any = None
    error: Exception | None = None
