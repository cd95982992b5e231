"""Context builder: assembles a fresh ExecutionContext for one trigger run.

Pure data assembly; no I/O and nothing here can fail.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from tagflow.models.context import ExecutionContext, FileRef

if TYPE_CHECKING:
    import httpx

    from tagflow.models.config import EngineConfig
    from tagflow.models.trigger import TriggerType
    from tagflow.protocols import Editor, NoteStore, TaskLike


def task_snapshot(task: TaskLike) -> dict[str, Any]:
    """Copy the task fields actions may reference into a plain dict.

    The tags list is copied so later changes to the task don't leak into
    a running trigger.
    """
    return {
        "text": task.text,
        "path": task.path,
        "line": task.line,
        "status": getattr(task, "status", None),
        "completed": task.completed,
        "tags": list(getattr(task, "tags", None) or []),
    }


def build_context(
    file: FileRef | str,
    *,
    task: TaskLike | None = None,
    line: str | None = None,
    editor: Editor | None = None,
    notes: NoteStore | None = None,
    trigger_type: TriggerType | None = None,
    tag: str | None = None,
    variables: Mapping[str, Any] | None = None,
    config: EngineConfig | None = None,
    http: httpx.AsyncClient | None = None,
) -> ExecutionContext:
    """Create the execution context for one trigger invocation.

    The variable store always holds ``line`` and ``file``; caller-seeded
    ``variables`` override those defaults. When a task is given, ``task``
    is added as a snapshot taken now.

    Args:
        file: File reference (or a path, converted with FileRef.from_path).
        task: Task the trigger fired for.
        line: Current line text (defaults to "").
        editor: Editor handle for line-bound triggers.
        notes: Note store used to edit the task.
        trigger_type: Lifecycle event being handled.
        tag: Tag owning the configuration.
        variables: Caller-seeded variables.
        config: Engine settings exposed to actions.
        http: Shared HTTP client exposed to the fetch action.

    Returns:
        A new ExecutionContext.
    """
    if isinstance(file, str):
        file = FileRef.from_path(file)
    line = line or ""

    store: dict[str, Any] = {
        "line": line,
        "file": file.to_dict(),
    }
    if variables:
        store.update(variables)
    if task is not None:
        store["task"] = task_snapshot(task)

    return ExecutionContext(
        file=file,
        line=line,
        task=task,
        editor=editor,
        notes=notes,
        vars=store,
        trigger_type=trigger_type,
        tag=tag,
        config=config,
        http=http,
    )
