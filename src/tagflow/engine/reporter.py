"""Default error reporter.

Fallback path for an action failure that has no recovery actions of its
own. Makes the failure visible in the document: as a new first child of
the task (task-bound triggers) or as a bullet inserted beneath the editor
cursor (editor-bound triggers such as onEnter).

The reporter never raises.
"""

from __future__ import annotations

import logging
import re
import traceback
from datetime import datetime
from typing import TYPE_CHECKING

from tagflow.models.config import EngineConfig
from tagflow.models.context import Position
from tagflow.models.notes import ChildLine, TaskUpdate

if TYPE_CHECKING:
    from tagflow.models.actions import ActionNode
    from tagflow.models.context import ExecutionContext
    from tagflow.protocols import Editor, ErrorVariable

logger = logging.getLogger(__name__)

_LEADING_WS = re.compile(r"^(\s*)")


def error_variable(error: BaseException) -> ErrorVariable:
    """Structured form of an error for the ``error`` variable."""
    return {
        "message": str(error),
        "name": type(error).__name__,
        "stack": "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ),
    }


def stamp_error(context: ExecutionContext, error: Exception) -> None:
    """Set the context's error slot and ``error`` variable."""
    context.error = error
    context.vars["error"] = error_variable(error)


def leading_whitespace(text: str) -> str:
    match = _LEADING_WS.match(text)
    return match.group(1) if match else ""


def end_of_children(editor: Editor, line_no: int) -> int:
    """Return the last non-blank line belonging to the bullet at line_no.

    Scans forward over blank lines and lines indented deeper than the base
    line; stops at the first non-blank line at the same or shallower
    indentation. Trailing blank lines are not counted as children.
    """
    base = len(leading_whitespace(editor.get_line(line_no)))
    last = line_no
    for i in range(line_no + 1, editor.line_count()):
        text = editor.get_line(i)
        if not text.strip():
            continue
        if len(leading_whitespace(text)) <= base:
            break
        last = i
    return last


def insert_child_line(editor: Editor, content: str, *, bullet: str, indent_unit: str, levels: int = 1) -> Position:
    """Insert a bullet beneath the cursor line's existing children.

    Returns the position at the end of the inserted line.
    """
    cursor = editor.get_cursor()
    base_indent = leading_whitespace(editor.get_line(cursor.line))
    new_line = f"{base_indent}{indent_unit * levels}{bullet} {content}"

    insert_after = end_of_children(editor, cursor.line)
    anchor = Position(line=insert_after, ch=len(editor.get_line(insert_after)))
    editor.replace_range("\n" + new_line, anchor)
    return Position(line=insert_after + 1, ch=len(new_line))


class DefaultErrorReporter:
    """Writes unhandled action failures into the document.

    Usage::

        reporter = DefaultErrorReporter(EngineConfig())
        await reporter.report(exc, context, node)
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or EngineConfig()

    async def report(self, error: Exception, context: ExecutionContext, node: ActionNode) -> None:
        """Log the failure, stamp it on the context and surface it in the document."""
        logger.error(
            "Action '%s' failed: %s",
            node.type,
            error,
            extra={
                "action": node.type,
                "file": context.file.path if context.file else None,
                "tag": context.tag,
                "line": context.line,
            },
        )
        stamp_error(context, error)

        if context.task is not None and context.notes is not None:
            await self._report_to_task(error, context, node)
        elif context.task is None and context.editor is not None:
            self._report_to_editor(error, context)

    async def _report_to_task(self, error: Exception, context: ExecutionContext, node: ActionNode) -> None:
        timestamp = datetime.now().strftime(self._config.timestamp_format)
        update = TaskUpdate(
            prepend_children=(
                ChildLine(
                    indent=0,
                    text=f"✗ {node.type}: {error} ({timestamp})",
                    bullet=self._config.task_error_bullet,
                ),
            )
        )
        try:
            await context.notes.update_task(context.task, update)
        except Exception:
            logger.exception("Failed to add error line to task %r", context.task.text)

    def _report_to_editor(self, error: Exception, context: ExecutionContext) -> None:
        editor = context.editor
        try:
            end = insert_child_line(
                editor,
                f"Error: {error}",
                bullet=self._config.editor_error_bullet,
                indent_unit=self._config.indent_unit,
            )
            editor.set_cursor(end)
            context.cursor = end
        except Exception:
            logger.exception("Failed to insert error line in editor")
