"""Tests for DefaultErrorReporter.

Covers:
- Task-bound failures prepend one child bullet via the note store
- Editor-bound failures insert one line after the cursor line's children
- Cursor moves to the end of the inserted line
- Error slot and error variable are stamped in every case
- Side-effect failures are logged, never raised
"""

from __future__ import annotations

import logging

import pytest

from tagflow.buffer import LineBuffer
from tagflow.engine.context import build_context
from tagflow.engine.reporter import DefaultErrorReporter, end_of_children, error_variable
from tagflow.models.config import EngineConfig
from tagflow.models.context import Position
from tagflow.models.notes import TaskUpdate

from tests.conftest import RecordingNoteStore, node

OUTLINE = "\n".join(
    [
        "- parent #tag",
        "  - child a",
        "    - grandchild",
        "  - child b",
        "",
        "- next",
    ]
)


class TestTaskReporting:
    @pytest.mark.asyncio
    async def test_prepends_one_child(self, file_ref, task, notes):
        ctx = build_context(file_ref, task=task, notes=notes, tag="#podcast")
        await DefaultErrorReporter().report(RuntimeError("HTTP 500"), ctx, node("fetch"))

        assert len(notes.updates) == 1
        updated_task, update = notes.updates[0]
        assert updated_task is task
        assert isinstance(update, TaskUpdate)
        assert update.append_children == ()
        (child,) = update.prepend_children
        assert child.indent == 0
        assert child.bullet == "*"
        assert child.text.startswith("✗ fetch: HTTP 500 (")

    @pytest.mark.asyncio
    async def test_timestamp_format_configurable(self, file_ref, task, notes):
        reporter = DefaultErrorReporter(EngineConfig(timestamp_format="at-%Y", task_error_bullet="+"))
        ctx = build_context(file_ref, task=task, notes=notes)
        await reporter.report(ValueError("bad"), ctx, node("read"))
        child = notes.updates[0][1].prepend_children[0]
        assert child.bullet == "+"
        assert "(at-" in child.text

    @pytest.mark.asyncio
    async def test_note_store_failure_is_logged(self, file_ref, task, caplog):
        ctx = build_context(file_ref, task=task, notes=RecordingNoteStore(fail=True))
        with caplog.at_level(logging.ERROR, logger="tagflow.engine.reporter"):
            await DefaultErrorReporter().report(RuntimeError("boom"), ctx, node("fetch"))
        assert "Failed to add error line" in caplog.text
        assert isinstance(ctx.error, RuntimeError)

    @pytest.mark.asyncio
    async def test_task_with_editor_does_not_touch_editor(self, file_ref, task, notes):
        buf = LineBuffer(OUTLINE, cursor=Position(0, 5))
        ctx = build_context(file_ref, task=task, notes=notes, editor=buf)
        await DefaultErrorReporter().report(RuntimeError("boom"), ctx, node("fetch"))
        assert buf.text == OUTLINE
        assert len(notes.updates) == 1


class TestEditorReporting:
    @pytest.mark.asyncio
    async def test_inserts_after_children(self, file_ref):
        buf = LineBuffer(OUTLINE, cursor=Position(0, 13))
        ctx = build_context(file_ref, editor=buf, line=buf.get_line(0))
        await DefaultErrorReporter().report(RuntimeError("boom"), ctx, node("fetch"))

        assert buf.lines == [
            "- parent #tag",
            "  - child a",
            "    - grandchild",
            "  - child b",
            "  * Error: boom",
            "",
            "- next",
        ]
        assert buf.get_cursor() == Position(line=4, ch=len("  * Error: boom"))
        assert ctx.cursor == buf.get_cursor()

    @pytest.mark.asyncio
    async def test_indented_base_line(self, file_ref):
        buf = LineBuffer(OUTLINE, cursor=Position(1, 3))
        ctx = build_context(file_ref, editor=buf)
        await DefaultErrorReporter().report(RuntimeError("nope"), ctx, node("read"))
        assert buf.get_line(3) == "    * Error: nope"
        assert buf.get_line(4) == "  - child b"
        assert buf.line_count() == 7

    @pytest.mark.asyncio
    async def test_line_without_children(self, file_ref):
        buf = LineBuffer("- a\n- b", cursor=Position(0, 3))
        ctx = build_context(file_ref, editor=buf)
        await DefaultErrorReporter().report(RuntimeError("x"), ctx, node("read"))
        assert buf.lines == ["- a", "  * Error: x", "- b"]

    @pytest.mark.asyncio
    async def test_trailing_blank_lines_not_consumed(self, file_ref):
        buf = LineBuffer("- a\n  - b\n\n", cursor=Position(0, 0))
        ctx = build_context(file_ref, editor=buf)
        await DefaultErrorReporter().report(RuntimeError("x"), ctx, node("read"))
        assert buf.lines == ["- a", "  - b", "  * Error: x", "", ""]

    @pytest.mark.asyncio
    async def test_exactly_one_line_inserted(self, file_ref):
        buf = LineBuffer(OUTLINE, cursor=Position(5, 0))
        ctx = build_context(file_ref, editor=buf)
        await DefaultErrorReporter().report(RuntimeError("x"), ctx, node("read"))
        assert buf.line_count() == OUTLINE.count("\n") + 2
        assert buf.lines[-1] == "  * Error: x"

    @pytest.mark.asyncio
    async def test_editor_failure_is_logged(self, file_ref, caplog):
        class BrokenEditor:
            def get_cursor(self):
                raise RuntimeError("editor detached")

        ctx = build_context(file_ref, editor=BrokenEditor())
        with caplog.at_level(logging.ERROR, logger="tagflow.engine.reporter"):
            await DefaultErrorReporter().report(ValueError("x"), ctx, node("read"))
        assert "Failed to insert error line" in caplog.text
        assert isinstance(ctx.error, ValueError)


class TestStamping:
    @pytest.mark.asyncio
    async def test_no_task_no_editor_only_stamps(self, file_ref, caplog):
        ctx = build_context(file_ref, tag="#t")
        err = KeyError("k")
        with caplog.at_level(logging.ERROR, logger="tagflow.engine.reporter"):
            await DefaultErrorReporter().report(err, ctx, node("set"))
        assert ctx.error is err
        assert ctx.vars["error"]["name"] == "KeyError"
        assert "Action 'set' failed" in caplog.text

    def test_error_variable_shape(self):
        try:
            raise ValueError("bad value")
        except ValueError as exc:
            var = error_variable(exc)
        assert var["message"] == "bad value"
        assert var["name"] == "ValueError"
        assert "Traceback" in var["stack"]


def test_end_of_children_stops_at_sibling():
    buf = LineBuffer(OUTLINE)
    assert end_of_children(buf, 0) == 3
    assert end_of_children(buf, 1) == 2
    assert end_of_children(buf, 3) == 3
