"""Built-in action handlers.

Each handler follows the registry contract: ``handler(node, context,
recurse)`` mutates and returns the context, and raises on failure.
Composite actions (``if``, ``foreach``) run their nested actions through
``recurse`` so they get the same binding validation and error handling as
top-level actions.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Sequence

from tagflow.actions.templates import evaluate_condition, extract_values, interpolate, js_regex, parse_value
from tagflow.engine.reporter import end_of_children, insert_child_line, leading_whitespace
from tagflow.exceptions import ActionError
from tagflow.models.config import EngineConfig
from tagflow.models.context import Position
from tagflow.models.notes import ChildLine, TaskUpdate

if TYPE_CHECKING:
    from tagflow.actions.registry import ActionRegistry
    from tagflow.models.actions import ActionNode
    from tagflow.models.context import ExecutionContext
    from tagflow.protocols import Recurse

action_log = logging.getLogger("tagflow.actions.log")

_REGEX_LITERAL = re.compile(r"^/(.+)/([gimsu]*)$", re.DOTALL)
_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}
_LIST_PREFIX = re.compile(r"^(\s*)-\s+(?:\[[ xX/!\-]\]\s+)?(.*)$")
_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m)?\s*$")
_DURATION_SCALE = {"ms": 0.001, "s": 1.0, "m": 60.0}
CURSOR_MARKER = "{{cursor}}"


def _require(node: ActionNode, key: str) -> object:
    value = node.param(key)
    if value is None or value == "":
        raise ActionError(f"{node.type} action requires '{key}'", action_type=node.type)
    return value


def _require_name(node: ActionNode) -> str:
    if not node.name:
        raise ActionError(f"{node.type} action requires 'name'", action_type=node.type)
    return node.name


async def run_nested(
    actions: Sequence[ActionNode], context: ExecutionContext, recurse: Recurse
) -> ExecutionContext:
    """Run nested actions in order, stopping on return or error."""
    for child in actions:
        if context.should_return or context.error is not None:
            break
        context = await recurse(child, context)
    return context


async def set_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Bind ``name`` to the interpolated ``value`` (JSON-decoded when possible)."""
    name = _require_name(node)
    value = interpolate(node.param("value", ""), context.vars)
    context.vars[name] = parse_value(value)
    return context


async def build_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Bind ``name`` to an object built from ``properties`` templates."""
    name = _require_name(node)
    properties = node.param("properties") or {}
    if not isinstance(properties, dict):
        raise ActionError("build action 'properties' must be a mapping", action_type=node.type)
    context.vars[name] = {
        key: parse_value(interpolate(template, context.vars))
        for key, template in properties.items()
    }
    return context


async def log_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    message = interpolate(node.param("message", ""), context.vars)
    action_log.info("[%s] %s", context.tag, message)
    return context


async def return_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Stop the sequence, optionally with a return value."""
    raw = node.param("value")
    value = parse_value(interpolate(raw, context.vars)) if raw not in (None, "") else None
    context.stop(value)
    return context


async def if_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    condition = _require(node, "condition")
    branch = "then" if evaluate_condition(str(condition), context.vars) else "else"
    return await run_nested(node.actions(branch), context, recurse)


async def foreach_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Run ``do`` once per element of the list variable named by ``items``.

    Binds ``<as>`` and ``<as>_index`` (``item``/``item_index`` by default)
    for each iteration and removes them afterwards.
    """
    items_name = str(_require(node, "items"))
    items = context.vars.get(items_name)
    if not isinstance(items, (list, tuple)):
        raise ActionError(f"Variable '{items_name}' is not a list", action_type=node.type)

    item_var = node.as_ or "item"
    index_var = f"{item_var}_index"
    body = node.actions("do")
    try:
        for index, item in enumerate(items):
            if context.should_return or context.error is not None:
                break
            context.vars[item_var] = item
            context.vars[index_var] = index
            context = await run_nested(body, context, recurse)
    finally:
        context.vars.pop(item_var, None)
        context.vars.pop(index_var, None)
    return context


async def extract_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Regex extraction from the interpolated ``from`` text.

    ``pattern`` is either a bare regex (all matches) or ``/regex/flags``;
    a ``/.../flags`` literal without ``g`` stores only the first match
    and its groups. Named groups of the first match are also bound as
    variables.
    """
    text = interpolate(node.param("from", ""), context.vars)
    raw_pattern = str(_require(node, "pattern"))

    collect_all = True
    flags = 0
    literal = _REGEX_LITERAL.match(raw_pattern)
    if literal:
        raw_pattern, flag_chars = literal.group(1), literal.group(2)
        collect_all = "g" in flag_chars or not flag_chars
        for char in flag_chars:
            flags |= _REGEX_FLAGS.get(char, 0)
    try:
        regex = re.compile(js_regex(raw_pattern), flags)
    except re.error as exc:
        raise ActionError(f"Invalid pattern {raw_pattern!r}: {exc}", action_type=node.type) from exc

    first = regex.search(text)
    if collect_all:
        matches = [m.group(0) for m in regex.finditer(text)]
    elif first is not None:
        matches = [first.group(0), *first.groups()]
    else:
        matches = []

    context.vars[node.as_ or "matches"] = matches
    if first is not None:
        context.vars.update({k: v for k, v in first.groupdict().items() if v is not None})
    return context


async def append_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Append a child bullet to the current task, or beneath the editor line."""
    content = interpolate(node.param("template", ""), context.vars)
    levels = int(node.param("indent", 1))

    if context.task is not None and context.notes is not None:
        await context.notes.update_task(
            context.task,
            TaskUpdate(append_children=(ChildLine(indent=levels - 1, text=content, bullet="-"),)),
        )
        return context

    if context.editor is not None:
        config = context.config or EngineConfig()
        context.cursor = insert_child_line(
            context.editor,
            content,
            bullet="-",
            indent_unit=config.indent_unit,
            levels=levels,
        )
        return context

    raise ActionError("No task or editor available for append action", action_type=node.type)


async def delay_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Pause for ``duration`` ("250ms", "2s", "1m"; bare numbers are ms), or ``ms``."""
    raw = node.param("duration", node.param("ms", 0))
    match = _DURATION.match(str(raw))
    if match is None:
        raise ActionError(f"Invalid delay duration: {raw!r}", action_type=node.type)
    await asyncio.sleep(float(match.group(1)) * _DURATION_SCALE[match.group(2) or "ms"])
    return context


def strip_list_prefix(line: str) -> str:
    """Content of a ``-`` bullet line without its bullet and checkbox."""
    match = _LIST_PREFIX.match(line)
    return match.group(2) if match else line


async def _read_source(node: ActionNode, context: ExecutionContext) -> tuple[str, str | None]:
    """Text for a read action, plus the prefix-free line when reading the line."""
    source = node.param("source") or "line"
    editor = context.editor

    if source == "file":
        if context.notes is not None and context.file is not None:
            return await context.notes.read_text(context.file.path), None
        if editor is not None:
            return "\n".join(editor.get_line(i) for i in range(editor.line_count())), None
        raise ActionError("No file available in context", action_type=node.type)

    if source == "selection":
        selected = editor.get_selection() if editor is not None else ""
        return selected or context.line, None

    if source == "children":
        if context.task is not None and context.notes is not None:
            return "\n".join(await context.notes.task_children(context.task)), None
        if editor is not None:
            start = editor.get_cursor().line
            lines = [editor.get_line(i).strip() for i in range(start + 1, end_of_children(editor, start) + 1)]
            return "\n".join(strip_list_prefix(line) for line in lines if line), None
        return "", None

    return context.line, strip_list_prefix(context.line)


async def read_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Read text from ``source`` (line, file, selection or children).

    Binds ``text`` (and ``<as>`` when given). Reading the line also binds
    ``textContent``, the line without its bullet and checkbox, which is
    what an optional ``pattern`` is matched against. Pattern values are
    bound as variables; a line that does not fit the pattern fails the
    action.
    """
    text, content = await _read_source(node, context)
    pattern = node.param("pattern")
    if pattern:
        pattern = interpolate(str(pattern), context.vars, keep_missing=True)
        context.vars.update(extract_values(content if content is not None else text, pattern))
    context.vars["text"] = text
    if content is not None:
        context.vars["textContent"] = content
    if node.as_:
        context.vars[node.as_] = text
    return context


async def match_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Match the interpolated ``in`` text against an extraction ``pattern``."""
    pattern = str(_require(node, "pattern"))
    text = interpolate(node.param("in", ""), context.vars)
    context.vars.update(extract_values(str(text), pattern))
    return context


def _child_templates(node: ActionNode) -> list[dict]:
    raw = node.param("childTemplates") or []
    if not isinstance(raw, list):
        raise ActionError("transform action 'childTemplates' must be a list", action_type=node.type)
    return [item if isinstance(item, dict) else {"template": str(item)} for item in raw]


def _render(template: str, values) -> str:
    # interpolate around the marker so {{cursor}} survives as a position
    return CURSOR_MARKER.join(interpolate(part, values) for part in template.split(CURSOR_MARKER))


def _task_children(templates: list[dict], values, depth: int = 0) -> list[ChildLine]:
    lines: list[ChildLine] = []
    for template in templates:
        text = _render(str(template.get("template", "")), values).replace(CURSOR_MARKER, "").strip()
        if text:
            lines.append(ChildLine(indent=depth, text=text, bullet="-"))
        lines.extend(_task_children(template.get("children") or [], values, depth + 1))
    return lines


def _editor_children(templates: list[dict], values, indent: str, unit: str) -> list[str]:
    lines: list[str] = []
    child_indent = indent + unit
    for template in templates:
        text = _render(str(template.get("template", "")), values)
        if text:
            lines.append(f"{child_indent}- {text}")
        lines.extend(_editor_children(template.get("children") or [], values, child_indent, unit))
    return lines


async def transform_action(node: ActionNode, context: ExecutionContext, recurse: Recurse) -> ExecutionContext:
    """Rewrite the current task or editor line and add child bullets.

    ``template`` is the new line text; ``mode`` (replace, append, prepend)
    applies to tasks only. ``childTemplates`` is a list of
    ``{"template": ..., "children": [...]}`` mappings added beneath the
    line. In the editor a ``{{cursor}}`` marker places the cursor, and a
    transform without ``template`` promotes its first child template to
    the line itself.
    """
    template = node.param("template")
    templates = _child_templates(node)

    if context.task is not None and context.notes is not None:
        mode = node.param("mode") or "replace"
        if mode not in ("replace", "append", "prepend"):
            raise ActionError(f"Unknown transform mode: {mode!r}", action_type=node.type)
        edit = {}
        if template:
            edit[mode] = _render(str(template), context.vars).replace(CURSOR_MARKER, "")
        await context.notes.update_task(
            context.task, TaskUpdate(append_children=tuple(_task_children(templates, context.vars)), **edit)
        )
        return context

    editor = context.editor
    if editor is None:
        raise ActionError("No task or editor available for transform action", action_type=node.type)

    config = context.config or EngineConfig()
    cursor = editor.get_cursor()
    current = editor.get_line(cursor.line)
    indent = leading_whitespace(current)
    if not template and templates:
        first, rest = templates[0], templates[1:]
        template = first.get("template", "")
        templates = [*(first.get("children") or []), *rest]
    lines = [f"{indent}- {_render(str(template), context.vars)}" if template else current]
    lines.extend(_editor_children(templates, context.vars, indent, config.indent_unit))

    text = "\n".join(lines)
    at = text.find(CURSOR_MARKER)
    if at == -1:
        end = Position(line=cursor.line + len(lines) - 1, ch=len(lines[-1]))
    else:
        before = text[:at].split("\n")
        end = Position(line=cursor.line + len(before) - 1, ch=len(before[-1]))
        text = text.replace(CURSOR_MARKER, "")
    editor.replace_range(text, Position(line=cursor.line, ch=0), Position(line=cursor.line, ch=len(current)))
    editor.set_cursor(end)
    context.cursor = end
    return context


BUILTIN_ACTIONS = {
    "set": set_action,
    "build": build_action,
    "log": log_action,
    "return": return_action,
    "if": if_action,
    "foreach": foreach_action,
    "read": read_action,
    "match": match_action,
    "extract": extract_action,
    "transform": transform_action,
    "append": append_action,
    "delay": delay_action,
}


def register_builtin_actions(registry: ActionRegistry, *, replace: bool = False) -> ActionRegistry:
    """Register every built-in action (fetch included) on a registry."""
    from tagflow.actions.fetch import fetch_action

    for action_type, handler in BUILTIN_ACTIONS.items():
        registry.register(action_type, handler, replace=replace)
    registry.register("fetch", fetch_action, replace=replace)
    return registry
