"""Template helpers shared by the built-in actions.

Templates reference variables with ``{{path}}`` tokens, where a path is a
dotted name with optional list indexes (``meta.items[0].title`` or
``meta.items.0.title``).

Extraction patterns (``read`` and ``match`` actions) use the same braces
with modifiers: ``{{var}}``, ``{{var+}}`` / ``{{var+:, }}`` (list),
``{{var*}}`` (greedy), ``{{var:regex}}`` and ``{{var?}}`` (optional).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from tagflow.exceptions import PatternMatchError

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_.\[\]]*)\s*\}\}")
_INDEXED_RE = re.compile(r"^(.+)\[(\d+)\]$")
_COMPARISON_RE = re.compile(r"^(.+?)\s*(==|!=|>=|<=|>|<)\s*(.+)$")

_FALSY_STRINGS = frozenset({"", "false", "0", "null", "undefined"})


def resolve_path(values: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path against nested mappings and lists.

    Returns None when any step is missing.
    """
    current: Any = values
    for part in path.split("."):
        if current is None:
            return None
        indexes: list[int] = []
        match = _INDEXED_RE.match(part)
        while match:
            indexes.insert(0, int(match.group(2)))
            part = match.group(1)
            match = _INDEXED_RE.match(part)
        current = _step(current, part)
        for index in indexes:
            current = _step(current, str(index))
    return current


def _step(current: Any, key: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(key)
    if isinstance(current, (list, tuple)) and key.isdigit():
        index = int(key)
        return current[index] if index < len(current) else None
    return None


def render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError):
            return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def interpolate(template: Any, values: Mapping[str, Any], *, keep_missing: bool = False) -> Any:
    """Replace ``{{path}}`` tokens with variable values.

    Missing values render as the empty string, or stay as the original
    token when ``keep_missing`` is set; mappings and lists render as JSON.
    Non-string templates are returned unchanged.

    Example::

        interpolate("Hi {{user.name}}", {"user": {"name": "Ada"}})  # "Hi Ada"
    """
    if not isinstance(template, str):
        return template

    def replace(match: re.Match) -> str:
        value = resolve_path(values, match.group(1))
        if value is None and keep_missing:
            return match.group(0)
        return render_value(value)

    return TOKEN_RE.sub(replace, template)


def parse_value(text: Any) -> Any:
    """Parse JSON when possible, else return the text unchanged."""
    if not isinstance(text, str):
        return text
    try:
        return json.loads(text)
    except ValueError:
        return text


def evaluate_condition(expression: str, values: Mapping[str, Any]) -> bool:
    """Evaluate a simple ``if`` condition.

    Supports one comparison (``== != > < >= <=``) after interpolation, or
    plain truthiness. Ordering comparisons are numeric.
    """
    text = interpolate(expression, values).strip()
    match = _COMPARISON_RE.match(text)
    if match:
        left = parse_value(match.group(1).strip())
        op = match.group(2)
        right = parse_value(match.group(3).strip())
        if op == "==":
            return _loose_equal(left, right)
        if op == "!=":
            return not _loose_equal(left, right)
        try:
            lnum, rnum = float(left), float(right)
        except (TypeError, ValueError):
            return False
        if op == ">":
            return lnum > rnum
        if op == "<":
            return lnum < rnum
        if op == ">=":
            return lnum >= rnum
        return lnum <= rnum

    value = parse_value(text)
    if isinstance(value, str):
        return value not in _FALSY_STRINGS
    return bool(value)


def _loose_equal(left: Any, right: Any) -> bool:
    if left == right:
        return True
    return render_value(left) == render_value(right)


# ------------------------------------------------------------------
# Extraction patterns
# ------------------------------------------------------------------

PATTERN_TOKEN_RE = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_.]*)([:+*?])?((?:[^}]|\}(?!\}))*)\}\}")

# "(?<name>" but not the lookbehinds "(?<=" / "(?<!", and not an escaped paren
_JS_NAMED_GROUP_RE = re.compile(r"(?<!\\)\(\?<(?![=!])")


def js_regex(source: str) -> str:
    """Rewrite JavaScript-style named groups ``(?<name>...)`` as ``(?P<name>...)``.

    Configurations are written against JavaScript regex syntax; everything
    else they commonly use is shared with Python's ``re``.
    """
    return _JS_NAMED_GROUP_RE.sub("(?P<", source)


@dataclass(frozen=True)
class PatternToken:
    """One ``{{...}}`` placeholder of an extraction pattern."""

    name: str
    kind: str  # simple | list | greedy | regex | optional
    raw: str
    delimiter: Optional[str] = None
    regex: Optional[re.Pattern] = None

    @property
    def optional(self) -> bool:
        return self.kind == "optional"


def parse_pattern(pattern: str) -> list[PatternToken]:
    """Parse the placeholders of an extraction pattern, in order."""
    tokens: list[PatternToken] = []
    for match in PATTERN_TOKEN_RE.finditer(pattern):
        name, modifier, extra = match.group(1), match.group(2), match.group(3) or ""
        kind = "simple"
        delimiter = None
        regex = None
        if modifier == "+":
            kind = "list"
            delimiter = extra[1:] if extra.startswith(":") else " "
        elif modifier == "*":
            kind = "greedy"
        elif modifier == ":":
            kind = "regex"
            if extra:
                try:
                    regex = re.compile(js_regex(extra))
                except re.error as exc:
                    logger.warning("Invalid regex in pattern token %s: %s", match.group(0), exc)
        elif modifier == "?":
            kind = "optional"
        tokens.append(PatternToken(name, kind, match.group(0), delimiter, regex))
    return tokens


def _pattern_regex(tokens: list[PatternToken], literals: list[str]) -> str:
    parts: list[str] = []
    for index, token in enumerate(tokens):
        if literals[index]:
            parts.append(re.escape(literals[index]))
        following = literals[index + 1]
        if token.kind == "regex" and token.regex is not None:
            parts.append(f"(?P<t{index}>{token.regex.pattern})")
            continue
        if token.optional:
            body = ".*?" if following else ".*"
        else:
            body = ".+?" if following else ".+"
        lookahead = f"(?={re.escape(following)})" if following else ""
        parts.append(f"(?P<t{index}>{body}){lookahead}")
    if literals[len(tokens)]:
        parts.append(re.escape(literals[len(tokens)]))
    return "".join(parts)


def extract_values(text: str, pattern: str) -> dict[str, Any]:
    """Extract ``{{var}}`` values from text that must fit the whole pattern.

    Example::

        extract_values("#podcast https://x.test/1", "#podcast {{url}}")
        # {"url": "https://x.test/1"}
        extract_values("tags: a, b", "tags: {{tags+:,}}")
        # {"tags": ["a", "b"]}

    Raises:
        PatternMatchError: If the text does not fit, a required value is
            empty, or a ``{{var:regex}}`` value fails its regex.
    """
    tokens = parse_pattern(pattern)
    if not tokens:
        if text.strip() != pattern.strip():
            raise PatternMatchError("Text does not match pattern", pattern=pattern)
        return {}

    literals = PATTERN_TOKEN_RE.split(pattern)[::4]
    try:
        regex = re.compile(_pattern_regex(tokens, literals), re.DOTALL)
    except re.error as exc:
        raise PatternMatchError(f"Failed to build extraction regex: {exc}", pattern=pattern) from exc

    match = regex.fullmatch(text)
    if match is None:
        if all(token.optional for token in tokens):
            return {}
        raise PatternMatchError(
            f"Text does not match pattern. Expected format: {pattern}", pattern=pattern
        )

    values: dict[str, Any] = {}
    for index, token in enumerate(tokens):
        captured = match.group(f"t{index}")
        if not captured:
            if not token.optional:
                raise PatternMatchError(f"Required value for '{token.name}' not found", pattern=pattern)
            continue
        value: Any = captured.strip()
        if token.kind == "list":
            value = [item.strip() for item in value.split(token.delimiter or ",") if item.strip()]
        elif token.regex is not None and not token.regex.fullmatch(value):
            raise PatternMatchError(
                f"Value '{value}' for '{token.name}' does not match required format",
                pattern=pattern,
            )
        values[token.name] = value
    return values
