"""Action handlers and the registry that maps action types to them."""

from tagflow.actions.builtin import BUILTIN_ACTIONS, register_builtin_actions
from tagflow.actions.fetch import fetch_action
from tagflow.actions.registry import ActionRegistry
from tagflow.actions.templates import evaluate_condition, extract_values, interpolate, js_regex, parse_value, resolve_path


def default_registry() -> ActionRegistry:
    """A new registry holding every built-in action."""
    return register_builtin_actions(ActionRegistry())


__all__ = [
    "ActionRegistry",
    "BUILTIN_ACTIONS",
    "default_registry",
    "evaluate_condition",
    "extract_values",
    "fetch_action",
    "interpolate",
    "js_regex",
    "parse_value",
    "register_builtin_actions",
    "resolve_path",
]
