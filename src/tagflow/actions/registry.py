"""Action handler registry.

Maps an action node's ``type`` to the coroutine that executes it. Owned
by a TriggerEngine; the executor looks handlers up here at run time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from tagflow.exceptions import UnknownActionTypeError

if TYPE_CHECKING:
    from tagflow.models.trigger import TriggerConfig
    from tagflow.protocols import ActionHandler


class ActionRegistry:
    """Registry of action handlers keyed by action type.

    Example::

        registry = ActionRegistry()

        @registry.action("shout")
        async def shout(node, context, recurse):
            context.vars["shout"] = context.line.upper()
            return context
    """

    def __init__(self, handlers: dict[str, ActionHandler] | None = None) -> None:
        self._handlers: dict[str, ActionHandler] = dict(handlers or {})

    def register(self, action_type: str, handler: ActionHandler, *, replace: bool = False) -> None:
        """Register a handler for an action type.

        Raises:
            ValueError: If the type is already registered and replace is False.
        """
        if not action_type:
            raise ValueError("Action type must be a non-empty string.")
        if action_type in self._handlers and not replace:
            raise ValueError(
                f"Action '{action_type}' is already registered. "
                f"Pass replace=True to override it."
            )
        self._handlers[action_type] = handler

    def action(self, action_type: str, *, replace: bool = False) -> Callable[[ActionHandler], ActionHandler]:
        """Decorator form of register()."""

        def decorator(handler: ActionHandler) -> ActionHandler:
            self.register(action_type, handler, replace=replace)
            return handler

        return decorator

    def unregister(self, action_type: str) -> None:
        """Remove a handler. Unknown types are ignored."""
        self._handlers.pop(action_type, None)

    def lookup(self, action_type: str) -> ActionHandler | None:
        """Return the handler for an action type, or None."""
        return self._handlers.get(action_type)

    def require(self, action_type: str) -> ActionHandler:
        """Return the handler for an action type.

        Raises:
            UnknownActionTypeError: If nothing is registered for the type.
        """
        handler = self._handlers.get(action_type)
        if handler is None:
            raise UnknownActionTypeError(action_type)
        return handler

    def is_registered(self, action_type: str) -> bool:
        return action_type in self._handlers

    @property
    def action_types(self) -> set[str]:
        """All registered action types."""
        return set(self._handlers)

    def unknown_types(self, config: TriggerConfig) -> set[str]:
        """Action types used anywhere in a config that have no handler.

        Lets callers flag configuration drift when a config is loaded
        instead of when the action is reached.
        """
        return {node.type for node in config.iter_actions() if node.type not in self._handlers}

    def copy(self) -> ActionRegistry:
        return ActionRegistry(self._handlers)

    def __contains__(self, action_type: object) -> bool:
        return action_type in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
