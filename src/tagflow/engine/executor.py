"""ActionExecutor: runs one action node against an execution context.

Looks up the handler for the node's type, validates the node's output
bindings, calls the handler, and routes failures either to the node's own
recovery actions or to the default error reporter. Failures never
propagate past run(); they are left in the context's error slot.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from tagflow.engine.reporter import DefaultErrorReporter, stamp_error
from tagflow.exceptions import InvalidVariableNameError
from tagflow.models.actions import BINDING_FIELDS

if TYPE_CHECKING:
    from tagflow.actions.registry import ActionRegistry
    from tagflow.models.actions import ActionNode
    from tagflow.models.context import ExecutionContext

logger = logging.getLogger(__name__)

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_QUOTES = ("`", '"', "'")


def normalize_binding(value: str) -> str:
    """Trim and strip one layer of surrounding backticks or quotes.

    Example::

        normalize_binding(" `meta` ")  # "meta"
        normalize_binding("'x'")       # "x"
        normalize_binding("``x``")     # "`x`"
    """
    text = value.strip()
    for quote in _QUOTES:
        if len(text) >= 2 and text.startswith(quote) and text.endswith(quote):
            return text[1:-1].strip()
    return text


def validate_bindings(node: ActionNode) -> None:
    """Normalize ``as``/``name`` in place and check they are identifiers.

    Normalization happens once per node; later runs reuse the result.

    Raises:
        InvalidVariableNameError: If a binding is not a valid identifier.
    """
    if node._bindings_normalized:
        return
    for field in BINDING_FIELDS:
        raw = node.binding(field)
        if raw is None:
            continue
        if not isinstance(raw, str):
            raise InvalidVariableNameError(field, raw, action_type=node.type)
        value = normalize_binding(raw)
        if not IDENTIFIER_RE.match(value):
            raise InvalidVariableNameError(field, raw, action_type=node.type)
        node.set_binding(field, value)
    node._bindings_normalized = True


class ActionExecutor:
    """Executes single action nodes through the registry.

    Usage::

        executor = ActionExecutor(registry)
        context = await executor.run(node, context)
        if context.error is not None:
            ...
    """

    def __init__(
        self,
        registry: ActionRegistry,
        reporter: DefaultErrorReporter | None = None,
    ) -> None:
        self._registry = registry
        self._reporter = reporter or DefaultErrorReporter()

    @property
    def registry(self) -> ActionRegistry:
        return self._registry

    @property
    def reporter(self) -> DefaultErrorReporter:
        return self._reporter

    async def run(self, node: ActionNode, context: ExecutionContext) -> ExecutionContext:
        """Run one action node.

        An unknown action type is logged and skipped. Any exception raised
        by binding validation or the handler is captured: the node's
        recovery actions run if it has any, otherwise the default error
        reporter is called. Either way the error slot stays set.

        Args:
            node: Action to run.
            context: Context of the current trigger run.

        Returns:
            The context after the action.
        """
        handler = self._registry.lookup(node.type)
        if handler is None:
            logger.warning(
                "Unknown action type '%s' (tag=%s); skipping", node.type, context.tag
            )
            return context

        try:
            validate_bindings(node)
            logger.debug("Running action '%s'", node.type)
            result = await handler(node, context, self.run)
            # Handlers that only mutate in place may return None
            return context if result is None else result
        except Exception as exc:
            if node.has_recovery:
                return await self._recover(exc, node, context)
            await self._reporter.report(exc, context, node)
            return context

    async def _recover(
        self, error: Exception, node: ActionNode, context: ExecutionContext
    ) -> ExecutionContext:
        """Run a failed node's own recovery actions with the error visible."""
        logger.debug(
            "Action '%s' failed (%s); running %d recovery action(s)",
            node.type,
            error,
            len(node.on_error),
        )
        stamp_error(context, error)
        for recovery in node.on_error:
            if context.should_return:
                break
            context = await self.run(recovery, context)
        return context
