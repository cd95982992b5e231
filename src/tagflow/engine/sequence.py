"""SequenceRunner: runs an ordered list of action nodes.

Actions run strictly one after another. The sequence stops before the
next action once the should-return flag is set, and immediately after an
action that leaves the error slot set.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from tagflow.models.context import Flow

if TYPE_CHECKING:
    from tagflow.engine.executor import ActionExecutor
    from tagflow.models.actions import ActionNode
    from tagflow.models.context import ExecutionContext

logger = logging.getLogger(__name__)


class SequenceRunner:
    """Runs action sequences through an ActionExecutor."""

    def __init__(self, executor: ActionExecutor) -> None:
        self._executor = executor

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    async def step(
        self, node: ActionNode, context: ExecutionContext
    ) -> tuple[ExecutionContext, Flow]:
        """Run one node and report whether the sequence may continue."""
        context = await self._executor.run(node, context)
        return context, context.flow

    async def run(
        self, actions: Sequence[ActionNode], context: ExecutionContext
    ) -> ExecutionContext:
        """Run actions in order until one fails, one returns, or all are done.

        Returns:
            The (possibly partially executed) context.
        """
        if context.should_return:
            return context
        for index, node in enumerate(actions):
            context, flow = await self.step(node, context)
            if flow is Flow.CONTINUE:
                continue
            skipped = len(actions) - index - 1
            if flow is Flow.HALT:
                logger.debug(
                    "Action '%s' failed; skipping %d remaining action(s)", node.type, skipped
                )
            else:
                logger.debug(
                    "Action '%s' requested return; skipping %d remaining action(s)",
                    node.type,
                    skipped,
                )
            break
        return context
