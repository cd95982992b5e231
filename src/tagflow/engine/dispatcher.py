"""TriggerDispatcher: finds a trigger in a config and runs it.

Every call produces an ExecutionResult; nothing raised inside a run
escapes to the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tagflow.engine.context import build_context
from tagflow.exceptions import TriggerNotFoundError
from tagflow.models.context import ExecutionResult
from tagflow.models.trigger import TriggerType

if TYPE_CHECKING:
    from tagflow.engine.sequence import SequenceRunner
    from tagflow.models.context import ExecutionContext
    from tagflow.models.trigger import Trigger, TriggerConfig

logger = logging.getLogger(__name__)


class TriggerDispatcher:
    """Runs triggers and wraps their outcome in an ExecutionResult."""

    def __init__(self, runner: SequenceRunner) -> None:
        self._runner = runner

    async def run_trigger(self, trigger: Trigger, context: ExecutionContext) -> ExecutionResult:
        """Run a trigger's action sequence against a prepared context.

        Success means the final context has no error. Exceptions escaping
        the sequence runner itself are caught and reported as a failed
        result.
        """
        context.trigger_type = trigger.type
        logger.debug(
            "Running trigger %s for tag %s (%d action(s))",
            trigger.type.value,
            context.tag,
            len(trigger.actions),
        )
        try:
            context = await self._runner.run(trigger.actions, context)
        except Exception as exc:
            logger.exception(
                "Unexpected failure running trigger %s for tag %s",
                trigger.type.value,
                context.tag,
            )
            context.error = exc
            return ExecutionResult(success=False, context=context, error=exc)

        return ExecutionResult(
            success=context.error is None,
            context=context,
            value=context.return_value,
            error=context.error,
        )

    async def run_by_type(
        self,
        trigger_config: TriggerConfig,
        trigger_type: TriggerType | str,
        **context_inputs: Any,
    ) -> ExecutionResult:
        """Look up a trigger by event type and run it.

        Args:
            trigger_config: Tag configuration to search.
            trigger_type: Lifecycle event to run.
            **context_inputs: Keyword arguments for build_context() (``file``
                is required).

        Returns:
            The run's ExecutionResult, or an immediate failure carrying a
            TriggerNotFoundError when the config has no such trigger.
        """
        context_inputs["tag"] = trigger_config.tag
        trigger = trigger_config.get(trigger_type)
        if trigger is None:
            try:
                context_inputs["trigger_type"] = TriggerType(trigger_type)
            except ValueError:
                context_inputs["trigger_type"] = None
            context = build_context(**context_inputs)
            error = TriggerNotFoundError(str(trigger_type), trigger_config.tag)
            logger.debug("%s", error)
            return ExecutionResult(success=False, context=context, error=error)

        context_inputs["trigger_type"] = trigger.type
        context = build_context(**context_inputs)
        return await self.run_trigger(trigger, context)
