"""TriggerEngine: per-event entry points used by the rest of the system.

Each on_* method assembles the context inputs for its lifecycle event and
runs the matching trigger of a tag's configuration. The engine decides
nothing about *when* a trigger fires; that is the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Mapping

from tagflow.engine.dispatcher import TriggerDispatcher
from tagflow.engine.executor import ActionExecutor
from tagflow.engine.reporter import DefaultErrorReporter
from tagflow.engine.sequence import SequenceRunner
from tagflow.models.config import EngineConfig
from tagflow.models.context import FileRef
from tagflow.models.trigger import TriggerType

if TYPE_CHECKING:
    import httpx

    from tagflow.actions.registry import ActionRegistry
    from tagflow.models.context import ExecutionResult
    from tagflow.models.trigger import TriggerConfig
    from tagflow.protocols import Editor, NoteStore, TaskLike

logger = logging.getLogger(__name__)


class TriggerEngine:
    """Runs tag triggers for task and editor lifecycle events.

    Usage::

        engine = TriggerEngine(notes=store)
        if engine.has_trigger(config, TriggerType.ON_DONE):
            result = await engine.on_done(config, task, "projects/todo.md")
            if not result.success:
                print(result.error)

    Args:
        registry: Action handlers to dispatch to. Defaults to the built-in
            actions (``tagflow.actions.default_registry()``).
        notes: Note store used to edit tasks.
        config: Engine settings.
        http: Shared HTTP client for the fetch action.
    """

    def __init__(
        self,
        registry: ActionRegistry | None = None,
        *,
        notes: NoteStore | None = None,
        config: EngineConfig | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        if registry is None:
            from tagflow.actions import default_registry

            registry = default_registry()
        self._config = config or EngineConfig()
        self._notes = notes
        self._http = http
        self._registry = registry
        self._executor = ActionExecutor(registry, DefaultErrorReporter(self._config))
        self._dispatcher = TriggerDispatcher(SequenceRunner(self._executor))
        self._file_locks: dict[str, asyncio.Lock] = {}
        self._file_lock_users: Counter[str] = Counter()

    @property
    def registry(self) -> ActionRegistry:
        return self._registry

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def dispatcher(self) -> TriggerDispatcher:
        return self._dispatcher

    def has_trigger(self, config: TriggerConfig, trigger_type: TriggerType | str) -> bool:
        """Whether the config binds any actions to the given event."""
        return config.has(trigger_type)

    async def execute(
        self,
        config: TriggerConfig,
        trigger_type: TriggerType | str,
        *,
        file: FileRef | str,
        task: TaskLike | None = None,
        line: str | None = None,
        editor: Editor | None = None,
        variables: Mapping[str, Any] | None = None,
    ) -> ExecutionResult:
        """Run a trigger with the engine's services wired into the context."""
        if isinstance(file, str):
            file = FileRef.from_path(file)
        async with self._file_guard(file.path):
            return await self._dispatcher.run_by_type(
                config,
                trigger_type,
                file=file,
                task=task,
                line=line,
                editor=editor,
                notes=self._notes,
                variables=variables,
                config=self._config,
                http=self._http,
            )

    @asynccontextmanager
    async def _file_guard(self, path: str) -> AsyncIterator[None]:
        """Serialize runs on the same file when serialize_file_runs is set.

        A path's lock is dropped once no run holds or waits for it.
        """
        if not self._config.serialize_file_runs:
            yield
            return
        lock = self._file_locks.get(path)
        if lock is None:
            lock = self._file_locks[path] = asyncio.Lock()
        self._file_lock_users[path] += 1
        try:
            async with lock:
                yield
        finally:
            self._file_lock_users[path] -= 1
            if self._file_lock_users[path] <= 0:
                del self._file_lock_users[path]
                self._file_locks.pop(path, None)

    # ------------------------------------------------------------------
    # Task lifecycle events
    # ------------------------------------------------------------------

    async def on_trigger(self, config: TriggerConfig, task: TaskLike, file: FileRef | str, editor: Editor | None = None) -> ExecutionResult:
        """Task checked off."""
        return await self.execute(config, TriggerType.ON_TRIGGER, task=task, line=task.text, file=file, editor=editor)

    async def on_done(self, config: TriggerConfig, task: TaskLike, file: FileRef | str, editor: Editor | None = None) -> ExecutionResult:
        """Task marked done."""
        return await self.execute(config, TriggerType.ON_DONE, task=task, line=task.text, file=file, editor=editor)

    async def on_error(
        self,
        config: TriggerConfig,
        task: TaskLike,
        file: FileRef | str,
        error: BaseException | None = None,
        editor: Editor | None = None,
    ) -> ExecutionResult:
        """Task marked with error status.

        When an upstream exception is given (e.g. a failed request made
        outside the action sequence), it is exposed as the ``error``
        variable.
        """
        variables = None
        if error is not None:
            variables = {"error": {"message": str(error), "name": type(error).__name__}}
        return await self.execute(
            config,
            TriggerType.ON_ERROR,
            task=task,
            line=task.text,
            file=file,
            editor=editor,
            variables=variables,
        )

    async def on_in_progress(self, config: TriggerConfig, task: TaskLike, file: FileRef | str, editor: Editor | None = None) -> ExecutionResult:
        """Task marked in progress."""
        return await self.execute(config, TriggerType.ON_IN_PROGRESS, task=task, line=task.text, file=file, editor=editor)

    async def on_cancelled(self, config: TriggerConfig, task: TaskLike, file: FileRef | str, editor: Editor | None = None) -> ExecutionResult:
        """Task marked cancelled."""
        return await self.execute(config, TriggerType.ON_CANCELLED, task=task, line=task.text, file=file, editor=editor)

    async def on_reset(self, config: TriggerConfig, task: TaskLike, file: FileRef | str, editor: Editor | None = None) -> ExecutionResult:
        """Task unchecked."""
        return await self.execute(config, TriggerType.ON_RESET, task=task, line=task.text, file=file, editor=editor)

    # ------------------------------------------------------------------
    # Editor and data events
    # ------------------------------------------------------------------

    async def on_enter(
        self,
        config: TriggerConfig,
        line: str,
        file: FileRef | str,
        editor: Editor,
        task: TaskLike | None = None,
    ) -> ExecutionResult:
        """Line committed in the editor (Enter at end of line)."""
        return await self.execute(config, TriggerType.ON_ENTER, task=task, line=line, file=file, editor=editor)

    async def on_data(
        self,
        config: TriggerConfig,
        data: Any,
        file: FileRef | str,
        task: TaskLike | None = None,
    ) -> ExecutionResult:
        """Data received from a poller or subscription; exposed as ``data``."""
        return await self.execute(
            config,
            TriggerType.ON_DATA,
            task=task,
            line=task.text if task is not None else "",
            file=file,
            variables={"data": data},
        )
