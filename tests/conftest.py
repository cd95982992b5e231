"""Shared test fixtures for Tagflow.

Provides fake tasks, a recording note store, and a registry of scripted
action handlers whose invocations are logged in order.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from tagflow.actions.registry import ActionRegistry
from tagflow.engine.executor import ActionExecutor
from tagflow.engine.reporter import DefaultErrorReporter
from tagflow.engine.sequence import SequenceRunner
from tagflow.models.actions import ActionNode
from tagflow.models.context import FileRef
from tagflow.models.trigger import TriggerConfig


# ------------------------------------------------------------------
# Collaborator fakes
# ------------------------------------------------------------------


@dataclass
class FakeTask:
    text: str = "- [ ] #podcast https://example.com/ep/1"
    path: str = "inbox.md"
    line: int = 3
    status: str = " "
    completed: bool = False
    tags: list[str] = field(default_factory=lambda: ["#podcast"])


class RecordingNoteStore:
    """Note store that records every update it is asked to apply.

    ``files`` maps paths to note text; ``children`` is what every task
    reports as its child bullets.
    """

    def __init__(self, fail: bool = False, files: dict[str, str] | None = None, children: list[str] | None = None) -> None:
        self.updates: list[tuple[object, object]] = []
        self.files = files or {}
        self.children = children or []
        self._fail = fail

    async def update_task(self, task, update) -> None:
        if self._fail:
            raise OSError("vault is read-only")
        self.updates.append((task, update))

    async def read_text(self, path: str) -> str:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    async def task_children(self, task) -> list[str]:
        return list(self.children)


# ------------------------------------------------------------------
# Scripted action handlers
# ------------------------------------------------------------------


def make_scripted_registry(calls: list[str]) -> ActionRegistry:
    """Registry whose handlers append their label (or type) to ``calls``.

    - ``ok``: does nothing else
    - ``bind``: binds ``as`` (default "result") to the node's ``value``
    - ``fail``: raises RuntimeError(message)
    - ``stop``: requests return with the node's ``value``
    - ``read``: raises ValueError (a failing read)
    """
    registry = ActionRegistry()

    def label(node: ActionNode) -> str:
        return node.param("label") or node.type

    @registry.action("ok")
    async def ok(node, context, recurse):
        calls.append(label(node))
        return context

    @registry.action("bind")
    async def bind(node, context, recurse):
        calls.append(label(node))
        context.vars[node.as_ or "result"] = node.param("value")
        return context

    @registry.action("fail")
    async def fail(node, context, recurse):
        calls.append(label(node))
        raise RuntimeError(node.param("message", "boom"))

    @registry.action("stop")
    async def stop(node, context, recurse):
        calls.append(label(node))
        context.stop(node.param("value"))
        return context

    @registry.action("read")
    async def read(node, context, recurse):
        calls.append(label(node))
        raise ValueError("Pattern extraction failed")

    return registry


@pytest.fixture
def calls() -> list[str]:
    return []


@pytest.fixture
def registry(calls) -> ActionRegistry:
    return make_scripted_registry(calls)


@pytest.fixture
def notes() -> RecordingNoteStore:
    return RecordingNoteStore()


@pytest.fixture
def task() -> FakeTask:
    return FakeTask()


@pytest.fixture
def file_ref() -> FileRef:
    return FileRef.from_path("notes/inbox.md")


@pytest.fixture
def executor(registry) -> ActionExecutor:
    return ActionExecutor(registry, DefaultErrorReporter())


@pytest.fixture
def runner(executor) -> SequenceRunner:
    return SequenceRunner(executor)


def node(type_: str, **fields) -> ActionNode:
    """Shorthand for building an ActionNode from parser-style fields."""
    return ActionNode.model_validate({"type": type_, **fields})


def config_with(trigger_type: str, actions: list[dict], tag: str = "#podcast") -> TriggerConfig:
    return TriggerConfig.from_dict(
        {"tag": tag, "triggers": [{"type": trigger_type, "actions": actions}]}
    )
