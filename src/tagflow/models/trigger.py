"""Trigger configuration models.

A TriggerConfig binds a tag to at most one Trigger per lifecycle event.
Produced by the outline parser; read-only to the engine.
"""

from __future__ import annotations

import enum
from typing import Iterator

from pydantic import BaseModel, Field, ValidationError, field_validator

from tagflow.exceptions import ConfigError
from tagflow.models.actions import ActionNode


class TriggerType(str, enum.Enum):
    """Lifecycle events a configuration can bind an action sequence to."""

    ON_TRIGGER = "onTrigger"  # task checked off
    ON_DONE = "onDone"  # task marked done (x)
    ON_ERROR = "onError"  # task marked with error (!)
    ON_IN_PROGRESS = "onInProgress"  # task marked in progress (/)
    ON_CANCELLED = "onCancelled"  # task marked cancelled (-)
    ON_RESET = "onReset"  # task unchecked
    ON_ENTER = "onEnter"  # line committed in the editor
    ON_DATA = "onData"  # data received from polling

    def __str__(self) -> str:
        return self.value


class Trigger(BaseModel):
    """An ordered action sequence bound to one lifecycle event."""

    type: TriggerType
    actions: list[ActionNode] = Field(default_factory=list)


class TriggerConfig(BaseModel):
    """All triggers configured for one tag."""

    tag: str
    triggers: list[Trigger] = Field(default_factory=list)

    @field_validator("triggers")
    @classmethod
    def _unique_trigger_types(cls, triggers: list[Trigger]) -> list[Trigger]:
        seen: set[TriggerType] = set()
        for trigger in triggers:
            if trigger.type in seen:
                raise ValueError(f"Duplicate trigger type: {trigger.type.value}")
            seen.add(trigger.type)
        return triggers

    @classmethod
    def from_dict(cls, data: dict) -> TriggerConfig:
        """Build a config from the parser's dict output.

        Raises:
            ConfigError: If the data does not describe a valid configuration.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid trigger config: {exc}") from exc

    @classmethod
    def from_json(cls, text: str) -> TriggerConfig:
        """Build a config from a JSON document.

        Raises:
            ConfigError: If the JSON does not describe a valid configuration.
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as exc:
            raise ConfigError(f"Invalid trigger config: {exc}") from exc

    def get(self, trigger_type: TriggerType | str) -> Trigger | None:
        """Return the trigger for an event type, or None if not configured."""
        try:
            wanted = TriggerType(trigger_type)
        except ValueError:
            return None
        for trigger in self.triggers:
            if trigger.type == wanted:
                return trigger
        return None

    def has(self, trigger_type: TriggerType | str) -> bool:
        return self.get(trigger_type) is not None

    @property
    def trigger_types(self) -> list[TriggerType]:
        return [t.type for t in self.triggers]

    def iter_actions(self) -> Iterator[ActionNode]:
        """Yield every action node in every trigger, nested nodes included."""
        for trigger in self.triggers:
            for node in trigger.actions:
                yield from node.walk()
