"""Action node model.

An ActionNode is one step of a trigger's action sequence. Only ``type``,
the two output-binding fields (``as`` and ``name``), the nested action
lists and ``onError`` are known to the engine; everything else the parser
puts on a node is kept as extra fields for the handler to read.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

# Extra fields that hold nested action lists for composite actions
NESTED_ACTION_FIELDS: frozenset[str] = frozenset({"then", "else", "do"})

# Output-binding fields validated by the executor for every action type
BINDING_FIELDS: tuple[str, ...] = ("as", "name")


class ActionNode(BaseModel):
    """One action in a trigger sequence.

    Example::

        node = ActionNode.model_validate(
            {"type": "fetch", "url": "https://example.com/{{id}}", "as": "`meta`"}
        )
        node.binding("as")  # "`meta`" until the executor normalizes it
        node.param("url")   # "https://example.com/{{id}}"
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str
    as_: Optional[str] = Field(default=None, alias="as")
    name: Optional[str] = None
    children: list[ActionNode] = Field(default_factory=list)
    on_error: list[ActionNode] = Field(default_factory=list, alias="onError")
    source_line: Optional[int] = Field(default=None, alias="sourceLine")

    _bindings_normalized: bool = PrivateAttr(default=False)

    @model_validator(mode="after")
    def _convert_nested_actions(self) -> ActionNode:
        extra = self.model_extra or {}
        for key in NESTED_ACTION_FIELDS:
            value = extra.get(key)
            if isinstance(value, list):
                extra[key] = [
                    item if isinstance(item, ActionNode) else ActionNode.model_validate(item)
                    for item in value
                ]
        return self

    def param(self, key: str, default: Any = None) -> Any:
        """Return a type-specific field set by the parser."""
        if self.model_extra and key in self.model_extra:
            return self.model_extra[key]
        return default

    def actions(self, key: str) -> list[ActionNode]:
        """Return a nested action list (``then``, ``else``, ``do``, ``children``)."""
        if key == "children":
            return self.children
        value = self.param(key)
        return value if isinstance(value, list) else []

    def binding(self, field: str) -> str | None:
        """Return the raw value of an output-binding field (``as`` or ``name``)."""
        if field == "as":
            return self.as_
        if field == "name":
            return self.name
        raise KeyError(field)

    def set_binding(self, field: str, value: str) -> None:
        if field == "as":
            self.as_ = value
        elif field == "name":
            self.name = value
        else:
            raise KeyError(field)

    @property
    def has_recovery(self) -> bool:
        """Whether this node carries its own recovery actions."""
        return bool(self.on_error)

    def walk(self) -> Iterator[ActionNode]:
        """Yield this node and every nested node, depth-first."""
        yield self
        for key in ("children", *sorted(NESTED_ACTION_FIELDS)):
            for child in self.actions(key):
                yield from child.walk()
        for child in self.on_error:
            yield from child.walk()


ActionNode.model_rebuild()
