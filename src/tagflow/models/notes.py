"""Note-store update models.

The engine never edits note text itself; it describes the edit with a
TaskUpdate and hands it to the note store.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ChildLine:
    """A bullet line to insert beneath a task.

    Attributes:
        indent: Indentation level relative to the first child level (0-based).
        text: Line content without indentation or bullet.
        bullet: Bullet character ("-", "*", "+").
    """

    indent: int
    text: str
    bullet: str = "-"


@dataclass(frozen=True)
class TaskUpdate:
    """An edit to apply to a task line and its children.

    Only the fields that are set are applied. ``replace``, ``append`` and
    ``prepend`` act on the task line text; the child lists insert new
    bullets as the first or last children of the task.
    """

    replace: str | None = None
    append: str | None = None
    prepend: str | None = None
    prepend_children: tuple[ChildLine, ...] = field(default_factory=tuple)
    append_children: tuple[ChildLine, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.prepend_children, tuple):
            object.__setattr__(self, "prepend_children", tuple(self.prepend_children))
        if not isinstance(self.append_children, tuple):
            object.__setattr__(self, "append_children", tuple(self.append_children))
