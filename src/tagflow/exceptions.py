"""Tagflow exception hierarchy.

All Tagflow-specific exceptions inherit from TagflowError.
"""


class TagflowError(Exception):
    """Base exception for all Tagflow errors."""


class ConfigError(TagflowError, ValueError):
    """Raised when a trigger configuration is malformed."""


class ActionError(TagflowError):
    """Raised by an action handler when the action cannot complete.

    Handlers are free to raise any exception; this class exists so that
    built-in actions report failures with the action type attached.
    """

    def __init__(self, message: str, action_type: str | None = None) -> None:
        self.action_type = action_type
        super().__init__(message)


class InvalidVariableNameError(ActionError):
    """Raised when an ``as`` or ``name`` binding is not a valid identifier."""

    def __init__(self, field: str, value: object, action_type: str | None = None) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid variable name for '{field}': {value!r} "
            f"(must start with a letter or underscore and contain only "
            f"letters, digits, underscores)",
            action_type=action_type,
        )


class UnknownActionTypeError(ActionError):
    """Raised by ActionRegistry.require() for an unregistered action type."""

    def __init__(self, action_type: str) -> None:
        super().__init__(f"Unknown action type: {action_type}", action_type=action_type)


class FetchError(ActionError):
    """Raised by the fetch action on a non-2xx response."""

    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        super().__init__(
            f"HTTP {status_code}: {text or 'Request failed'}",
            action_type="fetch",
        )


class TriggerNotFoundError(TagflowError, LookupError):
    """Raised (or returned in a result) when a config lacks a trigger type."""

    def __init__(self, trigger_type: str, tag: str | None = None) -> None:
        self.trigger_type = trigger_type
        self.tag = tag
        where = f" for tag '{tag}'" if tag else ""
        super().__init__(f"Trigger '{trigger_type}' not found in config{where}")


class PatternMatchError(ActionError):
    """Raised when text does not fit a ``{{var}}`` extraction pattern."""

    def __init__(self, message: str, pattern: str | None = None, action_type: str | None = None) -> None:
        self.pattern = pattern
        super().__init__(message, action_type=action_type)
