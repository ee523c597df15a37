"""Index conditions — Decide per record whether it belongs in the index.

A projector is configured with ``if_`` conditions (all must hold) and
``unless`` conditions (none may hold). Conditions are one of:

  - ``NamedMethod("published")`` — read/call an attribute of the record
  - ``CallableCondition(func)`` — call ``func(record)``
  - ``CapabilityObject(obj)`` — call ``obj.matches(record)``

Bare callables and objects with a ``matches`` method are coerced by
``as_condition``. Strings are refused: evaluating source text from
configuration would execute arbitrary code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any

from searchsync.exceptions import ConfigurationError


class ExpressionNotSupported(ConfigurationError):
    """Raised when a condition is given as a string expression."""


class Condition(ABC):
    @abstractmethod
    def evaluate(self, record: Any) -> bool:
        """Return whether the condition holds for ``record``."""


class NamedMethod(Condition):
    """Truthiness of ``record.<name>``, calling it first if it is a method."""

    def __init__(self, name: str) -> None:
        self.name = name

    def evaluate(self, record: Any) -> bool:
        value = getattr(record, self.name)
        return bool(value() if callable(value) else value)

    def __repr__(self) -> str:
        return f"NamedMethod({self.name!r})"


class CallableCondition(Condition):
    def __init__(self, func: Callable[[Any], Any]) -> None:
        self.func = func

    def evaluate(self, record: Any) -> bool:
        return bool(self.func(record))

    def __repr__(self) -> str:
        return f"CallableCondition({self.func!r})"


class CapabilityObject(Condition):
    """Delegate to an object exposing ``matches(record)``."""

    def __init__(self, obj: Any, method: str = "matches") -> None:
        if not callable(getattr(obj, method, None)):
            raise ConfigurationError(f"{obj!r} has no callable '{method}' method")
        self.obj = obj
        self.method = method

    def evaluate(self, record: Any) -> bool:
        return bool(getattr(self.obj, self.method)(record))

    def __repr__(self) -> str:
        return f"CapabilityObject({self.obj!r})"


def as_condition(value: Any) -> Condition:
    """Coerce a condition-like value into a ``Condition``.

    Raises:
        ExpressionNotSupported: For strings. Use ``NamedMethod`` to reference an attribute.
        ConfigurationError: For anything else that cannot act as a condition.
    """
    if isinstance(value, Condition):
        return value
    if isinstance(value, str):
        raise ExpressionNotSupported(
            f"String condition {value!r} is not supported; use NamedMethod({value!r}) or a callable"
        )
    if callable(getattr(value, "matches", None)):
        return CapabilityObject(value)
    if callable(value):
        return CallableCondition(value)
    raise ConfigurationError(
        "Conditions must be a NamedMethod, a callable, or an object with a matches(record) method; "
        f"got {value!r}"
    )


def as_conditions(value: Any) -> tuple[Condition, ...]:
    """Coerce ``None``, a single condition, or an iterable of conditions."""
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(as_condition(v) for v in value)
    return (as_condition(value),)


def evaluate_conditions(
    record: Any,
    if_: Iterable[Condition] = (),
    unless: Iterable[Condition] = (),
) -> bool:
    return all(c.evaluate(record) for c in if_) and not any(c.evaluate(record) for c in unless)
