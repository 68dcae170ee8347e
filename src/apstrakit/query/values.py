"""
Query engine attribute values.

Each value knows how to render itself in the graph query language, which is
Python-flavoured: strings are single-quoted, booleans are ``True``/``False``,
and set / comparison tests are function calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


class QEValue(ABC):
    """Something that can appear on the right-hand side of ``key=value``."""

    @abstractmethod
    def render(self) -> str: ...

    def __str__(self) -> str:
        return self.render()


def _quoted_list(items: tuple[str, ...]) -> str:
    if not items:
        return "[]"
    return "['" + "','".join(items) + "']"


@dataclass(frozen=True)
class StringVal(QEValue):
    value: str

    def render(self) -> str:
        return f"'{self.value}'"


@dataclass(frozen=True)
class BoolVal(QEValue):
    value: bool

    def render(self) -> str:
        return "True" if self.value else "False"


@dataclass(frozen=True)
class IntVal(QEValue):
    value: int

    def render(self) -> str:
        return str(self.value)


class _StringSet(QEValue):
    _func = ""

    def __init__(self, values: Iterable[str] = ()) -> None:
        self.values = tuple(values)

    def render(self) -> str:
        return f"{self._func}({_quoted_list(self.values)})"

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.values == self.values  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((self._func, self.values))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.values)!r})"


class IsIn(_StringSet):
    _func = "is_in"


class NotIn(_StringSet):
    _func = "not_in"


@dataclass(frozen=True)
class _IntCompare(QEValue):
    value: int

    _func = ""

    def render(self) -> str:
        return f"{self._func}({self.value})"


class Greater(_IntCompare):
    _func = "gt"


class GreaterEqual(_IntCompare):
    _func = "ge"


class LessThan(_IntCompare):
    _func = "lt"


class LessThanEqual(_IntCompare):
    _func = "le"


@dataclass(frozen=True)
class IsNone(QEValue):
    """``is_none()`` when true, ``not_none()`` when false."""

    value: bool = True

    def render(self) -> str:
        return "is_none()" if self.value else "not_none()"


def coerce(value: Any) -> QEValue:
    """
    Wrap a plain Python value in its renderer.

    ``bool`` is checked before ``int`` because it is a subclass of it.

    Raises:
        TypeError: for values with no query-language rendering.
    """
    if isinstance(value, QEValue):
        return value
    if isinstance(value, bool):
        return BoolVal(value)
    if isinstance(value, int):
        return IntVal(value)
    if isinstance(value, str):
        return StringVal(value)
    raise TypeError(f"cannot render {type(value).__name__} value {value!r} in a graph query")
