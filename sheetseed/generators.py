"""
sheetseed/generators.py — Value generators for generated columns.

A value generator is stateful: the insert runtime asks it for one value per
inserted row, in row order. Anything with a next_value() method works, and
so does a plain zero-argument callable. The transformation itself never
calls a generator.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Callable, Protocol, Union


class ValueGenerator(Protocol):
    def next_value(self) -> Any:
        ...


GeneratorLike = Union[ValueGenerator, Callable[[], Any]]


def is_generator(obj: Any) -> bool:
    return callable(getattr(obj, "next_value", None)) or callable(obj)


def next_value(gen: GeneratorLike) -> Any:
    nv = getattr(gen, "next_value", None)
    if callable(nv):
        return nv()
    return gen()


class SequenceValueGenerator:
    """Integers start, start + increment, start + 2 * increment, ..."""

    def __init__(self, start: int = 1, increment: int = 1):
        self.start = start
        self.increment = increment
        self._next = start

    def next_value(self) -> int:
        value = self._next
        self._next += self.increment
        return value

    def __repr__(self) -> str:
        return f"sequence(start={self.start}, increment={self.increment})"


class StringSequenceValueGenerator:
    """prefix + number, the number optionally left padded with zeros."""

    def __init__(self, prefix: str, start: int = 1, increment: int = 1, left_padding: int = 0):
        self.prefix = prefix
        self.left_padding = left_padding
        self._numbers = SequenceValueGenerator(start, increment)

    def next_value(self) -> str:
        n = self._numbers.next_value()
        return f"{self.prefix}{str(n).zfill(self.left_padding)}"

    def __repr__(self) -> str:
        return f"string_sequence(prefix={self.prefix!r})"


class DateSequenceValueGenerator:
    """start, start + increment, ... for dates or datetimes."""

    def __init__(self, start: Union[date, datetime], increment: timedelta = timedelta(days=1)):
        self.start = start
        self.increment = increment
        self._next = start

    def next_value(self) -> Union[date, datetime]:
        value = self._next
        self._next = self._next + self.increment
        return value

    def __repr__(self) -> str:
        return f"date_sequence(start={self.start!r}, increment={self.increment!r})"


def sequence(start: int = 1, increment: int = 1) -> SequenceValueGenerator:
    return SequenceValueGenerator(start, increment)


def string_sequence(prefix: str, start: int = 1, increment: int = 1, left_padding: int = 0) -> StringSequenceValueGenerator:
    return StringSequenceValueGenerator(prefix, start, increment, left_padding)


def date_sequence(start: Union[date, datetime], increment: timedelta = timedelta(days=1)) -> DateSequenceValueGenerator:
    return DateSequenceValueGenerator(start, increment)
