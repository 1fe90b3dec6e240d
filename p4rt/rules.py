"""Keysets, field layouts and classification rules for decision trees.

A keyset is a fixed-length byte string made of consecutive fields. A layout
gives the width in bytes and match kind of each field. Rules carry an
inclusive range of keysets that they match.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Union


def _be_bytes(value: int) -> bytes:
    """Minimal big-endian bytes of ``value``; zero is a single zero byte."""
    if value < 0:
        raise ValueError("field values must not be negative")
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


def _fit(value: int, width: int) -> bytes:
    """Big-endian bytes of ``value`` cut or zero-filled at the end to ``width``."""
    raw = _be_bytes(value)[:width]
    return raw + bytes(width - len(raw))


class MatchKind(enum.Enum):
    """How a field of a keyset is matched."""

    EXACT = "exact"
    """The ``begin`` element of the range is matched exactly."""

    RANGE = "range"
    """The field must fall between ``begin`` and ``end`` inclusive."""

    TERNARY = "ternary"
    """The field masked by ``end`` is compared with ``begin``."""

    PREFIX = "prefix"
    """The first N bits of the field are compared with ``begin``."""


@dataclass(frozen=True)
class Layout:
    """One dimension of a keyset: its match kind and width in bytes."""

    match_kind: MatchKind
    width: int

    def __post_init__(self) -> None:
        if self.width < 0:
            raise ValueError("layout width must not be negative")


def _spans(layout: Sequence[Layout]) -> Iterator[tuple[int, int]]:
    offset = 0
    for dim in layout:
        yield offset, offset + dim.width
        offset += dim.width


def _span(d: int, layout: Sequence[Layout]) -> tuple[int, int]:
    if not 0 <= d < len(layout):
        raise IndexError(f"dimension {d} out of range for {len(layout)} fields")
    offset = sum(dim.width for dim in layout[:d])
    return offset, offset + layout[d].width


@dataclass
class Keyset:
    """A mutable sequence of key bytes."""

    data: bytearray

    def __post_init__(self) -> None:
        self.data = bytearray(self.data)

    @classmethod
    def minimum(cls, size: int) -> Keyset:
        """The all-zero keyset of ``size`` bytes."""
        return cls(bytearray(size))

    @classmethod
    def maximum(cls, size: int) -> Keyset:
        """The all-ones keyset of ``size`` bytes."""
        return cls(bytearray(b"\xff" * size))

    def __len__(self) -> int:
        return len(self.data)

    def copy(self) -> Keyset:
        return Keyset(bytearray(self.data))

    def set_field(self, d: int, layout: Sequence[Layout], value: int) -> None:
        """Store ``value`` in dimension ``d``.

        The value's big-endian bytes are written at the start of the field and
        the rest of the field is zero-filled.
        """
        start, end = _span(d, layout)
        width = end - start
        raw = _be_bytes(value)
        if len(raw) > width:
            raise ValueError(
                f"value {value:#x} does not fit in a {width}-byte field"
            )
        if end > len(self.data):
            raise IndexError("layout exceeds keyset size")
        self.data[start:end] = raw + bytes(width - len(raw))

    def dump(self) -> str:
        """The whole keyset as one big-endian hex number."""
        return format(int.from_bytes(self.data, "big"), "x")


@dataclass
class KeysetRange:
    """An inclusive range of keysets, compared field by field."""

    begin: Keyset
    end: Keyset

    def copy(self) -> KeysetRange:
        return KeysetRange(self.begin.copy(), self.end.copy())

    def dump(self) -> str:
        return f"begin={self.begin.dump()} end={self.end.dump()}"

    def contains(self, key: bytes, layout: Sequence[Layout]) -> bool:
        """Whether every field of ``key`` lies within this range's bounds."""
        key = bytes(key)
        for start, end in _spans(layout):
            value = key[start:end]
            if value < self.begin.data[start:end]:
                return False
            if value > self.end.data[start:end]:
                return False
        return True


@dataclass(frozen=True)
class NoMask:
    """A rule without a mask."""


@dataclass(frozen=True)
class TernaryMask:
    """A rule masked by a ternary range."""

    key_range: KeysetRange


@dataclass(frozen=True)
class PrefixMask:
    """A rule matching a prefix of ``length`` bits."""

    length: int


RuleMask = Union[NoMask, TernaryMask, PrefixMask]


@dataclass
class Rule:
    """A named rule matching an inclusive range of keysets."""

    name: str
    key_range: KeysetRange
    mask: RuleMask = field(default_factory=NoMask)

    def dump(self) -> str:
        return f"{self.name}: {self.key_range.dump()}"


class Field:
    """The bytes of one keyset dimension, compared by their big-endian value."""

    __slots__ = ("data",)

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)

    def __repr__(self) -> str:
        return f"Field({self.data!r})"

    def is_zero(self) -> bool:
        return not any(self.data)

    def as_int(self) -> int:
        return int.from_bytes(self.data, "big")

    @staticmethod
    def _value(other: object) -> int:
        if isinstance(other, Field):
            return other.as_int()
        if isinstance(other, int) and not isinstance(other, bool):
            return other
        raise TypeError(f"cannot combine Field with {type(other).__name__}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (Field, int)) or isinstance(other, bool):
            return NotImplemented
        return self.as_int() == self._value(other)

    def __hash__(self) -> int:
        return hash(self.as_int())

    def __lt__(self, other: Union[Field, int]) -> bool:
        return self.as_int() < self._value(other)

    def __le__(self, other: Union[Field, int]) -> bool:
        return self.as_int() <= self._value(other)

    def __gt__(self, other: Union[Field, int]) -> bool:
        return self.as_int() > self._value(other)

    def __ge__(self, other: Union[Field, int]) -> bool:
        return self.as_int() >= self._value(other)

    def __add__(self, other: Union[Field, int]) -> Field:
        return Field(_fit(self.as_int() + self._value(other), len(self.data)))

    def __mul__(self, other: Union[Field, int]) -> Field:
        return Field(_fit(self.as_int() * self._value(other), len(self.data)))

    def __floordiv__(self, other: Union[Field, int]) -> Field:
        return Field(_fit(self.as_int() // self._value(other), len(self.data)))

    def __sub__(self, other: Union[Field, int]) -> Field:
        result = self.as_int() - self._value(other)
        if result < 0:
            raise ValueError("field subtraction underflow")
        return Field(_be_bytes(result))


def extract_field(d: int, layout: Sequence[Layout], keyset: Keyset) -> Field:
    """The bytes of dimension ``d`` of ``keyset``."""
    start, end = _span(d, layout)
    return Field(keyset.data[start:end])


def min_d(d: int, layout: Sequence[Layout], rules: Sequence[Rule]) -> Field:
    """The smallest range start in dimension ``d`` among ``rules``.

    With no rules, an all-ones field as wide as the whole keyset is returned.
    """
    size = sum(dim.width for dim in layout)
    smallest = Field(b"\xff" * size)
    for rule in rules:
        candidate = extract_field(d, layout, rule.key_range.begin)
        if candidate < smallest:
            smallest = candidate
    return smallest


def max_d(d: int, layout: Sequence[Layout], rules: Sequence[Rule]) -> Field:
    """The largest range end in dimension ``d`` among ``rules``; zero if none."""
    size = sum(dim.width for dim in layout)
    largest = Field(bytes(size))
    for rule in rules:
        candidate = extract_field(d, layout, rule.key_range.end)
        if candidate > largest:
            largest = candidate
    return largest