"""Table keys and the rules for matching selector values against them."""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Union

_log = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def _le_bytes(value: int, width: int) -> bytes:
    """Little-endian bytes of ``value``, zero-padded or truncated to ``width``."""
    if value < 0:
        raise ValueError("key values must not be negative")
    if width < 0:
        raise ValueError("key width must not be negative")
    return (value % (1 << (8 * width))).to_bytes(width, "little")


@dataclass(frozen=True)
class BigUintKey:
    """An unsigned key value together with its width in bytes."""

    value: int
    width: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("key values must not be negative")
        if self.width < 0:
            raise ValueError("key width must not be negative")

    def to_bytes(self) -> bytes:
        return _le_bytes(self.value, self.width)


@dataclass(frozen=True)
class DontCare:
    """A ternary wildcard that matches any value."""


@dataclass(frozen=True)
class TernaryValue:
    """A ternary key that must match a value exactly."""

    key: BigUintKey


@dataclass(frozen=True)
class TernaryMasked:
    """A ternary key that matches a value under a mask."""

    value: int
    mask: int
    width: int


Ternary = Union[DontCare, TernaryValue, TernaryMasked]


@dataclass(frozen=True)
class Prefix:
    """An IPv4 or IPv6 address prefix of ``length`` bits."""

    addr: IPAddress
    length: int

    def __post_init__(self) -> None:
        if not isinstance(self.addr, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            object.__setattr__(self, "addr", ipaddress.ip_address(self.addr))
        if not 0 <= self.length <= 0xFF:
            raise ValueError(f"prefix length {self.length} does not fit in a byte")


@dataclass(frozen=True)
class ExactKey:
    """Matches a selector equal to the key value."""

    key: BigUintKey

    def to_bytes(self) -> bytes:
        return self.key.to_bytes()


@dataclass(frozen=True)
class RangeKey:
    """Matches a selector within an inclusive range."""

    begin: BigUintKey
    end: BigUintKey

    def to_bytes(self) -> bytes:
        return self.begin.to_bytes() + self.end.to_bytes()


@dataclass(frozen=True)
class TernaryKey:
    """Matches according to a ternary value; defaults to a wildcard."""

    ternary: Ternary = field(default_factory=DontCare)

    def to_bytes(self) -> bytes:
        t = self.ternary
        if isinstance(t, DontCare):
            return b""
        if isinstance(t, TernaryValue):
            return t.key.to_bytes()
        return _le_bytes(t.value, t.width) + _le_bytes(t.mask, t.width)


@dataclass(frozen=True)
class LpmKey:
    """Matches a selector address that falls under a prefix."""

    prefix: Prefix

    def to_bytes(self) -> bytes:
        return self.prefix.addr.packed + bytes([self.prefix.length])


Key = Union[ExactKey, RangeKey, TernaryKey, LpmKey]


def _prefix_mask(length: int, bits: int) -> int:
    if length == 0:
        return 0
    return ((1 << length) - 1) << (bits - length)


def _lpm_matches(selector: int, prefix: Prefix) -> bool:
    bits = prefix.addr.max_prefixlen
    if prefix.length > bits:
        raise ValueError(
            f"prefix length {prefix.length} exceeds {bits} bits for {prefix.addr}"
        )
    if not 0 <= selector < (1 << bits):
        raise ValueError(f"selector {selector:#x} does not fit in {bits} bits")
    mask = _prefix_mask(prefix.length, bits)
    key = int(prefix.addr)
    hit = selector & mask == key & mask
    if not hit:
        _log.debug(
            "match miss: %x & %x == %x & %x | %x == %x",
            selector, mask, key, mask, selector & mask, key & mask,
        )
    return hit


def key_matches(selector: int, key: Key) -> bool:
    """Whether a single selector value matches a single key."""
    if isinstance(key, ExactKey):
        hit = selector == key.key.value
        if not hit:
            _log.debug("match miss: %x != %x", selector, key.key.value)
        return hit
    if isinstance(key, RangeKey):
        hit = key.begin.value <= selector <= key.end.value
        if not hit:
            _log.debug(
                "match miss: begin=%d end=%d sel=%d",
                key.begin.value, key.end.value, selector,
            )
        return hit
    if isinstance(key, TernaryKey):
        t = key.ternary
        if isinstance(t, DontCare):
            return True
        if isinstance(t, TernaryValue):
            return selector == t.key.value
        return selector & t.mask == t.value & t.mask
    if isinstance(key, LpmKey):
        return _lpm_matches(selector, key.prefix)
    raise TypeError(f"unsupported key type {type(key).__name__}")


def keyset_matches(selector: Sequence[int], key: Sequence[Key]) -> bool:
    """Whether every selector value matches the key in the same dimension."""
    if len(selector) != len(key):
        raise ValueError(
            f"selector has {len(selector)} dimensions, key has {len(key)}"
        )
    return all(key_matches(s, k) for s, k in zip(selector, key))