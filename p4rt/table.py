"""Match-action tables: entries, selector matching and result ordering."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from p4rt.keys import Key, LpmKey, keyset_matches

A = TypeVar("A")


@dataclass(eq=False)
class TableEntry(Generic[A]):
    """A table entry; identity (equality and hashing) is its key alone."""

    key: tuple[Key, ...]
    action: A
    priority: int = 0
    name: str = ""
    # Kept for observability only; the action itself is usually opaque.
    action_id: str = ""
    parameter_data: bytes = b""

    def __post_init__(self) -> None:
        self.key = tuple(self.key)
        if not 0 <= self.priority <= 0xFFFFFFFF:
            raise ValueError(f"priority {self.priority} does not fit in 32 bits")
        self.parameter_data = bytes(self.parameter_data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TableEntry):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return (
            f"TableEntry<{len(self.key)}>(key={self.key!r}, "
            f"priority={self.priority!r}, name={self.name!r})"
        )


@dataclass
class Table(Generic[A]):
    """A brute-force table holding a set of entries keyed by their keysets."""

    entries: set[TableEntry[A]] = field(default_factory=set)

    def match_selector(self, keyset: Sequence[int]) -> list[TableEntry[A]]:
        """Entries matching ``keyset``, pruned to longest prefixes and by priority."""
        hits = [e for e in self.entries if keyset_matches(keyset, e.key)]
        return sort_entries(hits)

    def dump(self) -> str:
        """One line per entry showing its key."""
        return "".join(f"{e.key!r}\n" for e in self.entries)


def sort_entries(entries: list[TableEntry[A]]) -> list[TableEntry[A]]:
    """Order match results.

    If the keyset has a prefix dimension, only the longest-prefix matches are
    kept; the remaining entries are then sorted by descending priority. Only
    meaningful for lists of match results.
    """
    if not entries:
        return entries
    for d, key in enumerate(entries[0].key):
        if isinstance(key, LpmKey):
            pruned = prune_entries_by_lpm(d, entries)
            sort_entries_by_priority(pruned)
            return pruned
    sort_entries_by_priority(entries)
    return entries


def prune_entries_by_lpm(
    d: int, entries: Iterable[TableEntry[A]]
) -> list[TableEntry[A]]:
    """Keep only entries whose prefix in dimension ``d`` is the longest present."""
    entries = list(entries)
    lengths = [
        e.key[d].prefix.length for e in entries if isinstance(e.key[d], LpmKey)
    ]
    longest = max(lengths, default=0)
    return [
        e
        for e in entries
        if isinstance(e.key[d], LpmKey) and e.key[d].prefix.length == longest
    ]


def sort_entries_by_priority(entries: list[TableEntry[A]]) -> None:
    """Sort in place, highest priority first; ties keep their order."""
    entries.sort(key=lambda e: e.priority, reverse=True)