"""HiCuts decision trees for multi-dimensional packet classification.

The rule space is cut recursively along a heuristically chosen dimension.
Each cut yields a set of partitions; partitions with at most ``binth`` rules
become leaves, and larger ones are cut again. The ``spfac`` tuning parameter
bounds how much rules may be replicated across the partitions of one cut.
"""

from __future__ import annotations

import logging
import math
import struct
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional, Union

from p4rt.rules import (
    Keyset,
    KeysetRange,
    Layout,
    PrefixMask,
    Rule,
    extract_field,
    max_d,
    min_d,
)

_log = logging.getLogger(__name__)


def _f32(value: float) -> float:
    """Round ``value`` to single precision."""
    return struct.unpack("f", struct.pack("f", value))[0]


def _goal(spfac: float, count: int) -> int:
    """The target replicated rule count, ``spfac * count`` in single precision."""
    product = _f32(_f32(spfac) * _f32(float(count)))
    if math.isnan(product) or product <= 0:
        return 0
    return int(product)


def _mask_order(rule: Rule) -> tuple[int, int]:
    # Prefix rules first, longest prefix first; other rules keep their order.
    if isinstance(rule.mask, PrefixMask):
        return (0, -rule.mask.length)
    return (1, 0)


def _layout_repr(layout: Sequence[Layout]) -> str:
    parts = ", ".join(
        f"Layout {{ match_kind: {dim.match_kind.name.capitalize()}, "
        f"width: {dim.width} }}"
        for dim in layout
    )
    return f"[{parts}]"


@dataclass
class Partition:
    """A slice of the key space along one dimension and the rules touching it."""

    key_range: KeysetRange
    rules: list[Rule] = field(default_factory=list)


class Leaf:
    """A tree leaf holding rules searched linearly.

    Prefix rules are ordered first, longest prefix first; the relative order
    of all other rules is kept.
    """

    def __init__(self, key_range: KeysetRange, rules: Sequence[Rule]) -> None:
        self.key_range = key_range
        self.rules: list[Rule] = sorted(rules, key=_mask_order)

    def __repr__(self) -> str:
        return f"Leaf(range=({self.key_range.dump()}), rules={len(self.rules)})"

    def dump(self, level: int) -> str:
        indent = "  " * level
        text = f"{indent}Leaf(range=({self.key_range.dump()}))\n"
        for rule in self.rules:
            text += f"{indent}{indent}{rule.dump()}\n"
        return text


@dataclass
class Internal:
    """An inner node cut along dimension ``d``."""

    key_range: KeysetRange
    d: int
    children: list[Union[Internal, Leaf]] = field(default_factory=list)

    def dump(self, level: int) -> str:
        indent = "  " * level
        text = f"{indent}Internal(d={self.d} range=({self.key_range.dump()}))\n"
        for child in self.children:
            text += f"{indent}{child.dump(level + 1)}"
        return text

    def decide(self, key: bytes, layout: Sequence[Layout]) -> Optional[Rule]:
        """The first rule matching ``key`` below this node, if any.

        The first internal child whose range holds the key decides alone;
        leaves that hold the key but have no matching rule are passed over.
        """
        for child in self.children:
            if isinstance(child, Internal):
                if child.key_range.contains(key, layout):
                    return child.decide(key, layout)
            elif child.key_range.contains(key, layout):
                for rule in child.rules:
                    if rule.key_range.contains(key, layout):
                        return rule
        return None


Node = Union[Internal, Leaf]


class DecisionTree:
    """A HiCuts tree with at most ``binth`` rules in each leaf."""

    def __init__(
        self,
        binth: int,
        spfac: float,
        layout: Sequence[Layout],
        rules: Sequence[Rule],
    ) -> None:
        self.binth = binth
        self.spfac = spfac
        self.layout = tuple(layout)
        size = sum(dim.width for dim in self.layout)
        full = KeysetRange(Keyset.minimum(size), Keyset.maximum(size))
        self.root = cut(binth, spfac, full, self.layout, list(rules))

    def decide(self, key: bytes) -> Optional[Rule]:
        """The rule that classifies ``key``, or None."""
        if self.root.key_range.contains(key, self.layout):
            return self.root.decide(key, self.layout)
        return None

    def dump(self) -> str:
        text = (
            f"DecisionTree(binth={self.binth}, spfac={self.spfac!r} "
            f"layout={_layout_repr(self.layout)})\n"
        )
        return text + self.root.dump(0)


def _same_rules(a: Sequence[Rule], b: Sequence[Rule]) -> bool:
    return len(a) == len(b) and all(x is y for x, y in zip(a, b))


def cut(
    binth: int,
    spfac: float,
    key_range: KeysetRange,
    layout: Sequence[Layout],
    rules: list[Rule],
) -> Internal:
    """Recursively cut ``rules`` into a tree and return its root.

    Raises ValueError when a partition would need cutting but holds exactly
    the rules being cut, since cutting it again could never make progress.
    """
    d, parts = cut_dimension(rules, spfac, key_range, layout)
    _log.debug("DOMAIN=%d", d)
    node = Internal(key_range=key_range, d=d)
    for part in parts:
        if len(part.rules) <= binth:
            node.children.append(Leaf(part.key_range, part.rules))
            continue
        if _same_rules(part.rules, rules):
            raise ValueError(
                f"cannot separate {len(rules)} rules into leaves of at most "
                f"{binth} rules"
            )
        node.children.append(
            cut(binth, spfac, part.key_range, layout, part.rules)
        )
    return node


def cut_dimension(
    rules: Sequence[Rule],
    spfac: float,
    key_range: KeysetRange,
    layout: Sequence[Layout],
) -> tuple[int, list[Partition]]:
    """Partition along the dimension whose largest partition is smallest.

    Ties go to the lowest dimension.
    """
    candidates = []
    for d in range(len(layout)):
        parts = partitions(d, spfac, rules, key_range, layout)
        largest = max((len(p.rules) for p in parts), default=0)
        _log.debug("d=%d lc=%d", d, largest)
        candidates.append((largest, parts))
    if not candidates:
        raise ValueError("layout has no dimensions")
    index = min(range(len(candidates)), key=lambda i: candidates[i][0])
    return index, candidates[index][1]


def partitions(
    d: int,
    spfac: float,
    rules: Sequence[Rule],
    key_range: KeysetRange,
    layout: Sequence[Layout],
) -> list[Partition]:
    """Partition ``rules`` along dimension ``d``.

    The number of partitions is found by a binary search aiming at a total
    replicated rule count of ``spfac * len(rules)``. With fewer than four
    rules the search does not run and no partitions are made.
    """
    lower = min_d(d, layout, rules).as_int()
    upper = max_d(d, layout, rules).as_int()
    if upper < lower:
        raise ValueError(f"no rule bounds to partition in dimension {d}")

    count = len(rules) // 2
    bound = count // 2
    goal = _goal(spfac, len(rules))
    rule_count = 0
    result: list[Partition] = []
    over = upper - lower + 1

    _log.debug("lower=0x%x upper=0x%x", lower, upper)

    while bound:
        result = partition(rules, d, lower, count, over, key_range, layout)
        rule_count = sum(len(p.rules) for p in result)
        _log.debug(
            "check x=%d bound=%d goal=%d rules=%d parts=%d",
            count, bound, goal, rule_count, len(result),
        )
        if rule_count == goal:
            break
        if rule_count > goal:
            count -= bound
        else:
            count += bound
        bound //= 2

    # The search may end one partition too many above the goal.
    if rule_count > goal:
        count -= 1
        result = partition(rules, d, lower, count, over, key_range, layout)

    return result


def partition(
    rules: Sequence[Rule],
    d: int,
    begin: int,
    count: int,
    over: int,
    key_range: KeysetRange,
    layout: Sequence[Layout],
) -> list[Partition]:
    """Cut ``over`` values from ``begin`` along ``d`` into ``count`` partitions.

    Each partition inherits ``key_range`` with dimension ``d`` replaced by its
    own bounds, which saturate at the largest value the field can hold. A
    rule joins every partition it overlaps.
    """
    if count == 0:
        return []
    size = over // count
    field_max = int.from_bytes(b"\xff" * layout[d].width, "big")
    _log.debug("p_size=0x%x over=0x%x count=0x%x", size, over, count)

    result = []
    for index in range(count):
        p_begin = begin + size * index
        p_end = min(p_begin + size, field_max)
        _log.debug("p_begin=0x%x p_end=0x%x", p_begin, p_end)

        p_range = key_range.copy()
        p_range.begin.set_field(d, layout, p_begin)
        p_range.end.set_field(d, layout, p_end)
        part = Partition(key_range=p_range)

        for rule in rules:
            r_begin = extract_field(d, layout, rule.key_range.begin).as_int()
            r_end = extract_field(d, layout, rule.key_range.end).as_int()
            starts_inside = p_begin <= r_begin < p_end
            ends_inside = p_begin <= r_end < p_end
            spans = r_begin <= p_begin and r_end >= p_end
            if starts_inside or ends_inside or spans:
                part.rules.append(rule)

        result.append(part)
    return result