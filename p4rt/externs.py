"""Extern objects available to pipeline programs."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, Union

from p4rt.bitmath import BitVec
from p4rt.checksum import bitvec_csum


class _Checksummable(Protocol):
    def csum(self) -> BitVec: ...


def _element_csum(element: Union[BitVec, _Checksummable]) -> BitVec:
    if isinstance(element, BitVec):
        return bitvec_csum(element)
    return element.csum()


class Checksum:
    """Checksum extern: sums the checksums of a list of fields."""

    def run(self, elements: Iterable[Union[BitVec, _Checksummable]]) -> BitVec:
        total = 0
        for element in elements:
            total += _element_csum(element).load()
            if total > 0xFFFF:
                raise OverflowError("checksum sum exceeds 16 bits")
        result = BitVec(16)
        result.store(total)
        return result