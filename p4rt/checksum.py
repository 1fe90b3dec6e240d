"""Internet (one's complement) checksums."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from p4rt.bitmath import BitVec

_UDP6_HEADERS_LEN = 48


@dataclass
class Csum:
    """A running 16-bit one's complement sum."""

    value: int = 0

    def add(self, a: int, b: int) -> None:
        """Add the big-endian word formed by bytes ``a`` and ``b``."""
        total = self.value + ((a << 8) | b)
        if total > 0xFFFF:
            total = (total & 0xFFFF) + 1
        self.value = total

    def _add_words(self, data: Sequence[int], size: int) -> None:
        if len(data) != size:
            raise ValueError(f"expected {size} bytes, got {len(data)}")
        for a, b in zip(data[::2], data[1::2]):
            self.add(a, b)

    def add128(self, data: Sequence[int]) -> None:
        self._add_words(data, 16)

    def add32(self, data: Sequence[int]) -> None:
        self._add_words(data, 4)

    def add16(self, data: Sequence[int]) -> None:
        self._add_words(data, 2)

    def result(self) -> int:
        """The complemented sum, ready to place in a header."""
        return ~self.value & 0xFFFF


def udp6_checksum(data: bytes) -> int:
    """UDP checksum of an IPv6 packet that starts with its IPv6 header."""
    if len(data) < _UDP6_HEADERS_LEN:
        raise ValueError(
            f"packet of {len(data)} bytes is shorter than IPv6 and UDP headers"
        )
    csum = Csum()
    csum.add128(data[8:24])
    csum.add128(data[24:40])
    csum.add16(data[4:6])
    csum.add(0, data[6])
    csum.add16(data[40:42])
    csum.add16(data[42:44])
    csum.add16(data[44:46])

    payload = data[_UDP6_HEADERS_LEN:]
    even = len(payload) - len(payload) % 2
    for a, b in zip(payload[:even:2], payload[1:even:2]):
        csum.add(a, b)
    if even != len(payload):
        csum.add(payload[even], 0)

    return csum.result()


def bitvec_csum(bv: BitVec) -> BitVec:
    """Complemented sum of the 16-bit words of a field of up to 128 bits."""
    buf = bv.load().to_bytes(16, "big")
    total = sum(int.from_bytes(buf[i:i + 2], "big") for i in range(0, 16, 2))
    if total > 0xFFFF:
        raise OverflowError("checksum word sum exceeds 16 bits")
    result = BitVec(16)
    result.store(~total & 0xFFFF)
    return result