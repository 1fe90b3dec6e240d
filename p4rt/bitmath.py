"""Fixed-width bit vectors and the arithmetic used on header fields.

Bits are stored most-significant-first within each byte: bit 0 of the
vector is the high bit of the first byte.
"""

from __future__ import annotations

from collections.abc import Iterator

_MAX_LOAD_WIDTH = 128
_LIMIT = 1 << _MAX_LOAD_WIDTH


class BitVec:
    """A growable vector of bits backed by bytes."""

    def __init__(self, width: int = 0, data: bytes | None = None) -> None:
        if width < 0:
            raise ValueError("bit vector width must not be negative")
        self._width = width
        nbytes = (width + 7) // 8
        if data is None:
            self._buf = bytearray(nbytes)
        else:
            if len(data) < nbytes:
                raise ValueError(
                    f"{len(data)} bytes cannot hold {width} bits"
                )
            self._buf = bytearray(data[:nbytes])
            self._clear_tail()

    @property
    def _pad(self) -> int:
        return len(self._buf) * 8 - self._width

    def _clear_tail(self) -> None:
        pad = self._pad
        if pad and self._buf:
            self._buf[-1] &= (0xFF << pad) & 0xFF

    def _check_load_width(self) -> None:
        if self._width == 0:
            raise ValueError("cannot load or store an empty bit vector")
        if self._width > _MAX_LOAD_WIDTH:
            raise ValueError(
                f"bit vector of {self._width} bits exceeds "
                f"{_MAX_LOAD_WIDTH}-bit limit"
            )

    def _normalize_index(self, index: int) -> int:
        if index < 0:
            index += self._width
        if not 0 <= index < self._width:
            raise IndexError("bit index out of range")
        return index

    def __len__(self) -> int:
        return self._width

    def __getitem__(self, index: int) -> bool:
        i = self._normalize_index(index)
        return bool((self._buf[i >> 3] >> (7 - (i & 7))) & 1)

    def __setitem__(self, index: int, value: bool) -> None:
        i = self._normalize_index(index)
        bit = 1 << (7 - (i & 7))
        if value:
            self._buf[i >> 3] |= bit
        else:
            self._buf[i >> 3] &= ~bit & 0xFF

    def __iter__(self) -> Iterator[bool]:
        return (self[i] for i in range(self._width))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitVec):
            return NotImplemented
        return self._width == other._width and self._buf == other._buf

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        bits = "".join("1" if b else "0" for b in self)
        return f"BitVec({self._width}, [{bits}])"

    def load_be(self) -> int:
        """Read the bits as an unsigned integer, first element most significant."""
        self._check_load_width()
        return int.from_bytes(self._buf, "big") >> self._pad

    def load_le(self) -> int:
        """Read the bits as an unsigned integer, first element least significant."""
        self._check_load_width()
        chunks = bytearray(self._buf)
        chunks[-1] >>= self._pad
        return int.from_bytes(chunks, "little")

    def load(self) -> int:
        """Read using the native (little-endian) element order."""
        return self.load_le()

    def store_be(self, value: int) -> None:
        """Write ``value`` truncated to the width, first element most significant."""
        self._check_load_width()
        value &= (1 << self._width) - 1
        self._buf = bytearray((value << self._pad).to_bytes(len(self._buf), "big"))

    def store_le(self, value: int) -> None:
        """Write ``value`` truncated to the width, first element least significant."""
        self._check_load_width()
        value &= (1 << self._width) - 1
        raw = bytearray(value.to_bytes(len(self._buf), "little"))
        raw[-1] = (raw[-1] << self._pad) & 0xFF
        self._buf = raw

    def store(self, value: int) -> None:
        """Write using the native (little-endian) element order."""
        self.store_le(value)

    def resize(self, width: int, value: bool = False) -> None:
        """Grow or shrink to ``width`` bits, filling new bits with ``value``."""
        if width < 0:
            raise ValueError("bit vector width must not be negative")
        old = self._width
        nbytes = (width + 7) // 8
        if nbytes <= len(self._buf):
            del self._buf[nbytes:]
        else:
            self._buf.extend(bytes(nbytes - len(self._buf)))
        self._width = width
        self._clear_tail()
        if value:
            for i in range(old, width):
                self[i] = True

    def as_bytes(self) -> bytes:
        """The underlying bytes."""
        return bytes(self._buf)

    def copy(self) -> BitVec:
        return BitVec(self._width, bytes(self._buf))


def _result(width: int, value: int) -> int:
    if value >= _LIMIT:
        raise OverflowError("result exceeds 128-bit architectural limit")
    return value


def add_be(a: BitVec, b: BitVec) -> BitVec:
    """Add two big-endian fields; the result is as wide as the wider operand."""
    width = max(len(a), len(b))
    c = BitVec(width)
    c.store_be(_result(width, a.load_be() + b.load_be()))
    return c


def add_le(a: BitVec, b: BitVec) -> BitVec:
    """Add two little-endian fields; the result is as wide as the wider operand."""
    width = max(len(a), len(b))
    c = BitVec(width)
    c.store_le(_result(width, a.load_le() + b.load_le()))
    return c


def add_generic(a: BitVec, b: BitVec) -> BitVec:
    """Bit-serial adder for equal-width vectors of arbitrary size."""
    if len(a) != len(b):
        raise ValueError("bitvec add size mismatch")
    c = BitVec(len(a))
    for i in range(len(a) - 1, 0, -1):
        y = c[i]
        x = a[i] ^ b[i]
        if not (a[i] or b[i]):
            continue
        c[i] = x ^ y
        carry = (a[i] and b[i]) or y
        for j in range(i - 1, 0, -1):
            if not carry:
                break
            carry = c[j]
            c[j] = True
    return c


def mod_be(a: BitVec, b: BitVec) -> BitVec:
    """Remainder of two big-endian fields."""
    width = max(len(a), len(b))
    c = BitVec(width)
    c.store_be(a.load_be() % b.load_be())
    return c


def mod_le(a: BitVec, b: BitVec) -> BitVec:
    """Remainder of two little-endian fields."""
    width = max(len(a), len(b))
    c = BitVec(width)
    c.store_le(a.load_le() % b.load_le())
    return c