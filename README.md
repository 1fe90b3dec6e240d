# p4rt

Pure-Python building blocks for P4 packet-processing pipelines: fixed-width
bit vectors, Internet checksums, match-action tables and a HiCuts
decision-tree classifier. No third-party dependencies.

## Modules

- `p4rt.bitmath`: `BitVec`, a fixed-width bit vector stored most significant
  bit first within each byte, with `load_be`/`load_le`/`load` and
  `store_be`/`store_le`/`store`, `resize`, `as_bytes` and `copy`. Loads and
  stores work on widths from 1 to 128 bits and raise `ValueError` otherwise.
  The arithmetic helpers `add_be`, `add_le`, `mod_be` and `mod_le` return a
  vector as wide as the wider operand; the adders raise `OverflowError` when
  the sum does not fit in 128 bits. `add_generic` is a bit-serial adder for
  two vectors of equal width (`ValueError` on a width mismatch).
- `p4rt.checksum`: `Csum`, a running 16-bit ones'-complement sum (`add`,
  `add16`, `add32`, `add128`, `result`); `udp6_checksum`, the UDP checksum of
  a packet that starts with its IPv6 header (`ValueError` if the packet is
  shorter than the IPv6 and UDP headers); and `bitvec_csum`, the complemented
  sum of the 16-bit words of a field.
- `p4rt.externs`: the `Checksum` extern, whose `run` sums the checksums of a
  list of `BitVec` fields (or of objects with a `csum()` method) into a
  16-bit `BitVec`.
- `p4rt.keys`: table keys `ExactKey`, `RangeKey`, `TernaryKey` and `LpmKey`,
  built from `BigUintKey`, `DontCare`, `TernaryValue`, `TernaryMasked` and
  `Prefix`. Each key has `to_bytes()` giving its little-endian wire form
  (prefixes as address bytes followed by the length byte). `key_matches` and
  `keyset_matches` test selector integers against keys.
- `p4rt.table`: `Table` holding a set of `TableEntry` objects (identified by
  their key alone). `Table.match_selector` returns the matching entries; when
  the keyset has a prefix dimension only the longest-prefix matches are kept,
  and results are ordered by descending priority. `Table.dump` lists the keys.
  `sort_entries`, `prune_entries_by_lpm` and `sort_entries_by_priority` are
  available on their own.
- `p4rt.rules`: `Keyset`, `KeysetRange`, `Layout`, `MatchKind`, `Rule` with
  the masks `NoMask`, `TernaryMask` and `PrefixMask`, and `Field`, plus
  `extract_field`, `min_d` and `max_d` for working with one dimension of a
  keyset.
- `p4rt.hicuts`: `DecisionTree`, which cuts a rule set recursively into
  `Internal` nodes and `Leaf` nodes holding at most `binth` rules, with
  `spfac` bounding rule replication. `DecisionTree.decide(key)` returns the
  matching `Rule` or `None`; `dump()` renders the tree. The building steps
  `cut`, `cut_dimension`, `partitions` and `partition` are exposed as
  functions. `cut` raises `ValueError` when a set of rules cannot be
  separated any further.

Match misses in `p4rt.keys` and tree-building steps in `p4rt.hicuts` are
reported at debug level through the standard `logging` module.

## Installing

```
pip install .
```

## Examples

Bit-vector arithmetic:

```python
from p4rt.bitmath import BitVec, add_be

a = BitVec(16)
a.store_be(47)
b = BitVec(16)
b.store_be(74)
assert add_be(a, b).load_be() == 121
```

Looking up entries in a match table:

```python
from ipaddress import IPv6Address
from p4rt.keys import LpmKey, Prefix
from p4rt.table import Table, TableEntry

table = Table()
table.entries.add(TableEntry(key=(LpmKey(Prefix(IPv6Address("fd00:4700::"), 24)),),
                             action=None, priority=1, name="a0"))
matches = table.match_selector([int(IPv6Address("fd00:4700::1"))])
assert [m.name for m in matches] == ["a0"]
```

## What this package does not do

It does not parse packets or headers, run a pipeline, or decode table-entry
and action-parameter bytes received from a control plane. There is no
command-line tool and no packet I/O; the package supplies the data
structures and matching logic that such a program would use.

## Running the tests

```
pip install .[test]
pytest
```