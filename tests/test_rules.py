import pytest

from p4rt.rules import (
    Field,
    Keyset,
    KeysetRange,
    Layout,
    MatchKind,
    NoMask,
    PrefixMask,
    Rule,
    extract_field,
    max_d,
    min_d,
)

LAYOUT2 = (Layout(MatchKind.RANGE, 1), Layout(MatchKind.RANGE, 1))


def _rule(name, begin, end, mask=None):
    return Rule(
        name,
        KeysetRange(Keyset(bytes(begin)), Keyset(bytes(end))),
        mask if mask is not None else NoMask(),
    )


def rules_from_paper():
    return [
        _rule("r1", [0, 0], [31, 255]),
        _rule("r2", [0, 128], [255, 131]),
        _rule("r3", [64, 128], [71, 255]),
        _rule("r4", [67, 0], [67, 127]),
        _rule("r5", [64, 0], [71, 15]),
        _rule("r6", [128, 4], [191, 131]),
        _rule("r7", [192, 0], [192, 255]),
    ]


def test_keyset_min_max():
    assert Keyset.minimum(3).data == bytearray(3)
    assert Keyset.maximum(2).data == bytearray(b"\xff\xff")
    assert len(Keyset.minimum(16)) == 16


def test_keyset_dump_is_big_endian_hex():
    assert Keyset(bytes([0xfd, 0x00, 0x47])).dump() == "fd0047"
    assert Keyset.minimum(4).dump() == "0"


def test_rule_dump():
    r = _rule("r4", [67, 0], [67, 127])
    assert r.dump() == "r4: begin=4300 end=437f"


def test_set_field_single_byte():
    ks = Keyset.minimum(2)
    ks.set_field(1, LAYOUT2, 67)
    assert ks.data == bytearray([0, 67])
    ks.set_field(0, LAYOUT2, 255)
    assert ks.data == bytearray([255, 67])


def test_set_field_is_left_aligned_in_wide_field():
    layout = (Layout(MatchKind.PREFIX, 4),)
    ks = Keyset.minimum(4)
    ks.set_field(0, layout, 0xfd00)
    assert ks.data == bytearray([0xfd, 0x00, 0, 0])


def test_set_field_too_wide_raises():
    ks = Keyset.minimum(2)
    with pytest.raises(ValueError):
        ks.set_field(0, LAYOUT2, 0x100)


def test_set_field_bad_dimension_raises():
    ks = Keyset.minimum(2)
    with pytest.raises(IndexError):
        ks.set_field(2, LAYOUT2, 1)


def test_keyset_copy_is_independent():
    ks = Keyset(bytes([1, 2]))
    dup = ks.copy()
    dup.set_field(0, LAYOUT2, 9)
    assert ks.data == bytearray([1, 2])
    assert dup.data == bytearray([9, 2])


@pytest.mark.parametrize(
    "key,expected",
    [
        ([67, 99], True),
        ([67, 0], True),
        ([67, 127], True),
        ([67, 128], False),
        ([66, 99], False),
        ([68, 0], False),
    ],
)
def test_range_contains(key, expected):
    r4 = rules_from_paper()[3]
    assert r4.key_range.contains(bytes(key), LAYOUT2) is expected


def test_full_range_contains_everything():
    full = KeysetRange(Keyset.minimum(2), Keyset.maximum(2))
    for key in ([0, 0], [255, 255], [22, 22], [192, 247]):
        assert full.contains(bytes(key), LAYOUT2)


def test_range_copy_is_independent():
    rng = KeysetRange(Keyset.minimum(2), Keyset.maximum(2))
    dup = rng.copy()
    dup.begin.set_field(0, LAYOUT2, 5)
    assert rng.begin.data == bytearray(2)


def test_extract_field():
    ks = Keyset(bytes([0xfd, 0x00, 0x47, 0x01]))
    layout = (Layout(MatchKind.EXACT, 1), Layout(MatchKind.RANGE, 3))
    assert extract_field(0, layout, ks).data == bytes([0xfd])
    assert extract_field(1, layout, ks).data == bytes([0x00, 0x47, 0x01])


def test_min_max_over_paper_rules():
    rules = rules_from_paper()
    assert min_d(0, LAYOUT2, rules) == 0
    assert max_d(0, LAYOUT2, rules) == 255
    assert min_d(1, LAYOUT2, rules) == 0
    assert max_d(1, LAYOUT2, rules) == 255


def test_min_max_subset():
    rules = rules_from_paper()[2:5]  # r3, r4, r5
    assert min_d(0, LAYOUT2, rules) == 64
    assert max_d(0, LAYOUT2, rules) == 71
    assert max_d(1, LAYOUT2, rules) == 255


def test_min_max_without_rules():
    assert max_d(0, LAYOUT2, []).is_zero()
    assert min_d(0, LAYOUT2, []).data == b"\xff\xff"


def test_field_value_and_zero():
    assert Field(bytes([0, 0, 0])).is_zero()
    assert not Field(bytes([0, 1])).is_zero()
    assert Field(bytes([0xfd, 0x00])).as_int() == 0xfd00


def test_field_comparisons_ignore_width():
    assert Field(bytes([0, 5])) == Field(bytes([5]))
    assert Field(bytes([0, 5])) == 5
    assert Field(bytes([4])) < Field(bytes([0, 5]))
    assert Field(bytes([1, 0])) > 255
    assert hash(Field(bytes([0, 5]))) == hash(Field(bytes([5])))


def test_field_sub():
    assert (Field(bytes([0, 10])) - 3) == 7
    assert (Field(bytes([10])) - Field(bytes([10]))).is_zero()


def test_field_sub_underflow_raises():
    with pytest.raises(ValueError):
        Field(bytes([1])) - 2


def test_field_arithmetic_keeps_width():
    f = Field(bytes([6]))
    assert len((f + 1).data) == 1
    assert (f + 1) == 7
    assert (f * 2) == 12
    assert (f // 4) == 1


def test_field_division_by_zero():
    with pytest.raises(ZeroDivisionError):
        Field(bytes([6])) // 0


def test_prefix_mask_rule_keeps_mask():
    r = _rule("p", [0xfd], [0xfd], PrefixMask(24))
    assert r.mask == PrefixMask(24)
    assert r.mask != NoMask()