import pytest

from ptgen.crc import crc32
from ptgen.geometry import from_chs, round_to_cylinder, round_up, to_chs


def test_crc32_check_value():
    assert crc32(b"123456789") == 0xCBF43926


def test_crc32_empty_and_bytearray():
    assert crc32(b"") == 0
    assert crc32(bytearray(b"123456789")) == 0xCBF43926


def test_crc32_all_zero_entry_array():
    # 16 KiB of zeroes, the entry array of an empty GPT
    assert crc32(bytes(16384)) == crc32(bytearray(16384))
    assert 0 <= crc32(bytes(16384)) <= 0xFFFFFFFF


def test_to_chs_first_sector():
    assert to_chs(0, 16, 63) == b'\x00\x01\x00'


def test_to_chs_second_track_and_cylinder():
    assert to_chs(63, 16, 63) == b'\x01\x01\x00'
    assert to_chs(1008, 16, 63) == b'\x00\x01\x01'


def test_to_chs_high_cylinder_bits():
    chs = to_chs(1023 * 16 * 63, 16, 63)
    assert chs == b'\x00\xC1\xFF'
    assert from_chs(chs) == (1023, 0, 1)


def test_to_chs_cylinder_overflow_truncates():
    # cylinder 1024 wraps to cylinder 0
    assert to_chs(1024 * 16 * 63, 16, 63) == to_chs(0, 16, 63)


def test_round_to_cylinder_always_advances():
    assert round_to_cylinder(2111, 16, 63) == 3024
    assert round_to_cylinder(1008, 16, 63) == 2016
    assert round_to_cylinder(0, 16, 63) == 1008


@pytest.mark.parametrize("lba,align,expected", [
    (63, 2048, 2048),
    (2048, 2048, 2048),
    (2049, 2048, 4096),
    (34, 8, 40),
])
def test_round_up(lba, align, expected):
    assert round_up(lba, align) == expected
