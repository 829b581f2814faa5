# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""
Legacy CHS geometry helpers.

The 24-bit CHS triple stored in an MBR entry is packed as:

        H (8 bit)     S (6 bit)   C (8+2 bit)
        |             |           |
    HHHHHHHH -+- CC SSSSSS -+- CCCCCCCC

Cylinders above 1023 do not fit and are truncated to their low 10 bits.
"""

# CHS geometry used for the protective/hybrid MBR of a GPT disk
GPT_HEADS = 254
GPT_SECTORS = 63


def to_chs(lba: int, heads: int, sectors: int) -> bytes:
    """Convert a sector number into the 3 CHS bytes of a partition entry."""
    s = (lba % sectors) + 1
    lba //= sectors
    h = lba % heads
    c = lba // heads
    return bytes((h & 0xFF, (s | ((c >> 2) & 0xC0)) & 0xFF, c & 0xFF))


def from_chs(raw) -> tuple:
    """Unpack 3 CHS bytes into (cylinder, head, sector)."""
    h, s, c = raw[0], raw[1], raw[2]
    return ((s & 0xC0) << 2) | c, h, s & 0x3F


def cylinder_size(heads: int, sectors: int) -> int:
    return heads * sectors


def round_to_cylinder(lba: int, heads: int, sectors: int) -> int:
    """Advance to the next cylinder boundary (a full cylinder if already on one)."""
    cyl = cylinder_size(heads, sectors)
    return lba + cyl - (lba % cyl)


def round_up(lba: int, align: int) -> int:
    """Round a sector number up to a multiple of the alignment unit."""
    return ((lba + align - 1) // align) * align
