# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""CRC32 as used by the GPT header and partition entry array."""

import zlib


def crc32(data) -> int:
    """Reflected CRC32 (poly 0xEDB88320), seeded all-ones, output inverted."""
    return zlib.crc32(bytes(data)) & 0xFFFFFFFF
