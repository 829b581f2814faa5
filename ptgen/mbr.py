# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""
MBR partition table builder.

Boot sector layout:
    0x000 - 0x1B7   boot code (left zeroed)
    0x1B8 - 0x1BB   32-bit disk signature
    0x1BE - 0x1FD   4 primary partition entries, 16 bytes each
    0x1FE - 0x1FF   55 AA
"""

import logging
import struct
from dataclasses import dataclass

from .errors import OutOfSpace
from .geometry import GPT_HEADS, GPT_SECTORS, to_chs
from .model import MBR_ENTRY_COUNT, SECTOR_SIZE

logger = logging.getLogger(__name__)

MBR_DISK_SIGNATURE_OFFSET = 440
MBR_PARTITION_ENTRY_OFFSET = 446
MBR_BOOT_SIGNATURE_OFFSET = 510
MBR_ENTRY_SIZE = 16

MBR_ACTIVE = 0x80
GPT_PROTECTIVE_TYPE = 0xEE

_ENTRY_FORMAT = '<B3sB3sII'


@dataclass
class MbrEntry:
    """Primary partition entry (16 bytes)."""
    status: int = 0
    chs_start: bytes = b'\x00\x00\x00'
    type: int = 0
    chs_end: bytes = b'\x00\x00\x00'
    lba_start: int = 0
    lba_length: int = 0

    def pack(self) -> bytes:
        return struct.pack(_ENTRY_FORMAT, self.status, self.chs_start, self.type,
                           self.chs_end, self.lba_start, self.lba_length)

    @classmethod
    def unpack(cls, raw) -> "MbrEntry":
        return cls(*struct.unpack(_ENTRY_FORMAT, bytes(raw[:MBR_ENTRY_SIZE])))

    @property
    def is_empty(self) -> bool:
        return self.type == 0 and self.lba_length == 0


def _check_lba32(index, start, length):
    if start > 0xFFFFFFFF or length > 0xFFFFFFFF:
        raise OutOfSpace(
            f"Partition {index} at sector {start} (+{length}) does not fit a 32-bit MBR entry",
            index=index)


def make_entry(index, part_type, start, length, active, heads, sectors) -> MbrEntry:
    """Entry for a partition covering [start, start + length)."""
    _check_lba32(index, start, length)
    return MbrEntry(
        status=MBR_ACTIVE if active else 0,
        chs_start=to_chs(start, heads, sectors),
        type=part_type,
        chs_end=to_chs(start + length - 1, heads, sectors),
        lba_start=start,
        lba_length=length,
    )


def legacy_entries(parts, requests, config):
    """The four primary entries of an MBR-only disk.

    Slot i describes request i; a skipped request leaves its slot empty.
    """
    entries = [MbrEntry() for _ in range(MBR_ENTRY_COUNT)]
    for part in parts:
        req = requests[part.index]
        entries[part.index] = make_entry(part.index, req.type, part.start, part.length,
                                         part.index + 1 == config.active,
                                         config.heads, config.sectors)
    return entries


def protective_entry(alternate_lba: int) -> MbrEntry:
    """Type 0xEE entry covering LBA 1 through the backup GPT header."""
    return MbrEntry(
        type=GPT_PROTECTIVE_TYPE,
        chs_start=to_chs(1, GPT_HEADS, GPT_SECTORS),
        chs_end=to_chs(alternate_lba, GPT_HEADS, GPT_SECTORS),
        lba_start=1,
        # UEFI: 0xFFFFFFFF when the disk is too large for the field
        lba_length=min(alternate_lba, 0xFFFFFFFF),
    )


def hybrid_entries(parts, requests, config):
    """Protective entry plus up to three GPT partitions flagged hybrid."""
    entries = [MbrEntry() for _ in range(MBR_ENTRY_COUNT)]
    slot = 1
    for part in parts:
        req = requests[part.index]
        if not req.hybrid:
            continue
        if slot >= MBR_ENTRY_COUNT:
            logger.debug("No MBR slot left for hybrid partition %d", part.index)
            continue
        entries[slot] = make_entry(part.index, req.type, part.start, part.length,
                                   part.index + 1 == config.active,
                                   GPT_HEADS, GPT_SECTORS)
        slot += 1
    return entries


def build_mbr(signature: int, entries) -> bytes:
    """Assemble a 512-byte boot sector with an empty boot code area."""
    mbr = bytearray(SECTOR_SIZE)
    struct.pack_into('<I', mbr, MBR_DISK_SIGNATURE_OFFSET, signature)
    for i, entry in enumerate(entries[:MBR_ENTRY_COUNT]):
        off = MBR_PARTITION_ENTRY_OFFSET + i * MBR_ENTRY_SIZE
        mbr[off:off + MBR_ENTRY_SIZE] = entry.pack()
    mbr[MBR_BOOT_SIGNATURE_OFFSET] = 0x55
    mbr[MBR_BOOT_SIGNATURE_OFFSET + 1] = 0xAA
    return bytes(mbr)


def parse_mbr(sector):
    """Return (signature, entries) from a boot sector built by build_mbr."""
    signature = struct.unpack_from('<I', sector, MBR_DISK_SIGNATURE_OFFSET)[0]
    entries = []
    for i in range(MBR_ENTRY_COUNT):
        off = MBR_PARTITION_ENTRY_OFFSET + i * MBR_ENTRY_SIZE
        entries.append(MbrEntry.unpack(sector[off:off + MBR_ENTRY_SIZE]))
    return signature, entries
