# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""
GUID Partition Table builder.

Disk layout produced (LBA = 512-byte sector):
    LBA 0                   protective (or hybrid) MBR
    LBA 1                   primary GPT header (92 bytes, rest of sector zero)
    LBA first_entry         128 entries x 128 bytes (32 sectors)
    ...                     partitions
    LBA alternate - 32      backup entry array (optional)
    LBA alternate           backup GPT header (optional)
"""

import dataclasses
import logging
import struct
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from .crc import crc32
from .errors import TooManyPartitions
from .guid import BIOS_BOOT_TYPE_GUID, derive_partition_guid
from .mbr import build_mbr, hybrid_entries, protective_entry
from .model import (GPT_ENTRY_COUNT, GPT_ENTRY_SECTORS, GPT_ENTRY_SIZE,
                    GPT_FIRST_ENTRY_SECTOR, SECTOR_SIZE)
from .writer import Region

logger = logging.getLogger(__name__)

GPT_SIGNATURE = b'EFI PART'
GPT_REVISION = 0x00010000
GPT_HEADER_SIZE = 92
GPT_HEADER_SECTOR = 1
GPT_NAME_SIZE = 72
GPT_NAME_UNITS = GPT_NAME_SIZE // 2

# Partition attribute bits
GPT_ATTR_PLAT_REQUIRED = 1 << 0
GPT_ATTR_EFI_IGNORE = 1 << 1  # reserved, never set
GPT_ATTR_LEGACY_BOOT = 1 << 2

_HEADER_FORMAT = '<8sIIII QQQQ 16s QIII'
_ENTRY_FORMAT = '<16s16sQQQ72s'
_HEADER_CRC_OFFSET = 16

ZERO_GUID = uuid.UUID(int=0)


# =====================================================================
# Partition names
# =====================================================================

def encode_name(name) -> bytes:
    """Encode a UTF-8 name into the 72-byte UTF-16LE name field.

    Only 1, 2 and 3 byte UTF-8 sequences are decoded. Any other lead byte,
    4-byte sequences included, becomes a single '?' and consumes one byte.
    Names longer than 36 code units are cut.
    """
    src = name.encode('utf-8') if isinstance(name, str) else bytes(name)

    def byte(n):
        return src[n] if n < len(src) else 0

    units = []
    n = 0
    while len(units) < GPT_NAME_UNITS and n < len(src) and src[n] != 0:
        b = src[n]
        if b & 0x80 == 0x00:
            units.append(b)
            n += 1
        elif b & 0xE0 == 0xC0:
            units.append((b & 0x1F) << 6 | (byte(n + 1) & 0x3F))
            n += 2
        elif b & 0xF0 == 0xE0:
            units.append((b & 0x0F) << 12 | (byte(n + 1) & 0x3F) << 6 | (byte(n + 2) & 0x3F))
            n += 3
        else:
            units.append(ord('?'))
            n += 1

    raw = bytearray(GPT_NAME_SIZE)
    for i, unit in enumerate(units):
        struct.pack_into('<H', raw, i * 2, unit)
    return bytes(raw)


def decode_name(raw) -> str:
    name = bytes(raw).decode('utf-16-le', errors='replace')
    end = name.find('\x00')
    return name if end < 0 else name[:end]


# =====================================================================
# Records
# =====================================================================

@dataclass
class GptEntry:
    """Partition entry in the GPT array (128 bytes)."""
    type_guid: uuid.UUID = ZERO_GUID
    guid: uuid.UUID = ZERO_GUID
    first_lba: int = 0
    last_lba: int = 0  # inclusive
    attributes: int = 0
    name: bytes = bytes(GPT_NAME_SIZE)

    def pack(self) -> bytes:
        return struct.pack(_ENTRY_FORMAT, self.type_guid.bytes_le, self.guid.bytes_le,
                           self.first_lba, self.last_lba, self.attributes, self.name)

    @classmethod
    def unpack(cls, raw) -> "GptEntry":
        type_guid, guid, first, last, attr, name = struct.unpack(
            _ENTRY_FORMAT, bytes(raw[:GPT_ENTRY_SIZE]))
        return cls(uuid.UUID(bytes_le=type_guid), uuid.UUID(bytes_le=guid),
                   first, last, attr, name)

    @property
    def is_empty(self) -> bool:
        return self.type_guid == ZERO_GUID

    def decoded_name(self) -> str:
        return decode_name(self.name)


@dataclass
class GptHeader:
    """GPT header according to the UEFI specification (92 bytes)."""
    my_lba: int
    alternate_lba: int
    first_usable_lba: int
    last_usable_lba: int
    disk_guid: uuid.UUID
    entries_lba: int
    entries_crc: int = 0
    header_crc: int = 0
    entry_count: int = GPT_ENTRY_COUNT
    entry_size: int = GPT_ENTRY_SIZE
    signature: bytes = GPT_SIGNATURE
    revision: int = GPT_REVISION
    header_size: int = GPT_HEADER_SIZE

    def pack(self) -> bytes:
        return struct.pack(_HEADER_FORMAT, self.signature, self.revision, self.header_size,
                           self.header_crc, 0, self.my_lba, self.alternate_lba,
                           self.first_usable_lba, self.last_usable_lba,
                           self.disk_guid.bytes_le, self.entries_lba, self.entry_count,
                           self.entry_size, self.entries_crc)

    def pack_sector(self) -> bytes:
        return self.pack().ljust(SECTOR_SIZE, b'\x00')

    @classmethod
    def unpack(cls, raw) -> "GptHeader":
        (signature, revision, size, header_crc, _, my_lba, alternate_lba, first_usable,
         last_usable, disk_guid, entries_lba, count, entry_size, entries_crc) = struct.unpack(
            _HEADER_FORMAT, bytes(raw[:GPT_HEADER_SIZE]))
        return cls(my_lba, alternate_lba, first_usable, last_usable,
                   uuid.UUID(bytes_le=disk_guid), entries_lba, entries_crc, header_crc,
                   count, entry_size, signature, revision, size)

    def compute_crc(self) -> int:
        """CRC32 over the header with its own CRC field zeroed."""
        return crc32(dataclasses.replace(self, header_crc=0).pack())

    def sealed(self) -> "GptHeader":
        return dataclasses.replace(self, header_crc=self.compute_crc())


def pack_entries(entries) -> bytes:
    raw = bytearray(GPT_ENTRY_COUNT * GPT_ENTRY_SIZE)
    for i, entry in enumerate(entries[:GPT_ENTRY_COUNT]):
        raw[i * GPT_ENTRY_SIZE:(i + 1) * GPT_ENTRY_SIZE] = entry.pack()
    return bytes(raw)


def unpack_entries(raw) -> List[GptEntry]:
    return [GptEntry.unpack(raw[i * GPT_ENTRY_SIZE:(i + 1) * GPT_ENTRY_SIZE])
            for i in range(len(raw) // GPT_ENTRY_SIZE)]


# =====================================================================
# Table construction
# =====================================================================

@dataclass
class GptTable:
    mbr: bytes
    header: GptHeader
    entries: List[GptEntry]
    raw_entries: bytes
    backup: Optional[GptHeader] = None
    filler: Optional[GptEntry] = field(default=None, repr=False)


def build_entries(parts, requests, config) -> List[GptEntry]:
    """Entry array: slot i describes request i, skipped requests stay empty."""
    entries = [GptEntry() for _ in range(GPT_ENTRY_COUNT)]
    for part in parts:
        req = requests[part.index]
        attributes = req.attributes
        if part.index + 1 == config.active:
            attributes |= GPT_ATTR_LEGACY_BOOT
        if req.required:
            attributes |= GPT_ATTR_PLAT_REQUIRED
        entries[part.index] = GptEntry(
            type_guid=req.gpt_type(),
            guid=derive_partition_guid(config.disk_guid, part.index + 1),
            first_lba=part.start,
            last_lba=part.last,
            attributes=attributes,
            name=encode_name(req.name) if req.name else bytes(GPT_NAME_SIZE),
        )
    return entries


def filler_entry(parts, requests, config) -> Optional[GptEntry]:
    """BIOS boot entry covering the gap before an explicitly placed first partition."""
    if not requests or not requests[0].has_start:
        return None
    if not parts or parts[0].index != 0 or parts[0].start <= config.first_usable:
        return None
    if parts[-1].index == GPT_ENTRY_COUNT - 1:
        raise TooManyPartitions(
            f"No free entry left to describe sectors {config.first_usable}-{parts[0].start - 1}")
    return GptEntry(
        type_guid=BIOS_BOOT_TYPE_GUID,
        guid=derive_partition_guid(config.disk_guid, GPT_ENTRY_COUNT),
        first_lba=config.first_usable,
        last_lba=parts[0].start - 1,
    )


def build_gpt(parts, requests, config) -> GptTable:
    """Build MBR, entry array and headers for the laid-out partitions."""
    entries = build_entries(parts, requests, config)
    filler = filler_entry(parts, requests, config)
    if filler is not None:
        entries[GPT_ENTRY_COUNT - 1] = filler

    if config.last_usable:
        last_usable = config.last_usable
    else:
        cursor = parts[-1].end if parts else config.first_usable
        last_usable = cursor - 1
    alternate = last_usable + GPT_ENTRY_SECTORS + 1

    mbr_entries = hybrid_entries(parts, requests, config)
    mbr_entries[0] = protective_entry(alternate)

    raw_entries = pack_entries(entries)
    header = GptHeader(
        my_lba=GPT_HEADER_SECTOR,
        alternate_lba=alternate,
        first_usable_lba=config.first_usable,
        last_usable_lba=last_usable,
        disk_guid=config.disk_guid,
        entries_lba=config.first_entry,
        entries_crc=crc32(raw_entries),
    ).sealed()

    backup = None
    if config.backup:
        backup = dataclasses.replace(
            header,
            my_lba=header.alternate_lba,
            alternate_lba=header.my_lba,
            entries_lba=alternate - GPT_ENTRY_SECTORS,
        ).sealed()

    logger.debug("PartitionEntryLBA=%d, FirstUsableLBA=%d, LastUsableLBA=%d",
                 config.first_entry, config.first_usable, last_usable)
    return GptTable(build_mbr(config.signature, mbr_entries), header, entries,
                    raw_entries, backup, filler)


def gpt_regions(table: GptTable, config, output: str) -> List[Region]:
    """Place the table blocks into one image or, split, into .start/.entry/.end."""
    header_offset = GPT_HEADER_SECTOR * SECTOR_SIZE
    if not config.split:
        regions = [
            Region(output, 0, table.mbr),
            Region(output, header_offset, table.header.pack_sector()),
            Region(output, config.first_entry * SECTOR_SIZE, table.raw_entries),
        ]
        if table.backup is not None:
            regions += [
                Region(output, table.backup.entries_lba * SECTOR_SIZE, table.raw_entries),
                Region(output, table.backup.my_lba * SECTOR_SIZE, table.backup.pack_sector()),
            ]
        return regions

    head = f"{output}.start"
    regions = [
        Region(head, 0, table.mbr),
        Region(head, header_offset, table.header.pack_sector()),
    ]
    if config.first_entry == GPT_FIRST_ENTRY_SECTOR:
        regions.append(Region(head, config.first_entry * SECTOR_SIZE, table.raw_entries))
    else:
        regions.append(Region(f"{output}.entry", 0, table.raw_entries))
    if table.backup is not None:
        tail = f"{output}.end"
        regions += [
            Region(tail, 0, table.raw_entries),
            Region(tail, GPT_ENTRY_SECTORS * SECTOR_SIZE, table.backup.pack_sector()),
        ]
    return regions
