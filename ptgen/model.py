# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""Data model shared by the layout planner and the table builders.

All positions and sizes are counted in 512-byte sectors.
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError
from .guid import DEFAULT_DISK_GUID, DEFAULT_SIGNATURE, type_to_guid_and_name

SECTOR_SIZE = 512

MBR_ENTRY_COUNT = 4

GPT_ENTRY_COUNT = 128
GPT_ENTRY_SIZE = 128
GPT_ENTRY_SECTORS = GPT_ENTRY_COUNT * GPT_ENTRY_SIZE // SECTOR_SIZE  # = 32
GPT_FIRST_ENTRY_SECTOR = 2


class TableKind(enum.Enum):
    MBR = "mbr"
    GPT = "gpt"


@dataclass(frozen=True)
class PartitionRequest:
    """One fully resolved partition declaration.

    size and start are in sectors. A start of None (or 0) lets the planner
    place the partition.
    """
    size: int
    start: Optional[int] = None
    type: int = 0x83
    type_guid: Optional[uuid.UUID] = None
    name: Optional[str] = None
    required: bool = False
    hybrid: bool = False
    attributes: int = 0

    @property
    def has_start(self) -> bool:
        return bool(self.start)

    def gpt_type(self) -> uuid.UUID:
        if self.type_guid is not None:
            return self.type_guid
        return type_to_guid_and_name(self.type)[0]


@dataclass(frozen=True)
class DiskConfig:
    """Disk-wide settings, threaded unchanged through planner and builders."""
    heads: int = 0
    sectors: int = 0
    align: int = 0
    active: int = 1  # 1-based partition number, 0 = none
    signature: int = DEFAULT_SIGNATURE
    disk_guid: uuid.UUID = DEFAULT_DISK_GUID
    table: TableKind = TableKind.MBR
    last_usable: int = 0  # GPT only, 0 = size the disk to the partitions
    backup: bool = False
    split: bool = False
    first_entry: int = GPT_FIRST_ENTRY_SECTOR
    ignore_null_sized: bool = False

    @classmethod
    def from_disk_size(cls, total_sectors: int, **kwargs) -> "DiskConfig":
        """GPT config for a disk of total_sectors (0 = derive from partitions).

        Setting a disk size always enables the backup table.
        """
        kwargs.setdefault("table", TableKind.GPT)
        kwargs["backup"] = True
        if total_sectors:
            minimum = 2 * GPT_ENTRY_SECTORS + 3
            if total_sectors <= minimum:
                raise ConfigError(
                    f"GPT disk size must be larger than {minimum * SECTOR_SIZE // 1024} KBytes")
            kwargs["last_usable"] = total_sectors - GPT_ENTRY_SECTORS - 2
        return cls(**kwargs)

    @property
    def is_gpt(self) -> bool:
        return self.table is TableKind.GPT

    @property
    def capacity(self) -> int:
        return GPT_ENTRY_COUNT if self.is_gpt else MBR_ENTRY_COUNT

    @property
    def first_usable(self) -> int:
        """First LBA after the primary GPT entry array."""
        return self.first_entry + GPT_ENTRY_SECTORS

    def validate(self) -> None:
        if not self.is_gpt and (self.heads <= 0 or self.sectors <= 0):
            raise ConfigError("heads and sectors per track are required for MBR tables")
        if self.align < 0:
            raise ConfigError(f"Invalid alignment {self.align}")
        if not 0 <= self.active <= self.capacity:
            raise ConfigError(f"Active partition {self.active} out of range")
        if not 0 <= self.signature <= 0xFFFFFFFF:
            raise ConfigError(f"Disk signature 0x{self.signature:X} does not fit 32 bits")
        if self.first_entry < GPT_FIRST_ENTRY_SECTOR:
            raise ConfigError(
                f"GPT First Entry offset must not be smaller than {GPT_FIRST_ENTRY_SECTOR // 2} KBytes")
        if self.last_usable and self.last_usable < self.first_usable:
            raise ConfigError(
                f"Last usable sector {self.last_usable} lies before first usable {self.first_usable}")


@dataclass(frozen=True)
class ComputedPartition:
    """Sector range [start, end) assigned to request number index."""
    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def last(self) -> int:
        return self.end - 1

    @property
    def offset(self) -> int:
        return self.start * SECTOR_SIZE

    @property
    def byte_length(self) -> int:
        return self.length * SECTOR_SIZE
