# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""GUID helpers: parsing, well-known partition types and type keywords."""

import uuid

from .errors import InvalidIdentifier, InvalidPartition

GUID_STRING_LENGTH = 36

# Well-known partition type GUIDs
ESP_TYPE_GUID = uuid.UUID("C12A7328-F81F-11D2-BA4B-00A0C93EC93B")
BASIC_DATA_TYPE_GUID = uuid.UUID("EBD0A0A2-B9E5-4433-87C0-68B6B72699C7")
BIOS_BOOT_TYPE_GUID = uuid.UUID("21686148-6449-6E6F-744E-656564454649")
CROS_KERNEL_TYPE_GUID = uuid.UUID("FE3A2A5D-4F32-41A7-B725-ACCC3285A309")
LINUX_FIT_TYPE_GUID = uuid.UUID("CAE9BE83-B15F-49CC-863F-081B744A2D93")
LINUX_FS_TYPE_GUID = uuid.UUID("0FC63DAF-8483-4772-8E79-3D69D8477DE4")
SIFIVE_SPL_TYPE_GUID = uuid.UUID("5B193300-FC78-40CD-8002-E86C45580B47")
SIFIVE_UBOOT_TYPE_GUID = uuid.UUID("2E54B353-1271-4842-806F-E436D6AF6985")

DEFAULT_SIGNATURE = 0x5452574F  # 'OWRT'
DEFAULT_DISK_GUID = uuid.UUID(f"{DEFAULT_SIGNATURE:08x}-2211-4433-5566-778899aabb00")

# ChromeOS kernel attribute bits
CROS_PRIORITY_SHIFT = 48
CROS_SUCCESSFUL_SHIFT = 56

# GPT type keyword -> (type GUID, default attribute bits)
GPT_TYPE_KEYWORDS = {
    "cros_kernel": (CROS_KERNEL_TYPE_GUID,
                    (1 << CROS_PRIORITY_SHIFT) | (1 << CROS_SUCCESSFUL_SHIFT)),
    "sifiveu_spl": (SIFIVE_SPL_TYPE_GUID, 0),
    "sifiveu_uboot": (SIFIVE_UBOOT_TYPE_GUID, 0),
}


def parse_guid(text: str) -> uuid.UUID:
    """Parse a textual GUID (xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx)."""
    if len(text) != GUID_STRING_LENGTH:
        raise InvalidIdentifier(f"Invalid guid string '{text}'")
    try:
        return uuid.UUID(text)
    except ValueError:
        raise InvalidIdentifier(f"Invalid guid string '{text}'") from None


def parse_type_keyword(keyword: str):
    """Return (type GUID, default attributes) for a GPT type keyword."""
    try:
        return GPT_TYPE_KEYWORDS[keyword]
    except KeyError:
        raise InvalidPartition(f'Invalid GPT partition type "{keyword}"') from None


def type_to_guid_and_name(mbr_type: int, name=None):
    """Map a legacy MBR type byte to a GPT type GUID.

    Not every MBR type has a GPT equivalent; unknown ones become basic data.
    An EFI system partition without a name gets the conventional one.
    """
    if mbr_type == 0xEF:
        return ESP_TYPE_GUID, name if name is not None else "EFI System Partition"
    if mbr_type == 0x83:
        return LINUX_FS_TYPE_GUID, name
    if mbr_type == 0x2E:
        return LINUX_FIT_TYPE_GUID, name
    return BASIC_DATA_TYPE_GUID, name


def derive_partition_guid(disk_guid: uuid.UUID, index: int) -> uuid.UUID:
    """Unique partition GUID: the disk GUID with its last byte offset by index."""
    raw = bytearray(disk_guid.bytes_le)
    raw[-1] = (raw[-1] + index) & 0xFF
    return uuid.UUID(bytes_le=bytes(raw))
