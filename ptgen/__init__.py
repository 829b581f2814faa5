# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""ptgen - MBR/GPT partition table generator for disk and flash images."""

from .errors import (ConfigError, ImageIOError, InvalidIdentifier, InvalidPartition,
                     OutOfSpace, OverlapError, PtgenError, TooManyPartitions)
from .image import format_report, generate
from .model import ComputedPartition, DiskConfig, PartitionRequest, TableKind

__version__ = "1.0.0"

__all__ = [
    "ComputedPartition", "ConfigError", "DiskConfig", "ImageIOError",
    "InvalidIdentifier", "InvalidPartition", "OutOfSpace", "OverlapError",
    "PartitionRequest", "PtgenError", "TableKind", "TooManyPartitions",
    "format_report", "generate",
]
