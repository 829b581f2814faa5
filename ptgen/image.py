# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""One-shot partition table generation: layout, tables, output files."""

import logging

from .errors import ConfigError
from .gpt import build_gpt, gpt_regions
from .layout import plan
from .mbr import build_mbr, legacy_entries
from .model import SECTOR_SIZE
from .writer import Region, write_regions

logger = logging.getLogger(__name__)


def mbr_regions(parts, requests, config, output):
    return [Region(output, 0, build_mbr(config.signature, legacy_entries(parts, requests, config)))]


def generate(requests, config, output):
    """Lay out requests, write the partition table and return the partitions.

    Nothing is written unless every request could be laid out and described.
    """
    if not output:
        raise ConfigError("No output file given")
    config.validate()
    requests = list(requests)

    parts = plan(requests, config)
    if config.is_gpt:
        table = build_gpt(parts, requests, config)
        regions = gpt_regions(table, config, output)
    else:
        regions = mbr_regions(parts, requests, config, output)

    for part in parts:
        logger.debug("Partition %d: start=%d, end=%d, size=%d",
                     part.index, part.offset, part.end * SECTOR_SIZE, part.byte_length)

    write_regions(regions)
    return parts


def format_report(parts) -> str:
    """Byte offset and byte length of each partition, one value per line."""
    lines = []
    for part in parts:
        lines.append(str(part.offset))
        lines.append(str(part.byte_length))
    return "".join(line + "\n" for line in lines)
