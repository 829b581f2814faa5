# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""Sequential sector allocation for an ordered list of partition requests."""

import logging

from .errors import InvalidPartition, OutOfSpace, OverlapError, TooManyPartitions
from .geometry import round_to_cylinder, round_up
from .model import ComputedPartition

logger = logging.getLogger(__name__)


def check_capacity(requests, config) -> None:
    if len(requests) > config.capacity:
        raise TooManyPartitions(
            f"Too many partitions: {len(requests)} requested, "
            f"{config.table.name} holds {config.capacity}")


def plan(requests, config):
    """Assign a sector range to every request, in order.

    MBR: every partition is placed one track past the cursor, and without
    an alignment unit its end is pushed to the next cylinder boundary.
    GPT: placement starts at the first usable LBA and must stay within
    config.last_usable when one is set.

    Returns the ComputedPartition of each request that was not skipped.
    """
    check_capacity(requests, config)

    parts = []
    cursor = config.first_usable if config.is_gpt else 0
    for i, req in enumerate(requests):
        if req.size <= 0:
            if config.ignore_null_sized:
                logger.debug("Skipping zero-sized partition %d", i)
                continue
            raise InvalidPartition(f"Invalid size in partition {i}!", index=i)

        start = cursor
        if not config.is_gpt:
            start += config.sectors
        if req.has_start:
            if req.start < start:
                raise OverlapError(f"Invalid start {req.start} for partition {i}!",
                                   index=i, start=req.start, cursor=start)
            start = req.start
        elif config.align:
            start = round_up(start, config.align)

        end = start + req.size
        if config.is_gpt:
            if config.last_usable and end > config.last_usable + 1:
                raise OutOfSpace(
                    f"Partition {i} ends after last usable sector {config.last_usable}", index=i)
        elif not config.align:
            end = round_to_cylinder(end, config.heads, config.sectors)

        cursor = end
        parts.append(ComputedPartition(i, start, end))
    return parts
