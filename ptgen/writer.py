# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""Positions fixed byte blocks into one or more output files."""

import logging
from dataclasses import dataclass

from .errors import ImageIOError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Region:
    """Block of data written at a byte offset of an output file."""
    stream: str
    offset: int
    data: bytes

    @property
    def end(self) -> int:
        return self.offset + len(self.data)


def group_regions(regions):
    """{stream: [regions]} in the order streams first appear."""
    streams = {}
    for region in regions:
        streams.setdefault(region.stream, []).append(region)
    return streams


def write_regions(regions):
    """Write every region, one output file at a time.

    Files are created or truncated, then extended by seeking past gaps,
    which read back as zeroes. A failed file is left in place.
    Returns the list of files written.
    """
    written = []
    for stream, blocks in group_regions(regions).items():
        try:
            f = open(stream, "wb")
        except OSError as e:
            raise ImageIOError(f"Can't open output file '{stream}': {e.strerror}") from e
        try:
            with f:
                for block in blocks:
                    f.seek(block.offset)
                    n = f.write(block.data)
                    if n != len(block.data):
                        raise ImageIOError(
                            f"write failed on '{stream}': {n} of {len(block.data)} bytes written")
        except ImageIOError:
            raise
        except OSError as e:
            raise ImageIOError(f"write failed on '{stream}': {e.strerror}") from e
        logger.debug("Wrote %d block(s) to %s", len(blocks), stream)
        written.append(stream)
    return written
