# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""Exception hierarchy for the partition table generator.

Every error aborts the run. The CLI catches PtgenError, prints the message
to stderr and exits with a failure status.
"""


class PtgenError(Exception):
    """Base class for all ptgen errors."""


class ConfigError(PtgenError):
    """Missing or contradictory disk configuration, detected before layout."""


class InvalidPartition(PtgenError):
    """A partition request cannot be laid out or described."""

    def __init__(self, msg="", index=None):
        super().__init__(msg)
        self.index = index


class InvalidIdentifier(InvalidPartition):
    """A GUID string could not be parsed."""


class OverlapError(PtgenError):
    """An explicit start lies before the allocation cursor."""

    def __init__(self, msg="", index=None, start=0, cursor=0):
        super().__init__(msg)
        self.index = index
        self.start = start
        self.cursor = cursor


class OutOfSpace(PtgenError):
    """A partition ends beyond the last usable sector or a field's range."""

    def __init__(self, msg="", index=None):
        super().__init__(msg)
        self.index = index


class TooManyPartitions(PtgenError):
    """More requests than the partition table has slots for."""


class ImageIOError(PtgenError, OSError):
    """Opening or writing an output stream failed."""
