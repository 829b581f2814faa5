# Copyright (c) 2024-2026 Christian Moeller
# Email: c.moeller.ffo@gmail.com, brianmayclone@googlemail.com
#
# This project is open source and community-driven.
# Contributions are welcome! See README.md for details.
#
# SPDX-License-Identifier: MIT

"""
ptgen command line front end.

Translates the classic ptgen options into a DiskConfig and a list of fully
resolved PartitionRequests. Options are processed in command-line order:
-N, -r, -H and -T apply to the next -p only, while the legacy type given
with -t is inherited by every following partition.

Usage: ptgen [-v] [-n] [-b] [-g] -h <heads> -s <sectors> -o <outputfile>
          [-a <part number>] [-l <align kB>] [-G <guid>]
          [-e <gpt_entry_offset>] [-d <gpt_disk_size>]
          [[-t <type> | -T <GPT part type>] [-r] [-N <name>] -p <size>[@<start>]...]
"""

import argparse
import logging
import re
import sys

from .errors import ConfigError, PtgenError
from .guid import (DEFAULT_DISK_GUID, DEFAULT_SIGNATURE, parse_guid, parse_type_keyword,
                   type_to_guid_and_name)
from .image import format_report, generate
from .log import setup_logging
from .model import DiskConfig, PartitionRequest, TableKind

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r'0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*')


def parse_int(text: str) -> int:
    """C-style integer literal: decimal, 0x hex or 0 octal."""
    m = _NUMBER.fullmatch(text.strip())
    if not m:
        raise argparse.ArgumentTypeError(f"invalid number '{text}'")
    return _literal(m.group(0))


def _literal(digits: str) -> int:
    if digits[:2].lower() == '0x':
        return int(digits, 16)
    if len(digits) > 1 and digits[0] == '0':
        return int(digits, 8)
    return int(digits)


def parse_type(text: str) -> int:
    """Legacy partition type byte, given in hex."""
    try:
        return int(text, 16) & 0xFF
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid partition type '{text}'") from None


def parse_kbytes(text: str) -> int:
    """Size in KBytes: a number, optionally followed by k, m or g.

    Returns 0 for anything unparseable.
    """
    m = _NUMBER.match(text)
    result = _literal(m.group(0)) if m else 0
    rest = text[m.end():] if m else text

    suffix = rest[:1].lower()
    exp = {'': 0, 'k': 0, 'm': 1, 'g': 2}.get(suffix)
    if exp is None:
        return 0
    if rest[1:]:
        logger.error("garbage after end of number")
        return 0
    return result * (1 << (10 * exp))


# =====================================================================
# Request building
# =====================================================================

class RequestBuilder:
    """Collects -p declarations together with their pending modifiers."""

    def __init__(self):
        self.type = 0x83
        self.requests = []
        self._reset()

    def _reset(self):
        self.name = None
        self.required = False
        self.hybrid = False
        self.type_guid = None
        self.attributes = 0

    def set_gpt_type(self, keyword):
        self.type_guid, self.attributes = parse_type_keyword(keyword)

    def add(self, arg):
        size, _, start = arg.partition('@')
        start_kb = parse_kbytes(start) if start else 0
        size_kb = parse_kbytes(size)

        name = self.name
        type_guid = self.type_guid
        if type_guid is None:
            type_guid, name = type_to_guid_and_name(self.type, name)

        logger.debug("part %d %d", start_kb, size_kb)
        self.requests.append(PartitionRequest(
            size=size_kb * 2,
            start=start_kb * 2 or None,
            type=self.type,
            type_guid=type_guid,
            name=name,
            required=self.required,
            hybrid=self.hybrid,
            attributes=self.attributes,
        ))
        # 'type' carries over to the next declaration
        self._reset()


class _BuilderAction(argparse.Action):
    """Apply an option to the RequestBuilder stored on the namespace."""

    def __call__(self, parser, namespace, values, option_string=None):
        builder = namespace.builder
        if self.dest == 'type':
            builder.type = values
        elif self.dest == 'gpt_type':
            builder.set_gpt_type(values)
        elif self.dest == 'name':
            builder.name = values
        elif self.dest == 'required':
            builder.required = True
        elif self.dest == 'hybrid':
            builder.hybrid = True
        elif self.dest == 'partition':
            builder.add(values)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ptgen", add_help=False,
        description="Generate an MBR or GPT partition table for a disk image")
    parser.add_argument("-o", dest="output", help="Output file (prefix with -b)")
    parser.add_argument("-v", dest="verbose", action="count", default=0,
                        help="Print partition layout to stderr")
    parser.add_argument("-n", dest="ignore_null_sized", action="store_true",
                        help="Ignore zero-sized partitions")
    parser.add_argument("-g", dest="gpt", action="store_true",
                        help="Generate a GUID partition table instead of MBR")
    parser.add_argument("-b", dest="split", action="store_true",
                        help="Split GPT image into .start/.end parts (implies backup table)")
    parser.add_argument("-h", dest="heads", type=parse_int, default=-1, help="Heads (MBR)")
    parser.add_argument("-s", dest="sectors", type=parse_int, default=-1,
                        help="Sectors per track (MBR)")
    parser.add_argument("-a", dest="active", type=parse_int, default=1,
                        help="Active partition number (0 = none)")
    parser.add_argument("-l", dest="align_kb", type=parse_int, default=0,
                        help="Align partitions to this many KBytes")
    parser.add_argument("-S", dest="signature", type=parse_int, default=DEFAULT_SIGNATURE,
                        help="32-bit disk signature")
    parser.add_argument("-G", dest="guid", default=None, help="Disk GUID")
    parser.add_argument("-e", dest="entry_offset", default=None,
                        help="Offset of the GPT entry array")
    parser.add_argument("-d", dest="disk_size", default=None,
                        help="GPT disk size, 0 = size of the partitions (implies backup table)")
    parser.add_argument("-t", dest="type", type=parse_type, action=_BuilderAction,
                        help="Legacy partition type (hex), inherited by following partitions")
    parser.add_argument("-T", dest="gpt_type", action=_BuilderAction,
                        help="GPT partition type keyword for the next partition")
    parser.add_argument("-N", dest="name", action=_BuilderAction,
                        help="Name of the next partition")
    parser.add_argument("-r", dest="required", nargs=0, action=_BuilderAction,
                        help="Mark the next partition platform-required")
    parser.add_argument("-H", dest="hybrid", nargs=0, action=_BuilderAction,
                        help="Mirror the next partition into the hybrid MBR")
    parser.add_argument("-p", dest="partition", action=_BuilderAction,
                        help="Partition <size>[@<start>]")
    return parser


def build_config(args) -> DiskConfig:
    """DiskConfig from parsed options."""
    table = TableKind.GPT if args.gpt else TableKind.MBR
    if args.output is None:
        raise ConfigError("No output file given")

    active = args.active
    capacity = DiskConfig(table=table).capacity
    if active > capacity or active < 0:
        active = 0

    kwargs = dict(
        heads=args.heads,
        sectors=args.sectors,
        align=args.align_kb * 2,
        active=active,
        signature=args.signature & 0xFFFFFFFF,
        disk_guid=parse_guid(args.guid) if args.guid is not None else DEFAULT_DISK_GUID,
        table=table,
        backup=args.split,
        split=args.split,
        ignore_null_sized=args.ignore_null_sized,
    )
    if args.entry_offset is not None:
        kwargs["first_entry"] = 2 * parse_kbytes(args.entry_offset)
    if args.disk_size is not None:
        return DiskConfig.from_disk_size(2 * parse_kbytes(args.disk_size), **kwargs)
    return DiskConfig(**kwargs)


def main(argv=None) -> int:
    setup_logging()
    parser = build_parser()
    try:
        args = parser.parse_args(argv, namespace=argparse.Namespace(builder=RequestBuilder()))
        if args.verbose:
            setup_logging(logging.DEBUG)
        config = build_config(args)
        parts = generate(args.builder.requests, config, args.output)
    except ConfigError as e:
        parser.print_usage(sys.stderr)
        print(e, file=sys.stderr)
        return 1
    except PtgenError as e:
        print(e, file=sys.stderr)
        return 1

    sys.stdout.write(format_report(parts))
    return 0
