"""nbtree command-line interface.

Usage:
    python3 -m nbtree dump --input level.dat
    cat player.nbt | python3 -m nbtree dump --little-endian
    python3 -m nbtree merge base.nbt overlay.nbt --output merged.nbt [--compress]
    python3 -m nbtree version
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import structlog

from . import (
    DEFAULT_MAX_DEPTH,
    ERR_TYPE_MISMATCH,
    CompoundTag,
    NbtError,
    __version__,
    read_nbt,
    write_nbt,
)

logger = structlog.get_logger(__name__)


def _configure_logging(verbose: bool) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _add_read_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--little-endian", action="store_true",
                   help="Input uses little-endian byte order (Bedrock edition)")
    p.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH, metavar="N",
                   help="Maximum container nesting (0 = no fixed limit, default %(default)s)")
    p.add_argument("--strict", action="store_true",
                   help="Fail on duplicate names in a compound instead of keeping the first")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nbtree",
        description="nbtree: inspect and merge NBT (Named Binary Tag) files",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr")
    sub = parser.add_subparsers(dest="command")

    # ── dump ──
    dump_p = sub.add_parser("dump", help="Print the tag tree")
    dump_p.add_argument("--input", "-i", metavar="FILE",
                        help="Read NBT from FILE instead of stdin")
    _add_read_options(dump_p)

    # ── merge ──
    merge_p = sub.add_parser("merge", help="Merge OVERLAY into BASE (OVERLAY wins on collisions)")
    merge_p.add_argument("base", metavar="BASE")
    merge_p.add_argument("overlay", metavar="OVERLAY")
    merge_p.add_argument("--output", "-o", metavar="FILE", required=True,
                         help="Write the merged tree to FILE")
    merge_p.add_argument("--compress", action="store_true", help="gzip the output")
    _add_read_options(merge_p)

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read NBT bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("nbtree: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _read_root(raw: bytes, args: argparse.Namespace):
    return read_nbt(
        raw,
        little_endian=args.little_endian,
        max_depth=args.max_depth,
        strict=args.strict,
    )


def _cmd_dump(args: argparse.Namespace) -> None:
    root = _read_root(_read_input(args.input), args)
    print(root.describe())


def _cmd_merge(args: argparse.Namespace) -> None:
    base = _read_root(_read_input(args.base), args)
    overlay = _read_root(_read_input(args.overlay), args)
    if not isinstance(base, CompoundTag) or not isinstance(overlay, CompoundTag):
        raise NbtError(ERR_TYPE_MISMATCH, "merge requires two compound root tags")
    merged = base.merge(overlay)
    out = write_nbt(merged, little_endian=args.little_endian, compressed=args.compress)
    with open(args.output, "wb") as f:
        f.write(out)
    logger.info("merged", base=args.base, overlay=args.overlay, output=args.output,
                entries=len(merged))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"nbtree {__version__}")
        return

    try:
        if args.command == "dump":
            _cmd_dump(args)
        elif args.command == "merge":
            _cmd_merge(args)
    except NbtError as e:
        print(f"nbtree: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"nbtree: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
