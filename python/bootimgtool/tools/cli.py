#!/usr/bin/env python3
"""
Boot image unpack/pack CLI.

Unpacks a boot image into one file per item and packs such a directory back
into a boot image. Per-item options are generated from the item schema.

Usage:
    python -m bootimgtool.tools.cli unpack boot.img -o extracted
    python -m bootimgtool.tools.cli pack boot.img -i extracted
"""

import argparse
import logging
import sys
from pathlib import Path

from bootimgtool.codec import (
    AndroidCodec,
    BootImageCodec,
    BootImageType,
    CodecError,
    describe_codec_error,
)
from bootimgtool.items import Item, format_legend, items, unpacked_items
from bootimgtool.itemio import ItemFormatError, ItemIOError, ItemValueError
from bootimgtool.pack import (
    UsageError,
    check_preconditions,
    pack_image,
    parse_value_overrides,
)
from bootimgtool.resolver import ResolutionContext, describe, resolve
from bootimgtool.unpack import unpack_image

logger = logging.getLogger(__name__)

MAIN_USAGE = """\
Usage: bootimgtool <command> [<args>]

Available commands:
  unpack         Unpack a boot image
  pack           Assemble boot image from unpacked files

Pass -h/--help as an argument to a command to see its available options.
"""

LEGEND = """\
Legend:
  [A B L S]
   | | | `- Used by Sony ELF boot images
   | | `- Used by Loki'd Android boot images
   | `- Used by bump'd Android boot images
   `- Used by plain Android boot images
"""

UNPACK_EPILOG = """\
The following items are extracted from the boot image. These files contain
all of the information necessary to recreate an identical boot image.

{items}

{legend}
By default, the items are unpacked to [output directory]/[prefix]-[item].
If a prefix wasn't specified, the input filename is used as the prefix
(eg. "bootimgtool unpack boot.img -o /tmp" will unpack /tmp/boot.img-kernel,
etc.). With -n/--noprefix, the items are unpacked to [output directory]/[item].
"""

PACK_EPILOG = """\
The following items are loaded to create a new boot image.

{items}

{legend}
Items marked with an asterisk can be specified by value using the --value-*
options (eg. --value-page_size=2048).

By default, the items are loaded from [input directory]/[prefix]-[item].
If a prefix wasn't specified, the output filename is used as the prefix
(eg. "bootimgtool pack boot.img -i /tmp" will load /tmp/boot.img-cmdline,
etc.). With -n/--noprefix, the items are loaded from [input directory]/[item].
Missing item files fall back to the defaults, except kernel and ramdisk.
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _item_table(item_list: tuple[Item, ...], mark_values: bool = False) -> str:
    lines = []
    for item in item_list:
        name = item.key
        if mark_values and item.supports_value_override:
            name += " *"
        lines.append(f"  {name:<17}{item.description:<46}{format_legend(item)}")
    return "\n".join(lines)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p", "--prefix", default="", help="Prefix to prepend to item filenames"
    )
    parser.add_argument(
        "-n",
        "--noprefix",
        action="store_true",
        help="Do not prepend a prefix to the item filenames",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output"
    )


def build_unpack_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="bootimgtool unpack",
        description="Unpack a boot image",
        epilog=UNPACK_EPILOG.format(
            items=_item_table(unpacked_items()), legend=LEGEND
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument("input_file", type=Path, help="Boot image to unpack")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("."),
        help="Output directory (current directory if unspecified)",
    )
    _add_common_arguments(parser)

    paths = parser.add_argument_group("item paths")
    for item in unpacked_items():
        paths.add_argument(
            f"--output-{item.key}",
            dest=f"output_{item.key}",
            type=Path,
            metavar="PATH",
            help=f"Custom path for {item.key}",
        )
    return parser


def build_pack_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="bootimgtool pack",
        description="Assemble boot image from unpacked files",
        epilog=PACK_EPILOG.format(
            items=_item_table(items(), mark_values=True), legend=LEGEND
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument("output_file", type=Path, help="Boot image to create")
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        default=Path("."),
        help="Input directory (current directory if unspecified)",
    )
    parser.add_argument(
        "-t",
        "--type",
        choices=[t.value for t in BootImageType],
        default=BootImageType.ANDROID.value,
        help="Output type of the boot image",
    )
    _add_common_arguments(parser)

    paths = parser.add_argument_group("item paths")
    for item in items():
        paths.add_argument(
            f"--input-{item.key}",
            dest=f"input_{item.key}",
            type=Path,
            metavar="PATH",
            help=f"Custom path for {item.key}",
        )

    values = parser.add_argument_group("item values")
    for item in items():
        if item.supports_value_override:
            values.add_argument(
                f"--value-{item.key}",
                dest=f"value_{item.key}",
                metavar="VALUE",
                help=f"Value for {item.key}",
            )
    return parser


def _collect(args: argparse.Namespace, option: str, item_list) -> dict:
    collected = {}
    for item in item_list:
        value = getattr(args, f"{option}_{item.key}", None)
        if value is not None:
            collected[item.key] = value
    return collected


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


def unpack_main(argv: list[str], codec: BootImageCodec | None = None) -> int:
    """Run the unpack command. Returns the process exit status."""
    args = build_unpack_parser().parse_args(argv)
    _configure_logging(args.verbose)

    context = ResolutionContext.create(
        args.input_file,
        base_directory=args.output,
        prefix=args.prefix,
        no_prefix=args.noprefix,
        path_overrides=_collect(args, "output", unpacked_items()),
    )

    print("Output files:")
    for item in unpacked_items():
        print(f"- {item.key + ':':<16}{resolve(item, context).path}")
    print()

    try:
        unpack_image(args.input_file, context, codec or AndroidCodec(), logger)
    except CodecError as e:
        print(describe_codec_error(e), file=sys.stderr)
        return 1
    except ItemIOError as e:
        print(e, file=sys.stderr)
        return 1

    print("Done")
    return 0


def pack_main(argv: list[str], codec: BootImageCodec | None = None) -> int:
    """Run the pack command. Returns the process exit status."""
    parser = build_pack_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    image_type = BootImageType(args.type)
    context = ResolutionContext.create(
        args.output_file,
        base_directory=args.input,
        prefix=args.prefix,
        no_prefix=args.noprefix,
        path_overrides=_collect(args, "input", items()),
        value_overrides=_collect(args, "value", items()),
    )

    # Usage errors are reported before anything is read or written
    try:
        check_preconditions(context, image_type)
        parse_value_overrides(context)
    except (UsageError, ItemValueError) as e:
        print(e, file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    print("Input files:")
    for item in items():
        print(f"- {item.key + ':':<16}{describe(item, context)}")
    print()

    try:
        pack_image(
            args.output_file, context, codec or AndroidCodec(), image_type, logger
        )
    except CodecError as e:
        print(describe_codec_error(e), file=sys.stderr)
        return 1
    except (ItemIOError, ItemFormatError) as e:
        print(e, file=sys.stderr)
        return 1

    print("Done")
    return 0


COMMANDS = {
    "unpack": unpack_main,
    "pack": pack_main,
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    if argv and argv[0] in ("-h", "--help"):
        print(MAIN_USAGE, end="")
        return 0

    if not argv or argv[0] not in COMMANDS:
        print(MAIN_USAGE, end="", file=sys.stderr)
        return 1

    return COMMANDS[argv[0]](argv[1:])


if __name__ == "__main__":
    sys.exit(main())
