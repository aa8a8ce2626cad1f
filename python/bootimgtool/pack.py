"""
Pack pipeline: item files and overrides -> boot image.

Each item ends in one of three states:

    LITERAL           value given on the command line
    PARSED_FROM_FILE  read from its override or default path
    CODEC_DEFAULT     file absent; the codec default (or an empty blob) is used

Only a missing file falls back to the default. Any other I/O error, a
malformed scalar file, or a missing kernel/ramdisk aborts packing.
"""

import enum
import errno
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .codec.base import BootImageCodec
from .codec.types import BootImage, BootImageType
from .items import ADDRESS_OFFSET_KEYS, Item, get_item, items
from .itemio import ItemIOError, parse_literal, read_item
from .resolver import ResolutionContext, UseValue, resolve

logger = logging.getLogger(__name__)


class UsageError(ValueError):
    """Raised when pack options are inconsistent with the target type."""

    pass


class ItemState(enum.Enum):
    """Terminal resolution state of an item during packing."""

    LITERAL = "literal"
    PARSED_FROM_FILE = "parsed_from_file"
    CODEC_DEFAULT = "codec_default"


@dataclass
class PackResult:
    """Outcome of a successful pack."""

    image: BootImage
    image_type: BootImageType
    states: dict[str, ItemState] = field(default_factory=dict)


def check_preconditions(context: ResolutionContext, image_type: BootImageType) -> None:
    """Reject option combinations the target type cannot satisfy.

    Loki images are built by patching against the device's aboot, so an
    aboot path must be given explicitly.

    Raises:
        UsageError: If a required input is missing
    """
    if image_type == BootImageType.LOKI and not context.has_path_override(
        get_item("aboot")
    ):
        raise UsageError("An aboot image must be specified to create a loki image")


def parse_value_overrides(context: ResolutionContext) -> dict[str, int | str]:
    """Parse every literal value override up front.

    Raises:
        ItemValueError: If a literal is malformed
    """
    return {
        key: parse_literal(get_item(key), literal)
        for key, literal in context.value_overrides.items()
    }


def _load_item(
    item: Item, context: ResolutionContext, literals: dict[str, int | str]
) -> tuple[int | str | bytes, ItemState]:
    resolution = resolve(item, context)
    if isinstance(resolution, UseValue):
        return literals[item.key], ItemState.LITERAL

    value = read_item(item, resolution.path)
    if value is not None:
        return value, ItemState.PARSED_FROM_FILE

    if item.required:
        raise ItemIOError(
            item.key,
            resolution.path,
            FileNotFoundError(
                errno.ENOENT, os.strerror(errno.ENOENT), str(resolution.path)
            ),
        )

    logger.debug("%s: %s not found, using default", item.key, resolution.path)
    return (b"" if item.is_blob else item.default), ItemState.CODEC_DEFAULT


def assemble_image(values: dict[str, int | str | bytes]) -> BootImage:
    """Build the field set from item values.

    The four load addresses are rebuilt as base + offset, the inverse of
    what unpack stores.
    """
    image = BootImage()
    for key, value in values.items():
        if key == "base" or key in ADDRESS_OFFSET_KEYS:
            continue
        setattr(image, key, value)
    image.set_addresses(
        values["base"], *(values[key] for key in ADDRESS_OFFSET_KEYS)
    )
    return image


def pack_image(
    output_path: Path,
    context: ResolutionContext,
    codec: BootImageCodec,
    image_type: BootImageType = BootImageType.ANDROID,
    log: logging.Logger | None = None,
) -> PackResult:
    """Create a boot image from item files and overrides.

    Args:
        output_path: Boot image to write
        context: Where each item comes from
        codec: Codec used to build the image
        image_type: Boot image type to create
        log: Logger handed to the codec

    Returns:
        PackResult with the assembled image and each item's state

    Raises:
        UsageError: If the target type needs an input that was not given
        ItemValueError: If a literal value is malformed
        ItemFormatError: If an item file is malformed
        ItemIOError: If an item file cannot be read, or kernel/ramdisk is missing
        CodecError: If the codec fails to build the image
    """
    check_preconditions(context, image_type)
    literals = parse_value_overrides(context)

    values = {}
    states = {}
    for item in items():
        values[item.key], states[item.key] = _load_item(item, context, literals)

    image = assemble_image(values)
    codec.build(image, image_type, output_path, log)
    logger.debug("Built %s image %s", image_type.value, output_path)

    return PackResult(image=image, image_type=image_type, states=states)
