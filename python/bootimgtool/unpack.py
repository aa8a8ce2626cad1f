"""
Unpack pipeline: boot image -> directory of item files.

The kernel, ramdisk, second and tags load addresses are stored as offsets
from a common base. The base is chosen so that the kernel sits at the
default kernel offset, which keeps the output of most images identical to
the codec defaults. All arithmetic wraps at 32 bits so that pack can invert
it exactly with base + offset.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .codec.base import BootImageCodec
from .codec.types import DEFAULT_KERNEL_OFFSET, UINT32_MASK, BootImage, offset_from
from .items import unpacked_items
from .itemio import ItemIOError, write_item
from .resolver import ResolutionContext, UsePath, resolve

logger = logging.getLogger(__name__)


@dataclass
class UnpackResult:
    """Outcome of a successful unpack."""

    image: BootImage
    paths: dict[str, Path] = field(default_factory=dict)


def item_values(image: BootImage) -> dict[str, int | str | bytes]:
    """Values of every unpacked item for a parsed image.

    Items named after a BootImage attribute take it directly; the base and
    the four offsets are derived from the load addresses.
    """
    base = (image.kernel_address - DEFAULT_KERNEL_OFFSET) & UINT32_MASK
    derived = {
        "base": base,
        "kernel_offset": DEFAULT_KERNEL_OFFSET,
        "ramdisk_offset": offset_from(image.ramdisk_address, base),
        "second_offset": offset_from(image.second_address, base),
        "tags_offset": offset_from(image.tags_address, base),
    }

    values = {}
    for item in unpacked_items():
        if item.key in derived:
            values[item.key] = derived[item.key]
        else:
            values[item.key] = getattr(image, item.key)
    return values


def unpack_image(
    input_path: Path,
    context: ResolutionContext,
    codec: BootImageCodec,
    log: logging.Logger | None = None,
) -> UnpackResult:
    """Unpack a boot image into item files.

    The output directory is created if needed. Items are written in schema
    order; if one fails, the files already written are left in place.

    Args:
        input_path: Boot image to unpack
        context: Where each item is written (value overrides not allowed)
        codec: Codec used to parse the image
        log: Logger handed to the codec

    Returns:
        UnpackResult with the parsed image and the path of every item

    Raises:
        CodecError: If the image cannot be parsed
        ItemIOError: If the output directory or an item file cannot be written
        ValueError: If the context carries value overrides
    """
    if context.value_overrides:
        raise ValueError("Item values cannot be overridden when unpacking")

    try:
        context.base_directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ItemIOError(None, context.base_directory, e) from e

    image = codec.parse(input_path, log)
    logger.debug("Parsed boot image %s", input_path)

    result = UnpackResult(image=image)
    values = item_values(image)

    for item in unpacked_items():
        resolution = resolve(item, context)
        # Value overrides were rejected above
        assert isinstance(resolution, UsePath)
        write_item(item, resolution.path, values[item.key])
        result.paths[item.key] = resolution.path
        logger.debug("Wrote %s to %s", item.key, resolution.path)

    return result
