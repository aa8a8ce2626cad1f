"""
bootimgtool: Exchange boot image fields and blobs with plain files.

This package unpacks a boot image into one file per item (command line,
board name, load addresses, page size, kernel, ramdisk, ...) and packs such
a directory back into an image. With no overrides, pack reproduces the
image that unpack read.

    from pathlib import Path

    from bootimgtool import AndroidCodec, ResolutionContext, pack_image, unpack_image

    codec = AndroidCodec()
    ctx = ResolutionContext.create("boot.img", base_directory="out")
    unpack_image(Path("boot.img"), ctx, codec)
    pack_image(Path("boot.img"), ctx, codec)

The binary formats themselves live behind the codec interface in
bootimgtool.codec.
"""

from .codec import (
    AndroidCodec,
    BootImage,
    BootImageCodec,
    BootImageType,
    CodecError,
    describe_codec_error,
)
from .items import Item, ItemKind, items, get_item, is_applicable
from .itemio import ItemFormatError, ItemIOError, ItemValueError
from .resolver import ResolutionContext, UsePath, UseValue, resolve
from .unpack import UnpackResult, unpack_image
from .pack import ItemState, PackResult, UsageError, pack_image
from .compare import ComparisonResult, compare_images

__all__ = [
    # Codec boundary
    "AndroidCodec",
    "BootImage",
    "BootImageCodec",
    "BootImageType",
    "CodecError",
    "describe_codec_error",
    # Item schema
    "Item",
    "ItemKind",
    "items",
    "get_item",
    "is_applicable",
    # Errors
    "ItemFormatError",
    "ItemIOError",
    "ItemValueError",
    "UsageError",
    # Resolution
    "ResolutionContext",
    "UsePath",
    "UseValue",
    "resolve",
    # Pipelines
    "UnpackResult",
    "unpack_image",
    "ItemState",
    "PackResult",
    "pack_image",
    # Comparison
    "ComparisonResult",
    "compare_images",
]
