"""
Boot image codec package for bootimgtool.

This package is the boundary between the item exchange engine and the
binary boot image formats:
- types: BootImage field set, BootImageType and codec defaults
- base: BootImageCodec protocol and CodecError
- format_detect: magic-byte detection of the image flavor
- android: codec for plain and Bump'd Android images
"""

from .types import (
    BootImage,
    BootImageType,
    address_at,
    offset_from,
)
from .base import (
    BootImageCodec,
    CodecError,
    CodecErrorCode,
    describe_codec_error,
)
from .format_detect import (
    detect_boot_image_type,
    detect_boot_image_type_from_data,
    find_boot_magic,
    is_android_image,
    UnsupportedImageFormat,
)
from .android import AndroidCodec, AndroidHeader

__all__ = [
    # Field set
    "BootImage",
    "BootImageType",
    "address_at",
    "offset_from",
    # Codec interface
    "BootImageCodec",
    "CodecError",
    "CodecErrorCode",
    "describe_codec_error",
    # Format detection
    "detect_boot_image_type",
    "detect_boot_image_type_from_data",
    "find_boot_magic",
    "is_android_image",
    "UnsupportedImageFormat",
    # Android codec
    "AndroidCodec",
    "AndroidHeader",
]
