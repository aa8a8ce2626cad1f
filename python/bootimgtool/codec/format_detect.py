"""
Boot image format detection utilities.

This module identifies which boot image flavor a file holds by looking at
magic bytes, so callers can reject formats a codec cannot handle before
doing any real work.
"""

from pathlib import Path

from .types import (
    BOOT_MAGIC,
    BOOT_MAGIC_SEARCH_LIMIT,
    ELF_MAGIC,
    LOKI_MAGIC,
    LOKI_MAGIC_OFFSET,
    BootImageType,
)


class UnsupportedImageFormat(ValueError):
    """Raised when a file is not a recognizable boot image."""

    pass


def find_boot_magic(data: bytes) -> int | None:
    """Locate the Android header magic.

    Some bootloaders put a vendor header in front of the Android header, so
    the magic is searched for within the first BOOT_MAGIC_SEARCH_LIMIT bytes.

    Returns:
        Offset of the magic, or None if not present
    """
    offset = data.find(BOOT_MAGIC, 0, BOOT_MAGIC_SEARCH_LIMIT + len(BOOT_MAGIC))
    return None if offset < 0 else offset


def detect_boot_image_type_from_data(
    data: bytes, path: Path | str | None = None
) -> BootImageType:
    """Detect the boot image flavor of in-memory image data.

    Args:
        data: Complete image contents
        path: File name used in error messages

    Returns:
        Detected BootImageType

    Raises:
        UnsupportedImageFormat: If no known magic is found
    """
    if len(data) < len(ELF_MAGIC):
        raise UnsupportedImageFormat(f"File too small to be a boot image: {path}")

    if data[: len(ELF_MAGIC)] == ELF_MAGIC:
        return BootImageType.SONY_ELF

    # Loki'd images keep the Android magic, so check Loki first
    loki_end = LOKI_MAGIC_OFFSET + len(LOKI_MAGIC)
    if data[LOKI_MAGIC_OFFSET:loki_end] == LOKI_MAGIC:
        return BootImageType.LOKI

    header_offset = find_boot_magic(data)
    if header_offset is not None:
        from .android import has_bump_trailer

        if has_bump_trailer(data, header_offset):
            return BootImageType.BUMP
        return BootImageType.ANDROID

    raise UnsupportedImageFormat(f"File is not a known boot image format: {path}")


def detect_boot_image_type(path: Path) -> BootImageType:
    """Detect the boot image flavor of a file.

    Args:
        path: Path to boot image

    Returns:
        Detected BootImageType

    Raises:
        UnsupportedImageFormat: If the file is not a known boot image
        FileNotFoundError: If the file doesn't exist
    """
    with open(path, "rb") as f:
        data = f.read()

    return detect_boot_image_type_from_data(data, path)


def is_android_image(path: Path) -> bool:
    """Check if a file is a plain or Bump'd Android boot image.

    Args:
        path: Path to file

    Returns:
        True if Android or Bump, False otherwise
    """
    try:
        image_type = detect_boot_image_type(path)
    except (UnsupportedImageFormat, FileNotFoundError):
        return False
    return image_type in (BootImageType.ANDROID, BootImageType.BUMP)
