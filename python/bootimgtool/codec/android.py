"""
Android boot image codec.

Handles plain Android (header version 0) and Bump'd Android images. The
layout is:

    +-----------------+
    | boot header     | 1 page
    +-----------------+
    | kernel          | n pages
    +-----------------+
    | ramdisk         | m pages
    +-----------------+
    | second stage    | o pages
    +-----------------+
    | device tree     | p pages
    +-----------------+
    | bump magic      | 16 bytes (Bump only)
    +-----------------+

Loki and Sony ELF images are recognized but reported as unsupported.
"""

import hashlib
import logging
import struct
from dataclasses import dataclass
from pathlib import Path

from .format_detect import (
    UnsupportedImageFormat,
    detect_boot_image_type_from_data,
    find_boot_magic,
)
from .base import CodecError, CodecErrorCode
from .types import (
    BOOT_ARGS_SIZE,
    BOOT_EXTRA_ARGS_SIZE,
    BOOT_ID_SIZE,
    BOOT_MAGIC,
    BOOT_NAME_SIZE,
    BUMP_MAGIC,
    VALID_PAGE_SIZES,
    BootImage,
    BootImageType,
)

logger = logging.getLogger(__name__)

# magic, kernel_size, kernel_addr, ramdisk_size, ramdisk_addr, second_size,
# second_addr, tags_addr, page_size, dt_size, unused, name, cmdline, id,
# extra_cmdline
HEADER_STRUCT = struct.Struct(
    f"<8s10I{BOOT_NAME_SIZE}s{BOOT_ARGS_SIZE}s{BOOT_ID_SIZE}s{BOOT_EXTRA_ARGS_SIZE}s"
)

SUPPORTED_TYPES = (BootImageType.ANDROID, BootImageType.BUMP)


def align_to_page(size: int, page_size: int) -> int:
    """Round size up to a multiple of page_size."""
    return (size + page_size - 1) // page_size * page_size


@dataclass
class AndroidHeader:
    """Android boot image header (boot_img_hdr v0)."""

    magic: bytes
    kernel_size: int
    kernel_addr: int
    ramdisk_size: int
    ramdisk_addr: int
    second_size: int
    second_addr: int
    tags_addr: int
    page_size: int
    dt_size: int
    unused: int
    name: bytes
    cmdline: bytes
    id: bytes
    extra_cmdline: bytes

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> "AndroidHeader":
        """Parse a header starting at offset.

        Raises:
            ValueError: If data is too short or the magic is wrong
        """
        if len(data) - offset < HEADER_STRUCT.size:
            raise ValueError(
                f"Header too short: {len(data) - offset} bytes "
                f"(need {HEADER_STRUCT.size})"
            )
        header = cls(*HEADER_STRUCT.unpack_from(data, offset))
        if header.magic != BOOT_MAGIC:
            raise ValueError(f"Invalid magic: {header.magic!r}")
        return header

    def pack(self) -> bytes:
        return HEADER_STRUCT.pack(
            self.magic,
            self.kernel_size,
            self.kernel_addr,
            self.ramdisk_size,
            self.ramdisk_addr,
            self.second_size,
            self.second_addr,
            self.tags_addr,
            self.page_size,
            self.dt_size,
            self.unused,
            self.name,
            self.cmdline,
            self.id,
            self.extra_cmdline,
        )

    def blob_sizes(self) -> list[int]:
        """Sizes of kernel, ramdisk, second and dt, in file order."""
        return [self.kernel_size, self.ramdisk_size, self.second_size, self.dt_size]

    @property
    def image_size(self) -> int:
        """Size of header page plus all page-aligned blobs."""
        return self.page_size + sum(
            align_to_page(size, self.page_size) for size in self.blob_sizes()
        )


def has_bump_trailer(data: bytes, header_offset: int = 0) -> bool:
    """Check whether the Bump magic follows the image contents."""
    try:
        header = AndroidHeader.parse(data, header_offset)
    except ValueError:
        return False
    if header.page_size not in VALID_PAGE_SIZES:
        return False
    end = header_offset + header.image_size
    return data[end : end + len(BUMP_MAGIC)] == BUMP_MAGIC


def compute_image_id(blobs: list[bytes]) -> bytes:
    """SHA-1 over kernel, ramdisk and second (each followed by its size),
    then dt if present, padded to the id field size."""
    sha = hashlib.sha1()
    kernel, ramdisk, second, dt = blobs
    for blob in (kernel, ramdisk, second):
        sha.update(blob)
        sha.update(struct.pack("<I", len(blob)))
    if dt:
        sha.update(dt)
        sha.update(struct.pack("<I", len(dt)))
    return sha.digest().ljust(BOOT_ID_SIZE, b"\x00")


def _decode_c_string(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="surrogateescape")


def _encode_c_string(value: str, size: int, field_name: str) -> bytes:
    encoded = value.encode("utf-8", errors="surrogateescape")
    # Room for the NUL terminator
    if len(encoded) >= size:
        raise CodecError(
            CodecErrorCode.INVALID_FIELD,
            f"{field_name} is {len(encoded)} bytes, maximum is {size - 1}",
        )
    return encoded


class AndroidCodec:
    """BootImageCodec for plain and Bump'd Android boot images."""

    def parse(self, path: Path, log: logging.Logger | None = None) -> BootImage:
        log = log or logger

        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise CodecError(CodecErrorCode.FILE_OPEN, e.strerror or "", path) from e

        try:
            image_type = detect_boot_image_type_from_data(data, path)
        except UnsupportedImageFormat as e:
            raise CodecError(CodecErrorCode.PARSE, str(e)) from e

        if image_type not in SUPPORTED_TYPES:
            raise CodecError(
                CodecErrorCode.UNSUPPORTED_FORMAT,
                f"{image_type.value} images cannot be decoded by this codec",
                path,
            )

        header_offset = find_boot_magic(data)
        try:
            header = AndroidHeader.parse(data, header_offset)
        except ValueError as e:
            raise CodecError(CodecErrorCode.PARSE, str(e)) from e

        if header.page_size not in VALID_PAGE_SIZES:
            raise CodecError(
                CodecErrorCode.PARSE, f"Invalid page size: {header.page_size}"
            )

        if header_offset + header.image_size > len(data):
            raise CodecError(
                CodecErrorCode.PARSE,
                f"Image truncated: need {header_offset + header.image_size} bytes, "
                f"have {len(data)}",
            )

        log.debug(
            "Parsed %s image at header offset %#x (page size %d)",
            image_type.value,
            header_offset,
            header.page_size,
        )

        blobs = []
        pos = header_offset + header.page_size
        for size in header.blob_sizes():
            blobs.append(data[pos : pos + size])
            pos += align_to_page(size, header.page_size)
        kernel, ramdisk, second, dt = blobs

        return BootImage(
            cmdline=_decode_c_string(header.cmdline),
            board=_decode_c_string(header.name),
            kernel_address=header.kernel_addr,
            ramdisk_address=header.ramdisk_addr,
            second_address=header.second_addr,
            tags_address=header.tags_addr,
            page_size=header.page_size,
            kernel=kernel,
            ramdisk=ramdisk,
            second=second,
            dt=dt,
        )

    def build(
        self,
        image: BootImage,
        image_type: BootImageType,
        path: Path,
        log: logging.Logger | None = None,
    ) -> None:
        log = log or logger

        if image_type not in SUPPORTED_TYPES:
            raise CodecError(
                CodecErrorCode.UNSUPPORTED_FORMAT,
                f"{image_type.value} images cannot be encoded by this codec",
            )

        if image.page_size not in VALID_PAGE_SIZES:
            raise CodecError(
                CodecErrorCode.INVALID_FIELD, f"Invalid page size: {image.page_size}"
            )

        name = _encode_c_string(image.board, BOOT_NAME_SIZE, "Board name")
        cmdline = _encode_c_string(image.cmdline, BOOT_ARGS_SIZE, "Kernel cmdline")

        blobs = [image.kernel, image.ramdisk, image.second, image.dt]
        header = AndroidHeader(
            magic=BOOT_MAGIC,
            kernel_size=len(image.kernel),
            kernel_addr=image.kernel_address,
            ramdisk_size=len(image.ramdisk),
            ramdisk_addr=image.ramdisk_address,
            second_size=len(image.second),
            second_addr=image.second_address,
            tags_addr=image.tags_address,
            page_size=image.page_size,
            dt_size=len(image.dt),
            unused=0,
            name=name,
            cmdline=cmdline,
            id=compute_image_id(blobs),
            extra_cmdline=b"",
        )

        out = bytearray(header.pack())
        out.extend(b"\x00" * (image.page_size - len(out)))
        for blob in blobs:
            out.extend(blob)
            out.extend(b"\x00" * (align_to_page(len(blob), image.page_size) - len(blob)))

        if image_type == BootImageType.BUMP:
            out.extend(BUMP_MAGIC)

        log.debug("Writing %d byte %s image to %s", len(out), image_type.value, path)

        try:
            with open(path, "wb") as f:
                f.write(out)
        except OSError as e:
            raise CodecError(CodecErrorCode.FILE_WRITE, e.strerror or "", path) from e
