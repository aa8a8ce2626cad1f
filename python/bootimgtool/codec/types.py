"""
Boot image field set and codec constants.

The constants here are the documented defaults of the boot image codec. The
pack pipeline substitutes them for any scalar item whose file is absent, so
they must match what the codec itself would pick for a fresh image.
"""

import enum
from dataclasses import dataclass

# =============================================================================
# Constants
# =============================================================================

UINT32_MASK = 0xFFFFFFFF

BOOT_MAGIC = b"ANDROID!"
BOOT_MAGIC_SEARCH_LIMIT = 512
BOOT_NAME_SIZE = 16
BOOT_ARGS_SIZE = 512
BOOT_EXTRA_ARGS_SIZE = 1024
BOOT_ID_SIZE = 32

BUMP_MAGIC = b"\x41\xa9\xe4\x67\x74\x4d\x1d\x1b\xa4\x29\xf2\xec\xea\x65\x52\x79"

LOKI_MAGIC = b"LOKI"
LOKI_MAGIC_OFFSET = 0x400

ELF_MAGIC = b"\x7fELF"

DEFAULT_CMDLINE = ""
DEFAULT_BOARD = ""
DEFAULT_BASE = 0x10000000
DEFAULT_KERNEL_OFFSET = 0x00008000
DEFAULT_RAMDISK_OFFSET = 0x01000000
DEFAULT_SECOND_OFFSET = 0x00F00000
DEFAULT_TAGS_OFFSET = 0x00000100
DEFAULT_IPL_ADDRESS = 0x00000000
DEFAULT_RPM_ADDRESS = 0x00000000
DEFAULT_APPSBL_ADDRESS = 0x00000000
DEFAULT_ENTRYPOINT_ADDRESS = 0x00000000
DEFAULT_PAGE_SIZE = 2048

VALID_PAGE_SIZES = (2048, 4096, 8192, 16384, 32768, 65536, 131072)


class BootImageType(enum.Enum):
    """Boot image flavors. Values are the names accepted by ``pack --type``."""

    ANDROID = "android"
    BUMP = "bump"
    LOKI = "loki"
    SONY_ELF = "sonyelf"

    @property
    def letter(self) -> str:
        """Single-letter tag used in the help text legend."""
        return _TYPE_LETTERS[self]


_TYPE_LETTERS = {
    BootImageType.ANDROID: "A",
    BootImageType.BUMP: "B",
    BootImageType.LOKI: "L",
    BootImageType.SONY_ELF: "S",
}


def offset_from(address: int, base: int) -> int:
    """Express an absolute address relative to base (unsigned 32-bit)."""
    return (address - base) & UINT32_MASK


def address_at(base: int, offset: int) -> int:
    """Inverse of offset_from()."""
    return (base + offset) & UINT32_MASK


@dataclass
class BootImage:
    """All scalar fields and blobs exchanged with the codec.

    Addresses are absolute. The unpack pipeline re-expresses the kernel,
    ramdisk, second and tags addresses as offsets from a common base and
    the pack pipeline rebuilds them with set_addresses().
    """

    cmdline: str = DEFAULT_CMDLINE
    board: str = DEFAULT_BOARD
    kernel_address: int = DEFAULT_BASE + DEFAULT_KERNEL_OFFSET
    ramdisk_address: int = DEFAULT_BASE + DEFAULT_RAMDISK_OFFSET
    second_address: int = DEFAULT_BASE + DEFAULT_SECOND_OFFSET
    tags_address: int = DEFAULT_BASE + DEFAULT_TAGS_OFFSET
    ipl_address: int = DEFAULT_IPL_ADDRESS
    rpm_address: int = DEFAULT_RPM_ADDRESS
    appsbl_address: int = DEFAULT_APPSBL_ADDRESS
    entrypoint: int = DEFAULT_ENTRYPOINT_ADDRESS
    page_size: int = DEFAULT_PAGE_SIZE
    kernel: bytes = b""
    ramdisk: bytes = b""
    second: bytes = b""
    dt: bytes = b""
    aboot: bytes = b""
    ipl: bytes = b""
    rpm: bytes = b""
    appsbl: bytes = b""
    sin: bytes = b""
    sinhdr: bytes = b""

    def set_addresses(
        self,
        base: int,
        kernel_offset: int,
        ramdisk_offset: int,
        second_offset: int,
        tags_offset: int,
    ) -> None:
        """Set the four load addresses as base + offset (wrapping at 2**32)."""
        self.kernel_address = address_at(base, kernel_offset)
        self.ramdisk_address = address_at(base, ramdisk_offset)
        self.second_address = address_at(base, second_offset)
        self.tags_address = address_at(base, tags_offset)
