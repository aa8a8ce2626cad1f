"""
Item schema: every named value exchanged between a boot image and the
filesystem.

The table below is the single source of truth for item names, kinds, the
boot image types that use each item and the defaults substituted when an
item file is missing. Both pipelines, the path resolver and the CLI help
text iterate over it; nothing else hardcodes item names.
"""

import enum
from dataclasses import dataclass

from .codec.types import (
    BOOT_ARGS_SIZE,
    BOOT_NAME_SIZE,
    DEFAULT_APPSBL_ADDRESS,
    DEFAULT_BASE,
    DEFAULT_BOARD,
    DEFAULT_CMDLINE,
    DEFAULT_ENTRYPOINT_ADDRESS,
    DEFAULT_IPL_ADDRESS,
    DEFAULT_KERNEL_OFFSET,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RAMDISK_OFFSET,
    DEFAULT_RPM_ADDRESS,
    DEFAULT_SECOND_OFFSET,
    DEFAULT_TAGS_OFFSET,
    BootImageType,
)


class ItemKind(enum.Enum):
    """How an item is encoded in its file."""

    HEX32 = "hex32"  # "%08x\n"
    DECIMAL32 = "decimal32"  # "%u\n"
    TEXT = "text"  # one line, truncated to the field size
    BLOB = "blob"  # raw bytes


A = BootImageType.ANDROID
B = BootImageType.BUMP
L = BootImageType.LOKI
S = BootImageType.SONY_ELF


@dataclass(frozen=True)
class Item:
    """One exchangeable field or blob.

    Attributes:
        key: Stable identifier, also the file name suffix and option suffix
        kind: File encoding
        formats: Boot image types that possess this item
        description: One-line help text
        default: Value used when packing without an item file (scalars)
        max_size: Field size including NUL terminator (text items)
        required: Packing fails if the item file is missing (blobs)
        unpacked: Whether unpack writes this item
    """

    key: str
    kind: ItemKind
    formats: frozenset[BootImageType]
    description: str
    default: int | str | None = None
    max_size: int | None = None
    required: bool = False
    unpacked: bool = True

    @property
    def is_blob(self) -> bool:
        return self.kind == ItemKind.BLOB

    @property
    def supports_value_override(self) -> bool:
        """Only scalar items can be given literally on the command line."""
        return not self.is_blob


def _item(key, kind, formats, description, **kwargs) -> Item:
    return Item(key, kind, frozenset(formats), description, **kwargs)


_ITEMS = (
    _item("cmdline", ItemKind.TEXT, (A, B, L, S), "Kernel command line",
          default=DEFAULT_CMDLINE, max_size=BOOT_ARGS_SIZE),
    _item("board", ItemKind.TEXT, (A, B, L), "Board name field in the header",
          default=DEFAULT_BOARD, max_size=BOOT_NAME_SIZE),
    _item("base", ItemKind.HEX32, (A, B, L), "Base address for offsets",
          default=DEFAULT_BASE),
    _item("kernel_offset", ItemKind.HEX32, (A, B, L, S),
          "Address offset of the kernel image", default=DEFAULT_KERNEL_OFFSET),
    _item("ramdisk_offset", ItemKind.HEX32, (A, B, L, S),
          "Address offset of the ramdisk image", default=DEFAULT_RAMDISK_OFFSET),
    _item("second_offset", ItemKind.HEX32, (A, B, L),
          "Address offset of the second bootloader image",
          default=DEFAULT_SECOND_OFFSET),
    _item("tags_offset", ItemKind.HEX32, (A, B, L),
          "Address offset of the kernel tags image", default=DEFAULT_TAGS_OFFSET),
    _item("ipl_address", ItemKind.HEX32, (S,), "Address of the ipl image",
          default=DEFAULT_IPL_ADDRESS),
    _item("rpm_address", ItemKind.HEX32, (S,), "Address of the rpm image",
          default=DEFAULT_RPM_ADDRESS),
    _item("appsbl_address", ItemKind.HEX32, (S,), "Address of the appsbl image",
          default=DEFAULT_APPSBL_ADDRESS),
    _item("entrypoint", ItemKind.HEX32, (S,), "Address of the entry point",
          default=DEFAULT_ENTRYPOINT_ADDRESS),
    _item("page_size", ItemKind.DECIMAL32, (A, B, L), "Page size",
          default=DEFAULT_PAGE_SIZE),
    _item("kernel", ItemKind.BLOB, (A, B, L, S), "Kernel image", required=True),
    _item("ramdisk", ItemKind.BLOB, (A, B, L, S), "Ramdisk image", required=True),
    _item("second", ItemKind.BLOB, (A, B, L), "Second bootloader image"),
    _item("dt", ItemKind.BLOB, (A, B, L), "Device tree image"),
    _item("aboot", ItemKind.BLOB, (L,), "Aboot image", unpacked=False),
    _item("ipl", ItemKind.BLOB, (S,), "Ipl image"),
    _item("rpm", ItemKind.BLOB, (S,), "Rpm image"),
    _item("appsbl", ItemKind.BLOB, (S,), "Appsbl image"),
    _item("sin", ItemKind.BLOB, (S,), "Sin image"),
    _item("sinhdr", ItemKind.BLOB, (S,), "Sin header"),
)

_ITEMS_BY_KEY = {item.key: item for item in _ITEMS}

# Items whose values are derived from the four load addresses
ADDRESS_OFFSET_KEYS = ("kernel_offset", "ramdisk_offset", "second_offset", "tags_offset")


def items() -> tuple[Item, ...]:
    """All items in schema order."""
    return _ITEMS


def unpacked_items() -> tuple[Item, ...]:
    """Items written by unpack, in schema order."""
    return tuple(item for item in _ITEMS if item.unpacked)


def scalar_items() -> tuple[Item, ...]:
    return tuple(item for item in _ITEMS if not item.is_blob)


def blob_items() -> tuple[Item, ...]:
    return tuple(item for item in _ITEMS if item.is_blob)


def get_item(key: str) -> Item:
    """Look up an item by key.

    Raises:
        KeyError: If no item has this key
    """
    return _ITEMS_BY_KEY[key]


def is_applicable(item: Item, image_type: BootImageType) -> bool:
    """Whether boot images of image_type carry this item."""
    return image_type in item.formats


def format_legend(item: Item) -> str:
    """Applicability column for help text, e.g. "[ABL ]"."""
    letters = "".join(
        t.letter if t in item.formats else " " for t in BootImageType
    )
    return f"[{letters}]"
