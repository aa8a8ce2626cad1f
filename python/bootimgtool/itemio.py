"""
On-disk encodings of item files.

Each ItemKind has one fixed encoding, and pack must read back exactly what
unpack wrote:

    HEX32      "%08x\\n"
    DECIMAL32  "%u\\n"
    TEXT       raw line + "\\n", read back truncated to max_size - 1 bytes
    BLOB       raw bytes

Parsing is strict. A hex item file must hold exactly eight hex digits; a
shorter value is an error rather than something to zero-pad.
"""

import re
from pathlib import Path

from .codec.types import UINT32_MASK
from .items import Item, ItemKind

_HEX32_FILE_RE = re.compile(rb"[0-9a-fA-F]{8}")
_DECIMAL_FILE_RE = re.compile(rb"[0-9]+")
_HEX_LITERAL_RE = re.compile(r"(0[xX])?[0-9a-fA-F]+")
_DECIMAL_LITERAL_RE = re.compile(r"[0-9]+")

TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"

_FILE_FORMATS = {
    ItemKind.HEX32: "%08x",
    ItemKind.DECIMAL32: "%u",
}


class ItemIOError(RuntimeError):
    """Raised when an item file cannot be read or written."""

    def __init__(self, key: str | None, path: Path, cause: OSError):
        self.key = key
        self.path = path
        super().__init__(f"{path}: {cause.strerror or cause}")


class ItemFormatError(ValueError):
    """Raised when an item file does not hold a value in the item's format."""

    def __init__(self, key: str, path: Path, expected: str):
        self.key = key
        self.path = path
        self.expected = expected
        super().__init__(f"{path}: Error: expected '{expected}' format")


class ItemValueError(ValueError):
    """Raised when a literal item value cannot be parsed."""

    def __init__(self, key: str, literal: str):
        self.key = key
        self.literal = literal
        super().__init__(f"Invalid {key}: {literal}")


def encode_item(item: Item, value: int | str | bytes) -> bytes:
    """Serialize a value into the item's file encoding."""
    if item.kind == ItemKind.BLOB:
        return bytes(value)
    if item.kind == ItemKind.HEX32:
        return f"{value & UINT32_MASK:08x}\n".encode("ascii")
    if item.kind == ItemKind.DECIMAL32:
        return f"{value & UINT32_MASK}\n".encode("ascii")
    return f"{value}\n".encode(TEXT_ENCODING, errors=TEXT_ERRORS)


def decode_item(item: Item, path: Path, data: bytes) -> int | str | bytes:
    """Parse the contents of an item file.

    Args:
        item: Item the file belongs to
        path: File path, for error messages
        data: Raw file contents

    Raises:
        ItemFormatError: If a numeric item does not match its format
    """
    if item.kind == ItemKind.BLOB:
        return data

    if item.kind == ItemKind.TEXT:
        line = data[: item.max_size - 1].split(b"\n", 1)[0]
        return line.decode(TEXT_ENCODING, errors=TEXT_ERRORS)

    token = data.split(b"\n", 1)[0].strip()
    pattern = _HEX32_FILE_RE if item.kind == ItemKind.HEX32 else _DECIMAL_FILE_RE
    if not pattern.fullmatch(token):
        raise ItemFormatError(item.key, path, _FILE_FORMATS[item.kind])

    value = int(token, 16 if item.kind == ItemKind.HEX32 else 10)
    if value > UINT32_MASK:
        raise ItemFormatError(item.key, path, _FILE_FORMATS[item.kind])
    return value


def parse_literal(item: Item, literal: str) -> int | str:
    """Parse a value given on the command line.

    Hex items accept an optional 0x prefix and decimal items plain digits;
    both must fit in 32 bits. Text items are taken verbatim.

    Raises:
        ItemValueError: If the literal is malformed or out of range
        ValueError: If the item is a blob
    """
    if not item.supports_value_override:
        raise ValueError(f"Item {item.key} cannot be specified by value")

    if item.kind == ItemKind.TEXT:
        return literal

    if item.kind == ItemKind.HEX32:
        if not _HEX_LITERAL_RE.fullmatch(literal):
            raise ItemValueError(item.key, literal)
        value = int(literal, 16)
    else:
        if not _DECIMAL_LITERAL_RE.fullmatch(literal):
            raise ItemValueError(item.key, literal)
        value = int(literal, 10)

    if value > UINT32_MASK:
        raise ItemValueError(item.key, literal)
    return value


def write_item(item: Item, path: Path, value: int | str | bytes) -> None:
    """Write one item file.

    Raises:
        ItemIOError: If the file cannot be written
    """
    data = encode_item(item, value)
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise ItemIOError(item.key, path, e) from e


def read_item(item: Item, path: Path) -> int | str | bytes | None:
    """Read and parse one item file.

    Returns:
        Parsed value, or None if the file does not exist

    Raises:
        ItemIOError: On any I/O error other than a missing file
        ItemFormatError: If a numeric item is malformed
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ItemIOError(item.key, path, e) from e

    return decode_item(item, path, data)
