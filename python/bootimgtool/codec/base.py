"""
Codec boundary: the interface every boot image codec implements and the
errors it reports.

The exchange engine never looks inside a boot image. It hands a BootImage
and a target type to build(), or receives a BootImage from parse(). Any
diagnostic output the codec produces goes to the logger passed in by the
caller.
"""

import enum
import logging
from pathlib import Path
from typing import Protocol

from .types import BootImage, BootImageType


class CodecErrorCode(enum.Enum):
    """Failure categories a codec can report."""

    FILE_OPEN = enum.auto()
    FILE_READ = enum.auto()
    FILE_WRITE = enum.auto()
    PARSE = enum.auto()
    UNSUPPORTED_FORMAT = enum.auto()
    INVALID_FIELD = enum.auto()
    APPLY_BUMP = enum.auto()
    APPLY_LOKI = enum.auto()


class CodecError(RuntimeError):
    """Raised when a codec fails to parse or build a boot image."""

    def __init__(
        self,
        code: CodecErrorCode,
        detail: str = "",
        filename: Path | str | None = None,
    ):
        self.code = code
        self.detail = detail
        self.filename = filename
        super().__init__(describe_codec_error(self))


_CODEC_ERROR_MESSAGES = {
    CodecErrorCode.FILE_OPEN: "Failed to open file",
    CodecErrorCode.FILE_READ: "Failed to read from file",
    CodecErrorCode.FILE_WRITE: "Failed to write to file",
    CodecErrorCode.PARSE: "Failed to parse boot image",
    CodecErrorCode.UNSUPPORTED_FORMAT: "Unsupported boot image format",
    CodecErrorCode.INVALID_FIELD: "Invalid boot image field",
    CodecErrorCode.APPLY_BUMP: "Failed to apply Bump to boot image",
    CodecErrorCode.APPLY_LOKI: "Failed to apply Loki to boot image",
}


def describe_codec_error(error: CodecError) -> str:
    """Map a codec error to a human-readable message.

    Args:
        error: Error reported by a codec

    Returns:
        Message of the form "<category>[: <filename>][ (<detail>)]"
    """
    message = _CODEC_ERROR_MESSAGES[error.code]
    if error.filename is not None:
        message += f": {error.filename}"
    if error.detail:
        message += f" ({error.detail})"
    return message


class BootImageCodec(Protocol):
    """Binary boot image encoder/decoder consumed by the pipelines."""

    def parse(self, path: Path, log: logging.Logger | None = None) -> BootImage:
        """Decode the image at path.

        Raises:
            CodecError: If the image cannot be read or decoded
        """
        ...

    def build(
        self,
        image: BootImage,
        image_type: BootImageType,
        path: Path,
        log: logging.Logger | None = None,
    ) -> None:
        """Encode image as image_type and write it to path.

        Raises:
            CodecError: If the image cannot be encoded or written
        """
        ...
