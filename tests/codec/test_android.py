"""Tests for the Android boot image codec."""

import struct
from pathlib import Path

import pytest

from bootimgtool.codec import (
    AndroidCodec,
    AndroidHeader,
    BootImage,
    BootImageType,
    CodecError,
    CodecErrorCode,
)
from bootimgtool.codec.android import HEADER_STRUCT, align_to_page, compute_image_id
from bootimgtool.codec.types import BUMP_MAGIC, ELF_MAGIC
from bootimg_test_utils import make_image


class TestHeader:
    """Tests for AndroidHeader parsing."""

    def test_header_size(self):
        """boot_img_hdr v0 is 1632 bytes."""
        assert HEADER_STRUCT.size == 1632

    def test_header_too_short(self):
        with pytest.raises(ValueError, match="Header too short"):
            AndroidHeader.parse(b"ANDROID!" + b"\x00" * 100)

    def test_invalid_magic(self):
        with pytest.raises(ValueError, match="Invalid magic"):
            AndroidHeader.parse(b"NOTANDRD" + b"\x00" * HEADER_STRUCT.size)

    def test_align_to_page(self):
        assert align_to_page(0, 2048) == 0
        assert align_to_page(1, 2048) == 2048
        assert align_to_page(2048, 2048) == 2048
        assert align_to_page(2049, 4096) == 4096


class TestBuild:
    """Tests for AndroidCodec.build()."""

    def test_layout(self, codec: AndroidCodec, tmp_path: Path):
        """Header page followed by page-aligned kernel and ramdisk."""
        image = BootImage(kernel=b"K" * 10, ramdisk=b"R" * 2049)
        path = tmp_path / "boot.img"
        codec.build(image, BootImageType.ANDROID, path)

        data = path.read_bytes()
        assert len(data) == 2048 + 2048 + 4096
        assert data[:8] == b"ANDROID!"
        assert data[2048 : 2048 + 10] == b"K" * 10
        assert data[4096 : 4096 + 2049] == b"R" * 2049

        header = AndroidHeader.parse(data)
        assert header.kernel_size == 10
        assert header.ramdisk_size == 2049
        assert header.page_size == 2048

    def test_id_digest(self, codec: AndroidCodec, sample_image: BootImage, tmp_path: Path):
        path = tmp_path / "boot.img"
        codec.build(sample_image, BootImageType.ANDROID, path)

        header = AndroidHeader.parse(path.read_bytes())
        blobs = [sample_image.kernel, sample_image.ramdisk, sample_image.second, sample_image.dt]
        assert header.id == compute_image_id(blobs)

    def test_bump_trailer(self, codec: AndroidCodec, sample_image: BootImage, tmp_path: Path):
        plain = tmp_path / "plain.img"
        bumped = tmp_path / "bumped.img"
        codec.build(sample_image, BootImageType.ANDROID, plain)
        codec.build(sample_image, BootImageType.BUMP, bumped)

        assert bumped.read_bytes() == plain.read_bytes() + BUMP_MAGIC

    def test_board_too_long(self, codec: AndroidCodec, tmp_path: Path):
        """Board name must leave room for the NUL terminator."""
        image = make_image(board="x" * 16)
        with pytest.raises(CodecError) as excinfo:
            codec.build(image, BootImageType.ANDROID, tmp_path / "boot.img")
        assert excinfo.value.code == CodecErrorCode.INVALID_FIELD

    def test_invalid_page_size(self, codec: AndroidCodec, tmp_path: Path):
        image = make_image(page_size=1000)
        with pytest.raises(CodecError, match="Invalid page size"):
            codec.build(image, BootImageType.ANDROID, tmp_path / "boot.img")

    @pytest.mark.parametrize("image_type", [BootImageType.LOKI, BootImageType.SONY_ELF])
    def test_unsupported_types(self, codec: AndroidCodec, image_type, tmp_path: Path):
        with pytest.raises(CodecError) as excinfo:
            codec.build(make_image(), image_type, tmp_path / "boot.img")
        assert excinfo.value.code == CodecErrorCode.UNSUPPORTED_FORMAT
        assert not (tmp_path / "boot.img").exists()

    def test_write_failure(self, codec: AndroidCodec, tmp_path: Path):
        with pytest.raises(CodecError) as excinfo:
            codec.build(make_image(), BootImageType.ANDROID, tmp_path / "a" / "b.img")
        assert excinfo.value.code == CodecErrorCode.FILE_WRITE


class TestParse:
    """Tests for AndroidCodec.parse()."""

    def test_parse_built_image(self, codec: AndroidCodec, sample_image: BootImage, android_image_path: Path):
        assert codec.parse(android_image_path) == sample_image

    def test_parse_bump_image(self, codec: AndroidCodec, sample_image: BootImage, tmp_path: Path):
        path = tmp_path / "bump.img"
        codec.build(sample_image, BootImageType.BUMP, path)
        assert codec.parse(path) == sample_image

    def test_parse_with_leading_vendor_header(self, codec: AndroidCodec, sample_image: BootImage, android_image_path: Path, tmp_path: Path):
        """The header may start anywhere in the first 512 bytes."""
        path = tmp_path / "vendor.img"
        path.write_bytes(b"\xaa" * 256 + android_image_path.read_bytes())
        assert codec.parse(path) == sample_image

    def test_parse_missing_file(self, codec: AndroidCodec, tmp_path: Path):
        with pytest.raises(CodecError) as excinfo:
            codec.parse(tmp_path / "missing.img")
        assert excinfo.value.code == CodecErrorCode.FILE_OPEN

    def test_parse_garbage(self, codec: AndroidCodec, tmp_path: Path):
        path = tmp_path / "garbage.img"
        path.write_bytes(b"\x00" * 4096)
        with pytest.raises(CodecError) as excinfo:
            codec.parse(path)
        assert excinfo.value.code == CodecErrorCode.PARSE

    def test_parse_truncated(self, codec: AndroidCodec, android_image_path: Path):
        data = android_image_path.read_bytes()
        android_image_path.write_bytes(data[:-2048])
        with pytest.raises(CodecError, match="Image truncated"):
            codec.parse(android_image_path)

    def test_parse_bad_page_size(self, codec: AndroidCodec, android_image_path: Path):
        data = bytearray(android_image_path.read_bytes())
        # page_size is the ninth field: 8-byte magic + 7 u32s
        struct.pack_into("<I", data, 8 + 7 * 4, 1234)
        android_image_path.write_bytes(data)
        with pytest.raises(CodecError, match="Invalid page size"):
            codec.parse(android_image_path)

    def test_parse_sony_elf_unsupported(self, codec: AndroidCodec, tmp_path: Path):
        path = tmp_path / "kernel.elf"
        path.write_bytes(ELF_MAGIC + b"\x01\x01\x01" + b"\x00" * 57)
        with pytest.raises(CodecError) as excinfo:
            codec.parse(path)
        assert excinfo.value.code == CodecErrorCode.UNSUPPORTED_FORMAT

    def test_cmdline_with_non_ascii_bytes(self, codec: AndroidCodec, tmp_path: Path):
        """Undecodable bytes survive a build/parse cycle."""
        image = make_image(cmdline="quiet \udcff")
        path = tmp_path / "boot.img"
        codec.build(image, BootImageType.ANDROID, path)
        assert codec.parse(path).cmdline == "quiet \udcff"


class TestCodecErrorMessages:
    """Tests for the human-readable codec error mapping."""

    def test_message_with_filename(self):
        error = CodecError(CodecErrorCode.FILE_OPEN, filename="boot.img")
        assert str(error) == "Failed to open file: boot.img"

    def test_message_with_detail(self):
        error = CodecError(CodecErrorCode.PARSE, "Invalid magic")
        assert str(error) == "Failed to parse boot image (Invalid magic)"
