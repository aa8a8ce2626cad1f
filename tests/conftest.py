import pytest
from pathlib import Path

from bootimgtool.codec import AndroidCodec, BootImage, BootImageType
from bootimg_test_utils import RecordingCodec, make_image


@pytest.fixture
def codec() -> AndroidCodec:
    """Provides the shipped Android codec."""
    return AndroidCodec()


@pytest.fixture
def sample_image() -> BootImage:
    """A representative Android field set."""
    return make_image()


@pytest.fixture
def recording_codec(sample_image: BootImage) -> RecordingCodec:
    """Codec double that returns sample_image from parse()."""
    return RecordingCodec(sample_image)


@pytest.fixture
def android_image_path(
    codec: AndroidCodec, sample_image: BootImage, tmp_path: Path
) -> Path:
    """Write sample_image as a plain Android boot image and return its path."""
    path = tmp_path / "boot.img"
    codec.build(sample_image, BootImageType.ANDROID, path)
    return path


@pytest.fixture
def minimal_item_dir(tmp_path: Path) -> Path:
    """
    Directory holding only the mandatory kernel and ramdisk items, using the
    "boot.img-" prefix that pack derives for an output named boot.img.

    Every other item is absent, so packing from it substitutes defaults.
    """
    directory = tmp_path / "items"
    directory.mkdir()
    (directory / "boot.img-kernel").write_bytes(b"kernel-data")
    (directory / "boot.img-ramdisk").write_bytes(b"ramdisk-data")
    return directory
