"""Tests for the bootimgtool command line."""

from pathlib import Path

import pytest

from bootimgtool.codec import AndroidCodec, BootImage
from bootimgtool.tools.cli import build_pack_parser, main, pack_main, unpack_main
from bootimg_test_utils import RecordingCodec


class TestMain:
    """Tests for command dispatch."""

    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "Available commands" in capsys.readouterr().err

    def test_unknown_command(self, capsys):
        assert main(["explode"]) == 1
        assert "Usage: bootimgtool" in capsys.readouterr().err

    @pytest.mark.parametrize("flag", ["-h", "--help"])
    def test_help(self, flag, capsys):
        assert main([flag]) == 0
        out = capsys.readouterr().out
        assert "unpack" in out
        assert "pack" in out

    def test_command_help_exits_zero(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["unpack", "--help"])
        assert excinfo.value.code == 0
        out = capsys.readouterr().out
        assert "--output-kernel" in out
        assert "--output-aboot" not in out
        assert "Legend:" in out

    def test_bad_option_exits_one(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["pack", "boot.img", "--bogus"])
        assert excinfo.value.code == 1


class TestPackParser:
    """Tests for generated pack options."""

    def test_value_options_only_for_scalars(self):
        parser = build_pack_parser()
        args = parser.parse_args(["boot.img", "--value-page_size", "4096"])
        assert args.value_page_size == "4096"
        with pytest.raises(SystemExit):
            parser.parse_args(["boot.img", "--value-kernel", "abc"])

    def test_input_option_for_aboot(self):
        args = build_pack_parser().parse_args(["boot.img", "--input-aboot", "aboot.img"])
        assert args.input_aboot == Path("aboot.img")

    def test_type_choices(self):
        parser = build_pack_parser()
        assert parser.parse_args(["boot.img", "-t", "bump"]).type == "bump"
        with pytest.raises(SystemExit):
            parser.parse_args(["boot.img", "-t", "uboot"])


class TestUnpack:
    """Tests for the unpack command."""

    def test_unpack(self, android_image_path: Path, sample_image: BootImage, tmp_path: Path, capsys):
        out = tmp_path / "out"
        assert main(["unpack", str(android_image_path), "-o", str(out)]) == 0

        stdout = capsys.readouterr().out
        assert stdout.startswith("Output files:\n")
        assert f"- kernel:         {out / 'boot.img-kernel'}" in stdout
        assert "aboot" not in stdout
        assert stdout.endswith("Done\n")
        assert (out / "boot.img-kernel").read_bytes() == sample_image.kernel

    def test_unpack_noprefix(self, android_image_path: Path, tmp_path: Path):
        out = tmp_path / "out"
        assert main(["unpack", str(android_image_path), "-o", str(out), "-n"]) == 0
        assert (out / "ramdisk").exists()

    def test_unpack_custom_output(self, android_image_path: Path, tmp_path: Path):
        dt = tmp_path / "dt.img"
        argv = [str(android_image_path), "-o", str(tmp_path / "out"), "--output-dt", str(dt)]
        assert unpack_main(argv) == 0
        assert dt.read_bytes().startswith(b"QCDT")

    def test_unpack_missing_image(self, tmp_path: Path, capsys):
        assert main(["unpack", str(tmp_path / "missing.img"), "-o", str(tmp_path)]) == 1
        assert "Failed to open file" in capsys.readouterr().err

    def test_unpack_not_an_image(self, tmp_path: Path, capsys):
        path = tmp_path / "junk.img"
        path.write_bytes(b"\x00" * 4096)
        assert main(["unpack", str(path), "-o", str(tmp_path / "out")]) == 1
        assert "Failed to parse boot image" in capsys.readouterr().err


class TestPack:
    """Tests for the pack command."""

    def test_pack_minimal(self, minimal_item_dir: Path, tmp_path: Path, capsys):
        output = tmp_path / "boot.img"
        assert main(["pack", str(output), "-i", str(minimal_item_dir)]) == 0

        stdout = capsys.readouterr().out
        assert stdout.startswith("Input files:\n")
        assert f"- kernel:         (path)  {minimal_item_dir / 'boot.img-kernel'}" in stdout
        assert stdout.endswith("Done\n")
        assert AndroidCodec().parse(output).kernel == b"kernel-data"

    def test_pack_value_listing(self, minimal_item_dir: Path, tmp_path: Path, capsys):
        output = tmp_path / "boot.img"
        argv = [str(output), "-i", str(minimal_item_dir), "--value-page_size", "4096"]
        assert pack_main(argv) == 0
        assert "- page_size:      (value) 4096" in capsys.readouterr().out
        assert AndroidCodec().parse(output).page_size == 4096

    def test_loki_without_aboot(self, tmp_path: Path, capsys):
        codec = RecordingCodec()
        assert pack_main([str(tmp_path / "boot.img"), "-t", "loki"], codec) == 1

        captured = capsys.readouterr()
        assert "An aboot image must be specified" in captured.err
        assert "usage:" in captured.err
        assert captured.out == ""
        assert codec.built == []

    def test_invalid_value(self, minimal_item_dir: Path, tmp_path: Path, capsys):
        argv = [str(tmp_path / "boot.img"), "-i", str(minimal_item_dir), "--value-base", "zz"]
        assert pack_main(argv) == 1
        captured = capsys.readouterr()
        assert "Invalid base: zz" in captured.err
        assert captured.out == ""

    def test_missing_kernel(self, tmp_path: Path, capsys):
        assert pack_main([str(tmp_path / "boot.img"), "-i", str(tmp_path)]) == 1
        assert "No such file or directory" in capsys.readouterr().err
        assert not (tmp_path / "boot.img").exists()

    def test_malformed_item(self, minimal_item_dir: Path, tmp_path: Path, capsys):
        (minimal_item_dir / "boot.img-tags_offset").write_bytes(b"100\n")
        assert pack_main([str(tmp_path / "boot.img"), "-i", str(minimal_item_dir)]) == 1
        assert "expected '%08x' format" in capsys.readouterr().err

    def test_unsupported_output_type(self, minimal_item_dir: Path, tmp_path: Path, capsys):
        argv = [str(tmp_path / "boot.img"), "-i", str(minimal_item_dir), "-t", "sonyelf"]
        assert pack_main(argv) == 1
        assert "Unsupported boot image format" in capsys.readouterr().err
