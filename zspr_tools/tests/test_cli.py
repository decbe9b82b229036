#!/usr/bin/env python3
"""
Tests for the command line interface
"""

import json
import logging
from pathlib import Path

import pytest
from PIL import Image

from zspr_tools.cli import build_parser, main
from zspr_tools.rom_patcher import extract_gloves, extract_sprite
from zspr_tools.zspr_file import read_zspr_file


@pytest.fixture(autouse=True)
def reset_logger(monkeypatch):
    monkeypatch.delenv("ZSPR_TOOLS_DEBUG", raising=False)
    yield
    logger = logging.getLogger("zspr_tools")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def run(temp_dir):
    settings_dir = temp_dir / "settings"

    def _run(*args):
        return main(["--settings-dir", str(settings_dir), *[str(a) for a in args]])

    _run.settings_file = settings_dir / "settings.json"
    return _run


class TestParser:
    """Test argument parsing"""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_export_defaults(self):
        args = build_parser().parse_args(["export", "hero.zspr"])

        assert args.mail is None
        assert args.gloves is None
        assert not args.indexed

    def test_bad_mail_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["export", "hero.zspr", "--mail", "purple"])


class TestCommands:
    """Test each subcommand end to end"""

    def test_info(self, run, zspr_path, capsys):
        assert run("info", zspr_path) == 0

        out = capsys.readouterr().out
        assert "Test Sprite" in out
        assert "Test Author" in out
        assert "0x0001" in out

    def test_export(self, run, zspr_path, temp_dir):
        output = temp_dir / "sheet.png"
        assert run("export", zspr_path, "-o", output, "--mail", "blue", "--gloves", "mitts") == 0

        with Image.open(output) as image:
            assert image.size == (128, 448)

    def test_export_default_output(self, run, zspr_path):
        assert run("export", zspr_path, "--indexed") == 0
        assert Path(zspr_path).with_suffix(".png").exists()

    def test_export_into_last_output_dir(self, run, zspr_path, temp_dir):
        outs = temp_dir / "outs"
        outs.mkdir()
        run.settings_file.parent.mkdir()
        run.settings_file.write_text(json.dumps({"last_output_dir": str(outs)}))

        assert run("export", zspr_path) == 0
        assert (outs / "test.png").exists()
        assert not Path(zspr_path).with_suffix(".png").exists()

    def test_vanished_output_dir_ignored(self, run, zspr_path, temp_dir):
        run.settings_file.parent.mkdir()
        run.settings_file.write_text(json.dumps({"last_output_dir": str(temp_dir / "gone")}))

        assert run("export", zspr_path) == 0
        assert Path(zspr_path).with_suffix(".png").exists()

    def test_export_mail_from_settings(self, run, zspr_path, temp_dir, capsys):
        run.settings_file.parent.mkdir()
        run.settings_file.write_text(json.dumps({"preferences": {"default_mail": 3}}))

        assert run("export", zspr_path, "-o", temp_dir / "bunny.png") == 0
        assert "bunny mail" in capsys.readouterr().out

        settings = json.loads(run.settings_file.read_text())
        assert settings["last_output_dir"] == str(temp_dir.resolve())
        assert settings["preferences"]["backup_rom"] is True

    def test_import(self, run, zspr_path, temp_dir):
        png = temp_dir / "sheet.png"
        run("export", zspr_path, "-o", png)

        output = temp_dir / "new.zspr"
        assert run("import", png, "--palette", zspr_path, "-o", output,
                   "--author", "Jane Müller") == 0

        zspr = read_zspr_file(output)
        assert zspr.sprite_name == "sheet"
        assert zspr.author_name == "Jane Müller"
        assert zspr.author_name_rom == "Jane Mller"
        assert zspr.sprite_data == read_zspr_file(zspr_path).sprite_data

    def test_import_uses_settings_author(self, run, zspr_path, temp_dir):
        png = temp_dir / "sheet.png"
        run("export", zspr_path, "-o", png)
        run.settings_file.write_text(json.dumps({"author_name": "Saved Author"}))

        output = temp_dir / "new.zspr"
        assert run("import", png, "--palette", zspr_path, "-o", output, "--name", "Named") == 0

        zspr = read_zspr_file(output)
        assert zspr.sprite_name == "Named"
        assert zspr.author_name == "Saved Author"

    def test_preview(self, run, zspr_path, temp_dir):
        output = temp_dir / "all.png"
        assert run("preview", zspr_path, "-o", output) == 0

        with Image.open(output) as image:
            assert image.size == (640, 448)

    def test_preview_thumbnail(self, run, zspr_path, temp_dir):
        output = temp_dir / "thumb.png"
        assert run("preview", zspr_path, "-o", output, "--thumbnail") == 0

        with Image.open(output) as image:
            assert image.size == (16, 16)

    def test_palette(self, run, zspr_path, temp_dir):
        output = temp_dir / "colors.gpl"
        assert run("palette", zspr_path, "-o", output) == 0
        assert output.read_text().startswith("GIMP Palette")

    def test_rom_extract(self, run, rom_path, temp_dir, sample_sprite_data):
        output = temp_dir / "vanilla.zspr"
        assert run("rom-extract", rom_path, "-o", output, "--name", "Vanilla",
                   "--author", "Nintendo") == 0

        zspr = read_zspr_file(output)
        assert zspr.sprite_name == "Vanilla"
        assert zspr.sprite_data == sample_sprite_data

        settings = json.loads(run.settings_file.read_text())
        assert settings["recent_files"]["rom"] == [str(rom_path)]

    def test_rom_extract_names_from_file(self, run, rom_path, temp_dir):
        output = temp_dir / "Game Sprite.zspr"
        assert run("rom-extract", rom_path, "-o", output) == 0
        assert read_zspr_file(output).sprite_name == "Game Sprite"

    def test_rom_patch(self, run, rom_path, zspr_path, sample_zspr):
        assert run("rom-patch", zspr_path, rom_path) == 0

        patched = Path(rom_path).read_bytes()
        assert extract_sprite(patched) == sample_zspr.sprite_data
        assert extract_gloves(patched) == sample_zspr.glove_data
        assert Path(f"{rom_path}.bak").exists()

    def test_rom_patch_no_backup(self, run, rom_path, zspr_path):
        assert run("rom-patch", zspr_path, rom_path, "--no-backup") == 0
        assert not Path(f"{rom_path}.bak").exists()

    def test_rom_patch_reuses_last_rom(self, run, rom_path, zspr_path, temp_dir, sample_zspr):
        run("rom-extract", rom_path, "-o", temp_dir / "vanilla.zspr")

        assert run("rom-patch", zspr_path) == 0
        assert extract_sprite(Path(rom_path).read_bytes()) == sample_zspr.sprite_data


class TestErrors:
    """Test error reporting"""

    def test_missing_file(self, run, temp_dir, capsys):
        assert run("info", temp_dir / "missing.zspr") == 1
        assert "Error:" in capsys.readouterr().err

    def test_wrong_extension(self, run, temp_dir, capsys):
        path = temp_dir / "sprite.png"
        path.write_bytes(b"ZSPR")

        assert run("info", path) == 1
        assert "not a .zspr file" in capsys.readouterr().err

    def test_corrupt_file(self, run, zspr_path, capsys):
        data = bytearray(Path(zspr_path).read_bytes())
        data[200] ^= 0xFF
        Path(zspr_path).write_bytes(bytes(data))

        assert run("info", zspr_path) == 1
        assert "Bad checksum" in capsys.readouterr().err

    def test_rom_patch_without_rom(self, run, zspr_path, capsys):
        assert run("rom-patch", zspr_path) == 1
        assert "No ROM given" in capsys.readouterr().err

    def test_bad_palette_source(self, run, zspr_path, temp_dir, capsys):
        assert run("palette", temp_dir / "colors.act", "-o", temp_dir / "x.gpl") == 1
        assert "Unsupported palette source" in capsys.readouterr().err
