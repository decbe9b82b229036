#!/usr/bin/env python3
"""
ZSPR sprite tools command line interface

Usage:
    zspr-tools info <sprite.zspr>
    zspr-tools export <sprite.zspr> [-o sheet.png] [--mail green] [--gloves none] [--indexed]
    zspr-tools import <sheet.png> --palette <src> [-o sprite.zspr] [--name N] [--author A]
    zspr-tools preview <sprite.zspr> [-o preview.png] [--thumbnail] [--gloves none]
    zspr-tools palette <src> [-o palette.gpl]
    zspr-tools rom-extract [rom.sfc] [-o sprite.zspr] [--name N] [--author A]
    zspr-tools rom-patch <sprite.zspr> [rom.sfc] [--no-backup]
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .constants import GLOVE_LEVEL_NAMES, MAIL_NAMES, ZSPR_EXTENSION
from .exceptions import ZSPRError
from .logging_config import get_logger, setup_logging
from .palette_utils import write_gpl_palette
from .rom_patcher import patch_rom_file, read_rom_file, zspr_from_rom
from .security_utils import validate_output_path
from .settings_manager import SettingsManager, get_settings
from .sprite_converter import export_png, import_png, load_palette_source
from .sprite_renderer import make_preview, render_mail_sheet
from .tile_utils import decode_sprite_sheet
from .zspr_file import read_zspr_file, write_zspr_file

logger = get_logger(__name__)


def _output_path(args, settings: SettingsManager, source: str, suffix: str) -> str:
    """Explicit -o, else the last output directory, else beside the source."""
    if args.output:
        return args.output
    default = Path(source).with_suffix(suffix)
    last_dir = settings.last_output_dir
    if last_dir is not None:
        return str(last_dir / default.name)
    return str(default)


def _rom_path(args, settings: SettingsManager) -> str:
    rom = args.rom or settings.last_rom_file
    if not rom:
        raise ValueError("No ROM given and no previous ROM in settings")
    return rom


def cmd_info(args, settings: SettingsManager) -> int:
    zspr = read_zspr_file(args.sprite)
    print(f"Sprite:      {zspr.sprite_name}")
    print(f"Author:      {zspr.author_name}")
    print(f"ROM author:  {zspr.author_name_rom}")
    print(f"Version:     {zspr.version}")
    print(f"Sprite type: 0x{zspr.sprite_type:04X}")
    print(f"Sprite data: {zspr.sprite_data_size} bytes")
    print(f"Palette:     {zspr.palette_data_size} bytes")
    print(f"Gloves:      {zspr.glove_data.hex(' ').upper()}")
    settings.add_recent_file("zspr", args.sprite)
    return 0


def cmd_export(args, settings: SettingsManager) -> int:
    zspr = read_zspr_file(args.sprite)
    output = _output_path(args, settings, args.sprite, ".png")
    mail = args.mail or settings.default_mail
    gloves = args.gloves or settings.default_glove_level
    export_png(
        zspr,
        output,
        mail=MAIL_NAMES.index(mail),
        glove_level=GLOVE_LEVEL_NAMES.index(gloves),
        indexed=args.indexed,
    )
    print(f"Exported {zspr} ({mail} mail, gloves: {gloves}) to {output}")
    settings.remember_output("png", output)
    return 0


def cmd_import(args, settings: SettingsManager) -> int:
    palette_data, glove_data = load_palette_source(args.palette)
    author = args.author if args.author is not None else settings.author_name
    author_rom = args.author_rom if args.author_rom is not None else settings.author_name_rom
    zspr = import_png(
        args.image,
        palette_data,
        glove_data,
        sprite_name=args.name,
        author_name=author,
        author_name_rom=author_rom,
    )
    output = _output_path(args, settings, args.image, f".{ZSPR_EXTENSION}")
    write_zspr_file(output, zspr)
    print(f"Created {zspr} at {output}")
    settings.remember_output("zspr", output)
    return 0


def cmd_preview(args, settings: SettingsManager) -> int:
    zspr = read_zspr_file(args.sprite)
    if args.thumbnail:
        image = make_preview(zspr.sprite_data, zspr.palette_data)
    else:
        image = render_mail_sheet(
            decode_sprite_sheet(zspr.sprite_data),
            zspr.palette_data,
            zspr.glove_data,
            GLOVE_LEVEL_NAMES.index(args.gloves or settings.default_glove_level),
        )
    output = validate_output_path(_output_path(args, settings, args.sprite, ".preview.png"))
    image.save(output, "PNG")
    print(f"Created preview: {output}")
    return 0


def cmd_palette(args, settings: SettingsManager) -> int:
    palette_data, glove_data = load_palette_source(args.source)
    output = _output_path(args, settings, args.source, ".gpl")
    write_gpl_palette(output, palette_data, glove_data, name=Path(args.source).stem)
    print(f"Wrote palette: {output}")
    return 0


def cmd_rom_extract(args, settings: SettingsManager) -> int:
    rom = _rom_path(args, settings)
    rom_data = read_rom_file(rom)
    author = args.author if args.author is not None else settings.author_name
    zspr = zspr_from_rom(rom_data, sprite_name=args.name or "", author_name=author)
    output = _output_path(args, settings, rom, f".{ZSPR_EXTENSION}")
    write_zspr_file(output, zspr)
    print(f"Extracted {zspr} to {output}")
    settings.set("last_rom_file", str(rom))
    settings.add_recent_file("rom", rom)
    settings.remember_output("zspr", output)
    return 0


def cmd_rom_patch(args, settings: SettingsManager) -> int:
    zspr = read_zspr_file(args.sprite)
    rom = _rom_path(args, settings)
    backup = settings.backup_rom and not args.no_backup
    patch_rom_file(rom, zspr, backup=backup)
    print(f"Patched {zspr} into {rom}")
    settings.set("last_rom_file", str(rom))
    settings.add_recent_file("rom", rom)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zspr-tools",
        description="Convert ALttP player sprites between ZSPR, PNG and ROM",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None,
                        help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--settings-dir", default=None,
                        help="Directory holding settings.json")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("info", help="Show ZSPR header information")
    p.add_argument("sprite")
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("export", help="Convert a ZSPR file to a PNG sheet")
    p.add_argument("sprite")
    p.add_argument("-o", "--output")
    p.add_argument("--mail", choices=MAIL_NAMES, default=None,
                   help="Mail to render (default: from settings, else green)")
    p.add_argument("--gloves", choices=GLOVE_LEVEL_NAMES, default=None,
                   help="Glove level to render (default: from settings, else none)")
    p.add_argument("--indexed", action="store_true", help="Write a palette-mode PNG")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Convert a PNG sheet to a ZSPR file")
    p.add_argument("image")
    p.add_argument("--palette", required=True,
                   help="Palette source (.zspr, .gpl, .sfc or .smc)")
    p.add_argument("-o", "--output")
    p.add_argument("--name", default=None, help="Sprite name (default: file name)")
    p.add_argument("--author", default=None)
    p.add_argument("--author-rom", default=None, help="ASCII author name for the ROM")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("preview", help="Render all mails or a thumbnail")
    p.add_argument("sprite")
    p.add_argument("-o", "--output")
    p.add_argument("--gloves", choices=GLOVE_LEVEL_NAMES, default=None)
    p.add_argument("--thumbnail", action="store_true", help="16x16 preview icon")
    p.set_defaults(func=cmd_preview)

    p = sub.add_parser("palette", help="Export a palette as a GIMP .gpl file")
    p.add_argument("source", help="Palette source (.zspr, .gpl, .sfc or .smc)")
    p.add_argument("-o", "--output")
    p.set_defaults(func=cmd_palette)

    p = sub.add_parser("rom-extract", help="Extract the player sprite from a ROM")
    p.add_argument("rom", nargs="?", help="ROM image (default: the last ROM used)")
    p.add_argument("-o", "--output")
    p.add_argument("--name", default=None)
    p.add_argument("--author", default=None)
    p.set_defaults(func=cmd_rom_extract)

    p = sub.add_parser("rom-patch", help="Patch a ZSPR sprite into a ROM")
    p.add_argument("sprite")
    p.add_argument("rom", nargs="?", help="ROM image (default: the last ROM used)")
    p.add_argument("--no-backup", action="store_true")
    p.set_defaults(func=cmd_rom_patch)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.settings_dir:
        settings = SettingsManager(settings_dir=args.settings_dir)
    else:
        settings = get_settings()
    setup_logging(args.log_level or settings.get("log_level", "INFO"), args.log_file)

    try:
        return args.func(args, settings)
    except (ZSPRError, OSError, ValueError) as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
