#!/usr/bin/env python3
"""
Sprite conversion workflows
Chains the codecs: image <-> raster <-> index map <-> 4bpp data <-> ZSPR
"""

from pathlib import Path
from typing import Optional, Union

from PIL import Image

from .constants import (
    DEFAULT_AUTHOR_NAME,
    MAX_PNG_FILE_SIZE,
    ZSPR_EXTENSION,
)
from .exceptions import ZSPRFormatMismatchError
from .logging_config import get_logger
from .palette_utils import (
    mail_sub_palette,
    palette_color_table,
    read_gpl_palette,
    unpack_palette,
)
from .rom_patcher import extract_gloves, extract_palette, read_rom_file
from .security_utils import validate_file_path, validate_output_path
from .sprite_renderer import (
    image_to_raster,
    index_map_to_indexed_image,
    indexify,
    rasterize,
    raster_to_image,
)
from .tile_utils import decode_sprite_sheet, encode_sprite_sheet
from .zspr_file import ZSPRFile, read_zspr_file

logger = get_logger(__name__)

ROM_EXTENSIONS = (".sfc", ".smc")
PALETTE_EXTENSIONS = (".gpl",)


def zspr_to_image(zspr: ZSPRFile, mail: int = 0, glove_level: int = 0,
                  indexed: bool = False) -> Image.Image:
    """
    Render a ZSPR sprite as a 128x448 sheet.

    Args:
        zspr: Sprite to render
        mail: 0 green, 1 blue, 2 red, 3 bunny, 4 zap
        glove_level: 0 no gloves, 1 gloves, 2 mitts
        indexed: Return a palette-mode image instead of RGBA

    Returns:
        Pillow image
    """
    index_map = decode_sprite_sheet(zspr.sprite_data)
    palette = mail_sub_palette(
        unpack_palette(zspr.palette_data), mail, zspr.glove_data, glove_level
    )
    if indexed:
        return index_map_to_indexed_image(index_map, palette)
    return raster_to_image(rasterize(index_map, palette))


def image_to_zspr(image: Image.Image, palette_data: bytes,
                  glove_data: Optional[bytes] = None,
                  sprite_name: str = "",
                  author_name: str = DEFAULT_AUTHOR_NAME,
                  author_name_rom: str = "") -> ZSPRFile:
    """
    Build a ZSPR sprite from a 128x448 sheet and a palette.

    Pixels are matched against all four mails; unmatched colors become
    transparent.
    """
    raster = image_to_raster(image)
    color_table = palette_color_table(unpack_palette(palette_data))
    index_map = indexify(raster, color_table)

    return ZSPRFile(
        sprite_data=encode_sprite_sheet(index_map),
        palette_data=palette_data,
        glove_data=glove_data,
        sprite_name=sprite_name,
        author_name=author_name,
        author_name_rom=author_name_rom,
    )


def load_palette_source(path: Union[str, Path]) -> tuple[bytes, bytes]:
    """
    Read palette and glove data from a .zspr, .gpl or ROM file.

    Returns:
        Tuple of (palette_data, glove_data)
    """
    suffix = Path(path).suffix.lower()
    if suffix == f".{ZSPR_EXTENSION}":
        zspr = read_zspr_file(path)
        return zspr.palette_data, zspr.glove_data
    if suffix in PALETTE_EXTENSIONS:
        return read_gpl_palette(path)
    if suffix in ROM_EXTENSIONS:
        rom_data = read_rom_file(path)
        return extract_palette(rom_data), extract_gloves(rom_data)

    raise ZSPRFormatMismatchError(f"Unsupported palette source: {path}")


def export_png(zspr: ZSPRFile, output_path: Union[str, Path], mail: int = 0,
               glove_level: int = 0, indexed: bool = False) -> str:
    """Save a ZSPR sprite as a PNG sheet."""
    output_path = validate_output_path(output_path)
    image = zspr_to_image(zspr, mail, glove_level, indexed)
    image.save(output_path, "PNG")

    logger.info(f"Exported {zspr} to {output_path}")
    return output_path


def import_png(png_path: Union[str, Path], palette_data: bytes,
               glove_data: Optional[bytes] = None,
               sprite_name: Optional[str] = None,
               author_name: str = DEFAULT_AUTHOR_NAME,
               author_name_rom: str = "") -> ZSPRFile:
    """
    Load a PNG sheet as a ZSPR sprite.

    The sprite name defaults to the PNG file name.
    """
    png_path = validate_file_path(png_path, max_size=MAX_PNG_FILE_SIZE)

    with Image.open(png_path) as image:
        image.load()
        zspr = image_to_zspr(
            image,
            palette_data,
            glove_data,
            sprite_name=sprite_name if sprite_name is not None else Path(png_path).stem,
            author_name=author_name,
            author_name_rom=author_name_rom,
        )

    logger.info(f"Imported {zspr} from {png_path}")
    return zspr
