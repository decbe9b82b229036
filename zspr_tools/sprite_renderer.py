"""
Raster compositing for sprite sheets.

Converts between index maps and 128x448 ABGR rasters (4 bytes per pixel,
alpha first), and between ABGR rasters and Pillow images.
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from PIL import Image

from .constants import (
    ABGR_RASTER_SIZE,
    BYTES_PER_TILE_4BPP,
    COLORS_PER_PALETTE,
    GLOVE_LEVEL_NAMES,
    MAIL_NAMES,
    PIXEL_4BPP_MASK,
    PREVIEW_FALLBACK_ORIGIN,
    PREVIEW_HEAD_BLOCKS,
    PREVIEW_ORIGIN,
    PREVIEW_SIZE,
    SPRITE_SHEET_HEIGHT,
    SPRITE_SHEET_WIDTH,
)
from .logging_config import get_logger
from .palette_utils import Color, mail_sub_palette, sub_palette, unpack_palette
from .tile_utils import (
    IndexMap,
    decode_sprite_sheet,
    index_map_from_indexed_raster,
    indexed_raster_from_index_map,
)

logger = get_logger(__name__)

# RGBA <-> ABGR is a reversal of the channel axis either way
_CHANNEL_SWAP = [3, 2, 1, 0]


def _check_raster(raster: bytes) -> np.ndarray:
    if len(raster) != ABGR_RASTER_SIZE:
        raise ValueError(
            f"Expected {ABGR_RASTER_SIZE} bytes of ABGR raster, got {len(raster)}"
        )
    return np.frombuffer(bytes(raster), dtype=np.uint8).reshape(-1, 4)


def rasterize(index_map: IndexMap, palette: Sequence[Color]) -> bytes:
    """
    Combine an index map and a 16 color palette into an ABGR raster.

    Index 0 is always transparent black, every other index has alpha 255.

    Args:
        index_map: Sprite sheet index map
        palette: 16 RGB colors

    Returns:
        ABGR_RASTER_SIZE bytes
    """
    if len(palette) != COLORS_PER_PALETTE:
        raise ValueError(
            f"Expected {COLORS_PER_PALETTE} palette colors, got {len(palette)}"
        )

    lut = np.zeros((COLORS_PER_PALETTE, 4), dtype=np.uint8)
    for index, (r, g, b) in enumerate(palette):
        lut[index] = (255, b, g, r)
    lut[0] = (0, 0, 0, 0)

    indices = np.array(indexed_raster_from_index_map(index_map), dtype=np.uint8)
    return lut[indices & PIXEL_4BPP_MASK].tobytes()


def indexify(raster: bytes, color_table: Sequence[Color]) -> IndexMap:
    """
    Turn an ABGR raster back into an index map using a color table.

    Pixel channels are rounded down to a multiple of 8 and looked up in
    the table; the first matching position wins and position % 16 becomes
    the index, so a color of any mail resolves to the same slot. Alpha is
    ignored. Pixels matching nothing become index 0.

    Args:
        raster: ABGR_RASTER_SIZE bytes
        color_table: Colors to search, usually palette_color_table()

    Returns:
        Sprite sheet index map
    """
    pixels = _check_raster(raster).astype(np.uint32)
    quantized = pixels & 0xF8
    keys = (quantized[:, 3] << 16) | (quantized[:, 2] << 8) | quantized[:, 1]

    lookup: dict[int, int] = {}
    for position, (r, g, b) in enumerate(color_table):
        key = ((r & 0xF8) << 16) | ((g & 0xF8) << 8) | (b & 0xF8)
        lookup.setdefault(key, position % COLORS_PER_PALETTE)

    unique_keys, inverse = np.unique(keys, return_inverse=True)
    mapped = np.array(
        [lookup.get(int(key), 0) for key in unique_keys], dtype=np.uint8
    )
    unmatched = sum(1 for key in unique_keys if int(key) not in lookup)
    if unmatched:
        logger.warning(
            f"{unmatched} color(s) not found in the palette; using index 0"
        )

    indices = mapped[inverse.reshape(-1)]
    return index_map_from_indexed_raster(indices.tolist())


def raster_to_image(raster: bytes) -> Image.Image:
    """Convert an ABGR raster to a 128x448 RGBA Pillow image."""
    rgba = _check_raster(raster)[:, _CHANNEL_SWAP]
    return Image.fromarray(
        np.ascontiguousarray(rgba).reshape(SPRITE_SHEET_HEIGHT, SPRITE_SHEET_WIDTH, 4)
    )


def image_to_raster(image: Image.Image) -> bytes:
    """
    Convert a Pillow image to an ABGR raster.

    Args:
        image: 128x448 image in any mode convertible to RGBA

    Returns:
        ABGR_RASTER_SIZE bytes

    Raises:
        ValueError: If the image has the wrong size
    """
    if image.size != (SPRITE_SHEET_WIDTH, SPRITE_SHEET_HEIGHT):
        raise ValueError(
            f"Sprite sheet must be {SPRITE_SHEET_WIDTH}x{SPRITE_SHEET_HEIGHT}, "
            f"got {image.size[0]}x{image.size[1]}"
        )
    if image.mode != "RGBA":
        image = image.convert("RGBA")

    rgba = np.asarray(image, dtype=np.uint8).reshape(-1, 4)
    return np.ascontiguousarray(rgba[:, _CHANNEL_SWAP]).tobytes()


def index_map_to_indexed_image(index_map: IndexMap,
                               palette: Sequence[Color]) -> Image.Image:
    """
    Build a palette-mode image from an index map.

    Index 0 is marked transparent.
    """
    raster = indexed_raster_from_index_map(index_map)
    image = Image.frombytes(
        "P", (SPRITE_SHEET_WIDTH, SPRITE_SHEET_HEIGHT), bytes(raster)
    )
    flat = [channel for color in palette for channel in color]
    image.putpalette(flat + [0] * (768 - len(flat)))
    image.info["transparency"] = 0
    return image


def render_all_mails(index_map: IndexMap, palette_data: bytes,
                     glove_data: Optional[bytes] = None) -> list[list[Image.Image]]:
    """
    Render every mail variant with every glove level.

    Returns:
        5 lists (green, blue, red, bunny, zap) of 3 images
        (no gloves, gloves, mitts)
    """
    mails = unpack_palette(palette_data)
    sheets = []
    for variant, mail_name in enumerate(MAIL_NAMES):
        row = []
        for level in range(len(GLOVE_LEVEL_NAMES)):
            palette = mail_sub_palette(mails, variant, glove_data, level)
            row.append(raster_to_image(rasterize(index_map, palette)))
        sheets.append(row)
        logger.debug(f"Rendered {mail_name} mail sheets")
    return sheets


def render_mail_sheet(index_map: IndexMap, palette_data: bytes,
                      glove_data: Optional[bytes] = None,
                      glove_level: int = 0) -> Image.Image:
    """Place all five mail variants side by side for one glove level."""
    sheets = render_all_mails(index_map, palette_data, glove_data)
    combined = Image.new(
        "RGBA",
        (SPRITE_SHEET_WIDTH * len(sheets), SPRITE_SHEET_HEIGHT),
        (0, 0, 0, 0),
    )
    for column, row in enumerate(sheets):
        combined.paste(row[glove_level], (column * SPRITE_SHEET_WIDTH, 0))
    return combined


def _head_is_empty(sprite_data: bytes) -> bool:
    for block in PREVIEW_HEAD_BLOCKS:
        start = block * BYTES_PER_TILE_4BPP
        if any(sprite_data[start:start + BYTES_PER_TILE_4BPP * 2]):
            return False
    return True


def make_preview(sprite_data: bytes, palette_data: bytes) -> Image.Image:
    """
    Render a 16x16 thumbnail of a sprite in green mail.

    Shows the first pose (cell A1) or, for sprites with a blank head
    there, cell B3.
    """
    index_map = decode_sprite_sheet(sprite_data)
    palette = sub_palette(unpack_palette(palette_data), 0)
    sheet = raster_to_image(rasterize(index_map, palette))

    x, y = PREVIEW_FALLBACK_ORIGIN if _head_is_empty(sprite_data) else PREVIEW_ORIGIN
    return sheet.crop((x, y, x + PREVIEW_SIZE, y + PREVIEW_SIZE))
