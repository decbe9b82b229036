#!/usr/bin/env python3
"""
SNES palette utilities
Conversion between stored BGR555 mail palettes and RGB888 colors
"""

import struct
from pathlib import Path
from typing import Optional, Sequence, Union

from .constants import (
    ALL_MAILS_PALETTE_SIZE,
    ALL_MAILS_WITH_GLOVES_SIZE,
    BGR555_BLUE_MASK,
    BGR555_BLUE_SHIFT,
    BGR555_GREEN_MASK,
    BGR555_GREEN_SHIFT,
    BGR555_RED_MASK,
    BGR555_RED_SHIFT,
    BYTES_PER_COLOR,
    CHANNEL_SHIFT,
    CHANNEL_STEP,
    COLORS_PER_PALETTE,
    GLOVE_COLOR_INDEX,
    GLOVE_DATA_SIZE,
    MAIL_BUNNY,
    MAIL_COUNT,
    MAIL_ZAP,
    MAX_PALETTE_FILE_SIZE,
    PAL_DATA_SIZE,
    STORED_COLORS_PER_MAIL,
    VANILLA_GLOVE_COLORS,
    ZAP_PALETTE,
)
from .exceptions import PaletteFileError
from .logging_config import get_logger
from .security_utils import validate_file_path, validate_output_path

logger = get_logger(__name__)

Color = tuple[int, int, int]

BLACK: Color = (0, 0, 0)
GPL_HEADER = "GIMP Palette"


def bgr555_to_rgb888(bgr555: int) -> Color:
    """
    Convert BGR555 color to RGB888.

    Each 5-bit channel is shifted left by 3; the low bits stay zero.

    Args:
        bgr555: 16-bit BGR555 color value

    Returns:
        Tuple of (r, g, b) values in 0-248 range
    """
    r = (bgr555 & BGR555_RED_MASK) >> BGR555_RED_SHIFT
    g = (bgr555 & BGR555_GREEN_MASK) >> BGR555_GREEN_SHIFT
    b = (bgr555 & BGR555_BLUE_MASK) >> BGR555_BLUE_SHIFT

    return r << CHANNEL_SHIFT, g << CHANNEL_SHIFT, b << CHANNEL_SHIFT


def round_channel(value: int) -> int:
    """Round a channel value down to the nearest multiple of 8."""
    return (value // CHANNEL_STEP) * CHANNEL_STEP


def round_color(color: Sequence[int]) -> Color:
    """Round every channel of a color down to a multiple of 8."""
    r, g, b = color[:3]
    return round_channel(r), round_channel(g), round_channel(b)


def rgb888_to_bgr555(r: int, g: int, b: int) -> int:
    """
    Convert RGB888 color to BGR555.

    Args:
        r: Red component (0-255)
        g: Green component (0-255)
        b: Blue component (0-255)

    Returns:
        16-bit BGR555 color value
    """
    r5 = round_channel(r) >> CHANNEL_SHIFT
    g5 = round_channel(g) >> CHANNEL_SHIFT
    b5 = round_channel(b) >> CHANNEL_SHIFT

    return (
        (b5 << BGR555_BLUE_SHIFT)
        | (g5 << BGR555_GREEN_SHIFT)
        | (r5 << BGR555_RED_SHIFT)
    )


def _unpack_colors(data: bytes, count: int) -> list[Color]:
    return [
        bgr555_to_rgb888(word)
        for (word,) in struct.iter_unpack("<H", data[:count * BYTES_PER_COLOR])
    ]


def _pack_colors(colors: Sequence[Sequence[int]]) -> bytes:
    return b"".join(
        struct.pack("<H", rgb888_to_bgr555(*color[:3])) for color in colors
    )


def unpack_palette(palette_data: bytes) -> list[list[Color]]:
    """
    Split stored palette data into the four mail palettes.

    Args:
        palette_data: PAL_DATA_SIZE bytes, 15 BGR555 colors per mail

    Returns:
        List of 4 mails, each a list of 15 RGB colors (indices 1-15)
    """
    if len(palette_data) != PAL_DATA_SIZE:
        raise ValueError(
            f"Expected {PAL_DATA_SIZE} bytes of palette data, got {len(palette_data)}"
        )

    colors = _unpack_colors(palette_data, STORED_COLORS_PER_MAIL * MAIL_COUNT)
    return [
        colors[mail * STORED_COLORS_PER_MAIL:(mail + 1) * STORED_COLORS_PER_MAIL]
        for mail in range(MAIL_COUNT)
    ]


def pack_palette(mails: Sequence[Sequence[Sequence[int]]]) -> bytes:
    """
    Convert four mail palettes to stored palette data.

    Channels are rounded down to a multiple of 8 before quantizing, so
    ``pack_palette(unpack_palette(p))`` is stable after one round trip.

    Args:
        mails: 4 mails of 15 RGB colors each

    Returns:
        PAL_DATA_SIZE bytes of BGR555 data
    """
    if len(mails) != MAIL_COUNT or any(
        len(mail) != STORED_COLORS_PER_MAIL for mail in mails
    ):
        raise ValueError(
            f"Expected {MAIL_COUNT} mails of {STORED_COLORS_PER_MAIL} colors"
        )

    return b"".join(_pack_colors(mail) for mail in mails)


def gloves_are_null(glove_data: bytes) -> bool:
    """An all-zero glove block means the vanilla glove colors."""
    return not any(glove_data)


def resolve_gloves(glove_data: Optional[bytes]) -> bytes:
    """
    Return the glove bytes to actually use.

    Args:
        glove_data: GLOVE_DATA_SIZE bytes, all-zero or None for vanilla

    Returns:
        GLOVE_DATA_SIZE bytes of glove colors
    """
    if glove_data is None or gloves_are_null(glove_data):
        return VANILLA_GLOVE_COLORS
    if len(glove_data) != GLOVE_DATA_SIZE:
        raise ValueError(
            f"Expected {GLOVE_DATA_SIZE} bytes of glove data, got {len(glove_data)}"
        )
    return bytes(glove_data)


def unpack_gloves(glove_data: bytes) -> list[Color]:
    """
    Convert glove data to its two colors (gloves, mitts).

    The vanilla colors are used when the data is all zero.
    """
    return _unpack_colors(resolve_gloves(glove_data), GLOVE_DATA_SIZE // BYTES_PER_COLOR)


def pack_gloves(colors: Sequence[Sequence[int]]) -> bytes:
    """Convert two RGB glove colors to GLOVE_DATA_SIZE bytes."""
    if len(colors) != GLOVE_DATA_SIZE // BYTES_PER_COLOR:
        raise ValueError(f"Expected 2 glove colors, got {len(colors)}")
    return _pack_colors(colors)


def sub_palette(mails: Sequence[Sequence[Color]], variant: int,
                glove_color: Optional[Color] = None) -> list[Color]:
    """
    Build the 16 color palette of one mail.

    Args:
        mails: Output of unpack_palette
        variant: Mail index (0 green, 1 blue, 2 red, 3 bunny)
        glove_color: Color for index 13, ignored for the bunny

    Returns:
        16 RGB colors with index 0 black
    """
    if not 0 <= variant < MAIL_COUNT:
        raise ValueError(f"Mail variant must be 0-{MAIL_COUNT - 1}, got {variant}")

    palette = [BLACK] + [tuple(color) for color in mails[variant]]
    if glove_color is not None and variant != MAIL_BUNNY:
        palette[GLOVE_COLOR_INDEX] = tuple(glove_color)
    return palette


def mail_sub_palette(mails: Sequence[Sequence[Color]], variant: int,
                     glove_data: Optional[bytes] = None,
                     glove_level: int = 0) -> list[Color]:
    """
    Build the palette for a mail variant including the zap palette.

    Args:
        mails: Output of unpack_palette
        variant: 0 green, 1 blue, 2 red, 3 bunny, 4 zap
        glove_data: Glove bytes (all-zero or None means vanilla)
        glove_level: 0 no gloves, 1 gloves, 2 mitts

    Returns:
        16 RGB colors
    """
    if variant == MAIL_ZAP:
        return list(ZAP_PALETTE)
    if not 0 <= glove_level <= 2:
        raise ValueError(f"Glove level must be 0-2, got {glove_level}")

    glove_color = None
    if glove_level:
        glove_color = unpack_gloves(glove_data or b"")[glove_level - 1]
    return sub_palette(mails, variant, glove_color)


def palette_color_table(mails: Sequence[Sequence[Color]]) -> list[Color]:
    """
    Flatten the four mails into the 64 color lookup table.

    Slot 0 of every mail is black, so position % 16 is the color index.
    """
    table = []
    for mail in mails:
        table.append(BLACK)
        table.extend(round_color(color) for color in mail)
    return table


def palette_from_color_table(colors: Sequence[Sequence[int]]) -> tuple[bytes, bytes]:
    """
    Convert a 64 or 66 color table to palette and glove data.

    Slot 0 of each group of 16 is ignored. The optional two extra colors
    are the gloves; without them the glove data is all zero.

    Returns:
        Tuple of (palette_data, glove_data)
    """
    if len(colors) not in (ALL_MAILS_PALETTE_SIZE, ALL_MAILS_WITH_GLOVES_SIZE):
        raise ValueError(
            f"Expected {ALL_MAILS_PALETTE_SIZE} or {ALL_MAILS_WITH_GLOVES_SIZE} "
            f"colors, got {len(colors)}"
        )

    mails = [
        colors[mail * COLORS_PER_PALETTE + 1:(mail + 1) * COLORS_PER_PALETTE]
        for mail in range(MAIL_COUNT)
    ]
    palette_data = pack_palette(mails)

    if len(colors) == ALL_MAILS_WITH_GLOVES_SIZE:
        glove_data = pack_gloves(colors[ALL_MAILS_PALETTE_SIZE:])
    else:
        glove_data = bytes(GLOVE_DATA_SIZE)

    return palette_data, glove_data


def color_table_from_palette(palette_data: bytes,
                             glove_data: Optional[bytes] = None) -> list[Color]:
    """Inverse of palette_from_color_table; gloves are appended when given."""
    table = palette_color_table(unpack_palette(palette_data))
    if glove_data is not None:
        table.extend(unpack_gloves(glove_data))
    return table


def read_gpl_palette(palette_file: Union[str, Path]) -> tuple[bytes, bytes]:
    """
    Read a GIMP palette holding 64 or 66 colors.

    Args:
        palette_file: Path to the .gpl file

    Returns:
        Tuple of (palette_data, glove_data)

    Raises:
        PaletteFileError: If the file is not a usable GIMP palette
    """
    palette_file = validate_file_path(palette_file, max_size=MAX_PALETTE_FILE_SIZE)

    with open(palette_file, encoding="utf-8") as f:
        lines = f.read().splitlines()

    if not lines or lines[0].strip() != GPL_HEADER:
        raise PaletteFileError(f"Not a GIMP palette: {palette_file}")

    colors = []
    for line_number, line in enumerate(lines[1:], start=2):
        line = line.strip()
        if not line or line.startswith("#") or ":" in line.split()[0]:
            continue
        parts = line.split()
        try:
            color = tuple(int(part) for part in parts[:3])
        except ValueError:
            raise PaletteFileError(
                f"Bad color on line {line_number} of {palette_file}: {line!r}"
            ) from None
        if len(color) != 3 or not all(0 <= c <= 255 for c in color):
            raise PaletteFileError(
                f"Bad color on line {line_number} of {palette_file}: {line!r}"
            )
        colors.append(color)

    if len(colors) not in (ALL_MAILS_PALETTE_SIZE, ALL_MAILS_WITH_GLOVES_SIZE):
        raise PaletteFileError(
            f"Palette must hold {ALL_MAILS_PALETTE_SIZE} or "
            f"{ALL_MAILS_WITH_GLOVES_SIZE} colors, found {len(colors)}"
        )

    logger.debug(f"Read {len(colors)} colors from {palette_file}")
    return palette_from_color_table(colors)


def write_gpl_palette(palette_file: Union[str, Path], palette_data: bytes,
                      glove_data: Optional[bytes] = None,
                      name: str = "ZSPR palette") -> str:
    """
    Write palette (and optional glove) data as a GIMP palette.

    Returns:
        Path of the written file
    """
    palette_file = validate_output_path(palette_file)
    colors = color_table_from_palette(palette_data, glove_data)

    lines = [GPL_HEADER, f"Name: {name}", f"Columns: {COLORS_PER_PALETTE}", "#"]
    lines.extend(f"{r:3d} {g:3d} {b:3d}\tUntitled" for r, g, b in colors)

    with open(palette_file, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")

    logger.info(f"Wrote {len(colors)} colors to {palette_file}")
    return palette_file
