#!/usr/bin/env python3
"""
ROM patcher
Copies sprite, palette and glove data to and from their fixed ROM offsets
"""

import shutil
from pathlib import Path
from typing import Union

from .constants import (
    DEFAULT_AUTHOR_NAME,
    DEFAULT_SPRITE_NAME,
    GLOVE_DATA_SIZE,
    MAX_ROM_FILE_SIZE,
    PAL_DATA_SIZE,
    ROM_GLOVE_OFFSETS,
    ROM_PALETTE_OFFSET,
    ROM_SPRITE_OFFSET,
    SPRITE_DATA_SIZE,
)
from .exceptions import ZSPRTruncatedDataError
from .logging_config import get_logger
from .palette_utils import gloves_are_null
from .security_utils import validate_file_path, validate_output_path
from .zspr_file import ZSPRFile

logger = get_logger(__name__)


def _check_rom_size(rom_data: bytes, offset: int, size: int, what: str) -> None:
    if offset + size > len(rom_data):
        raise ZSPRTruncatedDataError(
            f"ROM too small for {what} at 0x{offset:X} "
            f"({len(rom_data)} bytes, need {offset + size})"
        )


def _check_length(data: bytes, expected: int, what: str) -> None:
    if len(data) != expected:
        raise ValueError(f"{what} must be {expected} bytes, got {len(data)}")


def extract_sprite(rom_data: bytes) -> bytes:
    """Copy the SPRITE_DATA_SIZE bytes of player sprite data out of a ROM."""
    _check_rom_size(rom_data, ROM_SPRITE_OFFSET, SPRITE_DATA_SIZE, "sprite data")
    return bytes(rom_data[ROM_SPRITE_OFFSET:ROM_SPRITE_OFFSET + SPRITE_DATA_SIZE])


def extract_palette(rom_data: bytes) -> bytes:
    """Copy the PAL_DATA_SIZE bytes of mail palettes out of a ROM."""
    _check_rom_size(rom_data, ROM_PALETTE_OFFSET, PAL_DATA_SIZE, "palette data")
    return bytes(rom_data[ROM_PALETTE_OFFSET:ROM_PALETTE_OFFSET + PAL_DATA_SIZE])


def extract_gloves(rom_data: bytes) -> bytes:
    """Collect the 4 glove color bytes from their separate ROM offsets."""
    _check_rom_size(rom_data, max(ROM_GLOVE_OFFSETS), 1, "glove data")
    return bytes(rom_data[offset] for offset in ROM_GLOVE_OFFSETS)


def patch_rom(rom_data: Union[bytes, bytearray], sprite_data: bytes,
              palette_data: bytes, glove_data: bytes) -> bytearray:
    """
    Write sprite, palette and glove data to their ROM offsets.

    Glove data is only written when it is not all zero. A bytearray is
    patched in place; bytes are copied first.

    Returns:
        The patched ROM
    """
    _check_length(sprite_data, SPRITE_DATA_SIZE, "Sprite data")
    _check_length(palette_data, PAL_DATA_SIZE, "Palette data")
    _check_length(glove_data, GLOVE_DATA_SIZE, "Glove data")

    rom = rom_data if isinstance(rom_data, bytearray) else bytearray(rom_data)
    _check_rom_size(rom, ROM_SPRITE_OFFSET, SPRITE_DATA_SIZE, "sprite data")
    _check_rom_size(rom, ROM_PALETTE_OFFSET, PAL_DATA_SIZE, "palette data")
    _check_rom_size(rom, max(ROM_GLOVE_OFFSETS), 1, "glove data")

    rom[ROM_SPRITE_OFFSET:ROM_SPRITE_OFFSET + SPRITE_DATA_SIZE] = sprite_data
    rom[ROM_PALETTE_OFFSET:ROM_PALETTE_OFFSET + PAL_DATA_SIZE] = palette_data

    if gloves_are_null(glove_data):
        logger.debug("Glove data is empty; leaving ROM gloves unchanged")
    else:
        for offset, value in zip(ROM_GLOVE_OFFSETS, glove_data):
            rom[offset] = value

    return rom


def zspr_from_rom(rom_data: bytes, sprite_name: str = DEFAULT_SPRITE_NAME,
                  author_name: str = DEFAULT_AUTHOR_NAME) -> ZSPRFile:
    """Build a ZSPRFile from the sprite stored in a ROM."""
    return ZSPRFile(
        sprite_data=extract_sprite(rom_data),
        palette_data=extract_palette(rom_data),
        glove_data=extract_gloves(rom_data),
        sprite_name=sprite_name,
        author_name=author_name,
    )


def read_rom_file(rom_path: Union[str, Path]) -> bytes:
    """Read a whole ROM file."""
    rom_path = validate_file_path(rom_path, max_size=MAX_ROM_FILE_SIZE)
    with open(rom_path, "rb") as f:
        return f.read()


def patch_rom_file(rom_path: Union[str, Path], zspr: ZSPRFile,
                   backup: bool = True) -> str:
    """
    Patch a ZSPR sprite into a ROM file on disk.

    Args:
        rom_path: ROM to patch
        zspr: Sprite to write
        backup: Copy the ROM to <rom>.bak before writing

    Returns:
        Path of the patched ROM
    """
    rom_data = bytearray(read_rom_file(rom_path))
    patch_rom(rom_data, zspr.sprite_data, zspr.palette_data, zspr.glove_data)

    rom_path = validate_output_path(rom_path)
    if backup:
        backup_path = f"{rom_path}.bak"
        shutil.copy2(rom_path, backup_path)
        logger.info(f"Created ROM backup: {backup_path}")

    with open(rom_path, "wb") as f:
        f.write(rom_data)

    logger.info(f"Patched {zspr} into {rom_path}")
    return rom_path
