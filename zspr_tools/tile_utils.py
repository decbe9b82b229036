#!/usr/bin/env python3
"""
SNES 4bpp tile encoding/decoding utilities

A sprite sheet is stored as 896 consecutive 32-byte tiles. Inside a tile,
byte ``p`` holds one bit plane of one pixel row, as given by
``INTERLACE_ORDER[p]``; bit 7 of that byte is column 0.
"""

from .constants import (
    BYTES_PER_TILE_4BPP,
    INDEXED_RASTER_SIZE,
    INTERLACE_ORDER,
    PIXEL_4BPP_MASK,
    SPRITE_BLOCK_COUNT,
    SPRITE_DATA_SIZE,
    SPRITE_SHEET_WIDTH,
    TILE_HEIGHT,
    TILE_WIDTH,
    TILES_PER_ROW,
)

# Tile = 8 rows of 8 color indices; IndexMap = list of SPRITE_BLOCK_COUNT tiles
Tile = list[list[int]]
IndexMap = list[Tile]


def new_tile() -> Tile:
    """Return an empty (all transparent) tile."""
    return [[0] * TILE_WIDTH for _ in range(TILE_HEIGHT)]


def decode_4bpp_tile(data: bytes, offset: int = 0) -> Tile:
    """
    Decode a single 8x8 4bpp SNES tile.

    Args:
        data: Raw tile data bytes
        offset: Starting offset in the data

    Returns:
        8 rows of 8 pixel values (0-15)

    Raises:
        IndexError: If offset + BYTES_PER_TILE_4BPP exceeds data length
    """
    if offset < 0 or offset + BYTES_PER_TILE_4BPP > len(data):
        raise IndexError(f"Tile data out of bounds at offset {offset}")

    tile = new_tile()
    for position, (row, plane) in enumerate(INTERLACE_ORDER):
        value = data[offset + position]
        if not value:
            continue
        pixels = tile[row]
        for col in range(TILE_WIDTH):
            if value & (0x80 >> col):
                pixels[col] |= 1 << plane

    return tile


def encode_4bpp_tile(tile: Tile) -> bytes:
    """
    Encode an 8x8 tile to SNES 4bpp format.

    Args:
        tile: 8 rows of 8 pixel values (0-15)

    Returns:
        32 bytes of encoded tile data

    Raises:
        ValueError: If the tile is not 8x8
    """
    if len(tile) != TILE_HEIGHT or any(len(row) != TILE_WIDTH for row in tile):
        raise ValueError(f"Expected a {TILE_WIDTH}x{TILE_HEIGHT} tile")

    output = bytearray(BYTES_PER_TILE_4BPP)
    for position, (row, plane) in enumerate(INTERLACE_ORDER):
        value = 0
        for pixel in tile[row]:
            # Column 0 ends up in bit 7
            value = (value << 1) | ((pixel >> plane) & 1)
        output[position] = value

    return bytes(output)


def decode_sprite_sheet(sprite_data: bytes) -> IndexMap:
    """
    Decode a full sprite sheet into an index map.

    Args:
        sprite_data: SPRITE_DATA_SIZE bytes of 4bpp data

    Returns:
        List of SPRITE_BLOCK_COUNT tiles
    """
    if len(sprite_data) != SPRITE_DATA_SIZE:
        raise ValueError(
            f"Expected {SPRITE_DATA_SIZE} bytes of sprite data, got {len(sprite_data)}"
        )

    return [
        decode_4bpp_tile(sprite_data, index * BYTES_PER_TILE_4BPP)
        for index in range(SPRITE_BLOCK_COUNT)
    ]


def encode_sprite_sheet(index_map: IndexMap) -> bytes:
    """
    Encode an index map into SNES 4bpp sprite data.

    Args:
        index_map: List of SPRITE_BLOCK_COUNT tiles

    Returns:
        SPRITE_DATA_SIZE bytes of 4bpp data
    """
    if len(index_map) != SPRITE_BLOCK_COUNT:
        raise ValueError(
            f"Expected {SPRITE_BLOCK_COUNT} tiles, got {len(index_map)}"
        )

    output = bytearray()
    for tile in index_map:
        output.extend(encode_4bpp_tile(tile))

    return bytes(output)


def tile_origin(tile_index: int) -> tuple[int, int]:
    """Pixel (x, y) of the top-left corner of a tile on the sheet."""
    return (
        (tile_index % TILES_PER_ROW) * TILE_WIDTH,
        (tile_index // TILES_PER_ROW) * TILE_HEIGHT,
    )


def index_map_from_indexed_raster(raster: list[int]) -> IndexMap:
    """
    Split a row-major 128x448 raster of color indices into 8x8 tiles.

    Args:
        raster: INDEXED_RASTER_SIZE color indices, left to right, top to bottom

    Returns:
        Index map in block-raster order
    """
    if len(raster) != INDEXED_RASTER_SIZE:
        raise ValueError(
            f"Expected {INDEXED_RASTER_SIZE} pixels, got {len(raster)}"
        )

    index_map = []
    for tile_index in range(SPRITE_BLOCK_COUNT):
        x0, y0 = tile_origin(tile_index)
        tile = []
        for y in range(TILE_HEIGHT):
            start = (y0 + y) * SPRITE_SHEET_WIDTH + x0
            tile.append([p & PIXEL_4BPP_MASK for p in raster[start:start + TILE_WIDTH]])
        index_map.append(tile)

    return index_map


def indexed_raster_from_index_map(index_map: IndexMap) -> list[int]:
    """
    Flatten an index map into a row-major 128x448 raster of color indices.

    Args:
        index_map: List of SPRITE_BLOCK_COUNT tiles

    Returns:
        INDEXED_RASTER_SIZE color indices
    """
    if len(index_map) != SPRITE_BLOCK_COUNT:
        raise ValueError(
            f"Expected {SPRITE_BLOCK_COUNT} tiles, got {len(index_map)}"
        )

    raster = [0] * INDEXED_RASTER_SIZE
    for tile_index, tile in enumerate(index_map):
        x0, y0 = tile_origin(tile_index)
        for y, row in enumerate(tile):
            start = (y0 + y) * SPRITE_SHEET_WIDTH + x0
            raster[start:start + TILE_WIDTH] = row

    return raster
