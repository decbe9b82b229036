#!/usr/bin/env python3
"""
Constants for the ZSPR sprite tools
All magic numbers and format specifications in one place
"""

# SNES Tile specifications
TILE_WIDTH = 8  # pixels
TILE_HEIGHT = 8  # pixels
BYTES_PER_TILE_4BPP = 32  # 4 bits per pixel, 8x8 pixels
PIXEL_4BPP_MASK = 0x0F

# Sprite sheet geometry
SPRITE_SHEET_WIDTH = 128  # pixels
SPRITE_SHEET_HEIGHT = 448  # pixels
TILES_PER_ROW = SPRITE_SHEET_WIDTH // TILE_WIDTH  # 16
TILE_ROWS = SPRITE_SHEET_HEIGHT // TILE_HEIGHT  # 56
SPRITE_BLOCK_COUNT = TILES_PER_ROW * TILE_ROWS  # 896
SPRITE_DATA_SIZE = SPRITE_BLOCK_COUNT * BYTES_PER_TILE_4BPP  # 28672

INDEXED_RASTER_SIZE = SPRITE_SHEET_WIDTH * SPRITE_SHEET_HEIGHT
ABGR_RASTER_SIZE = INDEXED_RASTER_SIZE * 4

# Format of SNES 4BPP interlace: (row, bit plane) for each byte of a tile.
# Planes 0-1 of every row come first, then planes 2-3.
INTERLACE_ORDER = (
    (0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1), (3, 0), (3, 1),
    (4, 0), (4, 1), (5, 0), (5, 1), (6, 0), (6, 1), (7, 0), (7, 1),
    (0, 2), (0, 3), (1, 2), (1, 3), (2, 2), (2, 3), (3, 2), (3, 3),
    (4, 2), (4, 3), (5, 2), (5, 3), (6, 2), (6, 3), (7, 2), (7, 3),
)

# Palette specifications
COLORS_PER_PALETTE = 16
STORED_COLORS_PER_MAIL = 15  # index 0 is never stored
MAIL_COUNT = 4
ALL_MAILS_PALETTE_SIZE = COLORS_PER_PALETTE * MAIL_COUNT  # 64
ALL_MAILS_WITH_GLOVES_SIZE = ALL_MAILS_PALETTE_SIZE + 2  # 66
BYTES_PER_COLOR = 2  # BGR555 format
PAL_DATA_SIZE = STORED_COLORS_PER_MAIL * MAIL_COUNT * BYTES_PER_COLOR  # 120
GLOVE_DATA_SIZE = 4  # 2 colors
GLOVE_COLOR_INDEX = 13
VANILLA_GLOVE_COLORS = bytes((0xF6, 0x52, 0x76, 0x03))

# Mail variants
MAIL_GREEN = 0
MAIL_BLUE = 1
MAIL_RED = 2
MAIL_BUNNY = 3
MAIL_ZAP = 4
MAIL_NAMES = ("green", "blue", "red", "bunny", "zap")
GLOVE_LEVEL_NAMES = ("none", "gloves", "mitts")

# Palette the game switches to when the player is electrocuted
ZAP_PALETTE = (
    (0, 0, 0),
    (0, 0, 0),
    (208, 184, 24),
    (136, 112, 248),
    (0, 0, 0),
    (208, 192, 248),
    (0, 0, 0),
    (208, 192, 248),
    (112, 88, 224),
    (136, 112, 248),
    (56, 40, 128),
    (136, 112, 248),
    (56, 40, 128),
    (72, 56, 144),
    (120, 48, 160),
    (248, 248, 248),
)

# Color conversion
BGR555_BLUE_MASK = 0x7C00   # Bits 14-10 for blue
BGR555_GREEN_MASK = 0x03E0  # Bits 9-5 for green
BGR555_RED_MASK = 0x001F    # Bits 4-0 for red
BGR555_BLUE_SHIFT = 10
BGR555_GREEN_SHIFT = 5
BGR555_RED_SHIFT = 0
CHANNEL_SHIFT = 3  # 5-bit <-> 8-bit channel
CHANNEL_STEP = 1 << CHANNEL_SHIFT

# ROM offsets
ROM_SPRITE_OFFSET = 0x80000
ROM_PALETTE_OFFSET = 0x0DD308
ROM_GLOVE_OFFSETS = (0xDEDF5, 0xDEDF6, 0xDEDF7, 0xDEDF8)  # gloves, gloves, mitts, mitts

# ZSPR file format (v1.0)
ZSPR_FLAG = b"ZSPR"
ZSPR_VERSION = 1
ZSPR_VERSION_TAG = "v1.0"
ZSPR_SPEC = f"ZSPR (.ZSPR) version {ZSPR_VERSION_TAG} specification"
ZSPR_EXTENSION = "zspr"
SPRITE_TYPE_PLAYER = 0x0001

# (offset, size) of each fixed header field
HEADER_FLAG = (0, 4)
HEADER_VERSION = (4, 1)
HEADER_CHECKSUM = (5, 4)
HEADER_SPRITE_OFFSET = (9, 4)
HEADER_SPRITE_SIZE = (13, 2)
HEADER_PALETTE_OFFSET = (15, 4)
HEADER_PALETTE_SIZE = (19, 2)
HEADER_SPRITE_TYPE = (21, 2)
HEADER_RESERVED = (23, 6)
HEADER_SIZE = 29  # sprite name starts here

ZSPR_PALETTE_BLOCK_SIZE = PAL_DATA_SIZE + GLOVE_DATA_SIZE  # 124
CHECKSUM_PLACEHOLDER = bytes((0x00, 0x00, 0xFF, 0xFF))
NAME_ROM_MAX_LENGTH = 20
DEFAULT_SPRITE_NAME = "Untitled"
DEFAULT_AUTHOR_NAME = "Unknown"

# File size limits for security
MAX_ZSPR_FILE_SIZE = 1024 * 1024  # 1MB
MAX_ROM_FILE_SIZE = 8 * 1024 * 1024  # 8MB
MAX_PNG_FILE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_PALETTE_FILE_SIZE = 64 * 1024  # 64KB

# Preview thumbnail
PREVIEW_SIZE = 16
PREVIEW_HEAD_BLOCKS = (2, 18)  # tiles holding the head of the first pose
PREVIEW_ORIGIN = (16, 0)  # cell A1
PREVIEW_FALLBACK_ORIGIN = (48, 16)  # cell B3
