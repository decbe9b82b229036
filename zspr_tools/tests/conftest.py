"""
Shared pytest fixtures and configuration for ZSPR tool tests
"""

import struct

import pytest

from zspr_tools.constants import (
    HEADER_CHECKSUM,
    ROM_GLOVE_OFFSETS,
    ROM_PALETTE_OFFSET,
    ROM_SPRITE_OFFSET,
    SPRITE_DATA_SIZE,
)
from zspr_tools.zspr_file import ZSPRFile, calculate_checksum, write_zspr_file

ROM_SIZE = 0x100000  # 1MB, large enough for every fixed offset


def restamp_checksum(data):
    """Return data with its checksum field recalculated"""
    stream = bytearray(data)
    start, size = HEADER_CHECKSUM
    stream[start:start + size] = calculate_checksum(stream)
    return bytes(stream)


@pytest.fixture
def restamp():
    """Checksum fixer for hand-edited streams"""
    return restamp_checksum


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory for test files"""
    return tmp_path


@pytest.fixture
def sample_4bpp_tile():
    """Create a sample 4bpp tile (32 bytes)"""
    # Diagonal pattern in bitplane 0
    tile_data = bytearray(32)
    for y in range(8):
        tile_data[y * 2] = 1 << (7 - y)
    return bytes(tile_data)


@pytest.fixture
def sample_sprite_data():
    """28672 bytes of sprite data using every color index"""
    return bytes((i * 7 + 3) % 256 for i in range(SPRITE_DATA_SIZE))


@pytest.fixture
def sample_palette_data():
    """120 bytes of palette data with 60 distinct, non-black colors"""
    data = bytearray()
    for mail in range(4):
        for slot in range(1, 16):
            r5 = slot * 2
            g5 = mail * 8 + 1
            b5 = (slot + mail) % 32
            data += struct.pack("<H", (b5 << 10) | (g5 << 5) | r5)
    return bytes(data)


@pytest.fixture
def sample_glove_data():
    """Two custom glove colors"""
    return bytes((0x1F, 0x00, 0xE0, 0x03))


@pytest.fixture
def sample_zspr(sample_sprite_data, sample_palette_data, sample_glove_data):
    """A complete in-memory ZSPR sprite"""
    return ZSPRFile(
        sprite_data=sample_sprite_data,
        palette_data=sample_palette_data,
        glove_data=sample_glove_data,
        sprite_name="Test Sprite",
        author_name="Test Author",
    )


@pytest.fixture
def zspr_path(temp_dir, sample_zspr):
    """A ZSPR sprite written to disk"""
    return write_zspr_file(temp_dir / "test.zspr", sample_zspr)


@pytest.fixture
def rom_data(sample_sprite_data, sample_palette_data):
    """A blank ROM image holding the sample sprite"""
    rom = bytearray(ROM_SIZE)
    rom[ROM_SPRITE_OFFSET:ROM_SPRITE_OFFSET + SPRITE_DATA_SIZE] = sample_sprite_data
    rom[ROM_PALETTE_OFFSET:ROM_PALETTE_OFFSET + len(sample_palette_data)] = sample_palette_data
    for offset, value in zip(ROM_GLOVE_OFFSETS, (0xF6, 0x52, 0x76, 0x03)):
        rom[offset] = value
    return rom


@pytest.fixture
def rom_path(temp_dir, rom_data):
    """A ROM image written to disk"""
    path = temp_dir / "game.sfc"
    path.write_bytes(bytes(rom_data))
    return str(path)
