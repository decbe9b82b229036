#!/usr/bin/env python3
"""
Tests for sprite_renderer.py
"""

import pytest
from PIL import Image

from zspr_tools.constants import (
    ABGR_RASTER_SIZE,
    SPRITE_BLOCK_COUNT,
    SPRITE_DATA_SIZE,
    SPRITE_SHEET_HEIGHT,
    SPRITE_SHEET_WIDTH,
    ZAP_PALETTE,
)
from zspr_tools.palette_utils import palette_color_table, sub_palette, unpack_palette
from zspr_tools.sprite_renderer import (
    image_to_raster,
    index_map_to_indexed_image,
    indexify,
    make_preview,
    raster_to_image,
    rasterize,
    render_all_mails,
    render_mail_sheet,
)
from zspr_tools.tile_utils import decode_sprite_sheet, new_tile

ROW_BYTES = SPRITE_SHEET_WIDTH * 4


def blank_index_map():
    return [new_tile() for _ in range(SPRITE_BLOCK_COUNT)]


def solid_raster(abgr):
    return bytes(abgr) * (ABGR_RASTER_SIZE // 4)


@pytest.fixture
def mails(sample_palette_data):
    return unpack_palette(sample_palette_data)


@pytest.mark.unit
class TestRasterize:
    """Test index map to ABGR raster"""

    def test_blank_map_is_transparent(self):
        raster = rasterize(blank_index_map(), [(10, 20, 30)] * 16)

        assert len(raster) == ABGR_RASTER_SIZE
        assert raster == bytes(ABGR_RASTER_SIZE)

    def test_index_zero_ignores_palette_color(self):
        index_map = blank_index_map()
        index_map[0][0][1] = 1
        palette = [(200, 100, 50)] + [(10, 20, 30)] * 15

        raster = rasterize(index_map, palette)
        assert raster[0:4] == bytes(4)
        assert raster[4:8] == bytes((255, 30, 20, 10))

    def test_pixel_is_abgr(self):
        index_map = blank_index_map()
        index_map[0][0][0] = 1
        palette = [(0, 0, 0), (10, 20, 30)] + [(0, 0, 0)] * 14

        raster = rasterize(index_map, palette)
        assert raster[0:4] == bytes((255, 30, 20, 10))

    def test_tile_placement(self):
        index_map = blank_index_map()
        index_map[1][0][0] = 2   # pixel (8, 0)
        index_map[16][0][0] = 2  # pixel (0, 8)
        palette = [(0, 0, 0), (0, 0, 0), (40, 50, 60)] + [(0, 0, 0)] * 13

        raster = rasterize(index_map, palette)
        assert raster[8 * 4:8 * 4 + 4] == bytes((255, 60, 50, 40))
        assert raster[8 * ROW_BYTES:8 * ROW_BYTES + 4] == bytes((255, 60, 50, 40))

    def test_nonzero_index_black_is_opaque(self):
        index_map = blank_index_map()
        index_map[0][0][0] = 3
        raster = rasterize(index_map, [(0, 0, 0)] * 16)

        assert raster[0:4] == bytes((255, 0, 0, 0))

    def test_wrong_palette_size(self):
        with pytest.raises(ValueError):
            rasterize(blank_index_map(), [(0, 0, 0)] * 15)


@pytest.mark.unit
class TestIndexify:
    """Test ABGR raster back to index map"""

    def test_round_trip_each_mail(self, sample_sprite_data, mails):
        index_map = decode_sprite_sheet(sample_sprite_data)
        table = palette_color_table(mails)

        for variant in range(4):
            raster = rasterize(index_map, sub_palette(mails, variant))
            assert indexify(raster, table) == index_map

    def test_position_mod_16(self, mails):
        # Blue mail, index 5
        r, g, b = mails[1][4]
        raster = solid_raster((255, b, g, r))

        index_map = indexify(raster, palette_color_table(mails))
        assert index_map[0][0][0] == 5
        assert index_map[-1][-1][-1] == 5

    def test_first_match_wins(self):
        table = [(0, 0, 0)] * 64
        table[3] = (80, 80, 80)
        table[20] = (80, 80, 80)

        index_map = indexify(solid_raster((255, 80, 80, 80)), table)
        assert index_map[0][0][0] == 3

    def test_low_bits_and_alpha_ignored(self, mails):
        r, g, b = mails[0][1]
        raster = solid_raster((0, b | 7, g | 3, r | 5))

        index_map = indexify(raster, palette_color_table(mails))
        assert index_map[10][4][4] == 2

    def test_unmatched_color_is_zero(self, mails):
        raster = solid_raster((255, 50, 100, 200))
        index_map = indexify(raster, palette_color_table(mails))

        assert all(v == 0 for tile in index_map for row in tile for v in row)

    def test_wrong_raster_size(self, mails):
        with pytest.raises(ValueError):
            indexify(bytes(100), palette_color_table(mails))


@pytest.mark.unit
class TestImageConversion:
    """Test ABGR raster <-> Pillow image"""

    def test_raster_image_round_trip(self, sample_sprite_data, mails):
        raster = rasterize(decode_sprite_sheet(sample_sprite_data), sub_palette(mails, 2))
        image = raster_to_image(raster)

        assert image.size == (SPRITE_SHEET_WIDTH, SPRITE_SHEET_HEIGHT)
        assert image.mode == "RGBA"
        assert image_to_raster(image) == raster

    def test_image_channel_order(self):
        raster = bytearray(ABGR_RASTER_SIZE)
        raster[0:4] = bytes((255, 30, 20, 10))
        image = raster_to_image(bytes(raster))

        assert image.getpixel((0, 0)) == (10, 20, 30, 255)

    def test_rgb_image_is_opaque(self):
        image = Image.new("RGB", (SPRITE_SHEET_WIDTH, SPRITE_SHEET_HEIGHT), (8, 16, 24))
        raster = image_to_raster(image)

        assert raster[0:4] == bytes((255, 24, 16, 8))

    def test_wrong_image_size(self):
        image = Image.new("RGBA", (64, 64))
        with pytest.raises(ValueError, match="128x448"):
            image_to_raster(image)

    def test_indexed_image(self, sample_sprite_data, mails):
        index_map = decode_sprite_sheet(sample_sprite_data)
        palette = sub_palette(mails, 0)
        image = index_map_to_indexed_image(index_map, palette)

        assert image.mode == "P"
        assert image.info["transparency"] == 0
        assert image.getpixel((0, 0)) == index_map[0][0][0]
        assert image.getpixel((9, 8)) == index_map[17][0][1]
        assert image.getpalette()[3:6] == list(palette[1])


class TestMailRendering:
    """Test rendering of every mail and glove combination"""

    def test_render_all_mails(self, sample_sprite_data, sample_palette_data, sample_glove_data):
        sheets = render_all_mails(
            decode_sprite_sheet(sample_sprite_data), sample_palette_data, sample_glove_data
        )

        assert len(sheets) == 5
        assert all(len(row) == 3 for row in sheets)
        assert all(
            image.size == (SPRITE_SHEET_WIDTH, SPRITE_SHEET_HEIGHT)
            for row in sheets for image in row
        )

    def test_zap_sheet_uses_zap_palette(self):
        index_map = blank_index_map()
        index_map[0][0][0] = 15
        sheets = render_all_mails(index_map, bytes(120))

        assert sheets[4][0].getpixel((0, 0)) == ZAP_PALETTE[15] + (255,)

    def test_render_mail_sheet(self, sample_sprite_data, sample_palette_data):
        image = render_mail_sheet(decode_sprite_sheet(sample_sprite_data), sample_palette_data)

        assert image.size == (SPRITE_SHEET_WIDTH * 5, SPRITE_SHEET_HEIGHT)
        assert image.mode == "RGBA"


class TestPreview:
    """Test the 16x16 thumbnail"""

    def test_preview_size(self, sample_sprite_data, sample_palette_data):
        preview = make_preview(sample_sprite_data, sample_palette_data)
        assert preview.size == (16, 16)

    def test_preview_first_pose(self, sample_sprite_data, sample_palette_data):
        mails = unpack_palette(sample_palette_data)
        sheet = raster_to_image(
            rasterize(decode_sprite_sheet(sample_sprite_data), sub_palette(mails, 0))
        )
        preview = make_preview(sample_sprite_data, sample_palette_data)

        assert preview.tobytes() == sheet.crop((16, 0, 32, 16)).tobytes()

    def test_preview_blank_head_falls_back(self, sample_palette_data):
        sprite = bytearray(SPRITE_DATA_SIZE)
        # Tile 38 is the top-left tile of cell B3 at (48, 16)
        sprite[38 * 32] = 0xFF
        preview = make_preview(bytes(sprite), sample_palette_data)

        mails = unpack_palette(sample_palette_data)
        r, g, b = mails[0][0]
        assert preview.getpixel((0, 0)) == (r, g, b, 255)
        assert preview.getpixel((0, 1))[3] == 0
