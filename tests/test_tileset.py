"""Tests for tileset grid sizing, slicing and per-tile lookups."""

import logging

import pytest
from PIL import Image

from tmx_world import (
    AssetCache, BaseTexture, MissingAssetError, Tileset, TileType,
    UnsupportedFeatureError, Vec2
)
from tmx_world.gid import FLIPPED_X, FLIPPED_Y, ROTATED_CW
from tmx_world.map.tileset import compute_lastgid, compute_num_tiles

from conftest import make_atlas, tileset_descriptor


def build(width, height, firstgid=1, **extra):
    base = BaseTexture(make_atlas(width, height))
    return Tileset(tileset_descriptor('set', firstgid, width, height, **extra), base)


class TestGridSizing:

    def test_plain_grid(self):
        assert compute_num_tiles(Vec2(256, 256), Vec2(32, 32)) == (8, 8)

    def test_margin_and_spacing(self):
        # (258 - 2) // (32 - 2)
        assert compute_num_tiles(Vec2(258, 258), Vec2(32, 32), margin=2, spacing=2).x == 8

    def test_non_positive_step_gives_no_tiles(self):
        assert compute_num_tiles(Vec2(64, 64), Vec2(4, 4), spacing=4) == (0, 0)

    def test_atlas_smaller_than_margin(self):
        assert compute_num_tiles(Vec2(2, 2), Vec2(32, 32), margin=4) == (0, 0)

    def test_lastgid(self):
        assert compute_lastgid(1, Vec2(4, 4)) == 16
        assert compute_lastgid(17, Vec2(4, 2)) == 24
        assert compute_lastgid(5, Vec2(0, 3)) == 5


class TestTilesetBuild:

    def test_range_and_textures(self):
        tileset = build(128, 64, firstgid=17)

        assert tileset.num_tiles == (4, 2)
        assert tileset.firstgid == 17
        assert tileset.lastgid == 24
        assert tileset.tile_count == 8
        assert tileset.size == (128, 64)

    def test_texture_frames_in_index_order(self):
        tileset = build(96, 64)
        frames = [texture.frame for texture in tileset.textures]

        assert [(f.x, f.y) for f in frames] == [
            (0, 0), (32, 0), (64, 0),
            (0, 32), (32, 32), (64, 32),
        ]
        assert all((f.width, f.height) == (32, 32) for f in frames)

    def test_frames_with_margin_and_spacing(self):
        tileset = build(258, 34, margin=2, spacing=2)

        assert tileset.num_tiles == (8, 1)
        assert tileset.textures[1].frame.x == 2 + 34
        assert tileset.textures[1].frame.y == 2
        # Last frame reaches past the atlas edge; its pixels are clipped
        assert tileset.textures[7].frame.x == 2 + 7 * 34
        assert tileset.textures[7].pixels.shape[1] == 258 - 240

    def test_textures_share_the_atlas(self):
        tileset = build(64, 64)
        assert all(t.base is tileset.base_texture for t in tileset.textures)

    def test_degenerate_tileset(self, caplog):
        caplog.set_level(logging.WARNING, logger='tmx_world')
        tileset = build(16, 16)

        assert tileset.num_tiles == (0, 0)
        assert tileset.lastgid == tileset.firstgid
        assert tileset.textures == []
        assert 'no tiles fit' in caplog.text

    def test_optional_fields_default(self):
        base = BaseTexture(make_atlas(64, 32))
        tileset = Tileset({'firstgid': 1, 'name': 'bare', 'tilewidth': 32, 'tileheight': 32}, base)

        assert tileset.spacing == 0
        assert tileset.margin == 0
        assert tileset.tile_offset == (0, 0)
        assert tileset.size == (64, 32)
        assert tileset.properties == {}
        assert len(tileset.tile_properties) == 0

    def test_tileoffset_and_properties(self):
        tileset = build(64, 64, tileoffset={'x': 4, 'y': -8},
                        properties={'animated': 'false', 'fps': '12'})

        assert tileset.tile_offset == (4, -8)
        assert tileset.properties == {'animated': False, 'fps': 12}

    def test_missing_atlas(self):
        with pytest.raises(MissingAssetError) as info:
            Tileset.build(tileset_descriptor('ghost', 1, 64, 64), AssetCache())
        assert info.value.key == 'ghost_texture'

    def test_build_from_cache(self):
        cache = AssetCache()
        atlas = cache.add_tileset_image('set', Image.new('RGBA', (64, 64)))
        tileset = Tileset.build(tileset_descriptor('set', 1, 64, 64), cache)

        assert tileset.base_texture is atlas
        assert tileset.lastgid == 4

    def test_external_tileset_rejected(self):
        with pytest.raises(UnsupportedFeatureError):
            Tileset.build({'firstgid': 1, 'source': 'terrain.tsx'}, AssetCache())

    def test_external_check_happens_before_atlas_lookup(self):
        cache = AssetCache()
        cache.add_tileset_image('terrain', make_atlas(64, 64))
        descriptor = tileset_descriptor('terrain', 1, 64, 64, source='terrain.tsx')

        with pytest.raises(UnsupportedFeatureError, match='terrain.tsx'):
            Tileset.build(descriptor, cache)


class TestTilesetLookups:

    def test_contains_ignores_flags(self):
        tileset = build(128, 64, firstgid=17)

        assert tileset.contains(17)
        assert tileset.contains(24)
        assert tileset.contains(20 | FLIPPED_X | ROTATED_CW)
        assert not tileset.contains(16)
        assert not tileset.contains(25)
        assert not tileset.contains(None)

    def test_get_tile_texture(self):
        tileset = build(128, 64, firstgid=17)

        assert tileset.get_tile_texture(17) is tileset.textures[0]
        assert tileset.get_tile_texture(18 | FLIPPED_Y) is tileset.textures[1]
        assert tileset.get_tile_texture(16) is None
        assert tileset.get_tile_texture(25) is None
        assert tileset.get_tile_texture(None) is None

    def test_default_properties_follow_queried_flags(self):
        tileset = build(64, 64)

        first = tileset.get_tile_properties(2 | FLIPPED_X)
        assert first.collidable is False
        assert first.breakable is False
        assert first.type is TileType.NONE
        assert (first.flipped_x, first.flipped_y, first.rotated_cw) == (True, False, False)

        second = tileset.get_tile_properties(2 | FLIPPED_Y | ROTATED_CW)
        assert (second.collidable, second.breakable, second.type) == \
            (first.collidable, first.breakable, first.type)
        assert (second.flipped_x, second.flipped_y, second.rotated_cw) == (False, True, True)

    def test_default_record_created_once(self):
        tileset = build(64, 64)
        assert tileset.tile_properties.get(1) is None

        tileset.get_tile_properties(2)
        cached = tileset.tile_properties.get(1)
        tileset.get_tile_properties(2 | FLIPPED_X)

        assert cached is not None
        assert tileset.tile_properties.get(1) is cached
        assert len(tileset.tile_properties) == 1
        # flags are per query, never stored
        assert cached.flipped_x is False

    def test_authored_legacy_properties(self):
        tileset = build(64, 64, firstgid=10, tileproperties={
            '0': {'collidable': 'true', 'type': 'ladder'},
            '2': {'breakable': 'true', 'hp': '3'},
        })

        ladder = tileset.get_tile_properties(10)
        assert ladder.collidable is True
        assert ladder.type is TileType.LADDER

        crate = tileset.get_tile_properties(12 | FLIPPED_X)
        assert crate.breakable is True
        assert crate.extra == {'hp': 3}
        assert crate.flipped_x is True

    def test_authored_tiles_list(self):
        tileset = build(128, 64, tiles=[
            {'id': 1, 'properties': [{'name': 'collidable', 'type': 'bool', 'value': True}]},
            {'id': 3, 'type': 'water'},
            {'id': 2},
            {'id': 4, 'properties': [
                {'name': 'collidable', 'type': 'string', 'value': 'false'},
                {'name': 'breakable', 'value': 'true'},
            ]},
            {'id': 5, 'class': 'ladder'},
        ])

        assert tileset.get_tile_properties(2).collidable is True
        assert tileset.get_tile_properties(4).type is TileType.WATER
        assert 2 not in tileset.tile_properties

        crate = tileset.get_tile_properties(5)
        assert crate.collidable is False
        assert crate.breakable is True
        assert tileset.get_tile_properties(6).type is TileType.LADDER

    def test_returned_extra_is_a_copy(self):
        tileset = build(64, 64, tileproperties={'0': {'damage': 5}})

        first = tileset.get_tile_properties(1)
        first.extra['damage'] = 99
        first.extra['burning'] = True

        again = tileset.get_tile_properties(1 | FLIPPED_X)
        assert again.extra == {'damage': 5}
        assert tileset.tile_properties.get(0).extra == {'damage': 5}

    def test_properties_outside_tileset(self):
        tileset = build(64, 64, firstgid=10)

        assert tileset.get_tile_properties(None) is None
        assert tileset.get_tile_properties(9) is None
        assert tileset.get_tile_properties(9 | FLIPPED_X) is None

    def test_destroy_keeps_atlas(self):
        tileset = build(64, 64)
        base = tileset.base_texture
        tileset.get_tile_properties(1)

        tileset.destroy()

        assert tileset.textures == []
        assert len(tileset.tile_properties) == 0
        assert tileset.base_texture is base
