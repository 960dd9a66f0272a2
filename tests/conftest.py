"""Shared fixtures: in-memory atlases and map documents."""

import pytest
from PIL import Image

from tmx_world import AssetCache


def make_atlas(width, height, color=(0, 0, 0, 255)):
    return Image.new('RGBA', (width, height), color)


def tileset_descriptor(name, firstgid, width, height, tile=32, **extra):
    descriptor = {
        'firstgid': firstgid,
        'name': name,
        'tilewidth': tile,
        'tileheight': tile,
        'spacing': 0,
        'margin': 0,
        'imagewidth': width,
        'imageheight': height,
        'properties': {},
        'tileproperties': {},
    }
    descriptor.update(extra)
    return descriptor


@pytest.fixture
def asset_cache():
    cache = AssetCache()
    # 4x4 tiles of 32px -> 16 tiles
    cache.add_tileset_image('terrain', make_atlas(128, 128))
    # 4x2 tiles of 32px -> 8 tiles
    cache.add_tileset_image('items', make_atlas(128, 64))
    return cache


@pytest.fixture
def map_description():
    return {
        'version': 1.2,
        'orientation': 'orthogonal',
        'width': 4,
        'height': 3,
        'tilewidth': 32,
        'tileheight': 32,
        'backgroundcolor': '#202020',
        'properties': {'music': 'theme.ogg'},
        'tilesets': [
            tileset_descriptor('terrain', 1, 128, 128, tileproperties={
                '0': {'collidable': 'true', 'type': 'solid'},
                '3': {'breakable': 'true', 'hp': '5'},
            }),
            tileset_descriptor('items', 17, 128, 64),
        ],
        'layers': [
            {
                'type': 'tilelayer',
                'name': 'ground',
                'width': 4,
                'height': 3,
                'data': [1, 2, 3, 4,
                         17, 0, 0x80000001, 24,
                         0, 0, 0, 16],
            },
            {
                'type': 'objectgroup',
                'name': 'spawns',
                'objects': [
                    {'id': 1, 'name': 'player', 'type': 'spawn', 'x': 32, 'y': 64},
                    {'id': 2, 'name': 'hidden', 'x': 0, 'y': 0, 'visible': False},
                ],
            },
            {
                'type': 'imagelayer',
                'name': 'sky',
                'image': 'sky.png',
            },
        ],
    }
