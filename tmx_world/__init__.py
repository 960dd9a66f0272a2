"""
tmx_world - decode Tiled maps into a queryable model for real-time renderers

Requisitos:
    pip install pillow numpy

The map document must already be parsed (JSON map format, as dicts/lists)
and every tileset image must be preloaded into an AssetCache:

    cache = AssetCache()
    cache.add_tileset_image("terrain", Image.open("terrain.png"))
    tiled_map = TiledMap.build(json.load(f), cache)
"""

import logging

from .assets import AssetCache, texture_key
from .errors import TmxWorldError, MissingAssetError, UnsupportedFeatureError
from .gid import Gid, decode, unflag
from .properties import TileProperties, TileType, parse_properties
from .texture import BaseTexture, SubTexture, Rect, Vec2
from .map import (
    Tileset, TiledMap, TileLayer, ObjectGroup, ImageLayer, MapObject
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"
__all__ = [
    "AssetCache",
    "texture_key",
    "TmxWorldError",
    "MissingAssetError",
    "UnsupportedFeatureError",
    "Gid",
    "decode",
    "unflag",
    "TileProperties",
    "TileType",
    "parse_properties",
    "BaseTexture",
    "SubTexture",
    "Rect",
    "Vec2",
    "Tileset",
    "TiledMap",
    "TileLayer",
    "ObjectGroup",
    "ImageLayer",
    "MapObject",
]
