"""Map assembly, tilesets and layer nodes"""

from .tileset import Tileset
from .tiled_map import TiledMap
from .layers import TileLayer, ObjectGroup, ImageLayer, MapObject, create_layer
from .events import EventEmitter

__all__ = [
    "Tileset",
    "TiledMap",
    "TileLayer",
    "ObjectGroup",
    "ImageLayer",
    "MapObject",
    "create_layer",
    "EventEmitter",
]
