"""
Map assembly: tilesets, layer dispatch and map-wide operations

=============================================================================
BUILD ORDER
=============================================================================

    map document (dict)
         |
         +--> scalar fields, custom properties, scale
         |
         +--> Tileset.build() for each tileset, in document order
         |        (needs "<name>_texture" in the asset cache)
         |
         +--> create_layer() for each layer, in document order
                  "tilelayer" / "objectgroup" / "imagelayer" -> node
                  anything else                              -> skipped

Everything is built synchronously, before any query runs. If a tileset fails
(MissingAssetError) the whole build fails; there is no partial map.

=============================================================================
SIZES
=============================================================================

    tile_size        = (tilewidth, tileheight)       pixels
    scale            = "scale" custom property       default 1
    scaled_tile_size = tile_size * scale
    size             = (width, height)               tiles
    real_size        = size * scaled_tile_size       pixels on screen

Example: 20x15 map, 32px tiles, scale=2 -> real_size = (1280, 960)

=============================================================================
GID LOOKUP
=============================================================================

get_tileset(gid) removes the flag bits and scans the tilesets in document
order for the first one whose [firstgid, lastgid] range contains the raw id.
Maps rarely have more than a handful of tilesets, so a linear scan is fine.
The order is NOT re-sorted: documents are expected to list tilesets by
ascending firstgid, as Tiled writes them.

=============================================================================
"""

import logging
from numbers import Number
from typing import Any, Dict, List, Optional

from ..assets import AssetCache
from ..properties import TileProperties, parse_properties
from ..texture import SubTexture, Vec2
from .events import EventEmitter
from .layers import (
    ImageLayer, Layer, LayerFactory, ObjectGroup, TileLayer, create_layer
)
from .tileset import Tileset

logger = logging.getLogger(__name__)

DEFAULT_SCALE = 1


def _read_scale(properties: Dict[str, Any]):
    scale = properties.get('scale')
    if isinstance(scale, bool) or not isinstance(scale, Number) or not scale:
        return DEFAULT_SCALE
    return scale


class TiledMap(EventEmitter):
    """
    A decoded map: tilesets, layer nodes and lookups.

    ==========================================================================
    USAGE
    ==========================================================================

    ```python
    cache = AssetCache()
    cache.add_tileset_image("terrain", terrain_image)

    tiled_map = TiledMap.build(description, cache)

    tiled_map.get_tileset(gid)          # owning Tileset or None
    tiled_map.get_tile_texture(gid)     # SubTexture or None
    tiled_map.get_tile_properties(gid)  # TileProperties or None

    tiled_map.on("tile.click", handler) # events relayed from layers
    tiled_map.spawn_objects()
    ```

    ==========================================================================
    """

    def __init__(self, description: Dict[str, Any], asset_cache: AssetCache,
                 layer_factories: Optional[Dict[str, LayerFactory]] = None):
        """
        Parameters:
        -----------
        description : dict
            The parsed map document
        asset_cache : AssetCache
            Cache holding every tileset atlas as "<tileset name>_texture"
        layer_factories : dict, optional
            Type tag -> node factory, replacing the built-in ones
        """
        super().__init__()
        self.asset_cache = asset_cache

        # -----------------------------------------------------------------
        # MAP FIELDS
        # -----------------------------------------------------------------
        self.properties: Dict[str, Any] = parse_properties(description.get('properties'))
        self.scale = _read_scale(self.properties)

        self.tile_size = Vec2(description.get('tilewidth', 0), description.get('tileheight', 0))
        self.size = Vec2(description.get('width', 0), description.get('height', 0))
        self.orientation: str = description.get('orientation', 'orthogonal')
        self.version = description.get('version')
        self.background_color: Optional[str] = (
            description.get('backgroundcolor') or description.get('backgroundColor')
        )

        self.scaled_tile_size = Vec2(self.tile_size.x * self.scale,
                                     self.tile_size.y * self.scale)
        self.real_size = Vec2(self.size.x * self.scaled_tile_size.x,
                              self.size.y * self.scaled_tile_size.y)

        # -----------------------------------------------------------------
        # TILESETS
        # -----------------------------------------------------------------
        self.tilesets: List[Tileset] = [
            Tileset.build(descriptor, asset_cache)
            for descriptor in description.get('tilesets') or []
        ]

        # -----------------------------------------------------------------
        # LAYERS
        # -----------------------------------------------------------------
        self.layers: List[Layer] = []
        self.skipped_layers: List[str] = []

        for descriptor in description.get('layers') or []:
            layer = create_layer(descriptor, self, layer_factories)
            if layer is None:
                self.skipped_layers.append(descriptor.get('name', ''))
                continue
            self.layers.append(layer)

        logger.info(
            "Map built: %sx%s tiles, %d tilesets, %d layers (%d skipped)",
            self.size.x, self.size.y, len(self.tilesets),
            len(self.layers), len(self.skipped_layers)
        )

    @classmethod
    def build(cls, description: Dict[str, Any], asset_cache: AssetCache,
              layer_factories: Optional[Dict[str, LayerFactory]] = None) -> 'TiledMap':
        return cls(description, asset_cache, layer_factories)

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_tileset(self, gid: Optional[int]) -> Optional[Tileset]:
        """Tileset owning `gid` (flags ignored), or None."""
        for tileset in self.tilesets:
            if tileset.contains(gid):
                return tileset
        return None

    def get_tile_texture(self, gid: Optional[int]) -> Optional[SubTexture]:
        tileset = self.get_tileset(gid)
        if tileset is None:
            return None
        return tileset.get_tile_texture(gid)

    def get_tile_properties(self, gid: Optional[int]) -> Optional[TileProperties]:
        tileset = self.get_tileset(gid)
        if tileset is None:
            return None
        return tileset.get_tile_properties(gid)

    def get_layer(self, name: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    @property
    def tile_layers(self) -> List[TileLayer]:
        return [layer for layer in self.layers if isinstance(layer, TileLayer)]

    @property
    def object_groups(self) -> List[ObjectGroup]:
        return [layer for layer in self.layers if isinstance(layer, ObjectGroup)]

    @property
    def image_layers(self) -> List[ImageLayer]:
        return [layer for layer in self.layers if isinstance(layer, ImageLayer)]

    # =========================================================================
    # MAP-WIDE OPERATIONS
    # =========================================================================

    def resize(self, width: int, height: int):
        """Tell every tile layer the viewport changed size."""
        for layer in self.tile_layers:
            layer.resize(width, height)

    def spawn_objects(self):
        for group in self.object_groups:
            group.spawn()

    def despawn_objects(self):
        for group in self.object_groups:
            group.despawn()

    # =========================================================================
    # EVENT RELAY
    # =========================================================================
    # Layers report events here so listeners can subscribe once on the map
    # instead of on every tile or object.

    def on_tile_event(self, name: str, tile: Any, data: Any = None):
        self.emit('tile.' + name, {'tile': tile, 'data': data})

    def on_object_event(self, name: str, obj: Any, data: Any = None):
        self.emit('object.' + name, {'object': obj, 'data': data})

    def destroy(self):
        """Destroy layers and tilesets. Atlas images stay in the asset cache."""
        for layer in reversed(self.layers):
            layer.destroy()
        for tileset in self.tilesets:
            tileset.destroy()

        self.layers = []
        self.tilesets = []
        self.remove_all_listeners()

    def __repr__(self) -> str:
        return (f"TiledMap({self.size.x}x{self.size.y}, "
                f"{len(self.tilesets)} tilesets, {len(self.layers)} layers)")
