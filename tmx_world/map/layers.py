"""
Layer nodes of a map and the type-tag factory that builds them

=============================================================================
LAYER TYPES
=============================================================================

Each entry of the map document's "layers" list carries a "type" tag:

    "tilelayer"   -> TileLayer    grid of GIDs
    "objectgroup" -> ObjectGroup  spawnable objects (spawn points, triggers)
    "imagelayer"  -> ImageLayer   one background image

Any other tag (including newer ones such as "group") builds NO node: the
entry is skipped so that maps saved by newer editors still load.

=============================================================================
TILE DATA
=============================================================================

Tile layer data comes either as a JSON list of GIDs or as a base64 string:

    {"data": [1, 2, 0, 0, ...]}
    {"data": "AQAAAAIAAAA=", "encoding": "base64", "compression": "zlib"}

Base64 data is little-endian uint32, optionally compressed with zlib, gzip
or zstd. Either way the result is a NumPy uint32 array of shape
(height, width), indexed grid[y, x].

=============================================================================
"""

import base64
import gzip
import logging
import zlib
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, TYPE_CHECKING

import numpy as np

from ..errors import UnsupportedFeatureError
from ..properties import parse_properties
from ..texture import BaseTexture, SubTexture, Vec2

if TYPE_CHECKING:
    from .tiled_map import TiledMap

logger = logging.getLogger(__name__)


# =============================================================================
# TILE DATA DECODING
# =============================================================================

def decode_tile_data(descriptor: Dict[str, Any], width: int, height: int) -> np.ndarray:
    """
    Decode a tile layer's "data" field into a (height, width) uint32 grid.

    Short data is padded with 0 (empty), long data is truncated.
    """
    data = descriptor.get('data')
    compression = descriptor.get('compression')

    if data is None:
        gids = np.zeros(0, dtype=np.uint32)

    elif isinstance(data, str):
        raw_data = base64.b64decode(data.strip())

        if compression == 'zlib':
            raw_data = zlib.decompress(raw_data)
        elif compression == 'gzip':
            raw_data = gzip.decompress(raw_data)
        elif compression == 'zstd':
            # zstd is not in the standard library
            try:
                import zstandard
            except ImportError:
                raise ImportError(
                    "zstandard library required for zstd compression. "
                    "Install with: pip install zstandard"
                )
            raw_data = zstandard.ZstdDecompressor().decompress(raw_data)
        elif compression:
            raise UnsupportedFeatureError(
                f"Unsupported tile data compression '{compression}'"
            )

        # Each tile is 4 bytes (little-endian uint32)
        usable = len(raw_data) - len(raw_data) % 4
        gids = np.frombuffer(raw_data[:usable], dtype='<u4').astype(np.uint32)

    else:
        gids = np.asarray(data, dtype=np.int64).astype(np.uint32)

    count = width * height
    grid = np.zeros(count, dtype=np.uint32)
    n = min(count, gids.size)
    grid[:n] = gids[:n]
    return grid.reshape((height, width))


# =============================================================================
# LAYER NODES
# =============================================================================

@dataclass
class Layer:
    """Fields shared by every layer node."""
    type: ClassVar[str] = ''

    name: str = ''
    id: int = 0
    visible: bool = True
    opacity: float = 1.0
    offset: Vec2 = Vec2(0, 0)
    properties: Dict[str, Any] = field(default_factory=dict)
    parent: Optional['TiledMap'] = field(default=None, repr=False, compare=False)

    @staticmethod
    def _common_fields(descriptor: Dict[str, Any]) -> Dict[str, Any]:
        return dict(
            name=descriptor.get('name', ''),
            id=int(descriptor.get('id', 0)),
            visible=bool(descriptor.get('visible', True)),
            opacity=float(descriptor.get('opacity', 1.0)),
            offset=Vec2(descriptor.get('offsetx', 0), descriptor.get('offsety', 0)),
            properties=parse_properties(descriptor.get('properties')),
        )

    def destroy(self):
        self.parent = None


@dataclass
class TileLayer(Layer):
    """
    Grid of GIDs.

    Rendering is done elsewhere; the map only forwards resize() here so the
    renderer can rebuild its visible window.
    """
    type: ClassVar[str] = 'tilelayer'

    size: Vec2 = Vec2(0, 0)                          # Size in tiles
    grid: np.ndarray = field(default_factory=lambda: np.zeros((0, 0), dtype=np.uint32),
                             repr=False, compare=False)
    viewport: Optional[Tuple[int, int]] = None       # Last size passed to resize()

    @classmethod
    def from_dict(cls, descriptor: Dict[str, Any], parent: Optional['TiledMap'] = None) -> 'TileLayer':
        width = int(descriptor.get('width', 0))
        height = int(descriptor.get('height', 0))
        return cls(
            size=Vec2(width, height),
            grid=decode_tile_data(descriptor, width, height),
            parent=parent,
            **cls._common_fields(descriptor)
        )

    def get_tile_gid(self, x: int, y: int) -> int:
        """GID at column x, row y (0 when out of bounds)."""
        if 0 <= x < self.size.x and 0 <= y < self.size.y:
            return int(self.grid[y, x])
        return 0

    def set_tile_gid(self, x: int, y: int, gid: int):
        if 0 <= x < self.size.x and 0 <= y < self.size.y:
            self.grid[y, x] = gid

    def get_tile_texture(self, x: int, y: int) -> Optional[SubTexture]:
        """Texture of the tile at (x, y), resolved through the owning map."""
        gid = self.get_tile_gid(x, y)
        if gid == 0 or self.parent is None:
            return None
        return self.parent.get_tile_texture(gid)

    def resize(self, width: int, height: int):
        self.viewport = (width, height)

    def emit_tile_event(self, name: str, tile: Any, data: Any = None):
        if self.parent is not None:
            self.parent.on_tile_event(name, tile, data)


@dataclass
class MapObject:
    """Object of an object group (spawn point, trigger, tile object...)."""
    id: int = 0
    name: str = ''
    type: str = ''
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    rotation: float = 0
    gid: Optional[int] = None                        # Tile objects only
    visible: bool = True
    points: List[Tuple[float, float]] = field(default_factory=list)  # polygon/polyline
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, descriptor: Dict[str, Any]) -> 'MapObject':
        points = descriptor.get('polygon') or descriptor.get('polyline') or []
        gid = descriptor.get('gid')
        return cls(
            id=int(descriptor.get('id', 0)),
            name=descriptor.get('name', ''),
            # Tiled 1.9 renamed "type" to "class"
            type=descriptor.get('type') or descriptor.get('class', ''),
            x=float(descriptor.get('x', 0)),
            y=float(descriptor.get('y', 0)),
            width=float(descriptor.get('width', 0)),
            height=float(descriptor.get('height', 0)),
            rotation=float(descriptor.get('rotation', 0)),
            gid=int(gid) if gid is not None else None,
            visible=bool(descriptor.get('visible', True)),
            points=[(float(p.get('x', 0)), float(p.get('y', 0))) for p in points],
            properties=parse_properties(descriptor.get('properties')),
        )


@dataclass
class ObjectGroup(Layer):
    type: ClassVar[str] = 'objectgroup'

    objects: List[MapObject] = field(default_factory=list)
    spawned: bool = False

    @classmethod
    def from_dict(cls, descriptor: Dict[str, Any], parent: Optional['TiledMap'] = None) -> 'ObjectGroup':
        return cls(
            objects=[MapObject.from_dict(o) for o in descriptor.get('objects') or []],
            parent=parent,
            **cls._common_fields(descriptor)
        )

    def spawn(self) -> List[MapObject]:
        """
        Mark the group as spawned and return the visible objects.

        Calling it again while spawned returns an empty list.
        """
        if self.spawned:
            return []
        self.spawned = True
        return [obj for obj in self.objects if obj.visible]

    def despawn(self):
        self.spawned = False

    def emit_object_event(self, name: str, obj: Any, data: Any = None):
        if self.parent is not None:
            self.parent.on_object_event(name, obj, data)


@dataclass
class ImageLayer(Layer):
    """
    Single image layer. The texture is looked up in the map's asset cache
    under the image source; a missing image leaves `texture` as None.
    """
    type: ClassVar[str] = 'imagelayer'

    image: str = ''
    texture: Optional[BaseTexture] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, descriptor: Dict[str, Any], parent: Optional['TiledMap'] = None) -> 'ImageLayer':
        image = descriptor.get('image', '')
        texture = None
        if image and parent is not None and parent.asset_cache is not None:
            texture = parent.asset_cache.get(image)
            if texture is None:
                logger.warning("Image layer %s: '%s' not in asset cache",
                               descriptor.get('name', ''), image)
        return cls(image=image, texture=texture, parent=parent, **cls._common_fields(descriptor))

    def destroy(self):
        # The texture belongs to the asset cache
        self.texture = None
        super().destroy()


# =============================================================================
# FACTORY
# =============================================================================

LayerFactory = Callable[[Dict[str, Any], Optional['TiledMap']], Layer]

LAYER_FACTORIES: Dict[str, LayerFactory] = {
    TileLayer.type: TileLayer.from_dict,
    ObjectGroup.type: ObjectGroup.from_dict,
    ImageLayer.type: ImageLayer.from_dict,
}


def create_layer(descriptor: Dict[str, Any], parent: Optional['TiledMap'] = None,
                 factories: Optional[Dict[str, LayerFactory]] = None) -> Optional[Layer]:
    """
    Build the node for one layer descriptor.

    Returns None for an unrecognised type tag; the caller skips the entry.
    """
    if factories is None:
        factories = LAYER_FACTORIES

    layer_type = descriptor.get('type')
    factory = factories.get(layer_type)
    if factory is None:
        logger.debug("Skipping layer %r of unknown type %r",
                     descriptor.get('name', ''), layer_type)
        return None
    return factory(descriptor, parent)
