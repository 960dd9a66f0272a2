"""
Tileset decoding: tile grid, GID range and per-tile sub-textures

=============================================================================
WHAT A TILESET OWNS
=============================================================================

A tileset is one atlas image cut into equal tiles. Within a map it owns a
contiguous range of Global IDs:

    Tileset A (firstgid=1,  16 tiles): GIDs 1..16
    Tileset B (firstgid=17,  8 tiles): GIDs 17..24

    lastgid = firstgid + tile_count - 1
    local index = GID - firstgid          (0 <-> firstgid)

=============================================================================
GRID SIZE
=============================================================================

The tile count is derived from the atlas size, NOT read from the document:

    num_tiles.x = (atlas_width  - margin) // (tilewidth  - spacing)
    num_tiles.y = (atlas_height - margin) // (tileheight - spacing)

Subtracting the spacing from the tile size matches how the map format packs
tiles. With spacing=0 this is just atlas_width // tilewidth:

    256px atlas, 32px tiles                   -> 8 columns
    258px atlas, margin=2, spacing=2, 32px    -> (258-2) // 30 = 8 columns

If the product is 0 the tileset is degenerate: lastgid == firstgid and no
textures are produced.

=============================================================================
TILE POSITIONS
=============================================================================

For local index t:

    row = t // num_tiles.x
    col = t %  num_tiles.x

    x = margin + col * (tilewidth  + spacing)
    y = margin + row * (tileheight + spacing)

    +--+===+===+===+--+
    |  | 0 | 1 | 2 |  |  <- margin around the edge
    +--+===+===+===+--+
    |  | 3 | 4 | 5 |  |
    +--+===+===+===+--+
         ^
         spacing between tiles

Every tile becomes a SubTexture view over the shared atlas (no pixel copy).

=============================================================================
"""

import logging
from typing import Any, Dict, List, Optional

from ..assets import AssetCache, texture_key
from ..errors import UnsupportedFeatureError
from ..gid import unflag
from ..properties import (
    TileProperties, TilePropertyCache, get_tile_properties, parse_properties
)
from ..texture import BaseTexture, Rect, SubTexture, Vec2

logger = logging.getLogger(__name__)


def _reject_external(descriptor: Dict[str, Any]):
    if descriptor.get('source'):
        raise UnsupportedFeatureError(
            f"External tileset '{descriptor['source']}' is not supported; "
            "embed the tileset in the map"
        )


def compute_num_tiles(atlas_size: Vec2, tile_size: Vec2,
                      margin: int = 0, spacing: int = 0) -> Vec2:
    """Number of tile columns and rows that fit in the atlas."""

    def fit(extent, tile):
        step = tile - spacing
        if step <= 0:
            return 0
        return max(0, int((extent - margin) // step))

    return Vec2(fit(atlas_size.x, tile_size.x), fit(atlas_size.y, tile_size.y))


def compute_lastgid(firstgid: int, num_tiles: Vec2) -> int:
    count = num_tiles.x * num_tiles.y
    if count <= 0:
        return firstgid
    return firstgid + count - 1


class Tileset:
    """
    One tileset of a map, built from its descriptor and a preloaded atlas.

    ==========================================================================
    USAGE
    ==========================================================================

    ```python
    tileset = Tileset.build(descriptor, asset_cache)

    tileset.contains(gid)            # firstgid <= unflag(gid) <= lastgid
    tileset.get_tile_texture(gid)    # SubTexture or None
    tileset.get_tile_properties(gid) # TileProperties or None
    ```

    The atlas is borrowed from the asset cache; destroy() never releases it.
    ==========================================================================
    """

    def __init__(self, descriptor: Dict[str, Any], base_texture: BaseTexture):
        """
        Parameters:
        -----------
        descriptor : dict
            Tileset entry of the map document (firstgid, name, tilewidth,
            tileheight, spacing, margin, tileoffset, imagewidth, imageheight,
            properties, tileproperties / tiles)
        base_texture : BaseTexture
            The atlas image, already loaded
        """
        self.base_texture = base_texture

        self.firstgid: int = int(descriptor.get('firstgid', 1))
        self.name: str = descriptor.get('name', '')
        self.tile_size = Vec2(int(descriptor.get('tilewidth', 0)),
                              int(descriptor.get('tileheight', 0)))
        self.spacing: int = int(descriptor.get('spacing') or 0)
        self.margin: int = int(descriptor.get('margin') or 0)

        offset = descriptor.get('tileoffset') or {}
        self.tile_offset = Vec2(offset.get('x', 0), offset.get('y', 0))

        # Declared size of the image; the atlas itself is authoritative for
        # slicing, the declared values are kept for callers that want them
        self.size = Vec2(
            descriptor.get('imagewidth') or base_texture.width,
            descriptor.get('imageheight') or base_texture.height,
        )

        self.properties: Dict[str, Any] = parse_properties(descriptor.get('properties'))

        # -----------------------------------------------------------------
        # GRID AND GID RANGE
        # -----------------------------------------------------------------
        self.num_tiles = compute_num_tiles(
            base_texture.size, self.tile_size, self.margin, self.spacing
        )
        self.lastgid = compute_lastgid(self.firstgid, self.num_tiles)

        if self.num_tiles.x * self.num_tiles.y == 0:
            logger.warning(
                "Tileset %s: no tiles fit in %dx%d atlas (tile %dx%d, margin %d, spacing %d)",
                self.name, base_texture.width, base_texture.height,
                self.tile_size.x, self.tile_size.y, self.margin, self.spacing
            )

        # -----------------------------------------------------------------
        # AUTHORED TILE PROPERTIES
        # -----------------------------------------------------------------
        self.tile_properties = TilePropertyCache()
        self._seed_tile_properties(descriptor)

        # -----------------------------------------------------------------
        # SUB-TEXTURES
        # -----------------------------------------------------------------
        self.textures: List[SubTexture] = self._slice_textures()

        logger.info(
            "Loaded tileset: %s (%dx%d, gids %d-%d, %d tiles)",
            self.name, base_texture.width, base_texture.height,
            self.firstgid, self.lastgid, len(self.textures)
        )

    @classmethod
    def build(cls, descriptor: Dict[str, Any], asset_cache: AssetCache) -> 'Tileset':
        """
        Build a tileset, looking its atlas up as "<name>_texture".

        Raises:
        -------
        MissingAssetError : the atlas was never preloaded
        UnsupportedFeatureError : the descriptor references an external tileset
        """
        _reject_external(descriptor)
        base_texture = asset_cache.require(texture_key(descriptor.get('name', '')))
        return cls(descriptor, base_texture)

    def _seed_tile_properties(self, descriptor: Dict[str, Any]):
        # Legacy form: {"<local id>": {name: value}}
        for local_id, props in (descriptor.get('tileproperties') or {}).items():
            record = TileProperties.from_properties(parse_properties(props))
            self.tile_properties.put(int(local_id), record)

        # Tiled 1.2+ form: [{"id": n, "properties": [...]}]
        for tile in descriptor.get('tiles') or []:
            if not isinstance(tile, dict) or 'id' not in tile:
                continue
            props = parse_properties(tile.get('properties'))
            # Tiled 1.9 renamed "type" to "class"
            tile_type = tile.get('type') or tile.get('class')
            if tile_type:
                props.setdefault('type', tile_type)
            if props:
                self.tile_properties.put(int(tile['id']), TileProperties.from_properties(props))

    def _slice_textures(self) -> List[SubTexture]:
        textures = []
        cols = self.num_tiles.x
        tw, th = self.tile_size

        for t in range(self.num_tiles.x * self.num_tiles.y):
            row = t // cols
            col = t % cols

            x = self.margin + col * (tw + self.spacing)
            y = self.margin + row * (th + self.spacing)

            textures.append(SubTexture(self.base_texture, Rect(x, y, tw, th)))

        return textures

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    @property
    def tile_count(self) -> int:
        return len(self.textures)

    def contains(self, gid: Optional[int]) -> bool:
        if gid is None:
            return False
        raw_id = unflag(gid)
        return self.firstgid <= raw_id <= self.lastgid

    def local_index(self, gid: int) -> int:
        """Index of `gid` within this tileset (negative if below firstgid)."""
        return unflag(gid) - self.firstgid

    def get_tile_texture(self, gid: Optional[int]) -> Optional[SubTexture]:
        """
        Sub-texture for `gid`, or None if it is undefined or not in this set.
        """
        if gid is None:
            return None

        index = self.local_index(gid)
        if index < 0 or index >= len(self.textures):
            return None
        return self.textures[index]

    def get_tile_properties(self, gid: Optional[int]) -> Optional[TileProperties]:
        return get_tile_properties(self, gid)

    def destroy(self):
        """Drop the views and cached records. The atlas stays in the cache."""
        self.textures = []
        self.tile_properties.clear()

    def __repr__(self) -> str:
        return f"Tileset({self.name!r}, gids {self.firstgid}-{self.lastgid})"
