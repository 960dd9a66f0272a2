"""
Custom property parsing and per-tile property resolution

=============================================================================
CUSTOM PROPERTIES
=============================================================================

Tiled lets authors attach key/value pairs to maps, tilesets, layers, objects
and individual tiles. Map documents store them in one of two shapes:

    Legacy mapping (values are always strings):
        {"collidable": "true", "damage": "10", "label": "lava"}

    Typed list (Tiled 1.2+):
        [{"name": "collidable", "type": "bool", "value": true},
         {"name": "damage", "type": "int", "value": 10}]

parse_properties() accepts both and returns a plain dict with Python values:

    "true" / "false"     -> True / False
    "10", "-3"           -> 10, -3
    "0.5", "1e3"         -> 0.5, 1000.0
    anything else        -> unchanged

String-typed list entries get the same inference. An int/float-typed value
that does not convert is kept as authored.

=============================================================================
TILE PROPERTIES AND THE CACHE
=============================================================================

Game code asks "is the tile with this GID collidable?" many times per frame.
Each tileset keeps a sparse cache keyed by LOCAL tile index:

    local index = unflag(gid) - tileset.firstgid

Authored tiles are seeded into the cache when the tileset is built. Tiles
without authored properties get a default record the first time they are
queried, and that same record is reused afterwards:

    {collidable: False, breakable: False, type: NONE}

The flip/rotate flags belong to the GID being queried, NOT to the tile, so
they are copied onto the returned record on every call and never stored.

The cache is not synchronised. It is meant to be used from the render loop
thread; a multi-threaded host must lock around property resolution.

=============================================================================
"""

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, Optional, TYPE_CHECKING

from .gid import decode

if TYPE_CHECKING:
    from .map.tileset import Tileset

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r'^[+-]?\d+$')
_FLOAT_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


# =============================================================================
# PROPERTY PARSING
# =============================================================================

def coerce_value(value: Any) -> Any:
    """Infer bool/int/float from a string value; other values pass through."""
    if not isinstance(value, str):
        return value

    if value == 'true':
        return True
    if value == 'false':
        return False

    text = value.strip()
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    return value


def _convert_typed(prop_type: str, value: Any) -> Any:
    # Same conversions the TMX reader applies to <property type="...">
    try:
        if prop_type == 'int':
            return int(value)
        elif prop_type == 'float':
            return float(value)
    except (TypeError, ValueError):
        logger.debug("Could not convert %r to %s, keeping raw value", value, prop_type)
        return value

    if prop_type == 'bool':
        if isinstance(value, str):
            return value.strip().lower() == 'true'
        return bool(value)
    return value


def _as_flag(value: Any) -> bool:
    # "false" must not become True through bool()
    value = coerce_value(value)
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return bool(value)


def parse_properties(raw: Any) -> Dict[str, Any]:
    """
    Convert author-supplied properties into a dict of typed values.

    Parameters:
    -----------
    raw : dict, list or None
        Legacy mapping form or Tiled 1.2+ typed list form.

    Returns:
    --------
    dict : property name -> Python value (new dict, `raw` is not modified)
    """
    if not raw:
        return {}

    if isinstance(raw, dict):
        return {name: coerce_value(value) for name, value in raw.items()}

    parsed = {}
    for entry in raw:
        name = entry.get('name')
        if name is None:
            continue
        prop_type = entry.get('type', 'string')
        value = entry.get('value')
        if prop_type == 'string':
            parsed[name] = coerce_value(value)
        else:
            parsed[name] = _convert_typed(prop_type, value)
    return parsed


# =============================================================================
# TILE PROPERTY RECORDS
# =============================================================================

class TileType(Enum):
    """Semantic tile kinds understood by the collision layer."""
    NONE = 'none'
    SOLID = 'solid'
    CLIFF = 'cliff'
    LADDER = 'ladder'
    WATER = 'water'
    DEEP_WATER = 'deep_water'

    @classmethod
    def from_value(cls, value: Any) -> 'TileType':
        if isinstance(value, TileType):
            return value
        if value is None or value == '':
            return cls.NONE
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.debug("Unknown tile type %r, using NONE", value)
            return cls.NONE


@dataclass
class TileProperties:
    """
    Resolved properties of one tile.

    flipped_x / flipped_y / rotated_cw describe the GID of the current
    query only; cached records always keep them False.
    """
    collidable: bool = False
    breakable: bool = False
    type: TileType = TileType.NONE
    flipped_x: bool = False
    flipped_y: bool = False
    rotated_cw: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)  # Other authored keys

    @classmethod
    def from_properties(cls, props: Dict[str, Any]) -> 'TileProperties':
        """Build a record from an already-parsed property dict."""
        extra = dict(props)
        return cls(
            collidable=_as_flag(extra.pop('collidable', False)),
            breakable=_as_flag(extra.pop('breakable', False)),
            type=TileType.from_value(extra.pop('type', None)),
            extra=extra,
        )

    def get(self, name: str, default: Any = None) -> Any:
        """Look up an authored property, including the named fields."""
        if name in ('collidable', 'breakable', 'type'):
            return getattr(self, name)
        return self.extra.get(name, default)


class TilePropertyCache:
    """
    Sparse arena: local tile index -> TileProperties.

    A missing key means "not computed yet"; get() returns None for it.
    Entries are only ever added.
    """

    def __init__(self):
        self._records: Dict[int, TileProperties] = {}

    def get(self, index: int) -> Optional[TileProperties]:
        return self._records.get(index)

    def put(self, index: int, record: TileProperties):
        self._records[index] = record

    def get_or_create(self, index: int) -> TileProperties:
        record = self._records.get(index)
        if record is None:
            record = TileProperties()
            self._records[index] = record
        return record

    def clear(self):
        self._records.clear()

    def __contains__(self, index: int) -> bool:
        return index in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[int]:
        return iter(self._records)


def get_tile_properties(tileset: 'Tileset', gid: Optional[int]) -> Optional[TileProperties]:
    """
    Resolve the properties of `gid` within `tileset`.

    Returns None when gid is None or lies below the tileset's firstgid.
    Only the lower bound is checked here; range ownership is the map's job
    (TiledMap.get_tile_properties goes through get_tileset first).
    """
    if gid is None:
        return None

    decoded = decode(gid)
    index = decoded.raw_id - tileset.firstgid
    if index < 0:
        return None

    record = tileset.tile_properties.get_or_create(index)
    return replace(
        record,
        flipped_x=decoded.flipped_x,
        flipped_y=decoded.flipped_y,
        rotated_cw=decoded.rotated_cw,
        extra=dict(record.extra),
    )
