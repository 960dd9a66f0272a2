"""
Global tile ID (GID) decoding

=============================================================================
GID LAYOUT
=============================================================================

Every tile reference in a Tiled map is an unsigned 32-bit integer. The top
three bits are transform flags, the rest is the tile id:

    bit 31        bit 30        bit 29        bits 28..0
    +-------------+-------------+-------------+---------------------+
    | FLIPPED_X   | FLIPPED_Y   | ROTATED_CW  |       raw id        |
    +-------------+-------------+-------------+---------------------+

    raw id 0 = empty cell (no tile)
    raw id N = tile N across ALL tilesets of the map (1-based)

Example:
    0x80000005  ->  raw id 5, flipped horizontally
    0x60000011  ->  raw id 17, flipped vertically and rotated

The flags MUST be masked off before comparing a GID with a tileset range,
otherwise a flipped tile looks like a huge id owned by nobody.

=============================================================================
"""

from typing import NamedTuple

FLIPPED_X = 0x80000000
FLIPPED_Y = 0x40000000
ROTATED_CW = 0x20000000

FLAG_MASK = FLIPPED_X | FLIPPED_Y | ROTATED_CW
GID_MASK = 0xFFFFFFFF


class Gid(NamedTuple):
    """Decoded GID: raw tile id plus the three transform flags."""
    raw_id: int
    flipped_x: bool = False
    flipped_y: bool = False
    rotated_cw: bool = False

    @property
    def is_empty(self) -> bool:
        return self.raw_id == 0

    @property
    def value(self) -> int:
        """Packed 32-bit value with the flags set again."""
        packed = self.raw_id & ~FLAG_MASK & GID_MASK
        if self.flipped_x:
            packed |= FLIPPED_X
        if self.flipped_y:
            packed |= FLIPPED_Y
        if self.rotated_cw:
            packed |= ROTATED_CW
        return packed


def decode(gid: int) -> Gid:
    """
    Split a packed GID into raw id and flags.

    Total over the unsigned 32-bit range; larger values are truncated to
    their low 32 bits first. A raw id of 0 means "no tile" and callers must
    check it before any tileset lookup.
    """
    gid &= GID_MASK
    return Gid(
        raw_id=gid & ~FLAG_MASK,
        flipped_x=gid & FLIPPED_X == FLIPPED_X,
        flipped_y=gid & FLIPPED_Y == FLIPPED_Y,
        rotated_cw=gid & ROTATED_CW == ROTATED_CW,
    )


def unflag(gid: int) -> int:
    """Raw tile id of `gid` (flags removed)."""
    return gid & GID_MASK & ~FLAG_MASK
