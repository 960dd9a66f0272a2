"""
Atlas textures and non-copying sub-texture views (uses PIL + NumPy)

=============================================================================
BASE TEXTURE vs SUB-TEXTURE
=============================================================================

A tileset is ONE image (the atlas) cut into many equal tiles. Copying every
tile into its own image would multiply memory use, so tiles are VIEWS:

    BaseTexture (atlas, shared)          SubTexture (per tile)
    +---+---+---+---+                    base  -> the atlas
    | 0 | 1 | 2 | 3 |                    frame -> Rect(x, y, w, h)
    +---+---+---+---+                    pixels -> NumPy slice of the atlas
    | 4 | 5 | 6 | 7 |                              (no copy)
    +---+---+---+---+

The atlas pixels are converted to a NumPy array once, on first access.
Every SubTexture.pixels is then a slice of that array:

    atlas.pixels[y:y + h, x:x + w]

NumPy basic slicing never copies, so a thousand tiles cost a thousand
small view objects and nothing more.

=============================================================================
OWNERSHIP
=============================================================================

The atlas belongs to the asset cache. Textures never modify or close the
underlying PIL image; the pixel array is marked read-only.

=============================================================================
"""

from typing import NamedTuple, Optional

import numpy as np
from PIL import Image


class Vec2(NamedTuple):
    """Integer or float pair (sizes, offsets, tile counts)."""
    x: float
    y: float


class Rect(NamedTuple):
    """Pixel rectangle inside an atlas."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


class BaseTexture:
    """
    Shared source image for one or more sub-textures.

    Parameters:
    -----------
    image : PIL.Image.Image
        The loaded atlas. Converted to RGBA if needed, like every image the
        renderer uploads.
    """

    def __init__(self, image: Image.Image):
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        self.image = image
        self._pixels: Optional[np.ndarray] = None

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> Vec2:
        return Vec2(self.image.width, self.image.height)

    @property
    def pixels(self) -> np.ndarray:
        """
        Atlas pixels as a (height, width, 4) uint8 array.

        Built lazily, once; shared by every view over this texture.
        """
        if self._pixels is None:
            pixels = np.array(self.image, dtype=np.uint8)
            pixels.flags.writeable = False
            self._pixels = pixels
        return self._pixels

    def __repr__(self) -> str:
        return f"BaseTexture({self.width}x{self.height})"


class SubTexture:
    """
    Rectangular view over a BaseTexture.

    The frame keeps the requested size even when it runs past the atlas edge
    (possible with some spacing/margin combinations); `pixels` is then
    clipped to what the atlas actually holds.
    """

    def __init__(self, base: BaseTexture, frame: Rect):
        self.base = base
        self.frame = frame

    @property
    def width(self) -> int:
        return self.frame.width

    @property
    def height(self) -> int:
        return self.frame.height

    @property
    def pixels(self) -> np.ndarray:
        f = self.frame
        return self.base.pixels[f.y:f.bottom, f.x:f.right]

    def to_image(self) -> Image.Image:
        """Copy the frame out as a standalone PIL image (for export/debug)."""
        f = self.frame
        # PIL crop() takes (left, top, right, bottom)
        return self.base.image.crop((f.x, f.y, f.right, f.bottom))

    def __repr__(self) -> str:
        f = self.frame
        return f"SubTexture({f.x},{f.y} {f.width}x{f.height})"
