"""
Asset cache: preloaded images keyed by name

Tileset atlases are looked up under "<tileset name>_texture". Loading the
image files is the caller's job; this cache only holds what was added.
"""

import logging
from typing import Dict, Iterator, Optional, Union

from PIL import Image

from .errors import MissingAssetError
from .texture import BaseTexture

logger = logging.getLogger(__name__)

TEXTURE_SUFFIX = "_texture"


def texture_key(name: str) -> str:
    """Cache key for the atlas of the tileset called `name`."""
    return f"{name}{TEXTURE_SUFFIX}"


class AssetCache:
    """
    Name -> BaseTexture store shared by all maps.

    ```python
    cache = AssetCache()
    cache.add_tileset_image("terrain", Image.open("terrain.png"))
    tiled_map = TiledMap.build(description, cache)
    ```
    """

    def __init__(self):
        self._textures: Dict[str, BaseTexture] = {}

    def add(self, key: str, image: Union[Image.Image, BaseTexture]) -> BaseTexture:
        """Store an image under `key`, wrapping PIL images in a BaseTexture."""
        texture = image if isinstance(image, BaseTexture) else BaseTexture(image)
        self._textures[key] = texture
        logger.debug("Cached texture %s (%dx%d)", key, texture.width, texture.height)
        return texture

    def add_tileset_image(self, tileset_name: str,
                          image: Union[Image.Image, BaseTexture]) -> BaseTexture:
        return self.add(texture_key(tileset_name), image)

    def get(self, key: str) -> Optional[BaseTexture]:
        return self._textures.get(key)

    def require(self, key: str) -> BaseTexture:
        """Like get(), but a missing key is a MissingAssetError."""
        texture = self._textures.get(key)
        if texture is None:
            raise MissingAssetError(key)
        return texture

    def remove(self, key: str):
        self._textures.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._textures

    def __len__(self) -> int:
        return len(self._textures)

    def __iter__(self) -> Iterator[str]:
        return iter(self._textures)
