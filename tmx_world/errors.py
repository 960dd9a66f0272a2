"""Exceptions raised while building a map."""


class TmxWorldError(Exception):
    """Base class for every error raised by tmx_world."""


class MissingAssetError(TmxWorldError, KeyError):
    """
    A tileset atlas was not preloaded into the asset cache.

    This is a loader-ordering defect in the caller: images must be in the
    cache before the map description is built.
    """

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Tileset image '{key}' is not in the asset cache. "
            "Preload tileset images before building the map."
        )

    def __str__(self) -> str:
        # KeyError would quote the whole message
        return self.args[0]


class UnsupportedFeatureError(TmxWorldError):
    """The map uses a Tiled feature this package does not handle."""
