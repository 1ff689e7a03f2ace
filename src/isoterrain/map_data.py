"""Sparse tile-coordinate to terrain lookup."""

from typing import Iterator

from .exceptions import TerrainOverwriteError
from .terrain_types import TerrainType
from .types import TileCoord


class MapData:
    """Append-only mapping from (col, row) to TerrainType.

    Coordinates are unbounded in both directions, so tiles live in a dict
    keyed by coordinate pair rather than an array.
    """

    def __init__(self) -> None:
        self._tiles: dict[TileCoord, TerrainType] = {}

    def set(self, col: int, row: int, terrain: TerrainType) -> None:
        """Record the terrain of a tile.

        Raises:
            TerrainOverwriteError: If the tile already holds a different terrain.
        """
        key = (col, row)
        existing = self._tiles.get(key)
        if existing is not None and existing != terrain:
            raise TerrainOverwriteError(
                f"Tile {key} is already {existing.value}, cannot set {terrain.value}"
            )
        self._tiles[key] = terrain

    def get(self, col: int, row: int) -> TerrainType | None:
        """Get terrain at a tile, or None if the tile is not recorded."""
        return self._tiles.get((col, row))

    def has(self, col: int, row: int) -> bool:
        """Check whether a tile is recorded."""
        return (col, row) in self._tiles

    def count(self, terrain: TerrainType) -> int:
        """Number of recorded tiles with the given terrain."""
        return sum(1 for t in self._tiles.values() if t == terrain)

    def items(self) -> Iterator[tuple[TileCoord, TerrainType]]:
        return iter(self._tiles.items())

    def __contains__(self, key: object) -> bool:
        return key in self._tiles

    def __len__(self) -> int:
        return len(self._tiles)

    def __iter__(self) -> Iterator[TileCoord]:
        return iter(self._tiles)
