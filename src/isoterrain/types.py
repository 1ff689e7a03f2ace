"""Core value types shared by the terrain and chunk modules."""

from enum import IntEnum

from pydantic import BaseModel, Field

from .terrain_types import TerrainType, TileVariant

TileCoord = tuple[int, int]
ChunkKey = tuple[int, int]


class IsoDirection(IntEnum):
    """Axis directions named as they appear on screen in isometric view."""

    NORTH = 1
    EAST = 2
    SOUTH = 3
    WEST = 4


# Direction deltas as (d_col, d_row)
# N = top-right, E = bottom-right, S = bottom-left, W = top-left
DIRECTION_DELTAS: dict[IsoDirection, tuple[int, int]] = {
    IsoDirection.NORTH: (1, 0),
    IsoDirection.EAST: (0, 1),
    IsoDirection.SOUTH: (-1, 0),
    IsoDirection.WEST: (0, -1),
}


def neighbor(col: int, row: int, direction: IsoDirection) -> TileCoord:
    """Return the tile adjacent to (col, row) in the given direction."""
    d_col, d_row = DIRECTION_DELTAS[direction]
    return (col + d_col, row + d_row)


class ViewportBounds(BaseModel, frozen=True):
    """Camera viewport as seen by the chunk cache.

    Center is in world space; width and height are screen pixels.
    """

    center_x: float
    center_y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    zoom: float = Field(default=1.0, gt=0)

    @property
    def world_width(self) -> float:
        """Viewport width in world units."""
        return self.width / self.zoom

    @property
    def world_height(self) -> float:
        """Viewport height in world units."""
        return self.height / self.zoom


class TileHandle(BaseModel, frozen=True):
    """Default proxy handle passed to a tile registry for each resident tile."""

    col: int
    row: int
    terrain: TerrainType
    variant: TileVariant

    def __str__(self) -> str:
        return f"({self.col}, {self.row}) {self.variant.value}"
