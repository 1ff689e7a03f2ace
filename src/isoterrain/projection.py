"""Isometric tile <-> world coordinate transform."""

import math

from pydantic import BaseModel, Field

from .types import TileCoord

# Tile-space values this close below an integer are treated as that integer
_SNAP = 1e-9


class IsometricProjection(BaseModel, frozen=True):
    """Diamond isometric projection.

    Forward: x = (col - row) * step_x, y = (col + row) * step_y.
    The inverse floors, so world points inside the diamond spanned by
    tile-space [col, col + 1) x [row, row + 1) map back to (col, row).
    """

    step_x: float = Field(gt=0, description="World x advance per tile step")
    step_y: float = Field(gt=0, description="World y advance per tile step")

    @classmethod
    def from_tile_art(
        cls, tile_content_width: float = 233, tile_overlap: float = 10
    ) -> "IsometricProjection":
        """Build a projection from tile art width and visual overlap.

        Tiles are 2:1 diamonds, so step_y is half of step_x.
        """
        span = tile_content_width - tile_overlap
        return cls(step_x=span / 2, step_y=span / 4)

    def tile_to_world(self, col: float, row: float) -> tuple[float, float]:
        """Project a tile coordinate to a world point."""
        return ((col - row) * self.step_x, (col + row) * self.step_y)

    def world_to_tile(self, world_x: float, world_y: float) -> TileCoord:
        """Project a world point back to the tile containing it.

        Rounding error in the divisions is absorbed before flooring, so the
        exact image of a tile corner always maps back to that tile.
        """
        tile_sum = world_y / self.step_y
        tile_diff = world_x / self.step_x
        col = math.floor((tile_sum + tile_diff) / 2 + _SNAP)
        row = math.floor((tile_sum - tile_diff) / 2 + _SNAP)
        return (col, row)

    def tile_footprint(self, col: int, row: int) -> list[tuple[float, float]]:
        """Diamond vertices (top, right, bottom, left) of the area owned by a tile.

        Every interior point of the diamond maps back to (col, row) through
        world_to_tile; hit-testing collaborators use this outline.
        """
        return [
            self.tile_to_world(col, row),
            self.tile_to_world(col + 1, row),
            self.tile_to_world(col + 1, row + 1),
            self.tile_to_world(col, row + 1),
        ]

    def tile_center(self, col: int, row: int) -> tuple[float, float]:
        """World point at the middle of a tile's footprint."""
        return self.tile_to_world(col + 0.5, row + 0.5)
