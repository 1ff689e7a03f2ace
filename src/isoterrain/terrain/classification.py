"""Land/water classification, small-lake suppression and shoreline variants."""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from ..terrain_types import TileVariant, variant_code
from ..types import IsoDirection, neighbor
from .config import ClassificationConfig
from .noise import PerlinNoise2D

logger = logging.getLogger(__name__)

# 4-connectivity: diagonal water does not join clusters
_CROSS = ndimage.generate_binary_structure(2, 1)


@dataclass(frozen=True)
class WaterGrid:
    """Water mask for a rectangular tile region.

    ``mask[row - min_row, col - min_col]`` is True for water. Tiles outside
    the region read as not water.
    """

    mask: NDArray[np.bool_]
    min_col: int
    min_row: int

    @property
    def max_col(self) -> int:
        """Exclusive upper column bound."""
        return self.min_col + self.mask.shape[1]

    @property
    def max_row(self) -> int:
        """Exclusive upper row bound."""
        return self.min_row + self.mask.shape[0]

    def contains(self, col: int, row: int) -> bool:
        """Whether the tile lies inside the region."""
        return self.min_col <= col < self.max_col and self.min_row <= row < self.max_row

    def is_water(self, col: int, row: int) -> bool:
        if not self.contains(col, row):
            return False
        return bool(self.mask[row - self.min_row, col - self.min_col])


def variant_from_neighbors(
    water_n: bool, water_e: bool, water_s: bool, water_w: bool
) -> TileVariant:
    """Pick the variant for a water tile from its four axis-neighbors.

    Straight edges are named for the single dry side; concave corners use
    the fixed pairing S+W -> N, N+W -> E, N+E -> S, S+E -> W. Every other
    configuration (0 or 1 wet neighbors, opposite pairs) is plain water.
    """
    water_count = water_n + water_e + water_s + water_w

    if water_count == 4:
        return TileVariant.WATER

    if water_count == 3:
        if not water_n:
            return TileVariant.EDGE_N
        if not water_e:
            return TileVariant.EDGE_E
        if not water_s:
            return TileVariant.EDGE_S
        return TileVariant.EDGE_W

    if water_count == 2:
        if water_s and water_w:
            return TileVariant.CONCAVE_N
        if water_n and water_w:
            return TileVariant.CONCAVE_E
        if water_n and water_e:
            return TileVariant.CONCAVE_S
        if water_s and water_e:
            return TileVariant.CONCAVE_W

    return TileVariant.WATER


def _build_variant_table() -> NDArray[np.uint8]:
    """Variant codes indexed by n*8 + e*4 + s*2 + w."""
    table = np.zeros(16, dtype=np.uint8)
    for index in range(16):
        table[index] = variant_code(
            variant_from_neighbors(
                bool(index & 8), bool(index & 4), bool(index & 2), bool(index & 1)
            )
        )
    return table


_VARIANT_TABLE = _build_variant_table()
_GRASS_CODE = variant_code(TileVariant.GRASS)
_WATER_CODE = variant_code(TileVariant.WATER)


class TerrainClassifier:
    """Decides land/water per tile and derives shoreline variants.

    The smoothing flag only affects variant selection, never terrain.
    """

    def __init__(
        self,
        noise: PerlinNoise2D,
        config: ClassificationConfig | None = None,
        smoothing: bool = True,
    ):
        self.noise = noise
        self.config = config or ClassificationConfig()
        self._smoothing = smoothing

    def set_smoothing(self, enabled: bool) -> None:
        """Set smoothing state."""
        self._smoothing = enabled
        logger.debug("Smoothing set to %s", enabled)

    def toggle_smoothing(self) -> None:
        """Toggle smoothing on/off for water tiles."""
        self.set_smoothing(not self._smoothing)

    def is_smoothing(self) -> bool:
        """Get the current smoothing state."""
        return self._smoothing

    def is_water(self, col: int, row: int) -> bool:
        """Check if a tile is water based on its noise value alone."""
        scale = self.config.noise_scale
        value = self.noise.sample(col * scale, row * scale)
        return (value + 1) / 2 < self.config.water_threshold

    def classify_region(
        self, min_col: int, min_row: int, max_col: int, max_row: int
    ) -> WaterGrid:
        """Raw noise water mask for the half-open rectangle.

        Args:
            min_col, min_row: Inclusive lower corner.
            max_col, max_row: Exclusive upper corner.

        Returns:
            WaterGrid before cluster suppression.
        """
        scale = self.config.noise_scale
        cols = np.arange(min_col, max(min_col, max_col), dtype=np.int64)
        rows = np.arange(min_row, max(min_row, max_row), dtype=np.int64)

        values = self.noise.sample_grid(
            cols[np.newaxis, :] * scale, rows[:, np.newaxis] * scale
        )
        mask = (values + 1) / 2 < self.config.water_threshold
        return WaterGrid(mask=mask, min_col=min_col, min_row=min_row)

    def suppress_small_clusters(self, raw: WaterGrid) -> WaterGrid:
        """Turn water clusters below the minimum size into grass.

        Clusters are maximal 4-connected groups inside the region. Labelling
        visits each tile once, so no cluster is explored twice.

        Args:
            raw: Unfiltered water grid. Not modified.

        Returns:
            Filtered WaterGrid covering the same rectangle.
        """
        if raw.mask.size == 0:
            return WaterGrid(mask=raw.mask.copy(), min_col=raw.min_col, min_row=raw.min_row)

        labeled, num_clusters = ndimage.label(raw.mask, structure=_CROSS)
        sizes = np.bincount(labeled.ravel(), minlength=num_clusters + 1)

        keep = sizes >= self.config.min_water_cluster_size
        keep[0] = False  # Label 0 is land

        filtered = keep[labeled]
        removed = int(np.count_nonzero(raw.mask & ~filtered))
        if removed:
            logger.debug(
                "Suppressed %d water tiles in small clusters at (%d, %d)",
                removed,
                raw.min_col,
                raw.min_row,
            )
        return WaterGrid(mask=filtered, min_col=raw.min_col, min_row=raw.min_row)

    def variant_for(
        self,
        col: int,
        row: int,
        water: WaterGrid,
        smoothing: bool | None = None,
    ) -> TileVariant:
        """Get the tile variant for a tile based on its neighbors.

        Neighbors use isometric directions: N = (col+1, row),
        E = (col, row+1), S = (col-1, row), W = (col, row-1).

        Args:
            col, row: Tile coordinate.
            water: Filtered water grid supplying the tile and its neighbors.
            smoothing: Overrides the classifier's flag when given.
        """
        if not water.is_water(col, row):
            return TileVariant.GRASS

        if smoothing is None:
            smoothing = self._smoothing
        if not smoothing:
            return TileVariant.WATER

        return variant_from_neighbors(
            *(
                water.is_water(*neighbor(col, row, direction))
                for direction in IsoDirection
            )
        )

    def variant_grid(
        self, water: WaterGrid, smoothing: bool | None = None
    ) -> NDArray[np.uint8]:
        """Vectorized variant_for over a whole water grid.

        Returns:
            Array of variant codes (see terrain_types.variant_from_code),
            same shape as water.mask.
        """
        mask = water.mask
        if smoothing is None:
            smoothing = self._smoothing

        if not smoothing:
            return np.where(mask, _WATER_CODE, _GRASS_CODE).astype(np.uint8)

        padded = np.pad(mask, 1, mode="constant", constant_values=False)
        water_n = padded[1:-1, 2:]
        water_e = padded[2:, 1:-1]
        water_s = padded[1:-1, :-2]
        water_w = padded[:-2, 1:-1]

        index = (
            water_n.astype(np.uint8) * 8
            + water_e.astype(np.uint8) * 4
            + water_s.astype(np.uint8) * 2
            + water_w.astype(np.uint8)
        )
        return np.where(mask, _VARIANT_TABLE[index], _GRASS_CODE).astype(np.uint8)

