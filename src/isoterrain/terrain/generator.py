"""Chunk terrain generation orchestration."""

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from ..exceptions import InvalidChunkSizeError
from ..map_data import MapData
from ..terrain_types import TerrainType, TileVariant, VARIANT_CODES
from ..types import TileCoord
from .classification import TerrainClassifier, WaterGrid
from .config import TerrainConfig
from .noise import PerlinNoise2D

logger = logging.getLogger(__name__)


@dataclass
class ChunkTerrainResult:
    """Terrain and rendering variants for exactly the tiles of one region."""

    map_data: MapData
    tile_variants: dict[TileCoord, TileVariant] = field(default_factory=dict)

    @property
    def water_count(self) -> int:
        """Number of water tiles in the result."""
        return self.map_data.count(TerrainType.WATER)

    def variant_at(self, col: int, row: int) -> TileVariant | None:
        return self.tile_variants.get((col, row))


class TerrainGenerator:
    """Generates terrain for chunks of the infinite tile plane.

    Each call classifies the requested rectangle plus a padding margin so
    water clusters and shorelines crossing the rectangle's edge are judged
    with context, then keeps only the requested tiles. Results depend only
    on the seed, configuration and the smoothing snapshot for the call.
    """

    def __init__(
        self,
        seed: str | None = None,
        config: TerrainConfig | None = None,
        classifier: TerrainClassifier | None = None,
    ):
        self.config = config or TerrainConfig()
        if seed is not None:
            self.config = self.config.model_copy(update={"seed": seed})

        if classifier is None:
            classifier = TerrainClassifier(
                PerlinNoise2D(self.config.seed),
                self.config.classification,
                smoothing=self.config.generation.smoothing,
            )
        self.classifier = classifier

    @property
    def seed(self) -> str:
        return self.classifier.noise.seed

    @property
    def padding(self) -> int:
        """Context tiles classified on every side of a chunk."""
        return self.config.generation.padding

    def set_smoothing(self, enabled: bool) -> None:
        """Set smoothing state."""
        self.classifier.set_smoothing(enabled)

    def toggle_smoothing(self) -> None:
        """Toggle smoothing on/off for water tiles."""
        self.classifier.toggle_smoothing()

    def is_smoothing(self) -> bool:
        """Get the current smoothing state."""
        return self.classifier.is_smoothing()

    def generate_chunk_terrain(
        self,
        chunk_col: int,
        chunk_row: int,
        chunk_size: int,
        smoothing: bool | None = None,
    ) -> ChunkTerrainResult:
        """Generate terrain types and tile variants for one chunk.

        Args:
            chunk_col, chunk_row: Chunk coordinates.
            chunk_size: Tiles per chunk side.
            smoothing: Smoothing snapshot; defaults to the classifier's flag.

        Returns:
            ChunkTerrainResult scoped to the chunk's own chunk_size**2 tiles.

        Raises:
            InvalidChunkSizeError: If chunk_size is not positive.
        """
        if chunk_size <= 0:
            raise InvalidChunkSizeError(f"Chunk size must be positive, got {chunk_size}")

        min_col = chunk_col * chunk_size
        min_row = chunk_row * chunk_size
        result = self.generate_region(
            min_col,
            min_row,
            min_col + chunk_size,
            min_row + chunk_size,
            smoothing=smoothing,
        )

        logger.debug(
            "Generated chunk (%d, %d): %d water of %d tiles",
            chunk_col,
            chunk_row,
            result.water_count,
            chunk_size * chunk_size,
        )
        return result

    def generate_region(
        self,
        min_col: int,
        min_row: int,
        max_col: int,
        max_row: int,
        smoothing: bool | None = None,
    ) -> ChunkTerrainResult:
        """Generate terrain for an arbitrary half-open tile rectangle.

        Uses the same padding as chunk generation, so a region and the
        chunks covering it agree wherever the padding is deep enough.
        """
        if smoothing is None:
            smoothing = self.classifier.is_smoothing()

        water = self.filtered_water(min_col, min_row, max_col, max_row)
        variants = self.classifier.variant_grid(water, smoothing=smoothing)

        pad = self.padding
        height = max_row - min_row
        width = max_col - min_col
        inner_mask = water.mask[pad : pad + height, pad : pad + width]
        inner_variants = variants[pad : pad + height, pad : pad + width]
        return _build_result(inner_mask, inner_variants, min_col, min_row)

    def filtered_water(
        self, min_col: int, min_row: int, max_col: int, max_row: int
    ) -> WaterGrid:
        """Cluster-filtered water grid for a rectangle, without padding trimmed.

        The returned grid covers the rectangle expanded by the padding.
        """
        pad = self.padding
        raw = self.classifier.classify_region(
            min_col - pad, min_row - pad, max_col + pad, max_row + pad
        )
        return self.classifier.suppress_small_clusters(raw)


def _build_result(
    mask: NDArray[np.bool_],
    variant_codes: NDArray[np.uint8],
    min_col: int,
    min_row: int,
) -> ChunkTerrainResult:
    """Convert trimmed grids into the sparse per-tile result structures."""
    map_data = MapData()
    tile_variants: dict[TileCoord, TileVariant] = {}

    height, width = mask.shape
    for y in range(height):
        row = min_row + y
        for x in range(width):
            col = min_col + x
            terrain = TerrainType.WATER if mask[y, x] else TerrainType.GRASS
            map_data.set(col, row, terrain)
            tile_variants[(col, row)] = VARIANT_CODES[variant_codes[y, x]]

    return ChunkTerrainResult(map_data=map_data, tile_variants=tile_variants)
