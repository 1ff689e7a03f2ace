"""Terrain types and rendering tile variants."""

from enum import Enum


class TerrainType(str, Enum):
    """Logical terrain classification of a tile."""

    GRASS = "grass"
    WATER = "water"

    @property
    def walkable(self) -> bool:
        """Whether entities can walk on this terrain type."""
        return self in _WALKABLE_TYPES


class TileVariant(str, Enum):
    """Autotile variant chosen from a tile and its four axis-neighbors.

    Values match the tile art names. Suffixes use isometric directions:
    N = top-right, E = bottom-right, S = bottom-left, W = top-left.
    ``grass_water_E`` has grass on its East side and water on the other
    three; ``grass_waterConcave_N`` has water on S and W with the grass
    notch pointing North.
    """

    WATER = "water"
    GRASS = "grass"
    EDGE_N = "grass_water_N"
    EDGE_E = "grass_water_E"
    EDGE_S = "grass_water_S"
    EDGE_W = "grass_water_W"
    CONCAVE_N = "grass_waterConcave_N"
    CONCAVE_E = "grass_waterConcave_E"
    CONCAVE_S = "grass_waterConcave_S"
    CONCAVE_W = "grass_waterConcave_W"

    @property
    def is_water(self) -> bool:
        """Whether the variant is drawn for a water tile."""
        return self is not TileVariant.GRASS

    @property
    def is_edge(self) -> bool:
        """Straight shoreline variant (one dry side)."""
        return self in _EDGE_VARIANTS

    @property
    def is_concave(self) -> bool:
        """Concave corner variant (two adjacent dry sides)."""
        return self in _CONCAVE_VARIANTS


# Define sets for O(1) lookup
_WALKABLE_TYPES = frozenset({
    TerrainType.GRASS,
})

_EDGE_VARIANTS = frozenset({
    TileVariant.EDGE_N,
    TileVariant.EDGE_E,
    TileVariant.EDGE_S,
    TileVariant.EDGE_W,
})

_CONCAVE_VARIANTS = frozenset({
    TileVariant.CONCAVE_N,
    TileVariant.CONCAVE_E,
    TileVariant.CONCAVE_S,
    TileVariant.CONCAVE_W,
})

# Compact uint8 codes used by vectorized variant grids
VARIANT_CODES: tuple[TileVariant, ...] = tuple(TileVariant)


def variant_code(variant: TileVariant) -> int:
    """Convert TileVariant to its uint8 code."""
    return VARIANT_CODES.index(variant)


def variant_from_code(code: int) -> TileVariant:
    """Convert uint8 code back to TileVariant."""
    return VARIANT_CODES[code]
