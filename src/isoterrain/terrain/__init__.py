"""Procedural terrain classification package.

This package implements seeded gradient noise, land/water classification
with small-lake suppression, shoreline variant selection, and per-chunk
terrain generation with a padding margin.
"""

from .classification import TerrainClassifier, WaterGrid, variant_from_neighbors
from .config import (
    ChunkConfig,
    ClassificationConfig,
    GenerationConfig,
    ProjectionConfig,
    TerrainConfig,
)
from .generator import ChunkTerrainResult, TerrainGenerator
from .noise import PerlinNoise2D
from .prng import SeededRandom

__all__ = [
    "ChunkConfig",
    "ChunkTerrainResult",
    "ClassificationConfig",
    "GenerationConfig",
    "ProjectionConfig",
    "SeededRandom",
    "PerlinNoise2D",
    "TerrainClassifier",
    "TerrainConfig",
    "TerrainGenerator",
    "WaterGrid",
    "variant_from_neighbors",
]
