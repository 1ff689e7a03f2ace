"""Deterministic isometric terrain with viewport-driven chunk streaming."""

from .chunks import (
    Chunk,
    ChunkManager,
    ChunkUpdate,
    ResidentTiles,
    TileRegistry,
    chunk_coords,
    chunk_tile_bounds,
)
from .config import find_config, list_configs, load_config, load_named_config
from .exceptions import (
    ConfigError,
    InvalidChunkSizeError,
    InvalidViewportError,
    IsoTerrainError,
    TerrainOverwriteError,
)
from .map_data import MapData
from .projection import IsometricProjection
from .terrain import (
    ChunkTerrainResult,
    PerlinNoise2D,
    TerrainClassifier,
    TerrainConfig,
    TerrainGenerator,
)
from .terrain_types import TerrainType, TileVariant
from .types import IsoDirection, TileHandle, ViewportBounds

__all__ = [
    # Types
    "TerrainType",
    "TileVariant",
    "IsoDirection",
    "TileHandle",
    "ViewportBounds",
    # Terrain
    "PerlinNoise2D",
    "TerrainClassifier",
    "TerrainGenerator",
    "ChunkTerrainResult",
    "TerrainConfig",
    # Spatial
    "MapData",
    "IsometricProjection",
    # Chunks
    "Chunk",
    "ChunkManager",
    "ChunkUpdate",
    "ResidentTiles",
    "TileRegistry",
    "chunk_coords",
    "chunk_tile_bounds",
    # Config
    "load_config",
    "find_config",
    "list_configs",
    "load_named_config",
    # Exceptions
    "IsoTerrainError",
    "InvalidChunkSizeError",
    "InvalidViewportError",
    "TerrainOverwriteError",
    "ConfigError",
]
