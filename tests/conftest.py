"""Shared test fixtures for terrain and chunk tests."""

from collections import Counter

import pytest

from isoterrain.chunks import ChunkManager
from isoterrain.projection import IsometricProjection
from isoterrain.terrain.classification import TerrainClassifier
from isoterrain.terrain.config import ChunkConfig
from isoterrain.terrain.generator import TerrainGenerator
from isoterrain.terrain.noise import PerlinNoise2D


class RecordingRegistry:
    """Tile registry that records every register/unregister call."""

    def __init__(self) -> None:
        self.handles: dict[tuple[int, int], object] = {}
        self.registered: Counter[tuple[int, int]] = Counter()
        self.unregistered: Counter[tuple[int, int]] = Counter()
        self.events: list[tuple[str, int, int]] = []

    def register_tile(self, handle: object, col: int, row: int) -> None:
        self.handles[(col, row)] = handle
        self.registered[(col, row)] += 1
        self.events.append(("register", col, row))

    def unregister_tile(self, col: int, row: int) -> None:
        self.handles.pop((col, row), None)
        self.unregistered[(col, row)] += 1
        self.events.append(("unregister", col, row))

    @property
    def live(self) -> set[tuple[int, int]]:
        """Tiles currently registered."""
        return set(self.handles)


@pytest.fixture
def noise() -> PerlinNoise2D:
    """Noise field with the default seed."""
    return PerlinNoise2D("procgentown")


@pytest.fixture
def classifier(noise: PerlinNoise2D) -> TerrainClassifier:
    """Classifier with default thresholds and smoothing on."""
    return TerrainClassifier(noise)


@pytest.fixture
def generator() -> TerrainGenerator:
    """Generator with the default seed."""
    return TerrainGenerator(seed="procgentown")


@pytest.fixture
def projection() -> IsometricProjection:
    """Projection for the default 233px tile art with 10px overlap."""
    return IsometricProjection.from_tile_art(233, 10)


@pytest.fixture
def registry() -> RecordingRegistry:
    return RecordingRegistry()


@pytest.fixture
def published() -> list:
    """Collects every tile set published by a manager."""
    return []


@pytest.fixture
def manager(
    generator: TerrainGenerator,
    projection: IsometricProjection,
    registry: RecordingRegistry,
    published: list,
) -> ChunkManager:
    """Small-chunk manager wired to a recording registry.

    8x8 chunks with render distance 1 keep tests fast.
    """
    return ChunkManager(
        generator,
        config=ChunkConfig(chunk_size=8, render_distance=1),
        projection=projection,
        registry=registry,
        on_tiles_changed=published.append,
    )
