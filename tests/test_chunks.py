"""Tests for viewport-driven chunk streaming."""

from collections import Counter

import pytest

from isoterrain.chunks import (
    Chunk,
    ChunkManager,
    ChunkUpdate,
    ResidentTiles,
    chunk_coords,
    chunk_tile_bounds,
)
from isoterrain.exceptions import InvalidViewportError
from isoterrain.projection import IsometricProjection
from isoterrain.terrain.config import ChunkConfig, TerrainConfig
from isoterrain.terrain.generator import TerrainGenerator
from isoterrain.terrain_types import TerrainType, TileVariant
from isoterrain.types import TileHandle, ViewportBounds


def _far_center(projection: IsometricProjection) -> tuple[float, float]:
    """World point of tile (1000, 1000), far from the origin."""
    return projection.tile_to_world(1000, 1000)


class TestCoordinateConversion:
    """Tests for tile <-> chunk coordinate helpers."""

    def test_origin(self) -> None:
        assert chunk_coords(0, 0, 16) == (0, 0)

    def test_within_first_chunk(self) -> None:
        assert chunk_coords(15, 15, 16) == (0, 0)

    def test_second_chunk(self) -> None:
        assert chunk_coords(16, 0, 16) == (1, 0)
        assert chunk_coords(0, 16, 16) == (0, 1)

    def test_negative_coordinates_floor(self) -> None:
        """Tile -1 belongs to chunk -1, not chunk 0."""
        assert chunk_coords(-1, -1, 16) == (-1, -1)
        assert chunk_coords(-16, -17, 16) == (-1, -2)

    def test_tile_bounds(self) -> None:
        assert chunk_tile_bounds(0, 0, 16) == (0, 0, 16, 16)
        assert chunk_tile_bounds(-1, 2, 8) == (-8, 16, 0, 24)


class TestRequiredChunks:
    """Tests for required set computation."""

    def test_point_viewport_at_origin(self, generator: TerrainGenerator) -> None:
        """Zero-size viewport at the origin needs the render distance square."""
        manager = ChunkManager(generator)
        required = manager.required_chunks(0, 0, 0, 0, 1.0)
        expected = {(cx, cy) for cx in range(-2, 3) for cy in range(-2, 3)}
        assert required == expected

    def test_render_distance_zero(self, generator: TerrainGenerator) -> None:
        manager = ChunkManager(generator, config=ChunkConfig(render_distance=0))
        assert manager.required_chunks(1.0, 1.0, 0, 0, 1.0) == {(0, 0)}

    def test_covers_all_viewport_corners(self, manager: ChunkManager) -> None:
        cx, cy, width, height, zoom = 500.0, 900.0, 1920.0, 1080.0, 2.0
        required = manager.required_chunks(cx, cy, width, height, zoom)
        hw, hh = width / zoom / 2, height / zoom / 2
        for x, y in [(cx - hw, cy - hh), (cx + hw, cy - hh), (cx + hw, cy + hh), (cx - hw, cy + hh)]:
            tile = manager.projection.world_to_tile(x, y)
            assert manager.chunk_for_tile(*tile) in required

    def test_covers_viewport_interior(self, manager: ChunkManager) -> None:
        cx, cy, width, height = -300.0, 250.0, 1280.0, 720.0
        required = manager.required_chunks(cx, cy, width, height, 1.0)
        for fx in (0.0, 0.25, 0.5, 0.75, 1.0):
            for fy in (0.0, 0.33, 0.66, 1.0):
                x = cx - width / 2 + fx * width
                y = cy - height / 2 + fy * height
                tile = manager.projection.world_to_tile(x, y)
                assert manager.chunk_for_tile(*tile) in required

    def test_zoom_out_needs_more_chunks(self, manager: ChunkManager) -> None:
        near = manager.required_chunks(0, 0, 1920, 1080, 4.0)
        far = manager.required_chunks(0, 0, 1920, 1080, 0.25)
        assert len(far) > len(near)
        assert near <= far

    def test_required_is_rectangle(self, manager: ChunkManager) -> None:
        required = manager.required_chunks(100, 100, 800, 600, 1.0)
        cols = {c for c, _ in required}
        rows = {r for _, r in required}
        assert len(required) == len(cols) * len(rows)
        assert cols == set(range(min(cols), max(cols) + 1))

    @pytest.mark.parametrize("zoom", [0.0, -1.0])
    def test_invalid_zoom(self, manager: ChunkManager, zoom: float) -> None:
        with pytest.raises(InvalidViewportError):
            manager.required_chunks(0, 0, 100, 100, zoom)

    def test_negative_size(self, manager: ChunkManager) -> None:
        with pytest.raises(InvalidViewportError):
            manager.update_visible_chunks(0, 0, -5, 100, 1.0)


class TestUpdateVisibleChunks:
    """Tests for loading, eviction and lookups."""

    def test_starts_empty(self, manager: ChunkManager) -> None:
        assert manager.resident_chunks == frozenset()
        assert manager.get_tile_type(0, 0) is None
        assert manager.get_tile_variant(0, 0) is None

    def test_loads_required_set(self, manager: ChunkManager) -> None:
        update = manager.update_visible_chunks(0, 0, 800, 600, 1.0)
        assert isinstance(update, ChunkUpdate)
        assert update.changed
        assert set(update.loaded) == update.required
        assert update.evicted == ()
        assert manager.resident_chunks == update.required

    def test_second_update_is_noop(
        self, manager: ChunkManager, published: list
    ) -> None:
        manager.update_visible_chunks(0, 0, 800, 600, 1.0)
        update = manager.update_visible_chunks(0, 0, 800, 600, 1.0)
        assert not update.changed
        assert len(published) == 1

    def test_tile_lookup_matches_generator(
        self, manager: ChunkManager, generator: TerrainGenerator
    ) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        expected = generator.generate_chunk_terrain(0, 0, 8)
        for (col, row), terrain in expected.map_data.items():
            assert manager.get_tile_type(col, row) == terrain
            assert manager.get_tile_variant(col, row) == expected.tile_variants[(col, row)]

    def test_known_tiles_through_cache(self, generator: TerrainGenerator) -> None:
        manager = ChunkManager(generator)
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        assert manager.get_tile_type(0, 0) == TerrainType.GRASS
        assert manager.get_tile_type(3, 1) == TerrainType.WATER
        assert manager.get_tile_variant(3, 1) == TileVariant.CONCAVE_S

    def test_unknown_outside_resident(self, manager: ChunkManager) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        assert manager.get_tile_type(10_000, -10_000) is None

    def test_eviction_completeness(
        self, manager: ChunkManager, registry
    ) -> None:
        """Far move evicts old chunks and unregisters each tile exactly once."""
        first = manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        old_tiles = set(registry.live)
        assert len(old_tiles) == len(first.required) * 64

        update = manager.update_visible_chunks(*_far_center(manager.projection), 0, 0, 1.0)
        assert set(update.evicted) == first.required
        assert not update.required & first.required

        for col, row in old_tiles:
            assert manager.get_tile_type(col, row) is None
            assert registry.unregistered[(col, row)] == 1
            assert registry.registered[(col, row)] == 1
        assert not old_tiles & registry.live

    def test_registry_matches_resident_tiles(
        self, manager: ChunkManager, registry
    ) -> None:
        manager.update_visible_chunks(0, 0, 640, 480, 1.0)
        manager.update_visible_chunks(300, 200, 640, 480, 1.0)
        assert registry.live == set(manager.resident_tiles().terrain)

    def test_default_handles(self, manager: ChunkManager, registry) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        handle = registry.handles[(0, 0)]
        assert isinstance(handle, TileHandle)
        assert handle.terrain == manager.get_tile_type(0, 0)
        assert handle.variant == manager.get_tile_variant(0, 0)

    def test_custom_handle_factory(self, generator: TerrainGenerator, registry) -> None:
        manager = ChunkManager(
            generator,
            config=ChunkConfig(chunk_size=4, render_distance=0),
            registry=registry,
            handle_factory=lambda col, row, terrain, variant: f"{col}:{row}:{variant.value}",
        )
        manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        variant = manager.get_tile_variant(0, 0)
        assert registry.handles[(0, 0)] == f"0:0:{variant.value}"

    def test_unregister_before_discard(self, generator: TerrainGenerator) -> None:
        """Terrain is still readable while a chunk's tiles are unregistered."""
        seen: list = []

        class CheckingRegistry:
            def register_tile(self, handle: object, col: int, row: int) -> None:
                pass

            def unregister_tile(self, col: int, row: int) -> None:
                seen.append(manager.get_tile_type(col, row))

        manager = ChunkManager(
            generator,
            config=ChunkConfig(chunk_size=4, render_distance=0),
            registry=CheckingRegistry(),
        )
        manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        manager.update_visible_chunks(*_far_center(manager.projection), 0, 0, 1.0)
        assert len(seen) == 16
        assert None not in seen

    def test_revisit_is_identical(self, manager: ChunkManager) -> None:
        """A chunk evicted and regenerated reproduces the same tiles."""
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        before = manager.resident_tiles()
        manager.update_visible_chunks(*_far_center(manager.projection), 0, 0, 1.0)
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        after = manager.resident_tiles()
        assert before.terrain == after.terrain
        assert before.variants == after.variants

    def test_partial_overlap_keeps_shared_chunks(self, manager: ChunkManager) -> None:
        first = manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        x, y = manager.projection.tile_to_world(8, 0)  # one chunk over
        second = manager.update_visible_chunks(x, y, 0, 0, 1.0)
        shared = first.required & second.required
        assert shared
        assert not shared & set(second.loaded)
        assert not shared & set(second.evicted)
        assert manager.resident_chunks == second.required

    def test_update_viewport(self, manager: ChunkManager) -> None:
        bounds = ViewportBounds(center_x=10, center_y=20, width=640, height=480, zoom=1.5)
        update = manager.update_viewport(bounds)
        assert update.required == manager.required_chunks(10, 20, 640, 480, 1.5)

    def test_no_registry(self, generator: TerrainGenerator) -> None:
        manager = ChunkManager(generator, config=ChunkConfig(chunk_size=4, render_distance=0))
        manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        assert manager.is_resident(0, 0)
        chunk = manager.get_chunk(0, 0)
        assert isinstance(chunk, Chunk)
        assert chunk.registered == []


class FlakyRegistry:
    """Registry whose Nth register call raises."""

    def __init__(self, fail_on: int | None = None) -> None:
        self.fail_on = fail_on
        self.calls = 0
        self.registered: Counter[tuple[int, int]] = Counter()
        self.live: set[tuple[int, int]] = set()

    def register_tile(self, handle: object, col: int, row: int) -> None:
        self.calls += 1
        if self.calls == self.fail_on:
            raise RuntimeError("registry unavailable")
        self.registered[(col, row)] += 1
        self.live.add((col, row))

    def unregister_tile(self, col: int, row: int) -> None:
        self.live.remove((col, row))


class TestRegistryFailures:
    """A failing registry never leaves a chunk half registered."""

    def test_failed_load_rolls_back(self, generator: TerrainGenerator) -> None:
        registry = FlakyRegistry(fail_on=40)
        manager = ChunkManager(
            generator, config=ChunkConfig(chunk_size=8, render_distance=0), registry=registry
        )
        with pytest.raises(RuntimeError):
            manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        assert not manager.is_resident(0, 0)
        assert manager.get_tile_type(0, 0) is None
        assert registry.live == set()

    def test_retry_registers_each_tile_once(self, generator: TerrainGenerator) -> None:
        registry = FlakyRegistry(fail_on=40)
        manager = ChunkManager(
            generator, config=ChunkConfig(chunk_size=8, render_distance=0), registry=registry
        )
        with pytest.raises(RuntimeError):
            manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        registry.registered.clear()

        manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        resident = set(manager.resident_tiles().terrain)
        assert len(resident) == 64
        assert registry.live == resident
        assert set(registry.registered) == resident
        assert all(count == 1 for count in registry.registered.values())

    def test_failure_mid_batch_keeps_completed_chunks(
        self, generator: TerrainGenerator
    ) -> None:
        registry = FlakyRegistry(fail_on=64 * 2 + 5)
        manager = ChunkManager(
            generator, config=ChunkConfig(chunk_size=8, render_distance=1), registry=registry
        )
        with pytest.raises(RuntimeError):
            manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        assert len(manager.resident_chunks) == 2
        assert registry.live == set(manager.resident_tiles().terrain)
        assert manager.dirty

    def test_failed_regenerate_drops_chunk(self, generator: TerrainGenerator) -> None:
        registry = FlakyRegistry()
        manager = ChunkManager(
            generator, config=ChunkConfig(chunk_size=8, render_distance=0), registry=registry
        )
        manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        registry.fail_on = registry.calls + 10

        with pytest.raises(RuntimeError):
            manager.regenerate_all_chunks()
        assert not manager.is_resident(0, 0)
        assert registry.live == set()

        registry.fail_on = None
        manager.update_visible_chunks(1.0, 1.0, 0, 0, 1.0)
        assert manager.is_resident(0, 0)
        assert len(registry.live) == 64


class TestPublishing:
    """Tests for the dirty flag and tile set publishing."""

    def test_publish_on_change(self, manager: ChunkManager, published: list) -> None:
        update = manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        assert len(published) == 1
        tiles = published[0]
        assert isinstance(tiles, ResidentTiles)
        assert len(tiles) == len(update.required) * 64
        assert not manager.dirty

    def test_published_set_follows_eviction(
        self, manager: ChunkManager, published: list
    ) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        manager.update_visible_chunks(*_far_center(manager.projection), 0, 0, 1.0)
        assert len(published) == 2
        assert (0, 0) in published[0].terrain
        assert (0, 0) not in published[1].terrain

    def test_resident_tiles_union(self, manager: ChunkManager) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        tiles = manager.resident_tiles()
        assert set(tiles.terrain) == set(tiles.variants)
        for chunk_key in manager.resident_chunks:
            chunk = manager.get_chunk(*chunk_key)
            for tile in chunk.tiles():
                assert tile in tiles.terrain


class TestSmoothingAndRegeneration:
    """Tests for smoothing passthroughs and regenerate_all_chunks."""

    def test_smoothing_passthrough(self, manager: ChunkManager) -> None:
        assert manager.is_smoothing()
        manager.toggle_smoothing()
        assert not manager.is_smoothing()
        assert not manager.terrain_generator.is_smoothing()
        manager.set_smoothing(True)
        assert manager.is_smoothing()

    def test_toggle_does_not_regenerate_by_itself(self, generator: TerrainGenerator) -> None:
        manager = ChunkManager(generator)
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        manager.toggle_smoothing()
        assert manager.get_tile_variant(3, 1) == TileVariant.CONCAVE_S

    def test_regenerate_applies_smoothing(self, generator: TerrainGenerator) -> None:
        manager = ChunkManager(generator)
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        resident = manager.resident_chunks
        before = manager.resident_tiles()

        manager.set_smoothing(False)
        manager.regenerate_all_chunks()

        after = manager.resident_tiles()
        assert manager.resident_chunks == resident
        assert before.terrain == after.terrain
        assert manager.get_tile_variant(3, 1) == TileVariant.WATER
        assert set(after.variants.values()) <= {TileVariant.GRASS, TileVariant.WATER}

    def test_regenerate_reregisters_tiles(
        self, manager: ChunkManager, registry, published: list
    ) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        tiles = set(registry.live)
        manager.toggle_smoothing()
        manager.regenerate_all_chunks()

        assert registry.live == tiles
        for tile in tiles:
            assert registry.unregistered[tile] == 1
            assert registry.registered[tile] == 2
        assert len(published) == 2

    def test_regenerate_bumps_version(self, manager: ChunkManager) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        manager.regenerate_all_chunks()
        chunk = manager.get_chunk(0, 0)
        assert chunk.version == 1

    def test_regenerate_empty_cache(self, manager: ChunkManager, published: list) -> None:
        manager.regenerate_all_chunks()
        assert manager.resident_chunks == frozenset()
        assert published == []


class TestClear:
    """Tests for evicting everything."""

    def test_clear(self, manager: ChunkManager, registry, published: list) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        manager.clear()
        assert manager.resident_chunks == frozenset()
        assert registry.live == set()
        assert len(published[-1]) == 0
        assert manager.get_tile_type(0, 0) is None

    def test_clear_then_reload(self, manager: ChunkManager) -> None:
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        manager.clear()
        update = manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        assert set(update.loaded) == update.required


class TestFromConfig:
    """Tests for building a manager from TerrainConfig."""

    def test_uses_config_values(self) -> None:
        config = TerrainConfig.model_validate(
            {
                "seed": "configured",
                "chunks": {"chunk_size": 4, "render_distance": 0},
                "projection": {"tile_content_width": 138, "tile_overlap": 10},
            }
        )
        manager = ChunkManager.from_config(config)
        assert manager.chunk_size == 4
        assert manager.render_distance == 0
        assert manager.terrain_generator.seed == "configured"
        assert manager.projection.step_x == 64
        assert manager.projection.step_y == 32

    def test_default_config(self) -> None:
        manager = ChunkManager.from_config(TerrainConfig())
        manager.update_visible_chunks(0, 0, 0, 0, 1.0)
        assert len(manager.resident_chunks) == 25
        assert manager.get_tile_variant(3, 1) == TileVariant.CONCAVE_S
