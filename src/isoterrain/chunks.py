"""Viewport-driven chunk streaming over the infinite tile plane."""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Protocol

import structlog

from .exceptions import InvalidViewportError
from .map_data import MapData
from .projection import IsometricProjection
from .terrain.config import ChunkConfig, TerrainConfig
from .terrain.generator import ChunkTerrainResult, TerrainGenerator
from .terrain_types import TerrainType, TileVariant
from .types import ChunkKey, TileCoord, TileHandle, ViewportBounds

logger = structlog.get_logger()


class TileRegistry(Protocol):
    """Rendering-side collaborator told when tiles become (non-)resident."""

    def register_tile(self, handle: Any, col: int, row: int) -> None: ...

    def unregister_tile(self, col: int, row: int) -> None: ...


HandleFactory = Callable[[int, int, TerrainType, TileVariant], Any]


def default_handle_factory(
    col: int, row: int, terrain: TerrainType, variant: TileVariant
) -> TileHandle:
    """Build the default proxy handle for a tile."""
    return TileHandle(col=col, row=row, terrain=terrain, variant=variant)


def chunk_coords(col: int, row: int, chunk_size: int) -> ChunkKey:
    """Convert tile coordinates to chunk coordinates (floored)."""
    return (col // chunk_size, row // chunk_size)


def chunk_tile_bounds(
    chunk_col: int, chunk_row: int, chunk_size: int
) -> tuple[int, int, int, int]:
    """Half-open tile rectangle (min_col, min_row, max_col, max_row) of a chunk."""
    min_col = chunk_col * chunk_size
    min_row = chunk_row * chunk_size
    return (min_col, min_row, min_col + chunk_size, min_row + chunk_size)


@dataclass
class Chunk:
    """A chunk_size x chunk_size block of generated tiles."""

    chunk_col: int
    chunk_row: int
    map_data: MapData
    tile_variants: dict[TileCoord, TileVariant]
    registered: list[TileCoord] = field(default_factory=list)
    version: int = 0

    @property
    def key(self) -> ChunkKey:
        return (self.chunk_col, self.chunk_row)

    def tiles(self) -> Iterator[TileCoord]:
        """Tile coordinates owned by this chunk."""
        return iter(self.map_data)

    def replace_terrain(self, result: ChunkTerrainResult) -> None:
        """Swap in regenerated terrain (call only while unregistered)."""
        self.map_data = result.map_data
        self.tile_variants = result.tile_variants
        self.version += 1


@dataclass(frozen=True)
class ChunkUpdate:
    """Outcome of one cache update."""

    required: frozenset[ChunkKey]
    loaded: tuple[ChunkKey, ...] = ()
    evicted: tuple[ChunkKey, ...] = ()

    @property
    def changed(self) -> bool:
        """Whether any chunk was created or evicted."""
        return bool(self.loaded or self.evicted)


@dataclass(frozen=True)
class ResidentTiles:
    """Snapshot of every resident tile, as published to the renderer."""

    terrain: dict[TileCoord, TerrainType]
    variants: dict[TileCoord, TileVariant]

    def __len__(self) -> int:
        return len(self.terrain)


class ChunkManager:
    """Keeps the chunks around a viewport generated and everything else evicted.

    Eviction is purely "outside the required rectangle": the required set is
    recomputed on every update and compared with the resident set.
    """

    def __init__(
        self,
        generator: TerrainGenerator,
        config: ChunkConfig | None = None,
        projection: IsometricProjection | None = None,
        registry: TileRegistry | None = None,
        handle_factory: HandleFactory | None = None,
        on_tiles_changed: Callable[[ResidentTiles], None] | None = None,
    ):
        self.generator = generator
        self.config = config or ChunkConfig()
        self.projection = projection or IsometricProjection.from_tile_art()
        self.registry = registry
        self.handle_factory = handle_factory or default_handle_factory
        self.on_tiles_changed = on_tiles_changed
        self._chunks: dict[ChunkKey, Chunk] = {}
        self._dirty = False

    @classmethod
    def from_config(
        cls,
        config: TerrainConfig,
        registry: TileRegistry | None = None,
        on_tiles_changed: Callable[[ResidentTiles], None] | None = None,
    ) -> "ChunkManager":
        """Build a manager and its generator from a complete TerrainConfig."""
        projection = IsometricProjection.from_tile_art(
            config.projection.tile_content_width, config.projection.tile_overlap
        )
        return cls(
            TerrainGenerator(config=config),
            config=config.chunks,
            projection=projection,
            registry=registry,
            on_tiles_changed=on_tiles_changed,
        )

    @property
    def chunk_size(self) -> int:
        return self.config.chunk_size

    @property
    def render_distance(self) -> int:
        return self.config.render_distance

    @property
    def terrain_generator(self) -> TerrainGenerator:
        return self.generator

    @property
    def dirty(self) -> bool:
        """Whether resident tiles changed since the last publish."""
        return self._dirty

    @property
    def resident_chunks(self) -> frozenset[ChunkKey]:
        return frozenset(self._chunks)

    def is_resident(self, chunk_col: int, chunk_row: int) -> bool:
        return (chunk_col, chunk_row) in self._chunks

    def get_chunk(self, chunk_col: int, chunk_row: int) -> Chunk | None:
        """Get a resident chunk, or None if it is not loaded."""
        return self._chunks.get((chunk_col, chunk_row))

    def chunk_for_tile(self, col: int, row: int) -> ChunkKey:
        return chunk_coords(col, row, self.chunk_size)

    def set_smoothing(self, enabled: bool) -> None:
        """Set smoothing; takes effect on the next generation."""
        self.generator.set_smoothing(enabled)
        logger.info("smoothing_changed", enabled=enabled)

    def toggle_smoothing(self) -> None:
        self.set_smoothing(not self.generator.is_smoothing())

    def is_smoothing(self) -> bool:
        return self.generator.is_smoothing()

    def required_chunks(
        self,
        viewport_center_x: float,
        viewport_center_y: float,
        viewport_width: float,
        viewport_height: float,
        zoom_scale: float,
    ) -> frozenset[ChunkKey]:
        """Chunk coordinates that must be resident for a viewport.

        All four viewport corners are projected to tiles; the bounding box of
        their chunks is expanded by the render distance on every side.

        Raises:
            InvalidViewportError: If zoom is not positive or a size is negative.
        """
        if zoom_scale <= 0:
            raise InvalidViewportError(f"Zoom scale must be positive, got {zoom_scale}")
        if viewport_width < 0 or viewport_height < 0:
            raise InvalidViewportError(
                f"Viewport size must be non-negative, got "
                f"{viewport_width}x{viewport_height}"
            )

        half_width = viewport_width / zoom_scale / 2
        half_height = viewport_height / zoom_scale / 2
        corners = [
            (viewport_center_x - half_width, viewport_center_y - half_height),
            (viewport_center_x + half_width, viewport_center_y - half_height),
            (viewport_center_x + half_width, viewport_center_y + half_height),
            (viewport_center_x - half_width, viewport_center_y + half_height),
        ]

        corner_chunks = [
            self.chunk_for_tile(*self.projection.world_to_tile(x, y))
            for x, y in corners
        ]
        distance = self.render_distance
        min_cx = min(cx for cx, _ in corner_chunks) - distance
        max_cx = max(cx for cx, _ in corner_chunks) + distance
        min_cy = min(cy for _, cy in corner_chunks) - distance
        max_cy = max(cy for _, cy in corner_chunks) + distance

        return frozenset(
            (cx, cy)
            for cy in range(min_cy, max_cy + 1)
            for cx in range(min_cx, max_cx + 1)
        )

    def update_visible_chunks(
        self,
        viewport_center_x: float,
        viewport_center_y: float,
        viewport_width: float,
        viewport_height: float,
        zoom_scale: float,
    ) -> ChunkUpdate:
        """Load chunks the viewport needs and evict the ones it no longer does.

        Args:
            viewport_center_x, viewport_center_y: Viewport center in world space.
            viewport_width, viewport_height: Viewport size in screen pixels.
            zoom_scale: Screen pixels per world unit.

        Returns:
            ChunkUpdate listing loaded and evicted chunk keys.
        """
        required = self.required_chunks(
            viewport_center_x,
            viewport_center_y,
            viewport_width,
            viewport_height,
            zoom_scale,
        )
        smoothing = self.generator.is_smoothing()

        loaded = sorted(required - self._chunks.keys(), key=_row_major)
        for key in loaded:
            self._load_chunk(key, smoothing)

        evicted = sorted(self._chunks.keys() - required, key=_row_major)
        for key in evicted:
            self._evict_chunk(key)

        update = ChunkUpdate(
            required=required, loaded=tuple(loaded), evicted=tuple(evicted)
        )
        if update.changed:
            self._dirty = True
            logger.debug(
                "chunks_updated",
                loaded=len(loaded),
                evicted=len(evicted),
                resident=len(self._chunks),
            )

        if self._dirty:
            self.publish()
        return update

    def update_viewport(self, bounds: ViewportBounds) -> ChunkUpdate:
        """update_visible_chunks taking the camera's viewport value."""
        return self.update_visible_chunks(
            bounds.center_x, bounds.center_y, bounds.width, bounds.height, bounds.zoom
        )

    def regenerate_all_chunks(self) -> None:
        """Regenerate every resident chunk in place.

        Used after a classifier setting such as smoothing changes. The
        resident set is unchanged; all chunks see one smoothing snapshot.
        """
        smoothing = self.generator.is_smoothing()
        for key in sorted(self._chunks, key=_row_major):
            chunk = self._chunks[key]
            self._unregister_tiles(chunk)
            result = self.generator.generate_chunk_terrain(
                chunk.chunk_col, chunk.chunk_row, self.chunk_size, smoothing=smoothing
            )
            chunk.replace_terrain(result)
            try:
                self._register_tiles(chunk)
            except Exception:
                del self._chunks[key]
                self._dirty = True
                logger.warning(
                    "chunk_dropped", chunk_col=key[0], chunk_row=key[1]
                )
                raise

        if self._chunks:
            self._dirty = True
        logger.info(
            "chunks_regenerated", count=len(self._chunks), smoothing=smoothing
        )
        if self._dirty:
            self.publish()

    def clear(self) -> None:
        """Evict every resident chunk."""
        for key in sorted(self._chunks, key=_row_major):
            self._evict_chunk(key)
            self._dirty = True
        if self._dirty:
            self.publish()

    def get_tile_type(self, col: int, row: int) -> TerrainType | None:
        """Terrain at a tile, or None (unknown) if its chunk is not resident."""
        chunk = self._chunks.get(self.chunk_for_tile(col, row))
        if chunk is None:
            return None
        return chunk.map_data.get(col, row)

    def get_tile_variant(self, col: int, row: int) -> TileVariant | None:
        """Rendering variant at a tile, or None if its chunk is not resident."""
        chunk = self._chunks.get(self.chunk_for_tile(col, row))
        if chunk is None:
            return None
        return chunk.tile_variants.get((col, row))

    def resident_tiles(self) -> ResidentTiles:
        """Union of terrain and variants of all resident chunks."""
        terrain: dict[TileCoord, TerrainType] = {}
        variants: dict[TileCoord, TileVariant] = {}
        for chunk in self._chunks.values():
            terrain.update(chunk.map_data.items())
            variants.update(chunk.tile_variants)
        return ResidentTiles(terrain=terrain, variants=variants)

    def publish(self) -> None:
        """Send the resident tile set to the renderer and clear the dirty flag."""
        if self.on_tiles_changed is not None:
            tiles = self.resident_tiles()
            self.on_tiles_changed(tiles)
            logger.debug("tiles_published", tiles=len(tiles))
        self._dirty = False

    def _load_chunk(self, key: ChunkKey, smoothing: bool) -> None:
        chunk_col, chunk_row = key
        result = self.generator.generate_chunk_terrain(
            chunk_col, chunk_row, self.chunk_size, smoothing=smoothing
        )
        chunk = Chunk(
            chunk_col=chunk_col,
            chunk_row=chunk_row,
            map_data=result.map_data,
            tile_variants=result.tile_variants,
        )
        # A chunk becomes resident only once all of its tiles are registered
        self._register_tiles(chunk)
        self._chunks[key] = chunk
        self._dirty = True
        logger.debug(
            "chunk_loaded",
            chunk_col=chunk_col,
            chunk_row=chunk_row,
            water=result.water_count,
        )

    def _evict_chunk(self, key: ChunkKey) -> None:
        # Detach registrations before the terrain is dropped
        chunk = self._chunks[key]
        self._unregister_tiles(chunk)
        del self._chunks[key]
        logger.debug("chunk_evicted", chunk_col=key[0], chunk_row=key[1])

    def _register_tiles(self, chunk: Chunk) -> None:
        if self.registry is None:
            return
        try:
            for (col, row), terrain in chunk.map_data.items():
                variant = chunk.tile_variants[(col, row)]
                handle = self.handle_factory(col, row, terrain, variant)
                self.registry.register_tile(handle, col, row)
                chunk.registered.append((col, row))
        except Exception:
            # Leave no partial registration behind
            self._unregister_tiles(chunk)
            raise

    def _unregister_tiles(self, chunk: Chunk) -> None:
        if self.registry is None:
            return
        while chunk.registered:
            col, row = chunk.registered.pop()
            self.registry.unregister_tile(col, row)


def _row_major(key: ChunkKey) -> tuple[int, int]:
    return (key[1], key[0])
