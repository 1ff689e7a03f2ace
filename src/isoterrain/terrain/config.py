"""Terrain generation configuration models."""

from pydantic import BaseModel, Field

from .noise import DEFAULT_SEED


class ClassificationConfig(BaseModel):
    """Land/water classification thresholds."""

    noise_scale: float = Field(
        default=0.1, gt=0, description="Noise coordinates per tile"
    )
    water_threshold: float = Field(
        default=0.2, ge=0, le=1, description="Normalized noise below this is water"
    )
    min_water_cluster_size: int = Field(
        default=4, ge=1, description="Water clusters smaller than this become grass"
    )


class GenerationConfig(BaseModel):
    """Per-chunk generation parameters."""

    padding: int = Field(
        default=8, ge=0, description="Context tiles classified around each chunk"
    )
    smoothing: bool = Field(
        default=True, description="Select shoreline variants for water tiles"
    )


class ChunkConfig(BaseModel):
    """Chunk streaming parameters."""

    chunk_size: int = Field(default=16, ge=1, description="Tiles per chunk side")
    render_distance: int = Field(
        default=2, ge=0, description="Chunks kept loaded beyond the viewport"
    )


class ProjectionConfig(BaseModel):
    """Isometric tile art dimensions."""

    tile_content_width: float = Field(
        default=233, gt=0, description="Width of the tile art in pixels"
    )
    tile_overlap: float = Field(
        default=10, ge=0, description="Pixels adjacent tiles overlap by"
    )


class TerrainConfig(BaseModel):
    """Complete terrain streaming configuration."""

    seed: str = Field(default=DEFAULT_SEED, description="Noise seed string")

    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    chunks: ChunkConfig = Field(default_factory=ChunkConfig)
    projection: ProjectionConfig = Field(default_factory=ProjectionConfig)
