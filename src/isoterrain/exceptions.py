"""Custom exceptions for terrain generation and chunk streaming."""


class IsoTerrainError(Exception):
    """Base exception for isoterrain errors."""

    pass


class InvalidChunkSizeError(IsoTerrainError):
    """Raised when a chunk size is not a positive integer."""

    pass


class InvalidViewportError(IsoTerrainError):
    """Raised when viewport bounds cannot be projected onto tiles."""

    pass


class TerrainOverwriteError(IsoTerrainError):
    """Raised when a tile already in a MapData is set to a different terrain."""

    pass


class ConfigError(IsoTerrainError):
    """Raised when a configuration file is not valid TOML."""

    pass
