"""Named terrain configs: TOML discovery and loading."""

import os
import tomllib
from pathlib import Path

from .exceptions import ConfigError
from .terrain.config import TerrainConfig

# Extra directory searched before the bundled configs
CONFIG_DIR_ENV = "ISOTERRAIN_CONFIG_DIR"

# Configs installed with the package
BUNDLED_CONFIG_DIR = Path(__file__).resolve().parent / "configs"


def load_config(config_path: Path) -> TerrainConfig:
    """Parse a TOML file into a TerrainConfig.

    Sections left out of the file keep their model defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigError: If the file is not valid TOML.
        pydantic.ValidationError: If a value is out of range.
    """
    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
    return TerrainConfig.model_validate(data)


def load_named_config(name: str | None) -> TerrainConfig:
    """Resolve and load a config, or return defaults when name is None."""
    if name is None:
        return TerrainConfig()
    return load_config(find_config(name))


def find_config(name: str) -> Path:
    """Resolve a config name or path to a file.

    Anything that looks like a path (contains "/" or ends in ".toml") is
    used as given. Otherwise each search directory is tried in turn for
    ``{name}.toml``.

    Raises:
        FileNotFoundError: If no matching file exists.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {name}")
        return path

    search_dirs = config_search_dirs()
    for directory in search_dirs:
        candidate = directory / f"{name}.toml"
        if candidate.is_file():
            return candidate

    searched = ", ".join(str(d) for d in search_dirs)
    raise FileNotFoundError(
        f"Config '{name}' not found (searched {searched}); "
        f"known configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """Sorted names of every config across the search directories."""
    names = {
        path.stem
        for directory in config_search_dirs()
        if directory.is_dir()
        for path in directory.glob("*.toml")
    }
    return sorted(names)


def config_search_dirs() -> list[Path]:
    """Directories searched for named configs, highest priority first."""
    dirs = []
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        dirs.append(Path(override))
    dirs.append(BUNDLED_CONFIG_DIR)
    return dirs
