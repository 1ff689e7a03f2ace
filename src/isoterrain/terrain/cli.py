"""Command-line preview of generated terrain."""

import argparse
import logging
import sys
import time

import structlog

from ..terrain_types import TerrainType, TileVariant

# One character per variant for terminal previews
VARIANT_GLYPHS: dict[TileVariant, str] = {
    TileVariant.GRASS: ".",
    TileVariant.WATER: "~",
    TileVariant.EDGE_N: "^",
    TileVariant.EDGE_E: ">",
    TileVariant.EDGE_S: "v",
    TileVariant.EDGE_W: "<",
    TileVariant.CONCAVE_N: "n",
    TileVariant.CONCAVE_E: "e",
    TileVariant.CONCAVE_S: "s",
    TileVariant.CONCAVE_W: "w",
}


def render_ascii(
    tile_variants: dict[tuple[int, int], TileVariant],
    min_col: int,
    min_row: int,
    max_col: int,
    max_row: int,
) -> str:
    """Render variants as text, one line per row; missing tiles show as a space."""
    lines = []
    for row in range(min_row, max_row):
        lines.append(
            "".join(
                VARIANT_GLYPHS[tile_variants[(col, row)]]
                if (col, row) in tile_variants
                else " "
                for col in range(min_col, max_col)
            )
        )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for terrain previews."""
    parser = argparse.ArgumentParser(
        description="Preview procedural isometric terrain as text"
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Config name or TOML path"
    )
    parser.add_argument(
        "--seed", type=str, default=None, help="Seed string (overrides config)"
    )
    parser.add_argument(
        "--chunk",
        type=int,
        nargs=2,
        metavar=("COL", "ROW"),
        default=None,
        help="Chunk coordinates to preview (default: 0 0)",
    )
    parser.add_argument(
        "--size", type=int, default=None, help="Chunk size (overrides config)"
    )
    parser.add_argument(
        "--region",
        type=int,
        nargs=4,
        metavar=("MIN_COL", "MIN_ROW", "MAX_COL", "MAX_ROW"),
        default=None,
        help="Arbitrary half-open tile rectangle instead of a chunk",
    )
    parser.add_argument(
        "--no-smoothing", action="store_true", help="Disable shoreline variants"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from ..config import load_named_config
    from .generator import TerrainGenerator

    try:
        config = load_named_config(args.config)
    except FileNotFoundError as e:
        logger.error("config_not_found", error=str(e))
        return 1

    if args.seed is not None:
        config = config.model_copy(update={"seed": args.seed})
    if args.size is not None:
        if args.size <= 0:
            parser.error("--size must be positive")
        config = config.model_copy(
            update={"chunks": config.chunks.model_copy(update={"chunk_size": args.size})}
        )

    generator = TerrainGenerator(config=config)
    smoothing = not args.no_smoothing

    start_time = time.time()
    if args.region:
        min_col, min_row, max_col, max_row = args.region
        result = generator.generate_region(
            min_col, min_row, max_col, max_row, smoothing=smoothing
        )
    else:
        chunk_col, chunk_row = args.chunk or (0, 0)
        size = config.chunks.chunk_size
        min_col, min_row = chunk_col * size, chunk_row * size
        max_col, max_row = min_col + size, min_row + size
        result = generator.generate_chunk_terrain(
            chunk_col, chunk_row, size, smoothing=smoothing
        )
    gen_time = time.time() - start_time

    print(render_ascii(result.tile_variants, min_col, min_row, max_col, max_row))
    print()

    total = len(result.map_data)
    water = result.map_data.count(TerrainType.WATER)
    pct = water / total * 100 if total else 0.0
    print(f"Seed {config.seed!r}: {total:,} tiles, {water:,} water ({pct:.1f}%)")
    print(f"Generated in {gen_time * 1000:.1f}ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
