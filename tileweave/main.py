"""tileweave - generate tile grids from labelled samples with Wave Function Collapse."""

import argparse
import logging
import random
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from tqdm import tqdm

from . import __version__
from .config import DistributionMethod, GenerationConfig
from .core.errors import BacktrackExhaustedError, ConfigurationError
from .generation import TileCatalog, distribute_labels, generate_tiles, render_image, render_labels, render_text
from .logging_config import setup_logging, teardown_logging


def run_generation(
    samples_dir: Path,
    tile_size: int,
    config: GenerationConfig,
    output: Path | None = None,
    show_labels: bool = False,
    console: Console | None = None,
) -> int:
    """Build the catalog, generate a grid and show it.

    Args:
        samples_dir: Directory of labelled sample images
        tile_size: Edge length of a sample sub-tile in pixels
        config: Validated generation settings
        output: Optional PNG path for the composed result
        show_labels: Also print the fixed-label map
        console: Where to print (default: stdout)

    Returns:
        Exit code
    """
    console = console or Console()

    catalog = TileCatalog.from_directory(samples_dir, tile_size)
    print(f"  Extracted {len(catalog)} tile types from {samples_dir}")

    rng = random.Random(config.seed)
    labels = distribute_labels(
        config.distribution, config.width, config.height, config.min_value, config.max_value, rng
    )

    total_cells = config.width * config.height
    pbar = tqdm(total=total_cells, desc="  Collapsing", unit="cells")
    last_progress = [0]

    def update_progress(current: int, total: int) -> None:
        # Backtracking moves the count down; tqdm only goes forward
        delta = current - last_progress[0]
        if delta > 0:
            pbar.update(delta)
        elif delta < 0:
            pbar.n = current
            pbar.refresh()
        last_progress[0] = current

    try:
        placements = generate_tiles(
            catalog,
            config,
            labels=labels,
            progress_callback=update_progress,
            rng=rng,
        )
    finally:
        pbar.close()

    if show_labels:
        console.print("Labels:")
        console.print(render_labels(labels))
        console.print()

    console.print(render_text(placements, catalog, config.width, config.height))

    if output is not None:
        image = render_image(placements, catalog, config.width, config.height)
        output.parent.mkdir(parents=True, exist_ok=True)
        image.save(output)
        print(f"  Image: {output}")

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for tileweave."""
    # Load environment variables first
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="tileweave - label-weighted Wave Function Collapse over sampled tiles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tileweave samples/ --tile-size 16                      # 20x20 grid, growing regions
  tileweave samples/ --tile-size 16 -W 40 -H 30 --seed 7 --output out.png
  tileweave samples/ --tile-size 8 --distribution radial --show-labels

Settings not given on the command line are read from TILEWEAVE_* environment
variables (a .env file is honoured), e.g. TILEWEAVE_WIDTH=30.
        """,
    )
    parser.add_argument("samples", type=Path, help="Directory of sample images (names end in a 3-digit label)")
    parser.add_argument("--tile-size", type=int, required=True, help="Sub-tile edge length in pixels")
    parser.add_argument("-W", "--width", type=int, help="Grid width in cells")
    parser.add_argument("-H", "--height", type=int, help="Grid height in cells")
    parser.add_argument("--factor", type=int, dest="collapse_factor", help="Pool weight for label-matching tiles")
    parser.add_argument(
        "--distribution",
        choices=[m.value for m in DistributionMethod],
        help="How fixed labels are spread over the grid",
    )
    parser.add_argument("--min-value", type=int, help="Lowest label value")
    parser.add_argument("--max-value", type=int, help="Highest label value")
    parser.add_argument("--seed", type=int, help="Random seed for reproducibility")
    parser.add_argument("--max-ticks", type=int, help="Give up an attempt after N ticks")
    parser.add_argument("--retries", type=int, dest="max_retries", help="Full restarts before failing")
    parser.add_argument("--output", type=Path, help="Write the composed tiles to this PNG")
    parser.add_argument("--show-labels", action="store_true", help="Print the label map")
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path("logs"),
        help="Directory for debug.log (default: logs/)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging to console")
    parser.add_argument("--quiet", action="store_true", help="No log output on the console")

    args = parser.parse_args(argv)

    if args.quiet:
        console_level = None
    else:
        console_level = logging.DEBUG if args.debug else logging.WARNING
    log_path = setup_logging(args.log_dir, console_level=console_level)

    print(f"tileweave v{__version__}")
    print(f"Log file: {log_path}")
    print()

    try:
        config = GenerationConfig.from_env(
            width=args.width,
            height=args.height,
            collapse_factor=args.collapse_factor,
            distribution=args.distribution,
            min_value=args.min_value,
            max_value=args.max_value,
            seed=args.seed,
            max_ticks=args.max_ticks,
            max_retries=args.max_retries,
        )
        return run_generation(
            args.samples,
            args.tile_size,
            config,
            output=args.output,
            show_labels=args.show_labels,
        )
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except BacktrackExhaustedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        teardown_logging()


if __name__ == "__main__":
    sys.exit(main())
