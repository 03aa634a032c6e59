"""Rendering boundary for generated grids.

The solver only exposes Position -> tile ID. These helpers turn that into
something to look at: an image pasted together from the catalog's sprites,
or a coloured text grid for the terminal.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from PIL import Image
from rich.text import Text

from ..core.errors import ConfigurationError
from ..core.types import Position
from .catalog import TileCatalog

# Colours cycled by tile index in the text view
TEXT_PALETTE: tuple[str, ...] = (
    "green",
    "blue",
    "yellow",
    "magenta",
    "cyan",
    "red",
    "bright_green",
    "bright_blue",
    "bright_yellow",
    "bright_magenta",
    "bright_cyan",
    "bright_red",
)

UNDECIDED_SYMBOL = "."


def render_image(
    placements: Mapping[Position, str],
    catalog: TileCatalog,
    width: int,
    height: int,
    background: tuple[int, int, int, int] = (0, 0, 0, 0),
) -> Image.Image:
    """
    Paste each placed tile's sprite at its grid position.

    Cells without a placement stay at the background colour.

    Raises:
        ConfigurationError: If the catalog has no sprites or tile size
    """
    if catalog.tile_size is None or not catalog.sprites:
        raise ConfigurationError("Catalog has no sprites to render", field="catalog")

    size = catalog.tile_size
    image = Image.new("RGBA", (width * size, height * size), background)
    for position, tile_id in placements.items():
        sprite = catalog.sprites.get(tile_id)
        if sprite is None:
            continue
        image.paste(sprite.convert("RGBA"), (position.x * size, position.y * size))
    return image


def render_text(
    placements: Mapping[Position, str],
    catalog: TileCatalog,
    width: int,
    height: int,
) -> Text:
    """Grid of tile indices, one coloured column per cell; "." where undecided."""
    cell_width = len(str(max(len(catalog) - 1, 0)))
    text = Text()

    for y in range(height):
        for x in range(width):
            tile_id = placements.get(Position(x, y))
            if x > 0:
                text.append(" ")
            if tile_id is None:
                text.append(UNDECIDED_SYMBOL.rjust(cell_width), style="bright_black")
                continue
            index = catalog.index_of(tile_id)
            text.append(str(index).rjust(cell_width), style=TEXT_PALETTE[index % len(TEXT_PALETTE)])
        if y < height - 1:
            text.append("\n")

    return text


def render_labels(labels: Sequence[Sequence[int]]) -> Text:
    """The fixed-label map as right-aligned numbers."""
    cell_width = max((len(str(value)) for row in labels for value in row), default=1)
    lines = [" ".join(str(value).rjust(cell_width) for value in row) for row in labels]
    return Text("\n".join(lines), style="bright_black")
