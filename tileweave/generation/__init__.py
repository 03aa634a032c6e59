"""Tile generation for tileweave."""

from .catalog import TileCatalog
from .distribution import distribute_labels
from .generate import generate_tiles, generate_tile_grid
from .render import render_image, render_text, render_labels

__all__ = [
    "TileCatalog",
    "distribute_labels",
    "generate_tiles",
    "generate_tile_grid",
    "render_image",
    "render_text",
    "render_labels",
]
