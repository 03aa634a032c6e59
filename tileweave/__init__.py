"""tileweave - label-weighted Wave Function Collapse over sampled tiles."""

__version__ = "0.1.0"
