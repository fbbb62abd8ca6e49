"""Rendering of schematic frames."""

from .schematic import build_schematic_figure

__all__ = ["build_schematic_figure"]
