"""Pan and zoom state for the schematic canvas.

:class:`ViewportState` is an immutable value; every gesture produces a new
state.  :class:`Viewport` keeps the current state for callers that prefer a
stateful object (the view and the gesture router).

The drag state machine has two states, idle and dragging.  While dragging,
the pan follows the total pointer displacement since the press
(``pan = pointer - anchor.pointer + anchor.pan``) rather than summing
per-event deltas, so rounding in the event stream cannot accumulate.

Rendering composes the transform as translate-by-pan after
scale-about-centre::

    screen = centre + zoom * (scene - centre) + pan

so the pan is expressed in unscaled pointer pixels and a drag moves the
diagram exactly as far as the pointer moved, whatever the zoom.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .config import ViewConfig


Vec = Tuple[float, float]


@dataclass(frozen=True)
class DragAnchor:
    pointer: Vec
    pan: Vec


@dataclass(frozen=True)
class ViewportState:
    zoom: float = 1.0
    pan: Vec = (0.0, 0.0)
    drag_anchor: Optional[DragAnchor] = None

    @property
    def dragging(self) -> bool:
        return self.drag_anchor is not None

    def begin_drag(self, pointer: Vec) -> "ViewportState":
        """idle -> dragging.  Restarting a drag re-anchors at ``pointer``."""
        anchor = DragAnchor(pointer=(float(pointer[0]), float(pointer[1])), pan=self.pan)
        return dataclasses.replace(self, drag_anchor=anchor)

    def drag_to(self, pointer: Vec) -> "ViewportState":
        if self.drag_anchor is None:
            return self
        anchor = self.drag_anchor
        pan = (
            float(pointer[0]) - anchor.pointer[0] + anchor.pan[0],
            float(pointer[1]) - anchor.pointer[1] + anchor.pan[1],
        )
        return dataclasses.replace(self, pan=pan)

    def end_drag(self) -> "ViewportState":
        """dragging -> idle, keeping the last pan."""
        if self.drag_anchor is None:
            return self
        return dataclasses.replace(self, drag_anchor=None)

    def zoomed(self, delta: float, zoom_min: float = 0.5, zoom_max: float = 2.0) -> "ViewportState":
        # Rounding keeps repeated 0.1 steps landing on 1.1, 1.2, ... exactly
        zoom = round(max(zoom_min, min(zoom_max, self.zoom + delta)), 10)
        return dataclasses.replace(self, zoom=zoom)


def transform_matrix(state: ViewportState, size: Vec) -> np.ndarray:
    """Homogeneous 3x3 scene-to-screen matrix for a canvas of ``size``."""
    cx, cy = size[0] / 2.0, size[1] / 2.0
    z = state.zoom
    translate_pan = np.array([[1.0, 0.0, state.pan[0]], [0.0, 1.0, state.pan[1]], [0.0, 0.0, 1.0]])
    to_centre = np.array([[1.0, 0.0, cx], [0.0, 1.0, cy], [0.0, 0.0, 1.0]])
    scale = np.array([[z, 0.0, 0.0], [0.0, z, 0.0], [0.0, 0.0, 1.0]])
    from_centre = np.array([[1.0, 0.0, -cx], [0.0, 1.0, -cy], [0.0, 0.0, 1.0]])
    return translate_pan @ to_centre @ scale @ from_centre


class Viewport:
    """
    Stateful wrapper around :class:`ViewportState`.
    """

    def __init__(self, config: Optional[ViewConfig] = None):
        self.config = config or ViewConfig()
        self.state = ViewportState()

    @property
    def zoom(self) -> float:
        return self.state.zoom

    @property
    def pan(self) -> Vec:
        return self.state.pan

    @property
    def dragging(self) -> bool:
        return self.state.dragging

    @property
    def zoom_percent(self) -> int:
        """Zoom as shown in the toolbar, e.g. ``110`` for 1.1x."""
        return int(round(self.state.zoom * 100))

    def begin_drag(self, x: float, y: float) -> None:
        self.state = self.state.begin_drag((x, y))

    def drag_to(self, x: float, y: float) -> None:
        self.state = self.state.drag_to((x, y))

    def end_drag(self) -> None:
        self.state = self.state.end_drag()

    def cancel_drag(self) -> None:
        # Cancelling keeps the pan reached so far, same as a normal release
        self.state = self.state.end_drag()

    def zoom_in(self) -> None:
        self.state = self.state.zoomed(self.config.zoom_step, self.config.zoom_min, self.config.zoom_max)

    def zoom_out(self) -> None:
        self.state = self.state.zoomed(-self.config.zoom_step, self.config.zoom_min, self.config.zoom_max)

    def reset(self) -> None:
        """Back to 100% with no pan, abandoning any drag in progress."""
        self.state = ViewportState()

    def matrix(self, size: Vec) -> np.ndarray:
        return transform_matrix(self.state, size)

    def to_screen(self, point: Vec, size: Vec) -> Vec:
        x, y, _ = self.matrix(size) @ np.array([point[0], point[1], 1.0])
        return (float(x), float(y))

    def to_scene(self, point: Vec, size: Vec) -> Vec:
        """Map a pointer position back into scene coordinates for hit testing."""
        cx, cy = size[0] / 2.0, size[1] / 2.0
        z = self.state.zoom
        px, py = self.state.pan
        return (cx + (point[0] - px - cx) / z, cy + (point[1] - py - cy) / z)
