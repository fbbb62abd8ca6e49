"""Tests for the viewport state machine and transform."""

import numpy as np
import pytest

from plantview.config import ViewConfig
from plantview.viewport import Viewport, ViewportState, transform_matrix


def test_zoom_is_clamped():
    vp = Viewport()
    for _ in range(20):
        vp.zoom_in()
        assert vp.zoom <= 2.0
    assert vp.zoom == 2.0
    for _ in range(20):
        vp.zoom_out()
        assert vp.zoom >= 0.5
    assert vp.zoom == 0.5


def test_zoom_steps_land_on_tenths():
    vp = Viewport()
    vp.zoom_in()
    assert vp.zoom == 1.1
    assert vp.zoom_percent == 110
    vp.zoom_out()
    vp.zoom_out()
    assert vp.zoom == 0.9


def test_zoom_limits_come_from_config():
    vp = Viewport(ViewConfig(zoom_min=0.25, zoom_max=4.0, zoom_step=0.5))
    for _ in range(10):
        vp.zoom_in()
    assert vp.zoom == 4.0


def test_drag_tracks_pointer_from_anchor():
    """pan = P1 - P0 + pan_at_start, and release keeps it."""
    vp = Viewport()
    vp.begin_drag(0, 0)
    vp.drag_to(10, -5)
    vp.end_drag()
    assert vp.pan == (10.0, -5.0)

    vp.begin_drag(100, 50)
    assert vp.dragging
    vp.drag_to(120, 60)
    vp.drag_to(130, 20)
    assert vp.pan == (40.0, -35.0)
    vp.end_drag()
    assert not vp.dragging
    assert vp.pan == (40.0, -35.0)


def test_drag_moves_ignored_when_idle():
    vp = Viewport()
    vp.drag_to(300, 300)
    assert vp.pan == (0.0, 0.0)
    vp.end_drag()
    assert vp.state == ViewportState()


def test_cancel_keeps_pan():
    vp = Viewport()
    vp.begin_drag(5, 5)
    vp.drag_to(8, 1)
    vp.cancel_drag()
    assert not vp.dragging
    assert vp.pan == (3.0, -4.0)


def test_zoom_during_drag_keeps_gesture():
    vp = Viewport()
    vp.begin_drag(0, 0)
    vp.zoom_in()
    vp.drag_to(4, 4)
    assert vp.dragging
    assert vp.zoom == 1.1
    assert vp.pan == (4.0, 4.0)


def test_reset_from_any_state():
    vp = Viewport()
    vp.zoom_in()
    vp.begin_drag(1, 1)
    vp.drag_to(50, 80)
    vp.reset()
    assert vp.state == ViewportState(zoom=1.0, pan=(0.0, 0.0))
    assert not vp.dragging


def test_states_are_immutable_values():
    start = ViewportState()
    moved = start.begin_drag((0, 0)).drag_to((3, 4))
    assert start == ViewportState()
    assert moved.pan == (3.0, 4.0)


def test_transform_is_identity_at_rest():
    assert np.allclose(transform_matrix(ViewportState(), (1500, 500)), np.eye(3))


def test_transform_scales_about_centre_then_pans():
    vp = Viewport()
    for _ in range(10):
        vp.zoom_in()  # 2.0
    size = (100, 100)
    assert vp.to_screen((50, 50), size) == pytest.approx((50.0, 50.0))
    assert vp.to_screen((60, 50), size) == pytest.approx((70.0, 50.0))
    vp.begin_drag(0, 0)
    vp.drag_to(5, 0)
    vp.end_drag()
    # Pan is applied in unscaled pointer pixels
    assert vp.to_screen((60, 50), size) == pytest.approx((75.0, 50.0))
    assert vp.to_scene((75.0, 50.0), size) == pytest.approx((60.0, 50.0))
