"""Plotly rendering of a schematic :class:`~plantview.view.RenderFrame`."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import numpy as np
import plotly.graph_objects as go

from ..status import Status
from ..view import EdgeSnapshot, NodeSnapshot, RenderFrame


STATUS_COLOURS: Dict[Status, str] = {
    Status.NORMAL: "#10B981",
    Status.WARNING: "#F59E0B",
    Status.CRITICAL: "#EF4444",
    Status.INACTIVE: "#9CA3AF",
}
WATER_COLOUR = "#60A5FA"
OUTLINE_COLOUR = "#374151"
SELECTED_COLOUR = "#3B82F6"


def status_colour(status: Status) -> str:
    return STATUS_COLOURS.get(status, STATUS_COLOURS[Status.INACTIVE])


def format_value(node: NodeSnapshot) -> str:
    """Reading as printed under a component: sensors keep one decimal."""
    if node.value is None:
        return ""
    digits = 1 if node.kind == "sensor" else 0
    return f"{node.value:.{digits}f}{node.unit or ''}"


def _visible_window(frame: RenderFrame) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Scene-space x and y ranges visible through the viewport transform."""
    inverse = np.linalg.inv(np.array(frame.transform))
    w, h = frame.size
    x0, y0, _ = inverse @ np.array([0.0, 0.0, 1.0])
    x1, y1, _ = inverse @ np.array([w, h, 1.0])
    # The frame size is in screen pixels; scale it onto the scene canvas
    sx = frame.canvas[0] / w
    sy = frame.canvas[1] / h
    return (x0 * sx, x1 * sx), (y0 * sy, y1 * sy)


def _edge_traces(edge: EdgeSnapshot) -> List[Any]:
    xs = [p[0] for p in edge.path]
    ys = [p[1] for p in edge.path]
    rate = "closed" if edge.flow_rate is None else "%.1f gal/min" % edge.flow_rate
    traces = [
        go.Scatter(
            x=xs,
            y=ys,
            mode="lines",
            line=dict(
                color=status_colour(edge.status),
                width=6,
                dash="dash" if edge.flowing else "solid",
            ),
            hovertemplate="Flow %s<br>%s<br>Status: %s<extra></extra>" % (edge.id, rate, edge.status.value),
            showlegend=False,
        )
    ]
    if edge.shows_label:
        ax, ay = edge.label_anchor
        traces.append(
            go.Scatter(
                x=[ax],
                y=[ay - 10],
                mode="text",
                text=["%.0f gal/min" % edge.flow_rate],
                textfont=dict(size=10),
                hoverinfo="skip",
                showlegend=False,
            )
        )
    return traces


def _node_shapes(node: NodeSnapshot) -> List[Dict[str, Any]]:
    g = node.geometry
    outline = dict(
        color=SELECTED_COLOUR if node.selected else OUTLINE_COLOUR,
        width=3 if node.selected else 1,
    )
    box = dict(x0=g.x, y0=g.y, x1=g.x + g.width, y1=g.y + g.height, layer="above")
    if node.kind == "sensor":
        return [dict(type="circle", fillcolor=status_colour(node.status), line=outline, **box)]
    if node.kind == "tank":
        level = max(0.0, min(100.0, node.value or 0.0)) / 100.0 * g.height
        water = dict(
            type="rect",
            x0=g.x,
            x1=g.x + g.width,
            y0=g.y + g.height - level,
            y1=g.y + g.height,
            fillcolor=WATER_COLOUR,
            line=dict(width=0),
            layer="above",
        )
        return [water, dict(type="rect", fillcolor="rgba(0,0,0,0)", line=dict(outline, width=2), **box)]
    return [dict(type="rect", fillcolor=status_colour(node.status), line=outline, **box)]


def _node_trace(nodes: Tuple[NodeSnapshot, ...]) -> Any:
    """Invisible markers on node centres carrying ids for hover and click."""
    xs, ys, labels, custom = [], [], [], []
    for node in nodes:
        cx, cy = node.geometry.center
        xs.append(cx)
        ys.append(cy)
        value = format_value(node)
        labels.append(node.label + ("<br>" + value if value else ""))
        custom.append((node.id, node.kind, node.status.value))
    return go.Scatter(
        x=xs,
        y=ys,
        mode="markers",
        marker=dict(size=18, opacity=0.0),
        text=labels,
        customdata=custom,
        hovertemplate="%{text}<br>Type: %{customdata[1]}<br>Status: %{customdata[2]}<extra></extra>",
        showlegend=False,
    )


def _label_trace(nodes: Tuple[NodeSnapshot, ...]) -> Any:
    xs, ys, texts = [], [], []
    for node in nodes:
        g = node.geometry
        xs.append(g.x + g.width / 2.0)
        ys.append(g.y + g.height + 15)
        texts.append(node.label)
        value = format_value(node)
        if value and node.kind != "filter":
            xs.append(g.x + g.width / 2.0)
            ys.append(g.y + g.height + 30)
            texts.append(value)
    return go.Scatter(
        x=xs,
        y=ys,
        mode="text",
        text=texts,
        textfont=dict(size=10),
        hoverinfo="skip",
        showlegend=False,
    )


def build_schematic_figure(frame: RenderFrame, title: str = "System Schematic") -> Any:
    """Create a Plotly figure for one render frame.

    Flow paths are drawn first and components on top, matching the hit-test
    order of the model.  Axis ranges follow the viewport, so pan and zoom in
    the frame show up as the visible window of the figure.
    """
    data: List[Any] = []
    for edge in frame.edges:
        data.extend(_edge_traces(edge))
    data.append(_label_trace(frame.nodes))
    data.append(_node_trace(frame.nodes))

    shapes: List[Dict[str, Any]] = []
    for node in frame.nodes:
        shapes.extend(_node_shapes(node))

    (x0, x1), (y0, y1) = _visible_window(frame)
    fig = go.Figure(data=data)
    fig.update_layout(
        title="%s (zoom %d%%, tick %d)" % (title, frame.zoom_percent, frame.tick),
        shapes=shapes,
        # SVG-style coordinates: y grows downward
        xaxis=dict(showgrid=False, zeroline=False, visible=False, range=[x0, x1]),
        yaxis=dict(showgrid=False, zeroline=False, visible=False, range=[y1, y0], scaleanchor="x", scaleratio=1),
        margin=dict(l=20, r=20, t=60, b=20),
        template="plotly_white",
        showlegend=False,
        dragmode=False,
    )
    return fig


__all__ = ["build_schematic_figure", "status_colour", "format_value", "STATUS_COLOURS"]
