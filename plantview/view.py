"""One live schematic session.

:class:`SchematicView` wires the network model, telemetry, viewport,
selection and gesture routing together and hands the renderer immutable
:class:`RenderFrame` snapshots.  The renderer only ever reads frames; all
mutation goes through the view's methods.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .config import ViewConfig, load_config
from .geometry import Path as PathPoints
from .network_model import NetworkModel, NodeGeometry, build_network
from .selection import GestureRouter, NodeDetails, SelectionController
from .sim import RandomSource, TelemetrySimulator, TickReport, TickScheduler
from .status import Status
from .viewport import Viewport


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeSnapshot:
    id: str
    kind: str
    label: str
    geometry: NodeGeometry
    status: Status
    value: Optional[float]
    unit: Optional[str]
    selected: bool


@dataclass(frozen=True)
class EdgeSnapshot:
    id: str
    source: str
    target: str
    path: PathPoints
    status: Status
    flow_rate: Optional[float]
    label_anchor: Tuple[float, float]

    @property
    def flowing(self) -> bool:
        return self.status is not Status.INACTIVE

    @property
    def shows_label(self) -> bool:
        """Flow labels are drawn only on open paths with a non-zero rate."""
        return self.flowing and bool(self.flow_rate)


@dataclass(frozen=True)
class RenderFrame:
    """Everything the renderer needs for one frame."""

    nodes: Tuple[NodeSnapshot, ...]
    edges: Tuple[EdgeSnapshot, ...]
    canvas: Tuple[float, float]
    size: Tuple[float, float]
    zoom: float
    pan: Tuple[float, float]
    transform: Tuple[Tuple[float, float, float], ...]
    dragging: bool
    selected_node_id: Optional[str]
    tick: int
    last_updated: datetime

    @property
    def zoom_percent(self) -> int:
        return int(round(self.zoom * 100))


class SchematicView:
    """
    Live schematic session: model, telemetry, viewport and selection.
    """

    def __init__(
        self,
        config: Optional[ViewConfig] = None,
        model: Optional[NetworkModel] = None,
        rng: Optional[RandomSource] = None,
    ):
        """
        Initialize the view.

        Args:
            config: View configuration (the bundled ``config.yml`` if None)
            model: Network to display (loaded from ``config.topology_path`` if None)
            rng: Random source for telemetry (seeded from config if None)
        """
        self.config = config or load_config()
        self.model = model or build_network(self.config.topology_path)
        self.simulator = TelemetrySimulator(self.model, self.config, rng=rng)
        self.scheduler = TickScheduler(self.tick, self.config.refresh_interval_ms)
        self.viewport = Viewport(self.config)
        self.selection = SelectionController(self.model)
        self.gestures = GestureRouter(self.viewport, self.selection, self.model.canvas)
        self.last_report: Optional[TickReport] = None
        self._tick_listeners: List[Callable[[TickReport], None]] = []

    def add_tick_listener(self, listener: Callable[[TickReport], None]) -> None:
        """Call ``listener`` with the report of every completed tick."""
        self._tick_listeners.append(listener)

    def tick(self) -> TickReport:
        self.last_report = self.simulator.tick()
        for listener in self._tick_listeners:
            try:
                listener(self.last_report)
            except Exception:
                logger.exception(f"Tick listener {listener!r} failed on tick {self.last_report.tick}")
        return self.last_report

    def start(self) -> None:
        """Start live updates.  Call from inside a running asyncio loop."""
        self.scheduler.start()

    def set_refresh_interval(self, refresh_interval_ms: int) -> None:
        """Change the tick period without touching the network state."""
        self.config = self.config.with_refresh_interval(refresh_interval_ms)
        self.simulator.config = self.config
        self.viewport.config = self.config
        self.scheduler.set_interval(self.config.refresh_interval_ms)
        logger.info(f"Refresh interval set to {self.config.refresh_interval_ms} ms")

    def close(self) -> None:
        """Stop updates and drop the session's viewport and selection state."""
        self.scheduler.stop()
        self.gestures.pointer_cancel()
        self.viewport.reset()
        self.selection.clear()

    def details(self) -> Optional[NodeDetails]:
        return self.selection.details()

    def snapshot(self, size: Optional[Tuple[float, float]] = None) -> RenderFrame:
        """Capture the current state for one render pass.

        :param size: Pixel size of the drawing area; the scene canvas size if omitted.
        """
        size = size or self.model.canvas
        selected = self.selection.selected_node_id
        nodes = tuple(
            NodeSnapshot(
                id=n.id,
                kind=n.kind.value,
                label=n.label,
                geometry=n.geometry,
                status=n.status,
                value=n.value,
                unit=n.unit,
                selected=n.id == selected,
            )
            for n in self.model.nodes
        )
        edges = tuple(
            EdgeSnapshot(
                id=e.id,
                source=e.source,
                target=e.target,
                path=e.path,
                status=e.status,
                flow_rate=e.flow_rate,
                label_anchor=e.label_anchor,
            )
            for e in self.model.edges
        )
        matrix = self.viewport.matrix(size)
        return RenderFrame(
            nodes=nodes,
            edges=edges,
            canvas=self.model.canvas,
            size=(float(size[0]), float(size[1])),
            zoom=self.viewport.zoom,
            pan=self.viewport.pan,
            transform=tuple(tuple(float(v) for v in row) for row in matrix),
            dragging=self.viewport.dragging,
            selected_node_id=selected,
            tick=self.simulator.tick_count,
            last_updated=self.simulator.last_updated,
        )
