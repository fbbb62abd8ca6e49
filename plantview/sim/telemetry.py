"""Stochastic telemetry for the live schematic.

Each tick walks every node reading and every open flow path.  An element
is picked for update by an independent Bernoulli trial; picked elements get
a uniform random delta, are clamped back into their valid domain and have
their status re-derived.  There is no coupling between elements and no
conservation of flow: the walk only has to look plausible on screen.

The random source is injected.  Anything with ``random()`` and
``uniform(low, high)`` works, which covers :class:`numpy.random.Generator`
in production and small scripted fakes in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Tuple

import numpy as np

from ..config import ViewConfig
from ..network_model import Edge, NetworkModel, Node
from ..status import ReadingDomain, Status


logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def random(self) -> float: ...

    def uniform(self, low: float, high: float) -> float: ...


@dataclass(frozen=True)
class TickReport:
    """What a single tick changed."""

    tick: int
    timestamp: datetime
    updated_nodes: Tuple[str, ...]
    updated_edges: Tuple[str, ...]
    skipped: Tuple[str, ...]  # elements whose update raised

    @property
    def changed(self) -> bool:
        return bool(self.updated_nodes or self.updated_edges)


class TelemetrySimulator:
    """
    Applies one round of random telemetry drift per :meth:`tick`.
    """

    def __init__(
        self,
        model: NetworkModel,
        config: Optional[ViewConfig] = None,
        rng: Optional[RandomSource] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the simulator.

        Args:
            model: Network whose readings are mutated
            config: View configuration (uses defaults if None)
            rng: Random source; a numpy generator seeded from ``config.seed`` if None
            clock: Returns the wall-clock time stamped on each tick
        """
        self.model = model
        self.config = config or ViewConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.clock = clock
        self.tick_count = 0
        self.last_updated = clock()

    def amplitude_for(self, domain: ReadingDomain) -> float:
        """Half-width of the uniform delta applied to a reading in ``domain``."""
        if domain is ReadingDomain.PERCENT:
            return self.config.percent_amplitude
        if domain is ReadingDomain.FLOW:
            return self.config.flow_amplitude
        return self.config.concentration_amplitude

    def _draw_delta(self, amplitude: float) -> Optional[float]:
        """Run the Bernoulli trial; return a delta when the element is picked."""
        if self.rng.random() >= self.config.update_probability:
            return None
        return float(self.rng.uniform(-amplitude, amplitude))

    def _update_node(self, node: Node) -> bool:
        delta = self._draw_delta(self.amplitude_for(node.domain))
        if delta is None:
            return False
        self.model.set_node_value(node.id, node.value + delta)
        return True

    def _update_edge(self, edge: Edge) -> bool:
        delta = self._draw_delta(self.config.flow_amplitude)
        if delta is None:
            return False
        self.model.set_edge_flow(edge.id, edge.flow_rate + delta)
        return True

    def tick(self) -> TickReport:
        """Apply one update round to the whole network.

        A failure on one element is logged and that element is skipped; the
        rest of the network still updates.  The tick itself never raises.
        """
        updated_nodes: List[str] = []
        updated_edges: List[str] = []
        skipped: List[str] = []

        for node in self.model.nodes:
            if not node.has_reading:
                continue
            try:
                if self._update_node(node):
                    updated_nodes.append(node.id)
            except Exception:
                logger.exception(f"Skipping node {node.id} on tick {self.tick_count + 1}")
                skipped.append(node.id)

        for edge in self.model.edges:
            if edge.is_closed or edge.status is Status.INACTIVE:
                continue
            try:
                if self._update_edge(edge):
                    updated_edges.append(edge.id)
            except Exception:
                logger.exception(f"Skipping edge {edge.id} on tick {self.tick_count + 1}")
                skipped.append(edge.id)

        self.tick_count += 1
        self.last_updated = self.clock()
        logger.debug(
            f"Tick {self.tick_count}: {len(updated_nodes)} nodes, "
            f"{len(updated_edges)} edges updated, {len(skipped)} skipped"
        )
        return TickReport(
            tick=self.tick_count,
            timestamp=self.last_updated,
            updated_nodes=tuple(updated_nodes),
            updated_edges=tuple(updated_edges),
            skipped=tuple(skipped),
        )

    def run(self, ticks: int) -> List[TickReport]:
        """Run ``ticks`` updates back to back."""
        return [self.tick() for _ in range(ticks)]
