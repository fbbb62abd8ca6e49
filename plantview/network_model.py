"""Process network model for the live schematic.

The topology (which components exist, where they sit and how flow paths
connect them) is loaded once from JSON and never changes afterwards.  Only
the runtime fields mutate: node readings, edge flow rates and the statuses
derived from them.  All mutation goes through :meth:`NetworkModel.set_node_value`
and :meth:`NetworkModel.set_edge_flow`, which clamp the new value and
re-derive the status in the same step.

Connectivity is mirrored into a :mod:`networkx` directed graph so the
details panel can ask for upstream and downstream stages.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import networkx as nx
import pandas as pd

from .config import DEFAULT_TOPOLOGY_PATH
from .errors import NotFound
from .geometry import Path as PathPoints, as_path, midpoint
from .status import (
    NodeKind,
    ReadingDomain,
    Status,
    clamp,
    clamp_flow,
    derive_edge_status,
    derive_node_status,
    reading_domain,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeGeometry:
    """Bounding box of a component in scene coordinates."""

    x: float
    y: float
    width: float
    height: float
    rotation: Optional[float] = None

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


@dataclass
class Node:
    """A process component in the schematic."""

    id: str
    kind: NodeKind
    label: str
    geometry: NodeGeometry
    status: Status = Status.NORMAL
    value: Optional[float] = None
    unit: Optional[str] = None

    @property
    def domain(self) -> ReadingDomain:
        return reading_domain(self.kind, self.label)

    @property
    def has_reading(self) -> bool:
        return self.value is not None


@dataclass
class Edge:
    """A directed flow path between two process stages."""

    id: str
    source: str  # upstream node id
    target: str  # downstream node id
    path: PathPoints = field(default_factory=tuple)
    flow_rate: Optional[float] = None
    status: Status = Status.INACTIVE

    @property
    def is_closed(self) -> bool:
        """Closed paths carry no flow and stay inactive for good."""
        return self.flow_rate is None

    @property
    def label_anchor(self) -> Tuple[float, float]:
        return midpoint(self.path)


class NetworkModel:
    """Fixed process topology with mutable telemetry fields.

    Nodes keep their insertion order, which is also the draw order: later
    nodes are drawn on top and win hit tests.
    """

    def __init__(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        name: str = "network",
        canvas: Tuple[float, float] = (1500.0, 500.0),
    ) -> None:
        self.name = name
        self.canvas = canvas
        self._graph = nx.DiGraph()
        self._nodes: Dict[str, Node] = {}
        self._edges: Dict[str, Edge] = {}
        for node in nodes:
            self._add_node(node)
        for edge in edges:
            self._add_edge(edge)
        # Defaults are captured before anything can mutate the runtime fields
        self._node_defaults = {n.id: copy.deepcopy(n) for n in self._nodes.values()}
        self._edge_defaults = {e.id: copy.deepcopy(e) for e in self._edges.values()}
        self.initialize()

    def _add_node(self, node: Node) -> None:
        if node.id in self._nodes:
            raise ValueError(f"Duplicate node id {node.id}")
        self._nodes[node.id] = node
        self._graph.add_node(node.id, kind=node.kind.value, label=node.label)

    def _add_edge(self, edge: Edge) -> None:
        if edge.id in self._edges:
            raise ValueError(f"Duplicate edge id {edge.id}")
        if edge.source not in self._nodes or edge.target not in self._nodes:
            raise ValueError(f"Undefined nodes in edge {edge.id}: {edge.source} -> {edge.target}")
        if len(edge.path) < 2:
            raise ValueError(f"Edge {edge.id} path needs at least two points, got {len(edge.path)}")
        self._edges[edge.id] = edge
        self._graph.add_edge(edge.source, edge.target, id=edge.id)

    @property
    def graph(self) -> nx.DiGraph:
        """Expose the underlying NetworkX directed graph."""

        return self._graph

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    def initialize(self) -> Tuple[List[Node], List[Edge]]:
        """Restore every runtime field to its topology default.

        Readings go back to the values in the topology file and statuses are
        derived from them.  Tanks and filters take their configured status,
        closed edges are inactive.

        :returns: The ``(nodes, edges)`` lists in topology order.
        """
        for node_id, default in self._node_defaults.items():
            node = self._nodes[node_id]
            node.value = None if default.value is None else clamp(default.value, default.domain)
            node.status = derive_node_status(node.kind, node.label, node.value, default.status)
        for edge_id, default in self._edge_defaults.items():
            edge = self._edges[edge_id]
            edge.flow_rate = None if default.flow_rate is None else clamp_flow(default.flow_rate)
            edge.status = derive_edge_status(edge.flow_rate)
        return self.nodes, self.edges

    def get_node(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NotFound("node", node_id) from None

    def get_edge(self, edge_id: str) -> Edge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise NotFound("edge", edge_id) from None

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def set_node_value(self, node_id: str, value: float) -> Node:
        """Store a new reading for a node, clamped to its domain, and re-derive status.

        :raises NotFound: If ``node_id`` is unknown.
        :raises ValueError: If the node carries no reading.
        """
        node = self.get_node(node_id)
        if node.value is None:
            raise ValueError(f"Node {node_id} has no reading to update")
        node.value = clamp(value, node.domain)
        node.status = derive_node_status(node.kind, node.label, node.value, node.status)
        return node

    def set_edge_flow(self, edge_id: str, flow_rate: float) -> Edge:
        """Store a new flow rate, clamped to be non-negative, and re-derive status.

        :raises NotFound: If ``edge_id`` is unknown.
        :raises ValueError: If the edge is a closed path.
        """
        edge = self.get_edge(edge_id)
        if edge.is_closed:
            raise ValueError(f"Edge {edge_id} is closed and carries no flow")
        edge.flow_rate = clamp_flow(flow_rate)
        edge.status = derive_edge_status(edge.flow_rate)
        return edge

    def upstream(self, node_id: str) -> List[str]:
        self.get_node(node_id)
        return list(self._graph.predecessors(node_id))

    def downstream(self, node_id: str) -> List[str]:
        self.get_node(node_id)
        return list(self._graph.successors(node_id))

    def incident_edges(self, node_id: str) -> List[Edge]:
        """Flow paths entering or leaving ``node_id``, in topology order."""
        self.get_node(node_id)
        return [e for e in self._edges.values() if node_id in (e.source, e.target)]

    def hit_test(self, x: float, y: float) -> Optional[str]:
        """Return the id of the topmost node under the scene point, if any."""
        for node in reversed(self.nodes):
            if node.geometry.contains(x, y):
                return node.id
        return None

    def status_counts(self) -> Dict[str, int]:
        """Number of nodes in each status, for the legend."""
        counts = {status.value: 0 for status in Status}
        for node in self._nodes.values():
            counts[node.status.value] += 1
        return counts

    def to_frame(self) -> pd.DataFrame:
        """Current state of every node and edge as one long table."""
        rows: List[Dict[str, Any]] = []
        for node in self._nodes.values():
            rows.append(
                {
                    "element": "node",
                    "id": node.id,
                    "kind": node.kind.value,
                    "label": node.label,
                    "value": node.value,
                    "unit": node.unit,
                    "status": node.status.value,
                }
            )
        for edge in self._edges.values():
            rows.append(
                {
                    "element": "edge",
                    "id": edge.id,
                    "kind": "flow",
                    "label": f"{edge.source} -> {edge.target}",
                    "value": edge.flow_rate,
                    "unit": "gal/min",
                    "status": edge.status.value,
                }
            )
        return pd.DataFrame(rows, columns=["element", "id", "kind", "label", "value", "unit", "status"])


def _parse_node(node_info: Dict[str, Any]) -> Node:
    node_id = node_info.get("id")
    kind = node_info.get("kind")
    if not node_id or not kind:
        raise ValueError(f"Node entry must define id and kind: {node_info}")
    try:
        node_kind = NodeKind(kind)
    except ValueError:
        raise ValueError(f"Node {node_id} has unknown kind {kind!r}") from None
    try:
        geometry = NodeGeometry(
            x=float(node_info["x"]),
            y=float(node_info["y"]),
            width=float(node_info["width"]),
            height=float(node_info["height"]),
            rotation=None if node_info.get("rotation") is None else float(node_info["rotation"]),
        )
    except KeyError as exc:
        raise ValueError(f"Node {node_id} is missing geometry field {exc.args[0]!r}") from None
    value = node_info.get("value")
    return Node(
        id=node_id,
        kind=node_kind,
        label=node_info.get("label", node_id),
        geometry=geometry,
        status=Status(node_info.get("status", Status.NORMAL.value)),
        value=None if value is None else float(value),
        unit=node_info.get("unit"),
    )


def _parse_edge(edge_info: Dict[str, Any]) -> Edge:
    eid = edge_info.get("id")
    source = edge_info.get("source")
    target = edge_info.get("target")
    if not eid or not source or not target:
        raise ValueError(f"Edge entry must define id, source and target: {edge_info}")
    if "path" not in edge_info:
        raise ValueError(f"Edge {eid} must define a path")
    flow_rate = edge_info.get("flow_rate")
    return Edge(
        id=eid,
        source=source,
        target=target,
        path=as_path(edge_info["path"]),
        flow_rate=None if flow_rate is None else float(flow_rate),
    )


def network_from_dict(topo: Dict[str, Any]) -> NetworkModel:
    """Construct a :class:`NetworkModel` from a decoded topology document."""
    nodes = [_parse_node(info) for info in topo.get("nodes", [])]
    edges = [_parse_edge(info) for info in topo.get("edges", [])]
    canvas = topo.get("canvas", {})
    model = NetworkModel(
        nodes,
        edges,
        name=topo.get("name", "network"),
        canvas=(float(canvas.get("width", 1500)), float(canvas.get("height", 500))),
    )
    logger.debug(f"Built network {model.name!r} with {len(nodes)} nodes and {len(edges)} edges")
    return model


def build_network(path: Union[str, Path]) -> NetworkModel:
    """Load a schematic topology from a JSON file.

    The JSON file must contain a top-level ``nodes`` list whose entries give
    ``id``, ``kind``, ``label`` and the ``x``/``y``/``width``/``height`` box,
    plus optional ``rotation``, ``value``, ``unit`` and ``status``.  The
    ``edges`` list gives ``id``, ``source``, ``target``, a ``path`` (SVG
    ``M``/``L`` data or a list of points) and an optional ``flow_rate``;
    edges with a null flow rate are closed.

    :param path: Path to the JSON file.
    :returns: A :class:`NetworkModel` at its initial state.
    :raises ValueError: If the topology is malformed.
    """
    with open(path, "r", encoding="utf-8") as f:
        topo = json.load(f)
    return network_from_dict(topo)


def default_network() -> NetworkModel:
    """The bundled water-treatment plant topology."""
    return build_network(DEFAULT_TOPOLOGY_PATH)


__all__ = [
    "NodeGeometry",
    "Node",
    "Edge",
    "NetworkModel",
    "network_from_dict",
    "build_network",
    "default_network",
]
