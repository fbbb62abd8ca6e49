"""
plantview

Live simulation and viewport interaction engine behind the water-treatment
system schematic: a typed process network with stochastic telemetry,
threshold-driven health statuses, and pan/zoom/selection state for the
diagram view.
"""

from .config import ViewConfig, load_config
from .errors import DegenerateGeometry, NotFound, PlantViewError
from .geometry import midpoint, parse_path
from .network_model import Edge, NetworkModel, Node, NodeGeometry, build_network, default_network
from .selection import GestureRouter, SelectionController
from .sim import TelemetrySimulator, TickReport, TickScheduler
from .status import NodeKind, Status, derive_edge_status, derive_node_status
from .view import RenderFrame, SchematicView
from .viewport import Viewport, ViewportState

__version__ = "0.1.0"

__all__ = [
    'ViewConfig',
    'load_config',
    'PlantViewError',
    'NotFound',
    'DegenerateGeometry',
    'midpoint',
    'parse_path',
    'Node',
    'NodeGeometry',
    'Edge',
    'NetworkModel',
    'build_network',
    'default_network',
    'NodeKind',
    'Status',
    'derive_node_status',
    'derive_edge_status',
    'TelemetrySimulator',
    'TickReport',
    'TickScheduler',
    'Viewport',
    'ViewportState',
    'SelectionController',
    'GestureRouter',
    'RenderFrame',
    'SchematicView',
]
