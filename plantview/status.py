"""Health status rules for schematic elements.

Every node kind maps to exactly one rule in :data:`NODE_RULES`.  A rule
takes the node label, its current reading and its current status and
returns the status the node should show.  Tanks and filters keep whatever
status they were configured with (maintenance or offline states are set
outside the simulator); the remaining kinds derive their status from the
reading alone.

Readings are also clamped here: percentages live in ``[0, 100]`` and flow
or concentration readings never go below zero.  Clamping is applied to
every mutation, so an out-of-domain value is never stored.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional


class NodeKind(str, Enum):
    PUMP = "pump"
    VALVE = "valve"
    TANK = "tank"
    SENSOR = "sensor"
    FILTER = "filter"


class Status(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"
    INACTIVE = "inactive"


class ReadingDomain(str, Enum):
    """Physical meaning of a node reading, which fixes its clamp range."""

    PERCENT = "percent"
    FLOW = "flow"
    CONCENTRATION = "concentration"


PERCENT_MIN = 0.0
PERCENT_MAX = 100.0


def is_flow_label(label: str) -> bool:
    """Sensors whose label contains ``Flow`` (case-sensitive) use the flow thresholds."""
    return "Flow" in label


def reading_domain(kind: NodeKind, label: str) -> ReadingDomain:
    if kind is NodeKind.SENSOR:
        return ReadingDomain.FLOW if is_flow_label(label) else ReadingDomain.CONCENTRATION
    return ReadingDomain.PERCENT


def clamp(value: float, domain: ReadingDomain) -> float:
    """Force ``value`` into the valid range of ``domain``."""
    if domain is ReadingDomain.PERCENT:
        return max(PERCENT_MIN, min(PERCENT_MAX, float(value)))
    return max(0.0, float(value))


def clamp_flow(flow_rate: float) -> float:
    return max(0.0, float(flow_rate))


def percentage_status(value: float) -> Status:
    """Four-band rule for pumps and valves (value is percent open/capacity)."""
    if value < 10:
        return Status.INACTIVE
    if value < 50:
        return Status.WARNING
    if value > 95:
        return Status.WARNING
    return Status.NORMAL


def flow_status(value: float) -> Status:
    """Three-band rule for flow readings in gal/min."""
    if value < 100:
        return Status.WARNING
    if value > 350:
        return Status.CRITICAL
    return Status.NORMAL


def concentration_status(value: float) -> Status:
    """Three-band rule for dosing sensors such as chlorine (mg/L)."""
    if value < 0.5:
        return Status.WARNING
    if value > 2.0:
        return Status.CRITICAL
    return Status.NORMAL


NodeRule = Callable[[str, float, Status], Status]


def _percentage_rule(label: str, value: float, current: Status) -> Status:
    return percentage_status(value)


def _sensor_rule(label: str, value: float, current: Status) -> Status:
    if is_flow_label(label):
        return flow_status(value)
    return concentration_status(value)


def _configured_rule(label: str, value: float, current: Status) -> Status:
    return current


NODE_RULES: Dict[NodeKind, NodeRule] = {
    NodeKind.PUMP: _percentage_rule,
    NodeKind.VALVE: _percentage_rule,
    NodeKind.SENSOR: _sensor_rule,
    NodeKind.TANK: _configured_rule,
    NodeKind.FILTER: _configured_rule,
}

_unmapped = set(NodeKind) - set(NODE_RULES)
if _unmapped:  # pragma: no cover - guards against adding a kind without a rule
    raise RuntimeError(f"No status rule for node kinds: {sorted(k.value for k in _unmapped)}")


def derive_node_status(kind: NodeKind, label: str, value: Optional[float], current: Status) -> Status:
    """Return the status a node should show for its current reading.

    Nodes without a reading keep their current status.
    """
    if value is None:
        return current
    return NODE_RULES[kind](label, value, current)


def derive_edge_status(flow_rate: Optional[float]) -> Status:
    """Edges with no declared flow are closed and always inactive."""
    if flow_rate is None:
        return Status.INACTIVE
    return flow_status(flow_rate)


__all__ = [
    "NodeKind",
    "Status",
    "ReadingDomain",
    "NODE_RULES",
    "reading_domain",
    "clamp",
    "clamp_flow",
    "percentage_status",
    "flow_status",
    "concentration_status",
    "derive_node_status",
    "derive_edge_status",
]
