"""Tests for the status derivation rules and clamping."""

import pytest

from plantview.status import (
    NODE_RULES,
    NodeKind,
    ReadingDomain,
    Status,
    clamp,
    clamp_flow,
    derive_edge_status,
    derive_node_status,
    is_flow_label,
    reading_domain,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (0.0, Status.INACTIVE),
        (9.9, Status.INACTIVE),
        (10.0, Status.WARNING),
        (49.9, Status.WARNING),
        (50.0, Status.NORMAL),
        (95.0, Status.NORMAL),
        (95.1, Status.WARNING),
        (100.0, Status.WARNING),
    ],
)
def test_pump_and_valve_bands(value, expected):
    """Pumps and valves share the four-band percentage rule, boundaries included."""
    assert derive_node_status(NodeKind.PUMP, "Primary Pump 1", value, Status.NORMAL) is expected
    assert derive_node_status(NodeKind.VALVE, "Intake Valve", value, Status.NORMAL) is expected


@pytest.mark.parametrize(
    "value, expected",
    [(99.9, Status.WARNING), (100.0, Status.NORMAL), (350.0, Status.NORMAL), (350.1, Status.CRITICAL)],
)
def test_flow_sensor_bands(value, expected):
    assert derive_node_status(NodeKind.SENSOR, "Output Flow", value, Status.NORMAL) is expected


@pytest.mark.parametrize(
    "value, expected",
    [(0.49, Status.WARNING), (0.5, Status.NORMAL), (2.0, Status.NORMAL), (2.01, Status.CRITICAL)],
)
def test_concentration_sensor_bands(value, expected):
    assert derive_node_status(NodeKind.SENSOR, "Chlorine", value, Status.NORMAL) is expected


def test_tank_and_filter_keep_configured_status():
    """Maintenance states set from outside survive any reading."""
    assert derive_node_status(NodeKind.TANK, "Raw Water Basin", 3.0, Status.CRITICAL) is Status.CRITICAL
    assert derive_node_status(NodeKind.FILTER, "Coagulation", 99.0, Status.INACTIVE) is Status.INACTIVE


def test_node_without_reading_keeps_status():
    assert derive_node_status(NodeKind.PUMP, "Pump", None, Status.WARNING) is Status.WARNING


@pytest.mark.parametrize(
    "flow_rate, expected",
    [
        (None, Status.INACTIVE),
        (0.0, Status.WARNING),
        (99.9, Status.WARNING),
        (100.0, Status.NORMAL),
        (285.0, Status.NORMAL),
        (350.0, Status.NORMAL),
        (350.1, Status.CRITICAL),
    ],
)
def test_edge_status(flow_rate, expected):
    assert derive_edge_status(flow_rate) is expected


def test_every_kind_has_a_rule():
    assert set(NODE_RULES) == set(NodeKind)


def test_reading_domain_and_clamp():
    assert reading_domain(NodeKind.SENSOR, "Intake Flow") is ReadingDomain.FLOW
    assert reading_domain(NodeKind.SENSOR, "Chlorine") is ReadingDomain.CONCENTRATION
    assert reading_domain(NodeKind.TANK, "Raw Water Basin") is ReadingDomain.PERCENT
    assert clamp(104.2, ReadingDomain.PERCENT) == 100.0
    assert clamp(-3.0, ReadingDomain.PERCENT) == 0.0
    assert clamp(812.0, ReadingDomain.FLOW) == 812.0
    assert clamp(-0.2, ReadingDomain.CONCENTRATION) == 0.0
    assert clamp_flow(-12.0) == 0.0


def test_flow_label_match_is_case_sensitive():
    assert is_flow_label("Intake Flow")
    assert not is_flow_label("Outflow Turbidity")
    assert reading_domain(NodeKind.SENSOR, "Outflow Turbidity") is ReadingDomain.CONCENTRATION
