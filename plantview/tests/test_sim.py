"""Tests for the telemetry simulator and the tick scheduler."""

import asyncio
import copy
from datetime import datetime

import numpy as np

from plantview.config import ViewConfig
from plantview.network_model import default_network
from plantview.sim import TelemetrySimulator, TickScheduler
from plantview.status import ReadingDomain, Status


def test_zero_ticks_leave_model_untouched(model, config):
    """Constructing a simulator must not change anything by itself."""
    before = copy.deepcopy(model.initialize())
    TelemetrySimulator(model, config)
    assert (model.nodes, model.edges) == before
    assert (model.nodes, model.edges) == default_network().initialize()


def test_pump_scenario_with_forced_deltas(model, config, scripted_rng):
    """90 -> +10 clamps at 100 (warning), -90 lands on 10 (warning), -1 more is inactive."""
    sim = TelemetrySimulator(model, config, rng=scripted_rng(10.0))
    assert model.get_node("pump1").status is Status.NORMAL

    sim.tick()
    pump = model.get_node("pump1")
    assert pump.value == 100.0
    assert pump.status is Status.WARNING

    sim.rng = scripted_rng(-90.0)
    sim.tick()
    assert pump.value == 10.0
    assert pump.status is Status.WARNING

    sim.rng = scripted_rng(-1.0)
    sim.tick()
    assert pump.value == 9.0
    assert pump.status is Status.INACTIVE
    assert sim.tick_count == 3


def test_extreme_deltas_never_leave_domain(model, config, scripted_rng):
    sim = TelemetrySimulator(model, config, rng=scripted_rng(1e6))
    sim.run(5)
    for node in model.nodes:
        if node.value is not None and node.domain is ReadingDomain.PERCENT:
            assert node.value == 100.0, f"{node.id} escaped the percentage range"
    sim.rng = scripted_rng(-1e6)
    sim.run(5)
    for node in model.nodes:
        if node.value is not None:
            assert node.value >= 0.0, f"{node.id} went negative"
    for edge in model.edges:
        assert edge.flow_rate is None or edge.flow_rate >= 0.0


def test_random_walk_stays_in_domain(model):
    sim = TelemetrySimulator(model, ViewConfig(seed=0, update_probability=1.0, percent_amplitude=40.0))
    sim.run(200)
    for node in model.nodes:
        if node.value is not None and node.domain is ReadingDomain.PERCENT:
            assert 0.0 <= node.value <= 100.0


def test_closed_paths_and_configured_nodes_are_left_alone(model, config, scripted_rng):
    sim = TelemetrySimulator(model, config, rng=scripted_rng(-500.0))
    report = sim.tick()
    assert "flow11" not in report.updated_edges
    assert model.get_edge("flow11").flow_rate is None
    assert model.get_edge("flow11").status is Status.INACTIVE
    assert "filter1" not in report.updated_nodes
    # Tank level drops to empty but its configured status stays
    assert model.get_node("tank1").value == 0.0
    assert model.get_node("tank1").status is Status.NORMAL
    # Open paths at zero flow show a warning, they are not closed
    assert model.get_edge("flow1").status is Status.WARNING


def test_no_element_picked_when_draw_exceeds_probability(model, config, scripted_rng):
    before = copy.deepcopy(model.initialize())
    sim = TelemetrySimulator(model, config, rng=scripted_rng(5.0, draw=0.99))
    report = sim.tick()
    assert not report.changed
    assert (model.nodes, model.edges) == before


def test_seeded_runs_are_reproducible():
    a, b = default_network(), default_network()
    TelemetrySimulator(a, ViewConfig(seed=42)).run(20)
    TelemetrySimulator(b, ViewConfig(seed=42)).run(20)
    assert a.to_frame().equals(b.to_frame())


def test_numpy_generator_is_accepted(model, config):
    sim = TelemetrySimulator(model, config, rng=np.random.default_rng(3))
    report = sim.tick()
    assert report.tick == 1
    assert set(report.updated_nodes) <= {n.id for n in model.nodes}


def test_failing_element_is_skipped(model, config, scripted_rng, monkeypatch, caplog):
    """One broken node must not stop the rest of the tick."""
    original = model.set_node_value

    def flaky(node_id, value):
        if node_id == "pump1":
            raise RuntimeError("sensor bus fault")
        return original(node_id, value)

    monkeypatch.setattr(model, "set_node_value", flaky)
    sim = TelemetrySimulator(model, config, rng=scripted_rng(1.0))
    report = sim.tick()
    assert report.skipped == ("pump1",)
    assert "pump2" in report.updated_nodes
    assert "flow1" in report.updated_edges
    assert model.get_node("pump2").value == 76.0
    assert "Skipping node pump1" in caplog.text


def test_failing_edge_is_skipped(model, config, scripted_rng, monkeypatch, caplog):
    original = model.set_edge_flow

    def flaky(edge_id, flow_rate):
        if edge_id == "flow2":
            raise RuntimeError("meter offline")
        return original(edge_id, flow_rate)

    monkeypatch.setattr(model, "set_edge_flow", flaky)
    sim = TelemetrySimulator(model, config, rng=scripted_rng(1.0))
    report = sim.tick()
    assert report.skipped == ("flow2",)
    assert "flow2" not in report.updated_edges
    assert "flow3" in report.updated_edges
    assert model.get_edge("flow2").flow_rate == 150.0
    assert model.get_edge("flow3").flow_rate == 136.0
    assert "Skipping edge flow2 on tick 1" in caplog.text


def test_tick_stamps_clock(model, config, scripted_rng):
    stamp = datetime(2025, 1, 1, 12, 0, 0)
    sim = TelemetrySimulator(model, config, rng=scripted_rng(0.0), clock=lambda: stamp)
    report = sim.tick()
    assert report.timestamp == stamp
    assert sim.last_updated == stamp


def test_amplitudes_per_domain(model):
    sim = TelemetrySimulator(model, ViewConfig(percent_amplitude=5, flow_amplitude=7, concentration_amplitude=0.1))
    assert sim.amplitude_for(ReadingDomain.PERCENT) == 5
    assert sim.amplitude_for(ReadingDomain.FLOW) == 7
    assert sim.amplitude_for(ReadingDomain.CONCENTRATION) == 0.1


def test_scheduler_ticks_and_survives_errors():
    calls = []

    def callback():
        calls.append(len(calls))
        if len(calls) == 1:
            raise RuntimeError("boom")

    async def scenario():
        scheduler = TickScheduler(callback, 10)
        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.2)
        scheduler.stop()
        assert not scheduler.running
        seen = len(calls)
        await asyncio.sleep(0.05)
        return seen

    seen = asyncio.run(scenario())
    assert seen >= 2
    assert len(calls) == seen


def test_scheduler_reschedules_without_losing_state():
    ticks = []

    async def scenario():
        scheduler = TickScheduler(lambda: ticks.append(1), 60_000)
        scheduler.start()
        await asyncio.sleep(0.05)
        assert ticks == []
        scheduler.set_interval(10)
        assert scheduler.interval_ms == 10
        await asyncio.sleep(0.2)
        scheduler.stop()

    asyncio.run(scenario())
    assert len(ticks) >= 2
