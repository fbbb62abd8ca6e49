"""Command line interface for the live schematic engine.

``plantview run`` advances the simulation a fixed number of ticks and
prints the resulting element table; ``plantview live`` drives the tick
scheduler on its refresh interval for a bounded time.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import pandas as pd

from .config import load_config
from .errors import NotFound
from .network_model import build_network
from .sim import TickReport
from .view import SchematicView


def _build_view(args: argparse.Namespace) -> SchematicView:
    config = load_config(args.config)
    if args.seed is not None:
        config = config.with_seed(args.seed)
    if args.interval is not None:
        config = config.with_refresh_interval(args.interval)
    model = build_network(args.topology or config.topology_path)
    return SchematicView(config=config, model=model)


def _print_details(view: SchematicView) -> None:
    details = view.details()
    if details is None:
        return
    print(f"\nSelected: {details.label} ({details.kind})")
    print(f"  Status: {details.status}")
    if details.display_value is not None:
        print(f"  Current value: {details.display_value}")
    print(f"  Upstream: {', '.join(details.upstream) or '-'}")
    print(f"  Downstream: {', '.join(details.downstream) or '-'}")
    for edge in view.model.incident_edges(details.id):
        rate = "closed" if edge.flow_rate is None else f"{edge.flow_rate:.1f} gal/min"
        print(f"  {edge.id} {edge.source} -> {edge.target}: {rate} ({edge.status.value})")


def run_command(args: argparse.Namespace) -> int:
    view = _build_view(args)
    reports = view.simulator.run(args.ticks)
    for _ in range(args.zoom_in):
        view.viewport.zoom_in()
    for _ in range(args.zoom_out):
        view.viewport.zoom_out()
    if args.select:
        try:
            view.selection.select(args.select)
        except NotFound as e:
            print(f"error: {e}", file=sys.stderr)
            return 2

    with pd.option_context("display.max_rows", None, "display.width", 120):
        print(view.model.to_frame().to_string(index=False, float_format=lambda v: f"{v:.2f}"))
    counts = view.model.status_counts()
    print(
        f"\nTicks: {len(reports)}  Zoom: {view.viewport.zoom_percent}%  "
        + "  ".join(f"{status}: {n}" for status, n in counts.items())
    )
    _print_details(view)

    if args.show:
        from .viz import build_schematic_figure

        build_schematic_figure(view.snapshot()).show()
    return 0


async def _live(view: SchematicView, duration: float) -> None:
    def on_tick(report: TickReport) -> None:
        print(
            f"[{report.timestamp:%H:%M:%S}] tick {report.tick}: "
            f"{len(report.updated_nodes)} nodes, {len(report.updated_edges)} flows updated"
        )

    print(f"Ticking every {view.config.refresh_interval_seconds:g}s for {duration:g}s")
    view.add_tick_listener(on_tick)
    view.start()
    try:
        await asyncio.sleep(duration)
    finally:
        view.close()


def live_command(args: argparse.Namespace) -> int:
    view = _build_view(args)
    asyncio.run(_live(view, args.duration))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Live water-treatment schematic simulator")
    parser.add_argument("--config", default=None, help="Path to configuration YAML")
    parser.add_argument("--topology", default=None, help="Path to topology JSON (overrides config)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the telemetry generator")
    parser.add_argument("--interval", type=int, default=None, help="Refresh interval in milliseconds")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Advance the simulation a number of ticks")
    run_parser.add_argument("--ticks", type=int, default=10, help="Number of ticks to run")
    run_parser.add_argument("--select", default=None, help="Node id to inspect after the run")
    run_parser.add_argument("--zoom-in", type=int, default=0, help="Zoom-in steps to apply")
    run_parser.add_argument("--zoom-out", type=int, default=0, help="Zoom-out steps to apply")
    run_parser.add_argument("--show", action="store_true", help="Open the Plotly schematic")
    run_parser.set_defaults(func=run_command)

    live_parser = subparsers.add_parser("live", help="Tick on the refresh interval for a while")
    live_parser.add_argument("--duration", type=float, default=30.0, help="Seconds to keep running")
    live_parser.set_defaults(func=live_command)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
