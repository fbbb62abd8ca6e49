"""Telemetry simulation package.

:class:`TelemetrySimulator` applies one round of random drift to the
network per tick; :class:`TickScheduler` drives it on the configured
refresh interval.
"""

from .telemetry import RandomSource, TelemetrySimulator, TickReport
from .scheduler import TickScheduler

__all__ = ["RandomSource", "TelemetrySimulator", "TickReport", "TickScheduler"]
