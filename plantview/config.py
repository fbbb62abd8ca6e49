"""
Configuration module for the live schematic view.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "config.yml"
DEFAULT_TOPOLOGY_PATH = PACKAGE_DIR / "data" / "treatment_plant.json"


@dataclass(frozen=True)
class ViewConfig:
    """
    Settings shared by the simulator and the viewport for one view session.

    Instances are immutable; use the ``with_*`` helpers to derive an updated
    configuration.
    """
    # Telemetry
    refresh_interval_ms: int = 5000
    update_probability: float = 0.3  # Bernoulli trial per element per tick
    percent_amplitude: float = 5.0  # +/- delta for percentage readings
    flow_amplitude: float = 5.0  # +/- delta for flow readings (gal/min)
    concentration_amplitude: float = 0.1  # +/- delta for mg/L readings
    seed: Optional[int] = None

    # Viewport
    zoom_min: float = 0.5
    zoom_max: float = 2.0
    zoom_step: float = 0.1
    click_threshold_px: float = 4.0

    # Topology
    topology_path: str = str(DEFAULT_TOPOLOGY_PATH)

    def __post_init__(self):
        """Validate ranges after dataclass initialization."""
        if self.refresh_interval_ms <= 0:
            raise ValueError(f"refresh_interval_ms must be positive, got {self.refresh_interval_ms}")
        if not 0.0 <= self.update_probability <= 1.0:
            raise ValueError(f"update_probability must be within [0, 1], got {self.update_probability}")
        for name in ("percent_amplitude", "flow_amplitude", "concentration_amplitude"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if not 0 < self.zoom_min <= 1.0 <= self.zoom_max:
            raise ValueError(
                f"zoom range [{self.zoom_min}, {self.zoom_max}] must be positive and contain 1.0"
            )
        if self.zoom_step <= 0:
            raise ValueError(f"zoom_step must be positive, got {self.zoom_step}")
        if self.click_threshold_px < 0:
            raise ValueError("click_threshold_px must be non-negative")

    @property
    def refresh_interval_seconds(self) -> float:
        """Tick period in seconds."""
        return self.refresh_interval_ms / 1000.0

    def with_refresh_interval(self, refresh_interval_ms: int) -> "ViewConfig":
        """Return a copy with a new tick period."""
        return dataclasses.replace(self, refresh_interval_ms=int(refresh_interval_ms))

    def with_seed(self, seed: Optional[int]) -> "ViewConfig":
        return dataclasses.replace(self, seed=seed)


def config_from_dict(raw: Dict[str, Any]) -> ViewConfig:
    """Build a :class:`ViewConfig` from a plain mapping.

    Unknown keys are logged and ignored so a config file shared with other
    parts of the application does not break the view.
    """
    known = {f.name for f in dataclasses.fields(ViewConfig)}
    kwargs: Dict[str, Any] = {}
    for key, value in (raw or {}).items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key {key!r}")
            continue
        kwargs[key] = value
    topology = kwargs.get("topology_path")
    if topology is not None:
        kwargs["topology_path"] = str(topology)
    return ViewConfig(**kwargs)


def load_config(path: Optional[Union[str, Path]] = None) -> ViewConfig:
    """Load the view configuration from a YAML file.

    :param path: Path to the YAML file; the bundled ``config.yml`` when omitted.
    :returns: The validated configuration.
    :raises ValueError: If a value is out of range or the file is not a mapping.
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    with open(cfg_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {cfg_path} must contain a mapping")
    # Relative topology paths are resolved against the config file location
    topology = raw.get("topology_path")
    if topology and not Path(topology).is_absolute():
        raw["topology_path"] = str((cfg_path.parent / topology).resolve())
    return config_from_dict(raw)
