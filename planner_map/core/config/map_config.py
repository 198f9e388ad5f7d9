from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


CONFIG_ENV_VAR = "PLANNER_MAP_CONFIG"


@dataclass(frozen=True)
class MapConfig:
    # Sizing
    root_radius: float = 360.0
    estimate_rate: float = 100.0  # currency units per hour
    min_child_radius: float = 36.0
    min_child_ratio: float = 0.35
    max_child_ratio: float = 0.75
    fallback_radius_ratio: float = 0.55

    # Radial layout
    child_gap: float = 90.0
    extra_root_spread: float = 2.2
    seed_radius: float = 180.0
    seed_radius_step: float = 20.0
    seed_radius_bands: int = 5
    layout_strategy: str = "radial"

    # Links
    curve_threshold: float = 140.0
    curve_max_offset: float = 140.0

    # Interaction
    drag_threshold: float = 2.0
    viewport_width: float = 1280.0
    viewport_height: float = 800.0
    min_zoom: float = 0.3
    max_zoom: float = 2.0
    zoom_sensitivity: float = 0.0015
    fit_padding: float = 200.0

    @property
    def fallback_radius(self) -> float:
        return self.root_radius * self.fallback_radius_ratio


DEFAULT_CONFIG = MapConfig()


class MapConfigError(ValueError):
    pass


def _field_types() -> dict[str, type]:
    return {f.name: type(f.default) for f in dataclasses.fields(MapConfig)}


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load config overrides from a YAML file.

    Format:
      <field>: <value>

    Only known MapConfig fields are accepted. Integers are accepted for float fields.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise MapConfigError(f"config file is not valid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise MapConfigError("config file must be a mapping of field -> value")

    types = _field_types()
    out: dict[str, Any] = {}
    for k, v in raw.items():
        if not isinstance(k, str) or k not in types:
            raise MapConfigError(f"unknown config field: {k}")
        expected = types[k]
        if expected is float:
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise MapConfigError(f"config field '{k}' must be a number")
            v = float(v)
        elif expected is int:
            if isinstance(v, bool) or not isinstance(v, int):
                raise MapConfigError(f"config field '{k}' must be an integer")
        elif not isinstance(v, expected):
            raise MapConfigError(f"config field '{k}' must be a {expected.__name__}")
        out[k] = v

    if out.get("seed_radius_bands", 1) < 1:
        raise MapConfigError("config field 'seed_radius_bands' must be >= 1")
    return out


def merged_config(overrides: dict[str, Any] | None = None) -> MapConfig:
    """Return DEFAULT_CONFIG with optional overrides applied."""
    if not overrides:
        return DEFAULT_CONFIG
    return dataclasses.replace(DEFAULT_CONFIG, **overrides)


def load_and_merge(config_file: str | None) -> MapConfig:
    config_file = config_file or os.getenv(CONFIG_ENV_VAR) or None
    if not config_file:
        return merged_config()
    return merged_config(load_config_file(config_file))


def config_to_dict(config: MapConfig) -> dict[str, Any]:
    return dataclasses.asdict(config)
