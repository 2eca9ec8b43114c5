"""
Configuration defaults for risk premia estimation.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

__all__ = [
    "FRPSettings",
    "get_frp_settings",
    "override_frp_settings",
    "load_frp_settings",
]


@dataclass(frozen=True)
class FRPSettings:
    """Resolved estimation defaults used by the entry points."""

    alpha: float = 0.05
    hac_lags: int | None = None
    misspecification_robust: bool = False
    singular_tolerance: float = 1e-12

    def with_overrides(self, **kwargs: object) -> "FRPSettings":
        data = self.__dict__ | kwargs
        return FRPSettings(**data)


_SETTINGS_CACHE: FRPSettings | None = None


def get_frp_settings(force_reload: bool = False) -> FRPSettings:
    """Return cached settings, reloading from disk when requested."""

    global _SETTINGS_CACHE
    if force_reload or _SETTINGS_CACHE is None:
        _SETTINGS_CACHE = load_frp_settings()
    return _SETTINGS_CACHE


def override_frp_settings(settings: FRPSettings | None) -> None:
    """Override the cached settings (primarily for tests)."""

    global _SETTINGS_CACHE
    _SETTINGS_CACHE = settings


def load_frp_settings(*, config_path: Path | None = None) -> FRPSettings:
    """
    Load estimation defaults from YAML, falling back to dataclass defaults.
    """

    defaults = FRPSettings()
    yaml_path = config_path or Path("configs/frp.yaml")
    config_data = _read_yaml_dict(yaml_path)

    merged = {
        key: config_data.get(key, getattr(defaults, key))
        for key in defaults.__dict__.keys()
    }

    # Normalise types
    merged["alpha"] = float(merged["alpha"])
    if merged.get("hac_lags") is not None:
        merged["hac_lags"] = int(merged["hac_lags"])
    merged["misspecification_robust"] = bool(merged["misspecification_robust"])
    merged["singular_tolerance"] = float(merged["singular_tolerance"])

    if not 0.0 < merged["alpha"] <= 1.0:
        raise ValueError(f"alpha in {yaml_path} must lie in (0, 1].")
    if merged["hac_lags"] is not None and merged["hac_lags"] < 0:
        raise ValueError(f"hac_lags in {yaml_path} must be non-negative.")

    return FRPSettings(**merged)


def _read_yaml_dict(path: Path) -> dict[str, object]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"FRP config at {path} must be a mapping.")
    return loaded
