"""YAML configuration loading for backtest setups.

Precedence is defaults, then the YAML file, then explicit overrides; nested
mappings are merged key by key and everything else is replaced.

Expected layout::

    vault:
      base_asset_id: USDC
      initial_deposit: 1000000
      rebalance_threshold_bps: 500
      rebalance_interval_seconds: 2592000
      management_fee_bps_per_year: 200
      performance_fee_bps: 2000
    assets:
      - {asset_id: SPY, wrapper_id: wSPY, target_weight_bps: 6000}
      - {asset_id: TBILL, wrapper_id: wTBILL, target_weight_bps: 4000,
         is_yield_generating: true}
    simulation:
      data_policy: lenient
      default_yield_rate_bps: 450
    metrics:
      risk_free_rate_bps: 200
"""

from __future__ import annotations

import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from portfolio_backtesting.backtesting.config import (
    AssetConfig,
    BacktestSetup,
    MetricsConfig,
    SimulationConfig,
    VaultParameters,
)
from portfolio_backtesting.errors import ConfigurationError

DEFAULT_SETUP: dict[str, Any] = {
    "simulation": {},
    "metrics": {"risk_free_rate_bps": 0},
}


def resolve_path(value: str | Path | None) -> Path | None:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    return Path(os.path.expandvars(os.path.expanduser(str(value))))


def load_yaml_config(path: str | Path | None) -> dict[str, Any]:
    if path is None:
        return {}

    p = resolve_path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(
            "Config file must contain a YAML mapping at the top level."
        )
    return data


def deep_merge(
    base: Mapping[str, Any],
    updates: Mapping[str, Any],
) -> dict[str, Any]:
    merged: dict[str, Any] = {
        key: deep_merge(value, {}) if isinstance(value, Mapping) else value
        for key, value in base.items()
    }
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_config(
    defaults: Mapping[str, Any],
    yaml_path: str | Path | None,
    overrides: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    config = deep_merge(defaults, load_yaml_config(yaml_path))
    if overrides:
        config = deep_merge(config, overrides)
    return config


def _build(cls: type, section: str, raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"'{section}' must be a mapping")
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise ConfigurationError(f"unknown keys in '{section}': {', '.join(unknown)}")
    try:
        return cls(**raw)
    except TypeError as exc:
        raise ConfigurationError(f"invalid '{section}' section: {exc}") from exc


def build_backtest_setup(config: Mapping[str, Any]) -> BacktestSetup:
    """Turn a merged config mapping into typed configuration objects."""
    if "vault" not in config:
        raise ConfigurationError("config is missing the 'vault' section")
    raw_assets = config.get("assets") or []
    if not isinstance(raw_assets, list):
        raise ConfigurationError("'assets' must be a list")

    assets = tuple(
        _build(AssetConfig, f"assets[{i}]", raw) for i, raw in enumerate(raw_assets)
    )
    return BacktestSetup(
        assets=assets,
        vault=_build(VaultParameters, "vault", config["vault"]),
        simulation=_build(
            SimulationConfig, "simulation", config.get("simulation") or {}
        ),
        metrics=_build(MetricsConfig, "metrics", config.get("metrics") or {}),
    )


def load_backtest_config(
    path: str | Path | None,
    overrides: Mapping[str, Any] | None = None,
) -> BacktestSetup:
    """Load a YAML file (plus overrides) into a `BacktestSetup`."""
    return build_backtest_setup(build_config(DEFAULT_SETUP, path, overrides))
