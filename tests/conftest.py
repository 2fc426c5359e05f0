from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from portfolio_backtesting.backtesting import (
    AssetConfig,
    PortfolioSimulator,
    SimulationConfig,
    VaultParameters,
)
from portfolio_backtesting.data import MarketDataBundle
from portfolio_backtesting.fixed_point import WAD

DAY = 86_400
T0 = 1_704_067_200  # 2024-01-01T00:00:00Z


@pytest.fixture
def write_yaml(tmp_path: Path):
    def _write(name: str, data: Mapping[str, Any] | Any) -> Path:
        import yaml

        path = tmp_path / name
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f)
        return path

    return _write


@pytest.fixture
def market() -> MarketDataBundle:
    return MarketDataBundle()


@pytest.fixture
def make_simulator(market: MarketDataBundle):
    """Build a simulator over the shared `market` fixture.

    Defaults never rebalance (huge interval, 100% threshold) and charge no fees.
    """

    def _make(
        weights: Mapping[str, int],
        *,
        deposit: int = 1_000_000,
        yield_assets: tuple[str, ...] = (),
        threshold_bps: int = 10_000,
        interval_seconds: int = 10**9,
        management_fee_bps: int = 0,
        performance_fee_bps: int = 0,
        **sim_kwargs: Any,
    ) -> PortfolioSimulator:
        vault = VaultParameters(
            base_asset_id="USDC",
            initial_deposit=deposit,
            rebalance_threshold_bps=threshold_bps,
            rebalance_interval_seconds=interval_seconds,
            management_fee_bps_per_year=management_fee_bps,
            performance_fee_bps=performance_fee_bps,
        )
        assets = [
            AssetConfig(
                asset_id=asset_id,
                wrapper_id=f"w{asset_id}",
                target_weight_bps=weight,
                is_yield_generating=asset_id in yield_assets,
            )
            for asset_id, weight in weights.items()
        ]
        return PortfolioSimulator(
            vault, market, config=SimulationConfig(**sim_kwargs), assets=assets
        )

    return _make


@pytest.fixture
def set_prices(market: MarketDataBundle):
    """Write whole-unit prices given as ``{day_offset: price}`` relative to `T0`."""

    def _set(asset_id: str, prices: Mapping[int, int]) -> None:
        for day, price in prices.items():
            market.prices.set_point(asset_id, T0 + day * DAY, price * WAD)

    return _set
