"""Typed market-data bundle consumed by the portfolio simulator."""

from __future__ import annotations

from dataclasses import dataclass, field

from .time_series_store import TimeSeriesStore


@dataclass(frozen=True)
class MarketDataBundle:
    """Price and yield observations shared read-only by simulator instances.

    Prices are WAD-scaled quotes per asset. Yields are annualized rates in
    basis points per yield-generating asset.
    """

    prices: TimeSeriesStore = field(default_factory=TimeSeriesStore)
    yields: TimeSeriesStore = field(default_factory=TimeSeriesStore)
