"""Deterministic portfolio backtesting and risk-metrics engine."""

from .backtesting import (
    AssetConfig,
    BacktestOrchestrator,
    BacktestResult,
    MetricsConfig,
    PortfolioSimulator,
    SimulationConfig,
    Snapshot,
    VaultParameters,
)
from .data import MarketDataBundle, TimeSeriesStore
from .errors import (
    BacktestError,
    ConfigurationError,
    DataUnavailable,
    InsufficientHistory,
)

__all__ = [
    "AssetConfig",
    "BacktestError",
    "BacktestOrchestrator",
    "BacktestResult",
    "ConfigurationError",
    "DataUnavailable",
    "InsufficientHistory",
    "MarketDataBundle",
    "MetricsConfig",
    "PortfolioSimulator",
    "SimulationConfig",
    "Snapshot",
    "TimeSeriesStore",
    "VaultParameters",
]
