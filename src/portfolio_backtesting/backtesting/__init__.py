from .config import (
    AssetConfig,
    BacktestSetup,
    MetricsConfig,
    SimulationConfig,
    VaultParameters,
)
from .orchestrator import BacktestOrchestrator, step_count
from .simulator import PortfolioSimulator
from .types import AssetState, BacktestResult, PortfolioState, Snapshot

__all__ = [
    "AssetConfig",
    "AssetState",
    "BacktestOrchestrator",
    "BacktestResult",
    "BacktestSetup",
    "MetricsConfig",
    "PortfolioSimulator",
    "PortfolioState",
    "SimulationConfig",
    "Snapshot",
    "VaultParameters",
    "step_count",
]
