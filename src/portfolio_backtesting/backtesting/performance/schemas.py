"""Dataclasses for computed backtest performance metrics.

Ratios and returns are WAD-scaled ints (1e18 == 1.0); use `to_float_dict`
for display or serialization to JSON-friendly floats.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from portfolio_backtesting.fixed_point import from_wad


@dataclass(frozen=True)
class ReturnMetrics:
    """Return, volatility and risk-adjusted statistics."""

    total_return: int
    annualized_return: int
    annualized_volatility: int
    downside_deviation: int
    sharpe: int
    sortino: int


@dataclass(frozen=True)
class DrawdownMetrics:
    """Drawdown depth and duration statistics."""

    max_drawdown: int
    max_drawdown_duration_steps: int


@dataclass(frozen=True)
class PeriodMetrics:
    """Sampling information the annualized figures were derived from."""

    n_snapshots: int
    n_periods: int
    total_days: int
    periods_per_year: int
    risk_free_rate_bps: int


@dataclass(frozen=True)
class CostMetrics:
    """Fees, harvested yield and execution activity over the run."""

    total_fees: int
    total_yield_harvested: int
    rebalance_count: int
    total_estimated_cost: int


@dataclass(frozen=True)
class PerformanceMetricsBundle:
    """Container for all computed metrics used by console/reporting layers."""

    returns: ReturnMetrics
    drawdown: DrawdownMetrics
    periods: PeriodMetrics
    costs: CostMetrics

    def to_dict(self) -> dict[str, Any]:
        """Return nested dict representation with exact integers."""
        return asdict(self)

    def to_float_dict(self) -> dict[str, float | int]:
        """Flat dict with WAD ratios converted to floats."""
        out: dict[str, float | int] = {
            name: from_wad(value) for name, value in asdict(self.returns).items()
        }
        out["max_drawdown"] = from_wad(self.drawdown.max_drawdown)
        out["max_drawdown_duration_steps"] = self.drawdown.max_drawdown_duration_steps
        out["periods_per_year"] = from_wad(self.periods.periods_per_year)
        out["total_days"] = self.periods.total_days
        out.update(asdict(self.costs))
        return out
