"""Performance metric calculators, tables, and console formatters."""

from .calculators import (
    annualized_return,
    annualized_volatility,
    asset_correlation,
    compute_performance_metrics,
    correlation,
    downside_deviation,
    drawdown_series,
    max_drawdown,
    max_drawdown_duration,
    period_returns,
    sharpe_ratio,
    snapshot_correlation,
    sortino_ratio,
    total_return,
)
from .console import format_performance_report, print_performance_report
from .schemas import (
    CostMetrics,
    DrawdownMetrics,
    PerformanceMetricsBundle,
    PeriodMetrics,
    ReturnMetrics,
)
from .tables import snapshots_to_frame

__all__ = [
    "ReturnMetrics",
    "DrawdownMetrics",
    "PeriodMetrics",
    "CostMetrics",
    "PerformanceMetricsBundle",
    "annualized_return",
    "annualized_volatility",
    "asset_correlation",
    "compute_performance_metrics",
    "correlation",
    "downside_deviation",
    "drawdown_series",
    "max_drawdown",
    "max_drawdown_duration",
    "period_returns",
    "sharpe_ratio",
    "snapshot_correlation",
    "sortino_ratio",
    "total_return",
    "snapshots_to_frame",
    "format_performance_report",
    "print_performance_report",
]
