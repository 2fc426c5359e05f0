"""Console-friendly formatting and printing for performance metrics."""

from __future__ import annotations

from collections.abc import Sequence

from portfolio_backtesting.fixed_point import from_wad

from ..config import MetricsConfig
from ..types import Snapshot
from .calculators import compute_performance_metrics
from .schemas import PerformanceMetricsBundle


def _fmt_pct(value: int) -> str:
    return f"{from_wad(value):.2%}"


def _fmt_num(value: int, digits: int = 2) -> str:
    return f"{from_wad(value):.{digits}f}"


def format_performance_report(metrics: PerformanceMetricsBundle) -> str:
    """Format a readable console report from precomputed metrics."""
    returns = metrics.returns
    lines = [
        "=" * 40,
        "Overall Performance Metrics",
        "=" * 40,
        f"Total Return           : {_fmt_pct(returns.total_return)}",
        f"Annualized Return      : {_fmt_pct(returns.annualized_return)}",
        f"Annualized Volatility  : {_fmt_pct(returns.annualized_volatility)}",
        f"Sharpe Ratio           : {_fmt_num(returns.sharpe)}",
        f"Sortino Ratio          : {_fmt_num(returns.sortino)}",
        f"Max Drawdown           : {_fmt_pct(metrics.drawdown.max_drawdown)}",
        (
            "Max Drawdown Duration  : "
            f"{metrics.drawdown.max_drawdown_duration_steps} steps"
        ),
        f"Risk-Free Rate         : {metrics.periods.risk_free_rate_bps} bps",
        f"Periods                : {metrics.periods.n_periods} over "
        f"{metrics.periods.total_days} days",
        "",
        "=" * 40,
        "Costs and Activity",
        "=" * 40,
        f"Total Fees             : {metrics.costs.total_fees}",
        f"Yield Harvested        : {metrics.costs.total_yield_harvested}",
        f"Rebalances             : {metrics.costs.rebalance_count}",
        f"Estimated Cost         : {metrics.costs.total_estimated_cost}",
        "",
    ]
    return "\n".join(lines)


def print_performance_report(
    snapshots: Sequence[Snapshot],
    config: MetricsConfig | None = None,
) -> PerformanceMetricsBundle:
    """Compute and print a performance report; return metrics for reuse."""
    metrics = compute_performance_metrics(snapshots, config)
    print(format_performance_report(metrics))
    return metrics
