"""Pure risk/performance calculators over a snapshot sequence.

Every statistic is a WAD-scaled ``int`` (1e18 == 1.0). Division truncates
toward zero and square roots use `babylonian_sqrt`, so identical inputs give
identical integers. Zero denominators resolve to ``0`` instead of raising.
"""

from __future__ import annotations

from collections.abc import Sequence

from portfolio_backtesting.config.constants import DAYS_PER_YEAR, SECONDS_PER_DAY
from portfolio_backtesting.errors import ConfigurationError, InsufficientHistory
from portfolio_backtesting.fixed_point import (
    WAD,
    babylonian_sqrt,
    bps_to_wad,
    div_trunc,
    wad_sqrt,
)

from ..config import MetricsConfig
from ..types import BacktestResult, Snapshot
from .schemas import (
    CostMetrics,
    DrawdownMetrics,
    PerformanceMetricsBundle,
    PeriodMetrics,
    ReturnMetrics,
)

MIN_HISTORY = 2


def _require_history(n_obs: int, minimum: int = MIN_HISTORY) -> None:
    if n_obs < minimum:
        raise InsufficientHistory(required=minimum, actual=n_obs)


def _mean(values: Sequence[int]) -> int:
    return div_trunc(sum(values), len(values)) if values else 0


# --- Returns -----------------------------------------------------------------


def period_returns(values: Sequence[int]) -> list[int]:
    """Simple return per period: ``v[i] / v[i-1] - 1`` (0 when ``v[i-1] == 0``)."""
    return [
        0 if prev == 0 else curr * WAD // prev - WAD
        for prev, curr in zip(values, values[1:])
    ]


def total_return(values: Sequence[int]) -> int:
    _require_history(len(values))
    first, last = values[0], values[-1]
    return 0 if first == 0 else last * WAD // first - WAD


def total_days(timestamps: Sequence[int]) -> int:
    _require_history(len(timestamps))
    return (timestamps[-1] - timestamps[0]) // SECONDS_PER_DAY


def annualized_return(total: int, days: int) -> int:
    """Linear annualization ``total * 365 / days``."""
    if days <= 0:
        return 0
    return div_trunc(total * DAYS_PER_YEAR, days)


def periods_per_year(n_periods: int, days: int) -> int:
    """WAD-scaled ``365 * n / days``."""
    if days <= 0:
        return 0
    return DAYS_PER_YEAR * n_periods * WAD // days


# --- Dispersion --------------------------------------------------------------


def sample_variance(returns: Sequence[int]) -> int:
    """Sample variance with ``n - 1`` denominator, in WAD^2 units."""
    n = len(returns)
    if n < 2:
        return 0
    mean = _mean(returns)
    return sum((r - mean) ** 2 for r in returns) // (n - 1)


def standard_deviation(returns: Sequence[int]) -> int:
    return babylonian_sqrt(sample_variance(returns))


def _annualize(deviation: int, ppy: int) -> int:
    return deviation * wad_sqrt(ppy) // WAD


def annualized_volatility(returns: Sequence[int], days: int) -> int:
    """``stdev(returns) * sqrt(periods_per_year)``."""
    return _annualize(standard_deviation(returns), periods_per_year(len(returns), days))


def downside_deviation(returns: Sequence[int], days: int) -> int:
    """Annualized root-mean-square of the negative returns only."""
    negatives = [r for r in returns if r < 0]
    if not negatives:
        return 0
    semivariance = sum(r * r for r in negatives) // len(negatives)
    return _annualize(
        babylonian_sqrt(semivariance), periods_per_year(len(returns), days)
    )


# --- Risk-adjusted ratios ----------------------------------------------------


def _excess_ratio(annual_return: int, risk_free_rate_bps: int, deviation: int) -> int:
    if deviation == 0:
        return 0
    excess = annual_return - bps_to_wad(risk_free_rate_bps)
    return div_trunc(excess * WAD, deviation)


def sharpe_ratio(annual_return: int, risk_free_rate_bps: int, volatility: int) -> int:
    """``(annual_return - rf) / volatility``; 0 when volatility is 0."""
    return _excess_ratio(annual_return, risk_free_rate_bps, volatility)


def sortino_ratio(
    annual_return: int, risk_free_rate_bps: int, downside: int
) -> int:
    """``(annual_return - rf) / downside_deviation``; 0 when there is no downside."""
    return _excess_ratio(annual_return, risk_free_rate_bps, downside)


# --- Drawdown ----------------------------------------------------------------


def drawdown_series(values: Sequence[int]) -> list[int]:
    """Fractional decline from the running peak at each observation."""
    out: list[int] = []
    peak = 0
    for value in values:
        peak = max(peak, value)
        out.append(0 if peak == 0 else (peak - value) * WAD // peak)
    return out


def max_drawdown(values: Sequence[int]) -> int:
    """Largest ``(peak - value) / peak`` seen scanning left to right."""
    return max(drawdown_series(values), default=0)


def max_drawdown_duration(values: Sequence[int]) -> int:
    """Longest run of consecutive observations below the running peak."""
    longest = current = 0
    for dd in drawdown_series(values):
        current = current + 1 if dd > 0 else 0
        longest = max(longest, current)
    return longest


# --- Correlation -------------------------------------------------------------


def correlation(series_a: Sequence[int], series_b: Sequence[int]) -> int:
    """Pearson correlation of two equally long return series, in WAD.

    Fewer than two points leave the denominator at zero, so the result is 0.
    """
    if len(series_a) != len(series_b):
        raise ConfigurationError(
            f"series must have equal length ({len(series_a)} != {len(series_b)})"
        )
    if len(series_a) < 2:
        return 0

    mean_a = _mean(series_a)
    mean_b = _mean(series_b)
    dev_a = [a - mean_a for a in series_a]
    dev_b = [b - mean_b for b in series_b]

    covariance = sum(a * b for a, b in zip(dev_a, dev_b))
    denominator = babylonian_sqrt(sum(a * a for a in dev_a) * sum(b * b for b in dev_b))
    if denominator == 0:
        return 0
    return max(-WAD, min(WAD, div_trunc(covariance * WAD, denominator)))


def snapshot_correlation(
    snapshots_a: Sequence[Snapshot], snapshots_b: Sequence[Snapshot]
) -> int:
    """Correlation of the portfolio return series of two runs."""
    if len(snapshots_a) != len(snapshots_b):
        raise ConfigurationError(
            f"snapshot sequences must have equal length "
            f"({len(snapshots_a)} != {len(snapshots_b)})"
        )
    _require_history(len(snapshots_a))
    return correlation(
        period_returns([s.portfolio_value for s in snapshots_a]),
        period_returns([s.portfolio_value for s in snapshots_b]),
    )


def asset_correlation(
    result: BacktestResult, asset_a: int | str, asset_b: int | str
) -> int:
    """Correlation of two assets' value returns within one run."""
    _require_history(len(result))
    return correlation(
        period_returns(result.asset_values(asset_a)),
        period_returns(result.asset_values(asset_b)),
    )


# --- Bundle ------------------------------------------------------------------


def compute_performance_metrics(
    snapshots: Sequence[Snapshot],
    config: MetricsConfig | None = None,
) -> PerformanceMetricsBundle:
    """Compute return, risk, drawdown and cost metrics for one snapshot sequence."""
    _require_history(len(snapshots))
    config = config or MetricsConfig()

    values = [s.portfolio_value for s in snapshots]
    timestamps = [s.timestamp for s in snapshots]

    returns = period_returns(values)
    days = total_days(timestamps)
    total = total_return(values)
    annual = annualized_return(total, days)
    volatility = annualized_volatility(returns, days)
    downside = downside_deviation(returns, days)

    return PerformanceMetricsBundle(
        returns=ReturnMetrics(
            total_return=total,
            annualized_return=annual,
            annualized_volatility=volatility,
            downside_deviation=downside,
            sharpe=sharpe_ratio(annual, config.risk_free_rate_bps, volatility),
            sortino=sortino_ratio(annual, config.risk_free_rate_bps, downside),
        ),
        drawdown=DrawdownMetrics(
            max_drawdown=max_drawdown(values),
            max_drawdown_duration_steps=max_drawdown_duration(values),
        ),
        periods=PeriodMetrics(
            n_snapshots=len(snapshots),
            n_periods=len(returns),
            total_days=days,
            periods_per_year=periods_per_year(len(returns), days),
            risk_free_rate_bps=config.risk_free_rate_bps,
        ),
        costs=CostMetrics(
            total_fees=sum(s.fees for s in snapshots),
            total_yield_harvested=sum(s.yield_harvested for s in snapshots),
            rebalance_count=sum(1 for s in snapshots if s.rebalanced),
            total_estimated_cost=sum(s.estimated_cost for s in snapshots),
        ),
    )
