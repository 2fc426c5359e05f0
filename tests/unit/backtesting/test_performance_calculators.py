import math

import pytest

from portfolio_backtesting.backtesting import BacktestResult, MetricsConfig, Snapshot
from portfolio_backtesting.backtesting.performance import (
    annualized_return,
    annualized_volatility,
    asset_correlation,
    compute_performance_metrics,
    correlation,
    downside_deviation,
    max_drawdown,
    max_drawdown_duration,
    period_returns,
    sharpe_ratio,
    snapshot_correlation,
    sortino_ratio,
    total_return,
)
from portfolio_backtesting.backtesting.performance.calculators import (
    periods_per_year,
    standard_deviation,
)
from portfolio_backtesting.errors import ConfigurationError, InsufficientHistory
from portfolio_backtesting.fixed_point import WAD, babylonian_sqrt

DAY = 86_400
T0 = 1_704_067_200


def _snapshots(values, *, step=DAY, assets=None) -> list[Snapshot]:
    out = []
    for i, value in enumerate(values):
        asset_values = tuple(assets[i]) if assets else (value,)
        out.append(
            Snapshot(
                timestamp=T0 + i * step,
                portfolio_value=value,
                asset_values=asset_values,
                asset_weights_bps=tuple(10_000 // len(asset_values) for _ in asset_values),
                yield_harvested=1 if i else 0,
                rebalanced=i % 2 == 1,
                estimated_cost=10,
                fees=2,
            )
        )
    return out


def test_period_returns_guard_zero_denominator():
    assert period_returns([100, 110, 0, 50]) == [WAD // 10, -WAD, 0]


def test_max_drawdown_from_running_peak():
    assert max_drawdown([100, 120, 90, 110]) == WAD // 4
    assert max_drawdown([100, 110, 120]) == 0


def test_max_drawdown_duration_counts_steps_below_peak():
    assert max_drawdown_duration([100, 120, 90, 110, 130, 125]) == 2


def test_total_and_linear_annualized_return():
    assert total_return([100, 110]) == WAD // 10
    # 10% over 73 days annualizes linearly to 50%
    assert annualized_return(WAD // 10, 73) == WAD // 2
    assert annualized_return(WAD // 10, 0) == 0


def test_total_return_requires_two_points():
    with pytest.raises(InsufficientHistory):
        total_return([100])


def test_periods_per_year_is_wad_scaled():
    assert periods_per_year(365, 365) == 365 * WAD
    assert periods_per_year(4, 365) == 4 * 365 * WAD // 365
    assert periods_per_year(4, 0) == 0


def test_volatility_uses_sample_variance_and_sqrt_periods():
    returns = [WAD // 10, -WAD // 10]
    # one period per year -> no scaling; variance = 2 * 0.01 / (2 - 1)
    assert annualized_volatility(returns, 730) == babylonian_sqrt(2 * 10**34)

    four = [WAD // 10, -WAD // 10, WAD // 10, -WAD // 10]
    assert annualized_volatility(four, 1) == standard_deviation(four) * babylonian_sqrt(
        1460 * WAD * WAD
    ) // WAD


def test_volatility_scales_with_sqrt_of_periods_per_year():
    returns = [WAD // 10, -WAD // 10, WAD // 10, -WAD // 10]
    # 4 periods over 365 days -> 4 periods per year -> sqrt == 2
    days = 365
    assert periods_per_year(len(returns), days) == 4 * WAD
    assert annualized_volatility(returns, days) == 2 * standard_deviation(returns)


def test_downside_deviation_only_counts_negative_returns():
    returns = [WAD // 10, -2 * WAD // 10, WAD // 10, -2 * WAD // 10]
    assert downside_deviation(returns, 365) == 4 * 10**17
    assert downside_deviation([WAD // 10, WAD // 5], 365) == 0


def test_sharpe_ratio_exact_value():
    assert sharpe_ratio(WAD // 2, 1_000, WAD // 5) == 2 * WAD


def test_sharpe_ratio_truncates_toward_zero_when_negative():
    assert sharpe_ratio(0, 100, 3 * 10**17) == -(10**34 // (3 * 10**17))


def test_zero_volatility_guards_sharpe_and_sortino():
    assert sharpe_ratio(WAD, 0, 0) == 0
    assert sortino_ratio(WAD, 0, 0) == 0


def test_constant_return_series_has_zero_sharpe():
    metrics = compute_performance_metrics(_snapshots([WAD, 2 * WAD, 4 * WAD, 8 * WAD]))

    assert metrics.returns.annualized_volatility == 0
    assert metrics.returns.sharpe == 0
    assert metrics.returns.sortino == 0

    flat = compute_performance_metrics(_snapshots([100, 100, 100]))
    assert flat.returns.sharpe == 0
    assert math.isfinite(flat.to_float_dict()["sharpe"])


def test_correlation_bounds():
    series = [WAD // 10, -WAD // 20, WAD // 40, 0]
    assert correlation(series, series) == WAD
    assert correlation(series, [-r for r in series]) == -WAD
    assert correlation(series, [7, 7, 7, 7]) == 0


def test_correlation_requires_equal_lengths():
    with pytest.raises(ConfigurationError, match="equal length"):
        correlation([1, 2, 3], [1, 2])


def test_correlation_of_single_point_series_is_zero():
    assert correlation([WAD // 10], [-WAD // 10]) == 0
    assert correlation([], []) == 0


def test_two_snapshot_runs_correlate_to_zero():
    a = _snapshots([100, 110])
    b = _snapshots([100, 90])

    assert compute_performance_metrics(a).periods.n_periods == 1
    assert snapshot_correlation(a, b) == 0

    with pytest.raises(InsufficientHistory):
        snapshot_correlation(a[:1], b[:1])


def test_two_snapshot_asset_correlation_is_zero():
    paths = [(100, 50), (110, 45)]
    result = BacktestResult(
        asset_ids=("A", "B"),
        snapshots=_snapshots([sum(p) for p in paths], assets=paths),
    )

    assert asset_correlation(result, "A", "B") == 0


def test_snapshot_correlation_uses_portfolio_returns():
    a = _snapshots([100, 110, 99, 120])
    b = _snapshots([200, 220, 198, 240])
    assert snapshot_correlation(a, b) == WAD

    with pytest.raises(ConfigurationError):
        snapshot_correlation(a, b[:-1])


def test_asset_correlation_within_one_run():
    paths = [(100, 50), (110, 45), (121, 40), (115, 44)]
    result = BacktestResult(
        asset_ids=("A", "B"),
        snapshots=_snapshots([sum(p) for p in paths], assets=paths),
    )

    corr = asset_correlation(result, "A", "B")

    assert corr < 0
    assert corr == asset_correlation(result, 0, 1)


def test_compute_performance_metrics_bundle():
    snapshots = _snapshots([100, 120, 90, 110])

    metrics = compute_performance_metrics(snapshots, MetricsConfig(risk_free_rate_bps=0))

    assert metrics.returns.total_return == WAD // 10
    assert metrics.returns.annualized_return == WAD // 10 * 365 // 3
    assert metrics.drawdown.max_drawdown == WAD // 4
    assert metrics.drawdown.max_drawdown_duration_steps == 2
    assert metrics.periods.n_periods == 3
    assert metrics.periods.total_days == 3
    assert metrics.costs.total_fees == 8
    assert metrics.costs.total_yield_harvested == 3
    assert metrics.costs.rebalance_count == 2
    assert metrics.costs.total_estimated_cost == 40
    assert metrics.returns.sharpe > 0
    assert metrics.returns.sortino > 0
    assert metrics.to_dict()["drawdown"]["max_drawdown"] == WAD // 4
    assert metrics.to_float_dict()["max_drawdown"] == pytest.approx(0.25)


def test_compute_performance_metrics_requires_history():
    with pytest.raises(InsufficientHistory) as excinfo:
        compute_performance_metrics(_snapshots([100]))
    assert excinfo.value.required == 2
    assert excinfo.value.actual == 1

    with pytest.raises(InsufficientHistory):
        compute_performance_metrics([])


def test_same_day_snapshots_resolve_to_zero_annualization():
    metrics = compute_performance_metrics(_snapshots([100, 105, 103], step=3_600))

    assert metrics.periods.total_days == 0
    assert metrics.returns.annualized_return == 0
    assert metrics.returns.annualized_volatility == 0
    assert metrics.returns.sharpe == 0
