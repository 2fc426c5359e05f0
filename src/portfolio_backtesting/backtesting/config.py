"""Run-level configuration contracts (assets, vault, simulation, metrics)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from portfolio_backtesting.config.constants import (
    DATA_POLICIES,
    PRICE_TOLERANCE_SECONDS,
    REBALANCE_TRIGGERS,
    REFERENCE_PRICE_POLICIES,
    YIELD_TOLERANCE_SECONDS,
)
from portfolio_backtesting.errors import ConfigurationError
from portfolio_backtesting.fixed_point import BPS

DataPolicy: TypeAlias = Literal["strict", "lenient"]
ReferencePricePolicy: TypeAlias = Literal["last_rebalance", "previous_day"]
RebalanceTrigger: TypeAlias = Literal["interval_or_threshold", "interval_then_threshold"]


def _require_non_negative_int(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an int, got {value!r}")
    if value < 0:
        raise ConfigurationError(f"{name} must be >= 0")


@dataclass(frozen=True)
class AssetConfig:
    """One portfolio sleeve: an asset held through a wrapper at a target weight.

    Price and yield series ids default to ``asset_id``.
    """

    asset_id: str
    wrapper_id: str
    target_weight_bps: int
    is_yield_generating: bool = False
    is_active: bool = True
    price_series_id: str | None = None
    yield_series_id: str | None = None

    def __post_init__(self) -> None:
        if not self.asset_id:
            raise ConfigurationError("asset_id must be non-empty")
        _require_non_negative_int("target_weight_bps", self.target_weight_bps)
        if self.target_weight_bps > BPS:
            raise ConfigurationError("target_weight_bps must be <= 10000")

    @property
    def price_series(self) -> str:
        return self.price_series_id or self.asset_id

    @property
    def yield_series(self) -> str:
        return self.yield_series_id or self.asset_id


@dataclass(frozen=True)
class VaultParameters:
    """Vault economics, immutable for the life of one simulator."""

    base_asset_id: str
    initial_deposit: int
    rebalance_threshold_bps: int = 500
    rebalance_interval_seconds: int = 30 * 86_400
    management_fee_bps_per_year: int = 0
    performance_fee_bps: int = 0

    def __post_init__(self) -> None:
        _require_non_negative_int("initial_deposit", self.initial_deposit)
        _require_non_negative_int("rebalance_threshold_bps", self.rebalance_threshold_bps)
        _require_non_negative_int(
            "rebalance_interval_seconds", self.rebalance_interval_seconds
        )
        _require_non_negative_int(
            "management_fee_bps_per_year", self.management_fee_bps_per_year
        )
        _require_non_negative_int("performance_fee_bps", self.performance_fee_bps)
        if self.performance_fee_bps > BPS:
            raise ConfigurationError("performance_fee_bps must be <= 10000")


@dataclass(frozen=True)
class SimulationConfig:
    """Decision policies for one simulator.

    - ``data_policy``: ``strict`` aborts the step (and the run) on missing data;
      ``lenient`` skips that asset's update for the step.
    - ``reference_price``: ``last_rebalance`` reprices each asset from its
      baseline using the price ratio since the baseline was set;
      ``previous_day`` applies the one-day price ratio to the current value.
    - ``rebalance_trigger``: ``interval_or_threshold`` fires on either
      condition; ``interval_then_threshold`` only checks drift once the
      interval has elapsed.
    """

    data_policy: DataPolicy = "strict"
    reference_price: ReferencePricePolicy = "last_rebalance"
    rebalance_trigger: RebalanceTrigger = "interval_or_threshold"
    require_full_allocation: bool = False
    price_tolerance_seconds: int = PRICE_TOLERANCE_SECONDS
    yield_tolerance_seconds: int = YIELD_TOLERANCE_SECONDS
    default_yield_rate_bps: int | None = None

    def __post_init__(self) -> None:
        if self.data_policy not in DATA_POLICIES:
            raise ConfigurationError(f"unknown data_policy: {self.data_policy!r}")
        if self.reference_price not in REFERENCE_PRICE_POLICIES:
            raise ConfigurationError(
                f"unknown reference_price policy: {self.reference_price!r}"
            )
        if self.rebalance_trigger not in REBALANCE_TRIGGERS:
            raise ConfigurationError(
                f"unknown rebalance_trigger: {self.rebalance_trigger!r}"
            )
        _require_non_negative_int("price_tolerance_seconds", self.price_tolerance_seconds)
        _require_non_negative_int("yield_tolerance_seconds", self.yield_tolerance_seconds)
        if self.default_yield_rate_bps is not None:
            _require_non_negative_int("default_yield_rate_bps", self.default_yield_rate_bps)

    @property
    def strict(self) -> bool:
        return self.data_policy == "strict"


@dataclass(frozen=True)
class MetricsConfig:
    """Inputs owned by the metrics layer rather than the simulator."""

    risk_free_rate_bps: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.risk_free_rate_bps, bool) or not isinstance(
            self.risk_free_rate_bps, int
        ):
            raise ConfigurationError("risk_free_rate_bps must be an int")


@dataclass(frozen=True)
class BacktestSetup:
    """Everything needed to build and score one backtest run."""

    assets: tuple[AssetConfig, ...]
    vault: VaultParameters
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
