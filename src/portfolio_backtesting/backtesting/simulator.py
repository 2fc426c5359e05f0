"""Step-wise portfolio simulator.

One `step(timestamp)` runs, in order:

1. price update (ratio of current to reference price applied to a baseline)
2. time-weighted yield accrual for yield-generating assets
3. rebalance decision and execution
4. management / performance fee accrual against the reported NAV
5. snapshot production

All market-data lookups for a step are resolved before any state changes, so
a strict-mode `DataUnavailable` leaves the portfolio exactly as it was.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from portfolio_backtesting.config.constants import (
    BASE_STEP_COST,
    HARVEST_COST,
    REBALANCE_COST_PER_ASSET,
    SECONDS_PER_DAY,
    SECONDS_PER_YEAR,
)
from portfolio_backtesting.data import MarketDataBundle
from portfolio_backtesting.errors import ConfigurationError, DataUnavailable
from portfolio_backtesting.fixed_point import BPS

from .config import AssetConfig, SimulationConfig, VaultParameters
from .types import AssetState, PortfolioState, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _PriceMove:
    current: int
    reference: int


class PortfolioSimulator:
    """Owns one `PortfolioState` and advances it through time."""

    def __init__(
        self,
        vault: VaultParameters,
        market_data: MarketDataBundle,
        *,
        config: SimulationConfig | None = None,
        assets: Iterable[AssetConfig] = (),
    ) -> None:
        self.vault = vault
        self.market_data = market_data
        self.config = config or SimulationConfig()
        self._configured: list[AssetConfig] = []
        self._active: tuple[AssetConfig, ...] = ()
        self._state: PortfolioState | None = None
        for asset in assets:
            self.add_asset(asset)

    # --- Setup -----------------------------------------------------------

    def add_asset(self, asset: AssetConfig) -> None:
        """Register an asset; only allowed before `initialize`."""
        if self._state is not None:
            raise ConfigurationError("assets must be configured before initialize")
        if any(a.asset_id == asset.asset_id for a in self._configured):
            raise ConfigurationError(f"duplicate asset_id: {asset.asset_id!r}")
        self._configured.append(asset)

    @property
    def assets(self) -> tuple[AssetConfig, ...]:
        """Active assets in ledger order (empty before `initialize`)."""
        return self._active

    @property
    def asset_ids(self) -> tuple[str, ...]:
        return tuple(a.asset_id for a in self._active)

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> PortfolioState:
        return self._require_state()

    def _require_state(self) -> PortfolioState:
        if self._state is None:
            raise ConfigurationError("simulator is not initialized")
        return self._state

    def _validate_weights(self, active: list[AssetConfig]) -> None:
        if not active:
            raise ConfigurationError("no assets configured")
        total_weight = sum(a.target_weight_bps for a in active)
        if total_weight > BPS:
            raise ConfigurationError(
                f"target weights sum to {total_weight} bps, must not exceed {BPS}"
            )
        if self.config.require_full_allocation and total_weight != BPS:
            raise ConfigurationError(
                f"target weights sum to {total_weight} bps, must equal {BPS}"
            )

    def initialize(self, start_timestamp: int) -> PortfolioState:
        """Allocate the initial deposit at target weights."""
        active = [a for a in self._configured if a.is_active]
        self._validate_weights(active)

        deposit = self.vault.initial_deposit
        asset_states = []
        for asset in active:
            value = deposit * asset.target_weight_bps // BPS
            asset_states.append(
                AssetState(
                    asset_id=asset.asset_id,
                    value=value,
                    base_value=value,
                    base_timestamp=start_timestamp,
                )
            )

        self._active = tuple(active)
        self._state = PortfolioState(
            assets=asset_states,
            last_rebalance_timestamp=start_timestamp,
            last_yield_timestamp=start_timestamp,
            last_fee_timestamp=start_timestamp,
            high_water_mark=deposit,
        )
        logger.debug(
            "Initialized %d assets at t=%d with deposit %d",
            len(active),
            start_timestamp,
            deposit,
        )
        return self._state

    # --- Transactions ----------------------------------------------------

    def export_state(self) -> PortfolioState | None:
        """Deep copy of the current state (``None`` before `initialize`)."""
        return copy.deepcopy(self._state)

    def restore_state(self, state: PortfolioState | None) -> None:
        self._state = copy.deepcopy(state)
        if state is None:
            self._active = ()

    # --- Data lookups ----------------------------------------------------

    def _lookup_price(self, asset: AssetConfig, timestamp: int) -> int:
        return self.market_data.prices.get_nearest(
            asset.price_series,
            timestamp,
            self.config.price_tolerance_seconds,
        ).value

    def _resolve_price_moves(
        self, state: PortfolioState, timestamp: int
    ) -> dict[int, _PriceMove]:
        moves: dict[int, _PriceMove] = {}
        previous_day = self.config.reference_price == "previous_day"
        for i, (asset, asset_state) in enumerate(zip(self._active, state.assets)):
            if previous_day:
                # Never reach back past the previous step; that move is applied.
                reference_ts = max(
                    timestamp - SECONDS_PER_DAY, state.last_fee_timestamp
                )
            else:
                reference_ts = asset_state.base_timestamp
            if reference_ts == timestamp:
                continue
            try:
                current = self._lookup_price(asset, timestamp)
                reference = self._lookup_price(asset, reference_ts)
            except DataUnavailable as exc:
                if self.config.strict:
                    raise
                logger.warning("Skipping price update for %s: %s", asset.asset_id, exc)
                continue
            if reference == 0:
                logger.warning(
                    "Skipping price update for %s: zero reference price at t=%d",
                    asset.asset_id,
                    reference_ts,
                )
                continue
            moves[i] = _PriceMove(current=current, reference=reference)
        return moves

    def _resolve_yield_rates(self, timestamp: int) -> dict[int, int]:
        rates: dict[int, int] = {}
        default_rate = self.config.default_yield_rate_bps
        for i, asset in enumerate(self._active):
            if not asset.is_yield_generating:
                continue
            try:
                rates[i] = self.market_data.yields.get_nearest(
                    asset.yield_series,
                    timestamp,
                    self.config.yield_tolerance_seconds,
                ).value
            except DataUnavailable as exc:
                if default_rate is not None:
                    logger.debug(
                        "No yield data for %s, using default rate %d bps",
                        asset.asset_id,
                        default_rate,
                    )
                    rates[i] = default_rate
                elif self.config.strict:
                    raise
                else:
                    logger.warning("Skipping yield for %s: %s", asset.asset_id, exc)
        return rates

    # --- Step phases -----------------------------------------------------

    def _apply_price_moves(
        self, state: PortfolioState, moves: dict[int, _PriceMove]
    ) -> None:
        previous_day = self.config.reference_price == "previous_day"
        for i, move in moves.items():
            asset_state = state.assets[i]
            baseline = asset_state.value if previous_day else asset_state.base_value
            asset_state.value = baseline * move.current // move.reference

    def _harvest_yield(
        self, state: PortfolioState, timestamp: int, rates: dict[int, int]
    ) -> int:
        elapsed = timestamp - state.last_yield_timestamp
        harvested = 0
        if elapsed > 0:
            for i, rate_bps in rates.items():
                asset_state = state.assets[i]
                accrued = (
                    asset_state.value * rate_bps * elapsed // (BPS * SECONDS_PER_YEAR)
                )
                if accrued == 0:
                    continue
                asset_state.value += accrued
                # Later price ratios apply to the grown balance.
                asset_state.base_value = asset_state.value
                asset_state.base_timestamp = timestamp
                harvested += accrued
        state.last_yield_timestamp = timestamp
        state.total_yield_harvested += harvested
        return harvested

    def max_drift_bps(self, state: PortfolioState | None = None) -> int:
        """Largest absolute gap between current and target weight, in bps."""
        state = state or self._require_state()
        weights = state.weights_bps()
        if state.total_value == 0:
            return 0
        return max(
            abs(weight - asset.target_weight_bps)
            for weight, asset in zip(weights, self._active)
        )

    def should_rebalance(self, state: PortfolioState, timestamp: int) -> bool:
        interval_elapsed = (
            timestamp - state.last_rebalance_timestamp
            >= self.vault.rebalance_interval_seconds
        )
        gated = self.config.rebalance_trigger == "interval_then_threshold"
        if gated and not interval_elapsed:
            return False
        drifted = self.max_drift_bps(state) > self.vault.rebalance_threshold_bps
        return drifted if gated else (interval_elapsed or drifted)

    def _rebalance(self, state: PortfolioState, timestamp: int) -> None:
        total = state.total_value
        for asset, asset_state in zip(self._active, state.assets):
            target_value = total * asset.target_weight_bps // BPS
            asset_state.value = target_value
            asset_state.base_value = target_value
            asset_state.base_timestamp = timestamp
        state.last_rebalance_timestamp = timestamp
        state.rebalance_count += 1
        logger.debug(
            "Rebalanced %d assets at t=%d (NAV %d)", len(state.assets), timestamp, total
        )

    def _accrue_fees(
        self, state: PortfolioState, timestamp: int, gross: int
    ) -> tuple[int, int]:
        """Return ``(net_value, fees)``; asset ledgers are left untouched."""
        elapsed = timestamp - state.last_fee_timestamp
        management_fee = 0
        if elapsed > 0:
            management_fee = (
                gross
                * self.vault.management_fee_bps_per_year
                * elapsed
                // (BPS * SECONDS_PER_YEAR)
            )
        net = gross - management_fee

        performance_fee = 0
        if net > state.high_water_mark:
            performance_fee = (
                (net - state.high_water_mark) * self.vault.performance_fee_bps // BPS
            )
            net -= performance_fee
            state.high_water_mark = net

        fees = management_fee + performance_fee
        state.last_fee_timestamp = timestamp
        state.total_fees_accrued += fees
        return net, fees

    def _estimate_cost(self, *, rebalanced: bool, harvested: bool) -> int:
        cost = BASE_STEP_COST
        if rebalanced:
            cost += REBALANCE_COST_PER_ASSET * len(self._active)
        if harvested:
            cost += HARVEST_COST
        return cost

    def step(self, timestamp: int) -> Snapshot:
        """Advance the portfolio to `timestamp` and return its snapshot."""
        state = self._require_state()
        if timestamp < state.last_fee_timestamp:
            raise ConfigurationError(
                f"step timestamp {timestamp} precedes previous step "
                f"{state.last_fee_timestamp}"
            )

        moves = self._resolve_price_moves(state, timestamp)
        rates: dict[int, int] = {}
        if timestamp > state.last_yield_timestamp:
            rates = self._resolve_yield_rates(timestamp)

        self._apply_price_moves(state, moves)
        yield_harvested = self._harvest_yield(state, timestamp, rates)

        rebalanced = self.should_rebalance(state, timestamp)
        if rebalanced:
            self._rebalance(state, timestamp)

        net_value, fees = self._accrue_fees(state, timestamp, state.total_value)

        return Snapshot(
            timestamp=timestamp,
            portfolio_value=net_value,
            asset_values=tuple(a.value for a in state.assets),
            asset_weights_bps=state.weights_bps(),
            yield_harvested=yield_harvested,
            rebalanced=rebalanced,
            estimated_cost=self._estimate_cost(
                rebalanced=rebalanced, harvested=yield_harvested > 0
            ),
            fees=fees,
        )
