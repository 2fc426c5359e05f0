"""State and output records for the portfolio simulator.

`PortfolioState` is mutable and owned by exactly one simulator. `Snapshot`
records are frozen once produced and collected into a `BacktestResult`.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, overload

if TYPE_CHECKING:
    import pandas as pd


@dataclass(slots=True)
class AssetState:
    """Ledgered value of one asset sleeve.

    ``base_value`` is the value at ``base_timestamp``; price moves are applied
    as ratios against that baseline.
    """

    asset_id: str
    value: int
    base_value: int
    base_timestamp: int


@dataclass(slots=True)
class PortfolioState:
    """Mutable simulation state, created by `PortfolioSimulator.initialize`."""

    assets: list[AssetState]
    last_rebalance_timestamp: int
    last_yield_timestamp: int
    last_fee_timestamp: int
    high_water_mark: int
    total_fees_accrued: int = 0
    total_yield_harvested: int = 0
    rebalance_count: int = 0

    @property
    def total_value(self) -> int:
        return sum(asset.value for asset in self.assets)

    def weights_bps(self) -> tuple[int, ...]:
        total = self.total_value
        if total == 0:
            return tuple(0 for _ in self.assets)
        return tuple(asset.value * 10_000 // total for asset in self.assets)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Portfolio view after one simulator step."""

    timestamp: int
    portfolio_value: int
    asset_values: tuple[int, ...]
    asset_weights_bps: tuple[int, ...]
    yield_harvested: int
    rebalanced: bool
    estimated_cost: int
    fees: int = 0


@dataclass
class BacktestResult(Sequence[Snapshot]):
    """Ordered, append-only snapshot sequence for one run."""

    asset_ids: tuple[str, ...] = ()
    snapshots: list[Snapshot] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.snapshots)

    @overload
    def __getitem__(self, index: int) -> Snapshot: ...

    @overload
    def __getitem__(self, index: slice) -> list[Snapshot]: ...

    def __getitem__(self, index):
        return self.snapshots[index]

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(self.snapshots)

    def append(self, snapshot: Snapshot) -> None:
        if self.snapshots and snapshot.timestamp <= self.snapshots[-1].timestamp:
            raise ValueError("snapshots must be appended in increasing time order")
        self.snapshots.append(snapshot)

    @property
    def timestamps(self) -> list[int]:
        return [s.timestamp for s in self.snapshots]

    @property
    def portfolio_values(self) -> list[int]:
        return [s.portfolio_value for s in self.snapshots]

    def asset_values(self, asset: int | str) -> list[int]:
        """Value path of one asset, by position or asset id."""
        position = self.asset_ids.index(asset) if isinstance(asset, str) else asset
        return [s.asset_values[position] for s in self.snapshots]

    @property
    def total_yield_harvested(self) -> int:
        return sum(s.yield_harvested for s in self.snapshots)

    @property
    def total_fees(self) -> int:
        return sum(s.fees for s in self.snapshots)

    @property
    def rebalance_count(self) -> int:
        return sum(1 for s in self.snapshots if s.rebalanced)

    def to_frame(self) -> pd.DataFrame:
        from .performance.tables import snapshots_to_frame

        return snapshots_to_frame(self)
