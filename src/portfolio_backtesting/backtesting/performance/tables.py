"""Tabular views of a snapshot sequence for notebooks and downstream reporting."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pandas as pd

from portfolio_backtesting.fixed_point import WAD

from ..types import BacktestResult, Snapshot
from .calculators import drawdown_series


def snapshots_to_frame(
    snapshots: BacktestResult | Sequence[Snapshot],
    asset_ids: Sequence[str] | None = None,
) -> pd.DataFrame:
    """One row per snapshot, indexed by UTC datetime.

    Value columns keep exact Python ints (``object`` dtype) since scaled
    amounts overflow int64. ``drawdown`` is a float fraction.
    """
    if asset_ids is None:
        asset_ids = getattr(snapshots, "asset_ids", ())
    snaps = list(snapshots)
    n_assets = len(snaps[0].asset_values) if snaps else len(asset_ids)
    if not asset_ids:
        asset_ids = [f"asset_{i}" for i in range(n_assets)]
    if len(asset_ids) != n_assets:
        raise ValueError("asset_ids length does not match snapshot asset count")

    index = pd.to_datetime([s.timestamp for s in snaps], unit="s", utc=True)
    index.name = "timestamp"

    nav = [s.portfolio_value for s in snaps]
    frame = pd.DataFrame(
        {
            "portfolio_value": np.array(nav, dtype=object),
            "yield_harvested": np.array([s.yield_harvested for s in snaps], dtype=object),
            "fees": np.array([s.fees for s in snaps], dtype=object),
            "rebalanced": np.array([s.rebalanced for s in snaps], dtype=bool),
            "estimated_cost": np.array([s.estimated_cost for s in snaps], dtype=np.int64),
            "drawdown": np.array(drawdown_series(nav), dtype=float) / WAD,
        },
        index=index,
    )

    values = np.array([s.asset_values for s in snaps], dtype=object).reshape(
        len(snaps), n_assets
    )
    weights = np.array([s.asset_weights_bps for s in snaps], dtype=np.int64).reshape(
        len(snaps), n_assets
    )
    for j, asset_id in enumerate(asset_ids):
        frame[f"value_{asset_id}"] = values[:, j]
        frame[f"weight_bps_{asset_id}"] = weights[:, j]
    return frame
