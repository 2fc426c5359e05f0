"""Drive a `PortfolioSimulator` across a time range and collect snapshots."""

from __future__ import annotations

import logging
from typing import Callable

from portfolio_backtesting.errors import ConfigurationError

from .simulator import PortfolioSimulator
from .types import BacktestResult

logger = logging.getLogger(__name__)

RefreshHook = Callable[[int], None]


def _noop_refresh(timestamp: int) -> None:
    _ = timestamp


def step_count(start_timestamp: int, end_timestamp: int, step_seconds: int) -> int:
    """Number of steps a run over ``[start, end]`` performs."""
    return (end_timestamp - start_timestamp) // step_seconds + 1


class BacktestOrchestrator:
    """Single-pass, all-or-nothing backtest runner.

    A run either completes and replaces `result`, or fails and leaves both
    `result` and the simulator state as they were before the call.
    """

    def __init__(
        self,
        simulator: PortfolioSimulator,
        *,
        refresh_hook: RefreshHook | None = None,
    ) -> None:
        self.simulator = simulator
        self.refresh_hook = refresh_hook or _noop_refresh
        self._result = BacktestResult()

    @property
    def result(self) -> BacktestResult:
        return self._result

    def run(
        self,
        start_timestamp: int,
        end_timestamp: int,
        step_seconds: int,
    ) -> BacktestResult:
        """Initialize at `start_timestamp` and step through `end_timestamp`."""
        if end_timestamp <= start_timestamp:
            raise ConfigurationError("end_timestamp must be > start_timestamp")
        if step_seconds <= 0:
            raise ConfigurationError("step_seconds must be > 0")

        saved_state = self.simulator.export_state()
        n_steps = step_count(start_timestamp, end_timestamp, step_seconds)
        logger.info(
            "Running backtest t=[%d, %d] every %ds (%d steps)",
            start_timestamp,
            end_timestamp,
            step_seconds,
            n_steps,
        )

        try:
            self.simulator.initialize(start_timestamp)
            pending = BacktestResult(asset_ids=self.simulator.asset_ids)
            t = start_timestamp
            while t <= end_timestamp:
                self.refresh_hook(t)
                pending.append(self.simulator.step(t))
                t += step_seconds
        except Exception:
            logger.error(
                "Backtest failed; restoring simulator state and previous result"
            )
            self.simulator.restore_state(saved_state)
            raise

        self._result = pending
        logger.info(
            "Backtest finished: %d snapshots, %d rebalances, final NAV %d",
            len(pending),
            pending.rebalance_count,
            pending[-1].portfolio_value,
        )
        return pending
