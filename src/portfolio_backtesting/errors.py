"""Error kinds raised by the backtesting core."""

from __future__ import annotations


class BacktestError(Exception):
    """Base class for all backtesting errors."""


class ConfigurationError(BacktestError, ValueError):
    """Invalid weights, empty asset list, mismatched inputs or time range."""


class DataUnavailable(BacktestError, LookupError):
    """No series point found at (or within tolerance of) a timestamp."""

    def __init__(
        self,
        series_id: str,
        timestamp: int,
        max_delta: int = 0,
    ) -> None:
        self.series_id = series_id
        self.timestamp = timestamp
        self.max_delta = max_delta
        if max_delta:
            msg = (
                f"no data for series {series_id!r} within {max_delta}s "
                f"of timestamp {timestamp}"
            )
        else:
            msg = f"no data for series {series_id!r} at timestamp {timestamp}"
        super().__init__(msg)


class InsufficientHistory(BacktestError, ValueError):
    """Too few observations to compute a statistic."""

    def __init__(self, required: int, actual: int) -> None:
        self.required = required
        self.actual = actual
        super().__init__(
            f"at least {required} observations are required, got {actual}"
        )
