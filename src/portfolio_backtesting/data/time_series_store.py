"""Keyed (series, timestamp) -> value storage with nearest-match lookups.

Each series keeps a dict of points plus a sorted timestamp index, so
`get_nearest` is a pair of bisections instead of a scan over every second in
the tolerance window. The result is identical to scanning deltas
``1..max_delta`` outward and checking ``timestamp - delta`` before
``timestamp + delta``: the closest point wins and the earlier point wins ties.
"""

from __future__ import annotations

import logging
from bisect import bisect_left, insort
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import pandas as pd

from portfolio_backtesting.errors import ConfigurationError, DataUnavailable
from portfolio_backtesting.fixed_point import to_wad

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NearestPoint:
    """Value found by a nearest-match lookup and where it was found."""

    value: int
    timestamp: int
    requested: int

    @property
    def is_exact(self) -> bool:
        return self.timestamp == self.requested


def _check_timestamp(timestamp: object) -> int:
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise ConfigurationError(f"timestamp must be an int, got {timestamp!r}")
    return timestamp


def _check_value(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"value must be an int, got {value!r}")
    if value < 0:
        raise ConfigurationError(f"value must be >= 0, got {value}")
    return value


class TimeSeriesStore:
    """In-memory price/yield observations keyed by series id and timestamp."""

    def __init__(self) -> None:
        self._points: dict[str, dict[int, int]] = {}
        self._index: dict[str, list[int]] = {}

    def __len__(self) -> int:
        return sum(len(points) for points in self._points.values())

    def __contains__(self, key: tuple[str, int]) -> bool:
        series_id, timestamp = key
        return timestamp in self._points.get(series_id, {})

    def set_point(self, series_id: str, timestamp: int, value: int) -> None:
        """Insert or overwrite one observation."""
        ts = _check_timestamp(timestamp)
        val = _check_value(value)
        points = self._points.setdefault(series_id, {})
        if ts not in points:
            insort(self._index.setdefault(series_id, []), ts)
        points[ts] = val

    def batch_set_points(
        self,
        series_id: str,
        timestamps: Sequence[int],
        values: Sequence[int],
    ) -> None:
        """Insert many observations; lengths must match."""
        if len(timestamps) != len(values):
            raise ConfigurationError(
                f"timestamps and values must have equal length "
                f"({len(timestamps)} != {len(values)})"
            )
        checked = [
            (_check_timestamp(ts), _check_value(val))
            for ts, val in zip(timestamps, values)
        ]
        for ts, val in checked:
            self.set_point(series_id, ts, val)

    def set_series(
        self,
        series_id: str,
        series: pd.Series,
        *,
        scale_to_wad: bool = True,
    ) -> int:
        """Bulk-load a pandas Series indexed by datetimes or unix seconds.

        Float values are converted to WAD-scaled ints when `scale_to_wad` is
        set; otherwise they must already be integral. Null rows are dropped.
        Returns the number of points written.
        """
        cleaned = pd.Series(series).dropna()
        if isinstance(cleaned.index, pd.DatetimeIndex):
            index = cleaned.index
            if index.tz is not None:
                index = index.tz_convert("UTC").tz_localize(None)
            seconds = (index - pd.Timestamp("1970-01-01")) // pd.Timedelta(seconds=1)
            timestamps = [int(ts) for ts in seconds]
        else:
            try:
                timestamps = [int(ts) for ts in cleaned.index]
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(
                    "series must be indexed by datetimes or integer timestamps"
                ) from exc

        if scale_to_wad:
            values = [to_wad(v) for v in cleaned.tolist()]
        else:
            values = [int(v) for v in cleaned.tolist()]

        self.batch_set_points(series_id, timestamps, values)
        logger.debug("Loaded %d points into series %s", len(values), series_id)
        return len(values)

    def get_exact(self, series_id: str, timestamp: int) -> int:
        """Return the value stored at exactly `timestamp`."""
        try:
            return self._points[series_id][timestamp]
        except KeyError:
            raise DataUnavailable(series_id, timestamp) from None

    def get(
        self, series_id: str, timestamp: int, default: int | None = None
    ) -> int | None:
        return self._points.get(series_id, {}).get(timestamp, default)

    def get_nearest(
        self,
        series_id: str,
        timestamp: int,
        max_delta: int,
    ) -> NearestPoint:
        """Return the closest observation within `max_delta` seconds.

        An exact hit is returned as is. Otherwise the nearest earlier and the
        nearest later point are compared; the earlier one wins on equal
        distance. Raises `DataUnavailable` when nothing lies within range.
        """
        if max_delta < 0:
            raise ConfigurationError("max_delta must be >= 0")
        points = self._points.get(series_id)
        if not points:
            raise DataUnavailable(series_id, timestamp, max_delta)

        exact = points.get(timestamp)
        if exact is not None:
            return NearestPoint(value=exact, timestamp=timestamp, requested=timestamp)

        index = self._index[series_id]
        pos = bisect_left(index, timestamp)

        best: int | None = None
        if pos > 0:
            before = index[pos - 1]
            if timestamp - before <= max_delta:
                best = before
        if pos < len(index):
            after = index[pos]
            delta_after = after - timestamp
            if delta_after <= max_delta and (
                best is None or delta_after < timestamp - best
            ):
                best = after

        if best is None:
            raise DataUnavailable(series_id, timestamp, max_delta)
        return NearestPoint(value=points[best], timestamp=best, requested=timestamp)

    def has_series(self, series_id: str) -> bool:
        return bool(self._points.get(series_id))

    def series_ids(self) -> list[str]:
        return sorted(sid for sid, points in self._points.items() if points)

    def timestamps(self, series_id: str) -> list[int]:
        return list(self._index.get(series_id, []))

    def items(self, series_id: str) -> Iterable[tuple[int, int]]:
        points = self._points.get(series_id, {})
        for ts in self._index.get(series_id, []):
            yield ts, points[ts]

    def clear(self) -> None:
        self._points.clear()
        self._index.clear()
