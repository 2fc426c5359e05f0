from .bundle import MarketDataBundle
from .time_series_store import NearestPoint, TimeSeriesStore

__all__ = [
    "MarketDataBundle",
    "NearestPoint",
    "TimeSeriesStore",
]
