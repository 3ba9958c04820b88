"""Scrape-cycle time window computation."""

from __future__ import annotations

from datetime import datetime, timedelta

from azure_metrics.domain.exceptions import ConfigurationError
from azure_metrics.domain.models import TimeWindow
from azure_metrics.utils.timestamps import ensure_utc

DEFAULT_WINDOW_WIDTH = timedelta(minutes=5)
DEFAULT_WINDOW_LAG = timedelta(minutes=5)


class TimeWindowResolver:
    """Computes ``[now - lag - width, now - lag)`` for each scrape.

    Azure Monitor ingests with a delay, so the window trails ``now`` by
    ``lag``. ``now`` is truncated to whole seconds so the rendered timespan
    is exactly the window that was computed.
    """

    def __init__(
        self,
        width: timedelta = DEFAULT_WINDOW_WIDTH,
        lag: timedelta = DEFAULT_WINDOW_LAG,
    ) -> None:
        if width <= timedelta(0):
            raise ConfigurationError(
                "window width must be greater than zero",
                context={"width_seconds": width.total_seconds()},
            )
        if lag < timedelta(0):
            raise ConfigurationError(
                "window lag cannot be negative",
                context={"lag_seconds": lag.total_seconds()},
            )
        self.width = width
        self.lag = lag

    def resolve(self, now: datetime) -> TimeWindow:
        end = ensure_utc(now).replace(microsecond=0) - self.lag
        return TimeWindow(start=end - self.width, end=end)
