"""Main BusTrack tracker class."""

import logging
from typing import Optional

from . import config
from .gtfs_loader import StaticFeedLoader
from .index import TransitIndex
from .query import QueryService
from .realtime_client import RealtimeFeedUpdater
from .scheduler import PeriodicRefresher

logger = logging.getLogger(__name__)


class TransitTracker:
    """
    Keeps an agency's schedule and live bus data in memory and answers lookups.

    This class wires together:
    - a StaticFeedLoader, reloaded every ``static_interval`` seconds
    - a RealtimeFeedUpdater, refreshed every ``realtime_interval`` seconds
    - a QueryService reading whatever each loader last published

    Queries are available through ``tracker.query`` as soon as the tracker is
    created; they return empty results until the first static load succeeds.
    """

    def __init__(
        self,
        static_url: str = config.GTFS_STATIC_URL,
        vehicles_url: str = config.GTFS_VEHICLES_URL,
        alerts_url: str = config.GTFS_ALERTS_URL,
        static_interval: float = config.STATIC_REFRESH_INTERVAL,
        realtime_interval: float = config.REALTIME_REFRESH_INTERVAL,
        index: Optional[TransitIndex] = None,
    ):
        """
        Initialize the tracker without fetching anything.

        Args:
            static_url: GTFS static zip archive.
            vehicles_url: GTFS-Realtime VehiclePositions feed.
            alerts_url: GTFS-Realtime Alerts feed.
            static_interval: Seconds between static reloads.
            realtime_interval: Seconds between realtime refreshes.
            index: Existing index to share, mainly for tests.
        """
        self.index = index or TransitIndex()
        self.static_loader = StaticFeedLoader(self.index, url=static_url)
        self.realtime_updater = RealtimeFeedUpdater(
            self.index, vehicles_url=vehicles_url, alerts_url=alerts_url
        )
        self.query = QueryService(self.index)

        self.static_refresher = PeriodicRefresher("gtfs-static", self.static_loader.load, static_interval)
        self.realtime_refresher = PeriodicRefresher(
            "gtfs-realtime", self.realtime_updater.refresh, realtime_interval
        )

    def start(self) -> None:
        """Start the static and realtime refreshers; both run immediately."""
        self.static_refresher.start()
        self.realtime_refresher.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop both refreshers."""
        self.realtime_refresher.stop(timeout)
        self.static_refresher.stop(timeout)

    def reload_static(self) -> bool:
        """Reload the static feed now, unless a reload is already running."""
        return self.static_refresher.run_once()

    def refresh_realtime(self) -> bool:
        """Refresh vehicles and alerts now, unless a refresh is already running."""
        return self.realtime_refresher.run_once()

    def cleanup(self) -> None:
        """Stop background work and drop loaded data."""
        self.stop()
        self.index.clear()
        logger.info("Cleaned up tracker resources")

    def __enter__(self) -> "TransitTracker":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
