"""BusTrack - In-memory GTFS and GTFS-Realtime index for transit rider apps."""

__version__ = "0.1.0"

from .errors import LoadError, FetchError, DecodeError
from .models import (
    Stop,
    Route,
    Trip,
    StopTime,
    ShapePoint,
    ServiceCalendar,
    Vehicle,
    Alert,
    RouteSummary,
    Departure,
    ScheduledDeparture,
    ServiceSchedule,
)
from .labels import route_category, service_label
from .index import TransitIndex, StaticSnapshot, RealtimeSnapshot
from .gtfs_loader import StaticFeedLoader
from .realtime_client import RealtimeFeedUpdater
from .query import QueryService
from .scheduler import PeriodicRefresher
from .tracker import TransitTracker

__all__ = [
    "TransitTracker",
    "TransitIndex",
    "StaticSnapshot",
    "RealtimeSnapshot",
    "StaticFeedLoader",
    "RealtimeFeedUpdater",
    "QueryService",
    "PeriodicRefresher",
    "LoadError",
    "FetchError",
    "DecodeError",
    "Stop",
    "Route",
    "Trip",
    "StopTime",
    "ShapePoint",
    "ServiceCalendar",
    "Vehicle",
    "Alert",
    "RouteSummary",
    "Departure",
    "ScheduledDeparture",
    "ServiceSchedule",
    "route_category",
    "service_label",
]
