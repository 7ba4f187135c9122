"""In-memory transit index shared by the loaders and the query service."""

import logging
import threading
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from .models import Alert, Route, ServiceCalendar, ShapePoint, Stop, StopTime, Trip, Vehicle

logger = logging.getLogger(__name__)


def _empty() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class StaticSnapshot:
    """
    One fully built copy of the static feed and its derived indexes.

    Instances are read-only once constructed; use ``StaticSnapshot.build`` to
    freeze the working dicts produced by a loader.
    """
    stops: Mapping[str, Stop] = field(default_factory=_empty)
    routes: Mapping[str, Route] = field(default_factory=_empty)
    trips: Mapping[str, Trip] = field(default_factory=_empty)
    shapes: Mapping[str, Tuple[ShapePoint, ...]] = field(default_factory=_empty)
    # stop_id -> rows in feed order
    stop_times: Mapping[str, Tuple[StopTime, ...]] = field(default_factory=_empty)
    # route_id -> stop_ids
    route_stops: Mapping[str, FrozenSet[str]] = field(default_factory=_empty)
    calendar: Mapping[str, ServiceCalendar] = field(default_factory=_empty)

    @classmethod
    def build(
        cls,
        stops: Dict[str, Stop],
        routes: Dict[str, Route],
        trips: Dict[str, Trip],
        shapes: Dict[str, Iterable[ShapePoint]],
        stop_times: Dict[str, Iterable[StopTime]],
        route_stops: Dict[str, Iterable[str]],
        calendar: Dict[str, ServiceCalendar],
    ) -> "StaticSnapshot":
        return cls(
            stops=MappingProxyType(dict(stops)),
            routes=MappingProxyType(dict(routes)),
            trips=MappingProxyType(dict(trips)),
            shapes=MappingProxyType({k: tuple(v) for k, v in shapes.items()}),
            stop_times=MappingProxyType({k: tuple(v) for k, v in stop_times.items()}),
            route_stops=MappingProxyType({k: frozenset(v) for k, v in route_stops.items()}),
            calendar=MappingProxyType(dict(calendar)),
        )


@dataclass(frozen=True)
class RealtimeSnapshot:
    """Latest decoded vehicle positions and service alerts."""
    vehicles: Tuple[Vehicle, ...] = field(default_factory=tuple)
    alerts: Tuple[Alert, ...] = field(default_factory=tuple)


class TransitIndex:
    """
    Holds the currently published static and realtime snapshots.

    Readers grab ``index.static`` or ``index.realtime`` once per operation and
    work from that reference; publication replaces the reference in a single
    assignment, so a reader sees either the old or the new snapshot in full.
    """

    def __init__(self):
        """Start with empty snapshots so queries work before the first load."""
        self._static = StaticSnapshot()
        self._realtime = RealtimeSnapshot()
        # Only serializes realtime writers merging vehicles/alerts; never held during I/O
        self._realtime_write_lock = threading.Lock()

    @property
    def static(self) -> StaticSnapshot:
        return self._static

    @property
    def realtime(self) -> RealtimeSnapshot:
        return self._realtime

    def publish_static(self, snapshot: StaticSnapshot) -> None:
        """Replace the static snapshot wholesale."""
        self._static = snapshot
        logger.debug(f"Published static snapshot with {len(snapshot.stops)} stops")

    def publish_realtime(
        self,
        vehicles: Optional[Iterable[Vehicle]] = None,
        alerts: Optional[Iterable[Alert]] = None,
    ) -> RealtimeSnapshot:
        """
        Publish new vehicles and/or alerts.

        Args:
            vehicles: Replacement vehicle list, or None to keep the current one.
            alerts: Replacement alert list, or None to keep the current one.

        Returns:
            The snapshot that was published.
        """
        with self._realtime_write_lock:
            changes = {}
            if vehicles is not None:
                changes["vehicles"] = tuple(vehicles)
            if alerts is not None:
                changes["alerts"] = tuple(alerts)
            snapshot = replace(self._realtime, **changes)
            self._realtime = snapshot
        return snapshot

    def clear(self) -> None:
        """Drop all loaded data."""
        self._static = StaticSnapshot()
        with self._realtime_write_lock:
            self._realtime = RealtimeSnapshot()
        logger.info("Cleared transit data from memory")
