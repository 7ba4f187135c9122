"""Read-only lookups over the published transit snapshots."""

from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from . import config
from .index import TransitIndex
from .labels import short_name_number
from .models import (
    Alert,
    Departure,
    Route,
    RouteSummary,
    ScheduledDeparture,
    ServiceSchedule,
    ShapePoint,
    Stop,
    Vehicle,
)


def _route_sort_key(route: RouteSummary) -> Tuple[bool, int]:
    number = short_name_number(route.short_name)
    # Numbered routes first, the rest keep their first-seen order
    return (number is None, number if number is not None else 0)


class QueryService:
    """
    Answers client lookups from a TransitIndex.

    Every method reads the snapshot reference once and never writes, so results
    are consistent with a single published snapshot and never block on a load.
    Unknown ids produce empty results (or None for shapes), not exceptions.
    """

    def __init__(self, index: TransitIndex, max_departures: int = config.MAX_DEPARTURES):
        self.index = index
        self.max_departures = max_departures

    def get_stops(self) -> List[Stop]:
        return list(self.index.static.stops.values())

    def get_routes(self) -> List[Route]:
        return list(self.index.static.routes.values())

    def get_vehicles(self) -> List[Vehicle]:
        return list(self.index.realtime.vehicles)

    def get_alerts(self) -> List[Alert]:
        return list(self.index.realtime.alerts)

    def get_vehicles_for_route(self, route_id: str) -> List[Vehicle]:
        """Vehicles currently reporting a trip on ``route_id``."""
        return [v for v in self.index.realtime.vehicles if v.route_id == route_id]

    def find_stops(self, text: str) -> List[Stop]:
        """Find stops whose name or code contains ``text`` (case-insensitive)."""
        needle = text.lower()
        return [
            stop
            for stop in self.index.static.stops.values()
            if needle in stop.name.lower() or needle in stop.code.lower()
        ]

    def find_routes(self, text: str) -> List[Route]:
        """Find routes whose short or long name contains ``text`` (case-insensitive)."""
        needle = text.lower()
        return [
            route
            for route in self.index.static.routes.values()
            if needle in route.short_name.lower() or needle in route.long_name.lower()
        ]

    def get_routes_for_stop(self, stop_id: str) -> List[RouteSummary]:
        """
        Get the distinct routes whose trips visit a stop.

        Args:
            stop_id: GTFS stop_id.

        Returns:
            RouteSummary list ordered by the numeric value of the short name.
        """
        snapshot = self.index.static
        unique_routes: Dict[str, RouteSummary] = {}

        for stop_time in snapshot.stop_times.get(stop_id, ()):
            trip = snapshot.trips.get(stop_time.trip_id)
            if not trip or trip.route_id in unique_routes:
                continue

            route = snapshot.routes.get(trip.route_id)
            if route:
                unique_routes[route.route_id] = RouteSummary(
                    route_id=route.route_id,
                    short_name=route.short_name,
                    long_name=route.long_name,
                    description=route.description,
                )

        return sorted(unique_routes.values(), key=_route_sort_key)

    def get_departures_for_stop(self, stop_id: str, now: Optional[datetime] = None) -> List[Departure]:
        """
        Get the next scheduled departures from a stop.

        Departure times are compared as HH:MM:SS text against the local wall
        clock, so times past "24:00:00" are not treated as early-morning service
        and the window does not wrap around midnight.

        Args:
            stop_id: GTFS stop_id.
            now: Reference time, defaults to the current local time.

        Returns:
            Up to ``max_departures`` departures sorted by time, with repeated
            (time, route, headsign) combinations removed.
        """
        snapshot = self.index.static
        current_time = (now or datetime.now()).strftime("%H:%M:%S")

        upcoming = sorted(
            (st for st in snapshot.stop_times.get(stop_id, ()) if st.departure_time >= current_time),
            key=lambda st: st.departure_time,
        )

        departures: List[Departure] = []
        seen: Set[Tuple[str, str, str]] = set()

        for stop_time in upcoming:
            if len(departures) >= self.max_departures:
                break

            trip = snapshot.trips.get(stop_time.trip_id)
            if not trip:
                continue

            # Service variants often repeat the same bus at the same time
            key = (stop_time.departure_time, trip.route_id, trip.headsign)
            if key in seen:
                continue
            seen.add(key)

            departures.append(
                Departure(
                    departure_time=stop_time.departure_time,
                    trip_id=stop_time.trip_id,
                    route_id=trip.route_id,
                    headsign=trip.headsign,
                    service_id=trip.service_id,
                )
            )

        return departures

    def get_shape_for_trip(self, trip_id: str) -> Optional[List[ShapePoint]]:
        """Ordered path of a trip, or None if the trip or its shape is unknown."""
        snapshot = self.index.static
        trip = snapshot.trips.get(trip_id)
        if not trip or not trip.shape_id:
            return None
        points = snapshot.shapes.get(trip.shape_id)
        if not points:
            return None
        return list(points)

    def get_stops_for_route(self, route_id: str) -> List[Stop]:
        """Stops served by a route, in no particular order."""
        snapshot = self.index.static
        stop_ids = snapshot.route_stops.get(route_id, frozenset())
        return [snapshot.stops[stop_id] for stop_id in stop_ids if stop_id in snapshot.stops]

    def get_schedule_for_stop(self, stop_id: str, route_id: str) -> Dict[str, ServiceSchedule]:
        """
        Get the timetable of one route at one stop, grouped by service id.

        Args:
            stop_id: GTFS stop_id.
            route_id: GTFS route_id.

        Returns:
            service_id -> ServiceSchedule. The calendar is None when calendar.txt
            has no entry for the service.
        """
        snapshot = self.index.static
        grouped: Dict[str, List[ScheduledDeparture]] = {}

        for stop_time in snapshot.stop_times.get(stop_id, ()):
            trip = snapshot.trips.get(stop_time.trip_id)
            if not trip or trip.route_id != route_id:
                continue
            if trip.service_id not in grouped:
                grouped[trip.service_id] = []
            grouped[trip.service_id].append(
                ScheduledDeparture(time=stop_time.departure_time, headsign=trip.headsign)
            )

        return {
            service_id: ServiceSchedule(
                service_id=service_id,
                calendar=snapshot.calendar.get(service_id),
                departures=tuple(sorted(departures, key=lambda d: d.time)),
            )
            for service_id, departures in grouped.items()
        }
