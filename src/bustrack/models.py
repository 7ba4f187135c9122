"""Data models for BusTrack.

Records are parsed once when a feed is loaded and never mutated afterwards.
``to_dict`` returns the JSON shape served to clients: static records keep the
GTFS column names, derived query results use camelCase keys.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class Stop:
    """A physical boarding location."""
    stop_id: str
    name: str
    code: str
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stop_id": self.stop_id,
            "stop_name": self.name,
            "stop_code": self.code,
            "stop_lat": self.latitude,
            "stop_lon": self.longitude,
        }


@dataclass(frozen=True)
class Route:
    """A named transit line."""
    route_id: str
    short_name: str
    long_name: str
    description: str
    category: str  # Corridor, Express, Regional Express or Local

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route_id": self.route_id,
            "route_short_name": self.short_name,
            "route_long_name": self.long_name,
            "route_desc": self.description,
            "category": self.category,
        }


@dataclass(frozen=True)
class Trip:
    """One scheduled run of a route."""
    trip_id: str
    route_id: str
    service_id: str
    headsign: str
    shape_id: Optional[str] = None


@dataclass(frozen=True)
class StopTime:
    """A trip's scheduled visit to a stop."""
    trip_id: str
    stop_id: str
    departure_time: str  # HH:MM:SS, hours may exceed 23


@dataclass(frozen=True)
class ShapePoint:
    """One vertex of a trip's path."""
    latitude: float
    longitude: float
    sequence: int

    def to_dict(self) -> Dict[str, Any]:
        return {"lat": self.latitude, "lon": self.longitude, "sequence": self.sequence}


@dataclass(frozen=True)
class ServiceCalendar:
    """Days of the week a service id operates."""
    service_id: str
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False
    start_date: str = ""
    end_date: str = ""

    @property
    def active_days(self) -> Tuple[str, ...]:
        """Names of the active weekdays, Monday first."""
        return tuple(day for day in WEEKDAYS if getattr(self, day))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"service_id": self.service_id}
        for day in WEEKDAYS:
            data[day] = "1" if getattr(self, day) else "0"
        data["start_date"] = self.start_date
        data["end_date"] = self.end_date
        return data


@dataclass(frozen=True)
class Vehicle:
    """A live vehicle position report."""
    id: str
    trip_id: Optional[str]
    route_id: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    bearing: Optional[float]
    speed: Optional[float]
    label: Optional[str]
    timestamp: int  # Unix timestamp of the report
    last_updated: int  # Seconds between the report and the refresh that decoded it
    status: str  # on_route or off_route

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "vehicle": {
                "tripId": self.trip_id,
                "routeId": self.route_id,
                "latitude": self.latitude,
                "longitude": self.longitude,
                "bearing": self.bearing,
                "speed": self.speed,
                "vehicleLabel": self.label,
                "timestamp": self.timestamp,
                "lastUpdated": self.last_updated,
                "status": self.status,
            },
        }


@dataclass(frozen=True)
class Alert:
    """A live service disruption notice."""
    id: str
    header_text: str
    description_text: str
    informed_entities: Tuple[Dict[str, Any], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "alert": {
                "headerText": self.header_text,
                "descriptionText": self.description_text,
                "informedEntity": list(self.informed_entities),
            },
        }


@dataclass(frozen=True)
class RouteSummary:
    """Route metadata returned for a stop."""
    route_id: str
    short_name: str
    long_name: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "routeId": self.route_id,
            "routeShortName": self.short_name,
            "routeLongName": self.long_name,
            "routeDesc": self.description,
        }


@dataclass(frozen=True)
class Departure:
    """An upcoming scheduled departure from a stop."""
    departure_time: str
    trip_id: str
    route_id: str
    headsign: str
    service_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "departureTime": self.departure_time,
            "tripId": self.trip_id,
            "routeId": self.route_id,
            "headsign": self.headsign,
            "serviceId": self.service_id,
        }


@dataclass(frozen=True)
class ScheduledDeparture:
    """A timetable entry."""
    time: str
    headsign: str

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "headsign": self.headsign}


@dataclass(frozen=True)
class ServiceSchedule:
    """Timetable of one route at one stop for a single service id."""
    service_id: str
    calendar: Optional[ServiceCalendar]
    departures: Tuple[ScheduledDeparture, ...]

    @property
    def label(self) -> str:
        from .labels import service_label

        return service_label(self.calendar)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "calendar": self.calendar.to_dict() if self.calendar else None,
            "label": self.label,
            "departures": [d.to_dict() for d in self.departures],
        }
