"""GTFS static feed loader."""

import io
import logging
import os
import zipfile
from typing import IO, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

import pandas as pd
import requests

from . import config
from .errors import DecodeError, FetchError
from .index import StaticSnapshot, TransitIndex
from .labels import route_category
from .models import WEEKDAYS, Route, ServiceCalendar, ShapePoint, Stop, StopTime, Trip

logger = logging.getLogger(__name__)

TableSource = Union[str, IO]

FEED_TABLES = ("calendar.txt", "routes.txt", "stops.txt", "trips.txt", "shapes.txt", "stop_times.txt")
# Without these the stop and route indexes cannot be built
REQUIRED_TABLES = ("stops.txt", "trips.txt", "stop_times.txt")


def _read_table(source: TableSource, chunksize: Optional[int] = None):
    """
    Read a GTFS table with every column kept as text.

    Returns a DataFrame, or an iterator of DataFrames when ``chunksize`` is set.
    """
    return pd.read_csv(
        source,
        dtype=str,
        keep_default_na=False,
        encoding="utf-8-sig",
        skipinitialspace=True,
        chunksize=chunksize,
    )


def _check_columns(df: pd.DataFrame, required: Iterable[str], table: str) -> pd.DataFrame:
    df.columns = df.columns.str.strip()
    missing = [column for column in required if column not in df.columns]
    if missing:
        raise DecodeError(f"{table} is missing required columns: {', '.join(missing)}")
    return df


def _column(df: pd.DataFrame, name: str) -> pd.Series:
    """Return a column, or a column of empty strings if the feed omits it."""
    if name in df.columns:
        return df[name]
    return pd.Series("", index=df.index, dtype=str)


class StaticFeedLoader:
    """Downloads, parses and indexes the GTFS static feed into a TransitIndex."""

    def __init__(
        self,
        index: TransitIndex,
        url: str = config.GTFS_STATIC_URL,
        timeout: float = config.STATIC_REQUEST_TIMEOUT,
    ):
        """
        Initialize the loader.

        Args:
            index: Index that receives each successfully built snapshot.
            url: Location of the GTFS zip archive.
            timeout: Seconds before the download is abandoned.
        """
        self.index = index
        self.url = url
        self.timeout = timeout

    def load(self) -> StaticSnapshot:
        """Download the feed archive and publish it."""
        logger.info(f"Downloading GTFS data from {self.url}")
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to download GTFS data: {e}")
            raise FetchError(f"Failed to download {self.url}: {e}") from e
        return self.load_from_bytes(response.content)

    def load_from_bytes(self, data: bytes) -> StaticSnapshot:
        """Parse an in-memory GTFS zip archive and publish it."""
        try:
            zip_file = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            logger.error(f"Failed to load GTFS data: {e}")
            raise DecodeError(f"GTFS archive is unreadable: {e}") from e

        with zip_file:
            # Some agencies nest the tables inside a folder
            members = {os.path.basename(name): name for name in zip_file.namelist()}

            def open_table(table: str) -> Optional[IO]:
                if table not in members:
                    return None
                return zip_file.open(members[table])

            return self._load_tables(open_table)

    def load_from_directory(self, path: str) -> StaticSnapshot:
        """Parse an unzipped GTFS feed directory and publish it."""
        logger.info(f"Loading GTFS data from {path}")

        def open_table(table: str) -> Optional[IO]:
            table_path = os.path.join(path, table)
            if not os.path.isfile(table_path):
                return None
            return open(table_path, "rb")

        return self._load_tables(open_table)

    def _load_tables(self, open_table: Callable[[str], Optional[IO]]) -> StaticSnapshot:
        """Build a complete snapshot from the feed tables, then publish it."""
        tables: Dict[str, Optional[IO]] = {}
        try:
            for table in FEED_TABLES:
                tables[table] = open_table(table)

            missing = [table for table in REQUIRED_TABLES if tables[table] is None]
            if missing:
                raise DecodeError(f"GTFS feed is missing required tables: {', '.join(missing)}")
            for table in FEED_TABLES:
                if tables[table] is None:
                    logger.warning(f"GTFS feed has no {table}")

            calendar = self._load_calendar(tables["calendar.txt"]) if tables["calendar.txt"] else {}
            routes = self._load_routes(tables["routes.txt"]) if tables["routes.txt"] else {}
            stops = self._load_stops(tables["stops.txt"])
            trips = self._load_trips(tables["trips.txt"])
            shapes = self._load_shapes(tables["shapes.txt"]) if tables["shapes.txt"] else {}
            stop_times, route_stops = self._load_stop_times(tables["stop_times.txt"], trips)
        except DecodeError as e:
            logger.error(f"Failed to load GTFS data: {e}")
            raise
        except (ValueError, OSError, zipfile.BadZipFile) as e:
            logger.error(f"Failed to load GTFS data: {e}")
            raise DecodeError(f"GTFS feed is malformed: {e}") from e
        finally:
            for handle in tables.values():
                if handle is not None:
                    handle.close()

        snapshot = StaticSnapshot.build(
            stops=stops,
            routes=routes,
            trips=trips,
            shapes=shapes,
            stop_times=stop_times,
            route_stops=route_stops,
            calendar=calendar,
        )
        self.index.publish_static(snapshot)
        logger.info(
            f"Loaded {len(stops)} stops, {len(routes)} routes, {len(trips)} trips, "
            f"{len(shapes)} shapes and indexed stops for {len(route_stops)} routes"
        )
        return snapshot

    @staticmethod
    def _load_calendar(source: TableSource) -> Dict[str, ServiceCalendar]:
        """Parse calendar.txt into a service_id lookup."""
        df = _check_columns(_read_table(source), ("service_id",), "calendar.txt")
        flags = pd.DataFrame({day: _column(df, day).str.strip() == "1" for day in WEEKDAYS})
        calendar = {}
        for service_id, start_date, end_date, days in zip(
            df["service_id"],
            _column(df, "start_date"),
            _column(df, "end_date"),
            flags.to_dict("records"),
        ):
            calendar[service_id] = ServiceCalendar(
                service_id=service_id,
                start_date=start_date,
                end_date=end_date,
                **{day: bool(active) for day, active in days.items()},
            )
        logger.debug(f"Loaded {len(calendar)} calendars")
        return calendar

    @staticmethod
    def _load_routes(source: TableSource) -> Dict[str, Route]:
        """Parse routes.txt and categorize each route by its short name."""
        df = _check_columns(_read_table(source), ("route_id",), "routes.txt")
        routes = {}
        for route_id, short_name, long_name, description in zip(
            df["route_id"],
            _column(df, "route_short_name"),
            _column(df, "route_long_name"),
            _column(df, "route_desc"),
        ):
            routes[route_id] = Route(
                route_id=route_id,
                short_name=short_name,
                long_name=long_name,
                description=description,
                category=route_category(short_name),
            )
        return routes

    @staticmethod
    def _load_stops(source: TableSource) -> Dict[str, Stop]:
        """Parse stops.txt, converting coordinates to floats."""
        df = _check_columns(_read_table(source), ("stop_id", "stop_lat", "stop_lon"), "stops.txt")
        latitudes = pd.to_numeric(df["stop_lat"], errors="coerce")
        longitudes = pd.to_numeric(df["stop_lon"], errors="coerce")

        stops = {}
        skipped = 0
        for stop_id, name, code, latitude, longitude in zip(
            df["stop_id"], _column(df, "stop_name"), _column(df, "stop_code"), latitudes, longitudes
        ):
            if pd.isna(latitude) or pd.isna(longitude):
                skipped += 1
                continue
            stops[stop_id] = Stop(
                stop_id=stop_id,
                name=name,
                code=code,
                latitude=float(latitude),
                longitude=float(longitude),
            )

        if skipped:
            logger.warning(f"Skipped {skipped} stops without valid coordinates")
        return stops

    @staticmethod
    def _load_trips(source: TableSource) -> Dict[str, Trip]:
        """Parse trips.txt into a trip_id lookup."""
        df = _check_columns(_read_table(source), ("trip_id", "route_id", "service_id"), "trips.txt")
        trips = {}
        for trip_id, route_id, service_id, headsign, shape_id in zip(
            df["trip_id"],
            df["route_id"],
            df["service_id"],
            _column(df, "trip_headsign"),
            _column(df, "shape_id"),
        ):
            trips[trip_id] = Trip(
                trip_id=trip_id,
                route_id=route_id,
                service_id=service_id,
                headsign=headsign,
                shape_id=shape_id or None,
            )
        return trips

    @staticmethod
    def _load_shapes(source: TableSource) -> Dict[str, List[ShapePoint]]:
        """Parse shapes.txt into per-shape point lists ordered by sequence."""
        df = _check_columns(
            _read_table(source),
            ("shape_id", "shape_pt_lat", "shape_pt_lon", "shape_pt_sequence"),
            "shapes.txt",
        )
        df = df.astype({"shape_pt_lat": float, "shape_pt_lon": float, "shape_pt_sequence": int})
        # Stable sort keeps feed order for repeated sequence numbers
        df = df.sort_values(["shape_id", "shape_pt_sequence"], kind="stable")

        shapes = {}
        for shape_id, group in df.groupby("shape_id", sort=False):
            shapes[shape_id] = [
                ShapePoint(latitude=float(lat), longitude=float(lon), sequence=int(sequence))
                for lat, lon, sequence in zip(
                    group["shape_pt_lat"], group["shape_pt_lon"], group["shape_pt_sequence"]
                )
            ]
        return shapes

    @staticmethod
    def _load_stop_times(
        source: TableSource, trips: Dict[str, Trip]
    ) -> Tuple[Dict[str, List[StopTime]], Dict[str, Set[str]]]:
        """
        Stream stop_times.txt, indexing rows by stop and stops by route.

        Rows are grouped by stop_id in feed order. A row only links its stop to a
        route when its trip_id is present in ``trips``.

        Returns:
            (stop_id -> [StopTime], route_id -> {stop_id})
        """
        stop_times: Dict[str, List[StopTime]] = {}
        route_stops: Dict[str, Set[str]] = {}
        rows = 0

        for chunk in _read_table(source, chunksize=config.STOP_TIMES_CHUNK_SIZE):
            chunk = _check_columns(chunk, ("trip_id", "stop_id", "departure_time"), "stop_times.txt")
            for trip_id, stop_id, departure_time in zip(
                chunk["trip_id"], chunk["stop_id"], chunk["departure_time"]
            ):
                if stop_id not in stop_times:
                    stop_times[stop_id] = []
                stop_times[stop_id].append(
                    StopTime(trip_id=trip_id, stop_id=stop_id, departure_time=departure_time)
                )

                trip = trips.get(trip_id)
                if trip:
                    if trip.route_id not in route_stops:
                        route_stops[trip.route_id] = set()
                    route_stops[trip.route_id].add(stop_id)
            rows += len(chunk)

        logger.debug(f"Indexed {rows} stop_times rows across {len(stop_times)} stops")
        return stop_times, route_stops
