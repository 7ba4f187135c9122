"""GTFS-Realtime vehicle position and alert fetcher."""

import logging
import math
import time
from typing import Callable, List, Optional

import requests
from google.protobuf import json_format
from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.transit import gtfs_realtime_pb2

from . import config
from .errors import DecodeError, FetchError, LoadError
from .index import TransitIndex
from .models import Alert, Vehicle

logger = logging.getLogger(__name__)


class RealtimeFeedUpdater:
    """Fetches the realtime feeds and publishes vehicles and alerts into a TransitIndex."""

    def __init__(
        self,
        index: TransitIndex,
        vehicles_url: str = config.GTFS_VEHICLES_URL,
        alerts_url: str = config.GTFS_ALERTS_URL,
        timeout: float = config.REALTIME_REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the updater.

        Args:
            index: Index that receives decoded vehicles and alerts.
            vehicles_url: VehiclePositions protobuf feed.
            alerts_url: Alerts protobuf feed.
            timeout: Seconds before a fetch is abandoned.
            clock: Returns the current Unix time.
        """
        self.index = index
        self.vehicles_url = vehicles_url
        self.alerts_url = alerts_url
        self.timeout = timeout
        self._clock = clock

    def refresh(self) -> None:
        """
        Refresh vehicles and alerts.

        Each feed is fetched and published independently, so a failing alerts
        feed does not hold back vehicle positions and vice versa.

        Raises:
            LoadError: If either feed failed. Whatever succeeded is already published.
        """
        failures = []
        for name, refresh in (("vehicles", self.refresh_vehicles), ("alerts", self.refresh_alerts)):
            try:
                refresh()
            except LoadError as e:
                failures.append(f"{name}: {e}")

        if failures:
            raise LoadError("; ".join(failures))

    def refresh_vehicles(self) -> List[Vehicle]:
        """Fetch, decode and publish vehicle positions."""
        feed = self._fetch_feed(self.vehicles_url)
        vehicles = self._parse_vehicles(feed, self._clock())
        self.index.publish_realtime(vehicles=vehicles)
        logger.debug(f"Published {len(vehicles)} vehicles")
        return vehicles

    def refresh_alerts(self) -> List[Alert]:
        """Fetch, decode and publish service alerts."""
        feed = self._fetch_feed(self.alerts_url)
        alerts = self._parse_alerts(feed)
        self.index.publish_realtime(alerts=alerts)
        logger.debug(f"Published {len(alerts)} alerts")
        return alerts

    def _fetch_feed(self, feed_url: str) -> gtfs_realtime_pb2.FeedMessage:
        """
        Fetch and decode a GTFS-Realtime feed.

        Args:
            feed_url: Full URL to the feed.

        Returns:
            Parsed FeedMessage.
        """
        logger.debug(f"Fetching {feed_url}")
        try:
            response = requests.get(feed_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {feed_url}: {e}")
            raise FetchError(f"Failed to fetch {feed_url}: {e}") from e

        feed = gtfs_realtime_pb2.FeedMessage()
        try:
            feed.ParseFromString(response.content)
        except ProtobufDecodeError as e:
            logger.error(f"Failed to decode {feed_url}: {e}")
            raise DecodeError(f"Failed to decode {feed_url}: {e}") from e
        return feed

    @staticmethod
    def _parse_vehicles(feed: gtfs_realtime_pb2.FeedMessage, now: float) -> List[Vehicle]:
        """
        Parse vehicle positions from a GTFS-Realtime feed.

        Args:
            feed: Decoded VehiclePositions feed.
            now: Current Unix time, used for missing timestamps and staleness.

        Returns:
            One Vehicle per entity carrying a vehicle report.
        """
        vehicles: List[Vehicle] = []

        for entity in feed.entity:
            if not entity.HasField("vehicle"):
                continue

            report = entity.vehicle
            trip_id: Optional[str] = None
            route_id: Optional[str] = None
            if report.HasField("trip"):
                trip_id = report.trip.trip_id or None
                route_id = report.trip.route_id or None

            latitude = longitude = bearing = speed = None
            if report.HasField("position"):
                position = report.position
                latitude = position.latitude
                longitude = position.longitude
                bearing = position.bearing if position.HasField("bearing") else None
                speed = position.speed if position.HasField("speed") else None

            label = report.vehicle.label if report.HasField("vehicle") else None
            timestamp = report.timestamp if report.timestamp else int(now)

            vehicles.append(
                Vehicle(
                    id=entity.id,
                    trip_id=trip_id,
                    route_id=route_id,
                    latitude=latitude,
                    longitude=longitude,
                    bearing=bearing,
                    speed=speed,
                    label=label,
                    timestamp=timestamp,
                    last_updated=math.floor(now - timestamp),
                    status="on_route" if route_id else "off_route",
                )
            )

        return vehicles

    @staticmethod
    def _parse_alerts(feed: gtfs_realtime_pb2.FeedMessage) -> List[Alert]:
        """
        Parse service alerts from a GTFS-Realtime feed.

        Args:
            feed: Decoded Alerts feed.

        Returns:
            One Alert per entity carrying an alert.
        """
        alerts: List[Alert] = []

        for entity in feed.entity:
            if not entity.HasField("alert"):
                continue

            alert_obj = entity.alert
            header_text = "Alert"
            description_text = ""

            if alert_obj.HasField("header_text") and alert_obj.header_text.translation:
                header_text = alert_obj.header_text.translation[0].text

            if alert_obj.HasField("description_text") and alert_obj.description_text.translation:
                description_text = alert_obj.description_text.translation[0].text

            informed_entities = tuple(
                json_format.MessageToDict(informed_entity)
                for informed_entity in alert_obj.informed_entity
            )

            alerts.append(
                Alert(
                    id=entity.id,
                    header_text=header_text,
                    description_text=description_text,
                    informed_entities=informed_entities,
                )
            )

        logger.debug(f"Parsed {len(alerts)} alerts")
        return alerts
