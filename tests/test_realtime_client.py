"""Tests for RealtimeFeedUpdater."""

import unittest
from unittest.mock import patch, MagicMock
import sys
from pathlib import Path

import requests

# Add src to path so we can import bustrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from google.transit import gtfs_realtime_pb2

from bustrack.errors import DecodeError, FetchError, LoadError
from bustrack.index import TransitIndex
from bustrack.models import Alert, Vehicle
from bustrack.realtime_client import RealtimeFeedUpdater

from gtfs_fixtures import make_alert_feed, make_vehicle_feed

NOW = 1_750_000_000
VEHICLES_URL = "http://test/VehiclePositions.pb"
ALERTS_URL = "http://test/Alerts.pb"


def _response(content: bytes) -> MagicMock:
    response = MagicMock()
    response.content = content
    return response


class TestFeedParsing(unittest.TestCase):
    """Test decoding protobuf feeds into domain records."""

    def _parse(self, data: bytes, parser):
        feed = gtfs_realtime_pb2.FeedMessage()
        feed.ParseFromString(data)
        return parser(feed)

    def test_parse_vehicles(self):
        vehicles = self._parse(
            make_vehicle_feed(NOW), lambda feed: RealtimeFeedUpdater._parse_vehicles(feed, NOW + 0.9)
        )

        # The trip_update-only entity is dropped
        self.assertEqual([v.id for v in vehicles], ["v1", "v2"])

        on_route = vehicles[0]
        self.assertEqual(on_route.trip_id, "T1")
        self.assertEqual(on_route.route_id, "r1")
        self.assertEqual(on_route.status, "on_route")
        self.assertEqual(on_route.label, "1101")
        self.assertAlmostEqual(on_route.latitude, 44.6488, places=4)
        self.assertAlmostEqual(on_route.bearing, 90.0)
        self.assertAlmostEqual(on_route.speed, 8.5)
        self.assertEqual(on_route.timestamp, NOW - 45)
        self.assertEqual(on_route.last_updated, 45)

    def test_vehicle_without_trip_is_off_route(self):
        vehicles = self._parse(
            make_vehicle_feed(NOW), lambda feed: RealtimeFeedUpdater._parse_vehicles(feed, NOW)
        )

        off_route = vehicles[1]
        self.assertIsNone(off_route.trip_id)
        self.assertIsNone(off_route.route_id)
        self.assertEqual(off_route.status, "off_route")
        self.assertIsNone(off_route.bearing)
        self.assertIsNone(off_route.speed)
        # No timestamp in the report: treated as reported now
        self.assertEqual(off_route.timestamp, NOW)
        self.assertEqual(off_route.last_updated, 0)

    def test_vehicle_without_position(self):
        feed = gtfs_realtime_pb2.FeedMessage()
        entity = feed.entity.add()
        entity.id = "v9"
        entity.vehicle.trip.trip_id = "T9"
        entity.vehicle.timestamp = NOW

        vehicles = RealtimeFeedUpdater._parse_vehicles(feed, NOW)

        self.assertIsNone(vehicles[0].latitude)
        self.assertIsNone(vehicles[0].longitude)
        self.assertIsNone(vehicles[0].label)
        self.assertEqual(vehicles[0].status, "off_route")

    def test_parse_alerts(self):
        alerts = self._parse(make_alert_feed(), RealtimeFeedUpdater._parse_alerts)

        self.assertEqual(len(alerts), 2)
        detour = alerts[0]
        self.assertEqual(detour.id, "a1")
        self.assertEqual(detour.header_text, "Detour on Route 1")
        self.assertTrue(detour.description_text.startswith("Spring Garden Rd closed"))
        self.assertEqual(detour.informed_entities, ({"routeId": "r1"}, {"stopId": "S2"}))

    def test_alert_text_defaults(self):
        alerts = self._parse(make_alert_feed(), RealtimeFeedUpdater._parse_alerts)

        bare = alerts[1]
        self.assertEqual(bare.header_text, "Alert")
        self.assertEqual(bare.description_text, "")
        self.assertEqual(bare.informed_entities, ({"routeId": "r21"},))


class TestRealtimeFeedUpdater(unittest.TestCase):
    """Test fetching and publishing the realtime snapshot."""

    def setUp(self):
        self.index = TransitIndex()
        self.updater = RealtimeFeedUpdater(
            self.index, vehicles_url=VEHICLES_URL, alerts_url=ALERTS_URL, clock=lambda: NOW
        )
        self.old_vehicle = Vehicle("old", None, None, None, None, None, None, None, NOW - 60, 60, "off_route")
        self.old_alert = Alert("old", "Old alert", "")
        self.index.publish_realtime(vehicles=[self.old_vehicle], alerts=[self.old_alert])

    def _get(self, responses):
        """Build a requests.get replacement keyed by URL."""

        def get(url, timeout=None):
            result = responses[url]
            if isinstance(result, Exception):
                raise result
            return result

        return get

    @patch("bustrack.realtime_client.requests.get")
    def test_refresh_replaces_both_feeds(self, mock_get):
        mock_get.side_effect = self._get(
            {VEHICLES_URL: _response(make_vehicle_feed(NOW)), ALERTS_URL: _response(make_alert_feed())}
        )

        self.updater.refresh()

        snapshot = self.index.realtime
        self.assertEqual([v.id for v in snapshot.vehicles], ["v1", "v2"])
        self.assertEqual([a.id for a in snapshot.alerts], ["a1", "a2"])

    @patch("bustrack.realtime_client.requests.get")
    def test_alert_failure_still_updates_vehicles(self, mock_get):
        mock_get.side_effect = self._get(
            {
                VEHICLES_URL: _response(make_vehicle_feed(NOW)),
                ALERTS_URL: requests.ConnectionError("alerts down"),
            }
        )

        with self.assertRaises(LoadError):
            self.updater.refresh()

        snapshot = self.index.realtime
        self.assertEqual([v.id for v in snapshot.vehicles], ["v1", "v2"])
        self.assertEqual(snapshot.alerts, (self.old_alert,))

    @patch("bustrack.realtime_client.requests.get")
    def test_vehicle_failure_still_updates_alerts(self, mock_get):
        failing = _response(b"")
        failing.raise_for_status.side_effect = requests.HTTPError("502 Bad Gateway")
        mock_get.side_effect = self._get({VEHICLES_URL: failing, ALERTS_URL: _response(make_alert_feed())})

        with self.assertRaises(LoadError):
            self.updater.refresh()

        snapshot = self.index.realtime
        self.assertEqual(snapshot.vehicles, (self.old_vehicle,))
        self.assertEqual([a.id for a in snapshot.alerts], ["a1", "a2"])

    @patch("bustrack.realtime_client.requests.get")
    def test_fetch_error_type(self, mock_get):
        mock_get.side_effect = requests.Timeout("timed out")

        with self.assertRaises(FetchError):
            self.updater.refresh_vehicles()

        mock_get.assert_called_once_with(VEHICLES_URL, timeout=self.updater.timeout)

    @patch("bustrack.realtime_client.requests.get")
    def test_malformed_protobuf_is_decode_error(self, mock_get):
        # Field 1 with invalid wire type 7
        mock_get.return_value = _response(b"\x0f")

        with self.assertRaises(DecodeError):
            self.updater.refresh_alerts()

        self.assertEqual(self.index.realtime.alerts, (self.old_alert,))

    def test_vehicle_to_dict_shape(self):
        data = self.old_vehicle.to_dict()
        self.assertEqual(data["id"], "old")
        self.assertEqual(data["vehicle"]["status"], "off_route")
        self.assertEqual(data["vehicle"]["lastUpdated"], 60)


if __name__ == "__main__":
    unittest.main()
