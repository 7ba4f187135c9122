"""Example usage of TransitTracker."""

import logging
import sys
from pathlib import Path

# Add src to path so we can import bustrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bustrack import TransitTracker

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_stop_board(tracker: TransitTracker, stop_input: str):
    """
    Display routes, upcoming departures and alerts for a stop.

    Args:
        tracker: Tracker with the static feed loaded.
        stop_input: Stop ID, stop code or part of a stop name.
    """
    matches = [s for s in tracker.query.get_stops() if s.stop_id == stop_input]
    if not matches:
        matches = tracker.query.find_stops(stop_input)
    if not matches:
        print(f"No stop found matching '{stop_input}'")
        return

    stop = matches[0]
    print(f"\n{'='*70}")
    print(f"Stop: {stop.name} (ID: {stop.stop_id}, code: {stop.code})")
    print(f"{'='*70}\n")

    routes = tracker.query.get_routes_for_stop(stop.stop_id)
    print(f"Routes: {', '.join(r.short_name for r in routes) or 'none'}\n")

    print("NEXT DEPARTURES:")
    print("-" * 70)
    departures = tracker.query.get_departures_for_stop(stop.stop_id)
    if departures:
        for departure in departures:
            print(f"  {departure.departure_time}  {departure.route_id:>6}  → {departure.headsign}")
    else:
        print("  No more departures today")

    route_ids = {r.route_id for r in routes}
    stop_alerts = [
        alert
        for alert in tracker.query.get_alerts()
        if any(
            entity.get("routeId") in route_ids or entity.get("stopId") == stop.stop_id
            for entity in alert.informed_entities
        )
    ]
    if stop_alerts:
        print("\nSERVICE ALERTS:")
        for alert in stop_alerts:
            print(f"  {alert.header_text}: {alert.description_text}")

    if len(matches) > 1:
        print("\nOther matching stops:")
        for other in matches[1:6]:
            print(f"  - {other.name} ({other.stop_id})")
    print()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python example.py <stop id or name>")
        sys.exit(1)

    tracker = TransitTracker()
    print("Loading GTFS data... (this may take a minute)")
    if not tracker.reload_static():
        print("Could not load the static feed; see the log for details")
        sys.exit(1)
    tracker.refresh_realtime()

    print_stop_board(tracker, " ".join(sys.argv[1:]))
