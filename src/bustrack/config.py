"""Runtime configuration for BusTrack.

Every value can be overridden through an environment variable of the same name.
"""

import os

# Halifax Transit GTFS feeds
GTFS_STATIC_URL = os.getenv("GTFS_STATIC_URL", "https://gtfs.halifax.ca/static/google_transit.zip")
GTFS_VEHICLES_URL = os.getenv(
    "GTFS_VEHICLES_URL", "https://gtfs.halifax.ca/realtime/Vehicle/VehiclePositions.pb"
)
GTFS_ALERTS_URL = os.getenv("GTFS_ALERTS_URL", "https://gtfs.halifax.ca/realtime/Alert/Alerts.pb")

# Seconds
STATIC_REQUEST_TIMEOUT = float(os.getenv("STATIC_REQUEST_TIMEOUT", 120))
REALTIME_REQUEST_TIMEOUT = float(os.getenv("REALTIME_REQUEST_TIMEOUT", 10))
STATIC_REFRESH_INTERVAL = float(os.getenv("STATIC_REFRESH_INTERVAL", 6 * 60 * 60))
REALTIME_REFRESH_INTERVAL = float(os.getenv("REALTIME_REFRESH_INTERVAL", 30))

# Rows per pandas chunk when streaming stop_times.txt
STOP_TIMES_CHUNK_SIZE = int(os.getenv("STOP_TIMES_CHUNK_SIZE", 100_000))

MAX_DEPARTURES = int(os.getenv("MAX_DEPARTURES", 20))
