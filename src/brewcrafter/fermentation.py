"""Fermentation chart data: simulated curves and RAPT Pill telemetry.

The simulated curve stands in for a hydrometer feed; with RAPT cloud
credentials configured, real telemetry can be fetched instead.
"""

import logging
import random
import zlib
from datetime import datetime

import requests

from brewcrafter.errors import RaptError
from brewcrafter.models import FermentationData, FermentationDataPoint

logger = logging.getLogger(__name__)

RAPT_TOKEN_URL = "https://id.rapt.io/connect/token"
RAPT_API_BASE = "https://api.rapt.io/v1"
RAPT_CLIENT_ID = "rapt-user"
RAPT_TIMEOUT = 10
DEFAULT_TELEMETRY_RANGE = "7d"

START_GRAVITY = 1.050
FLOOR_GRAVITY = 1.008
START_TEMP_C = 20.0


def format_elapsed(hours: int) -> str:
    """Format elapsed hours as ``"{days}d {hours}h"``."""
    return f"{hours // 24}d {hours % 24}h"


def simulate_fermentation(slug: str, days: int = 7) -> list[FermentationDataPoint]:
    """
    Generate an hourly placeholder fermentation curve.

    Temperature drifts down half a degree a day and recovers slightly after
    day 4; gravity falls about seven points a day down to a 1.008 floor.
    The noise is seeded by the slug so a recipe always gets the same chart.
    """
    rng = random.Random(zlib.crc32(slug.encode("utf-8")))
    points = []
    for i in range(days * 24):
        day, hour = divmod(i, 24)

        temp = START_TEMP_C - day * 0.5 + rng.random() * 0.5
        if day > 4:
            temp += (day - 4) * 0.2

        gravity = START_GRAVITY - day * 0.007 - hour * 0.0001 - rng.random() * 0.001
        gravity = max(FLOOR_GRAVITY, gravity)

        points.append(
            FermentationDataPoint(
                time=format_elapsed(i),
                temperature=round(temp, 1),
                gravity=round(gravity, 3),
            )
        )
    return points


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_telemetry(raw: list) -> list[FermentationDataPoint]:
    """Convert raw RAPT telemetry rows into chart points relative to the first row."""
    points = []
    first: datetime | None = None

    for index, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("timestamp"), str):
            logger.warning("Skipping malformed telemetry point at index %d", index)
            continue

        current = _parse_timestamp(item["timestamp"])
        if not points:
            first = current

        if not points or first is None or current is None:
            label = "0d 0h"
        else:
            label = format_elapsed(int((current - first).total_seconds() // 3600))

        temperature = item.get("temperature")
        gravity = item.get("gravity")
        points.append(
            FermentationDataPoint(
                time=label,
                temperature=round(temperature, 1) if isinstance(temperature, (int, float)) else None,
                gravity=round(gravity, 3) if isinstance(gravity, (int, float)) else None,
            )
        )
    return points


class RaptClient:
    """Minimal client for the RAPT cloud hydrometer API."""

    def __init__(self, email: str | None, password: str | None, session: requests.Session | None = None):
        self.email = email
        self.password = password
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.email and self.password)

    def _get_access_token(self) -> str:
        if not self.configured:
            raise RaptError("RAPT API credentials are not configured")

        try:
            resp = self.session.post(
                RAPT_TOKEN_URL,
                data={
                    "client_id": RAPT_CLIENT_ID,
                    "grant_type": "password",
                    "username": self.email,
                    "password": self.password,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=RAPT_TIMEOUT,
            )
            resp.raise_for_status()
            token = resp.json().get("access_token")
        except (requests.RequestException, ValueError) as e:
            raise RaptError(f"Failed to authenticate with RAPT API: {e}") from e

        if not token:
            raise RaptError("Failed to retrieve access token from RAPT API")
        return token

    def get_telemetry(self, pill_id: str, duration: str = DEFAULT_TELEMETRY_RANGE) -> list:
        """Fetch raw telemetry rows for a RAPT Pill."""
        token = self._get_access_token()
        url = f"{RAPT_API_BASE}/hydrometer/{pill_id}/telemetry"

        try:
            resp = self.session.get(
                url,
                params={"duration": duration},
                headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
                timeout=RAPT_TIMEOUT,
            )
            resp.raise_for_status()
            rows = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise RaptError(f"Failed to fetch data from RAPT API for Pill ID {pill_id}: {e}") from e

        if not isinstance(rows, list):
            raise RaptError("RAPT telemetry data is not a list")
        return rows

    def get_fermentation_data(self, pill_id: str) -> FermentationData:
        """Fetch and format telemetry. Failures are logged and yield empty data."""
        try:
            rows = self.get_telemetry(pill_id)
        except RaptError as e:
            logger.error("RAPT telemetry fetch failed: %s", e)
            return FermentationData(data=[], source="rapt", error="Failed to load fermentation data")

        points = format_telemetry(rows)
        logger.info("Returning %d RAPT data points for pill %s", len(points), pill_id)
        return FermentationData(data=points, source="rapt")
