"""Forward geocoding of delivery addresses through the Mapbox places API."""

from __future__ import annotations

import logging
import time
from urllib.parse import quote

import httpx

from ..config import settings
from ..models.domain import Coordinate

logger = logging.getLogger(__name__)


class MapboxGeocoder:
    """Resolves an address to a coordinate, or ``None`` when it cannot.

    A lookup never raises for an unknown address. ``None`` means "exclude this
    stop"; it is never turned into (0, 0).
    """

    provider = "mapbox"

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        country: str | None = None,
        proximity: tuple[float, float] | None = None,
        timeout: float = 10.0,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.access_token = access_token if access_token is not None else settings.mapbox_access_token
        self.base_url = (base_url or settings.geocoder_base_url).rstrip("/")
        self.country = country or settings.geocoder_country
        self.proximity = proximity or settings.geocoder_proximity
        self.timeout = timeout
        self.max_retries = max_retries if max_retries is not None else settings.geocoder_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.geocoder_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=5.0), transport=self._transport)

    def geocode(self, address: str) -> Coordinate | None:
        if not self.access_token:
            logger.error("Mapbox access token (DISPATCH_MAPBOX_ACCESS_TOKEN) is not configured for geocoding.")
            return None
        if not address or not address.strip():
            logger.warning("Geocoding skipped: address string is empty.")
            return None

        url = f"{self.base_url}/{quote(address.strip(), safe='')}.json"
        params = {
            "access_token": self.access_token,
            "country": self.country,
            "proximity": f"{self.proximity[0]},{self.proximity[1]}",
            "limit": "1",
        }

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    break
                except (httpx.TimeoutException, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.error(f"Geocoding '{address}' failed after {self.max_retries} retries: {e}")
                        return None
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Geocoding network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
                except httpx.HTTPError as e:
                    logger.error(f"Exception during Mapbox geocoding for '{address}': {e}")
                    return None
        finally:
            client.close()

        if not response.is_success:
            details = response.reason_phrase
            try:
                details = response.json().get("message") or details
            except ValueError:
                pass
            logger.error(f"Mapbox geocoding error for '{address}': {response.status_code} {details}")
            return None

        try:
            features = response.json().get("features") or []
        except ValueError:
            logger.error(f"Mapbox geocoding returned unreadable JSON for '{address}'")
            return None
        if not features:
            logger.warning(f"Geocoding found no match for address '{address}'")
            return None

        center = features[0].get("center") if isinstance(features[0], dict) else None
        try:
            longitude, latitude = (float(value) for value in center)
        except (TypeError, ValueError):
            logger.warning(f"Mapbox returned a feature without a usable center for '{address}': {center}")
            return None
        return Coordinate(longitude=longitude, latitude=latitude)
