"""ProxyClient - The front end's only way to reach upstream services.

Talks to the proxy layer over HTTP and turns its JSON into model objects.
Failures raise ProxyClientError; callers log them, show a toast and leave
their state unchanged.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any

import requests

from roadtrip_planner.constants import ClientConfig, MapConfig
from roadtrip_planner.model.charger import Charger
from roadtrip_planner.model.food_location import FoodLocation
from roadtrip_planner.model.geocode import GeocodeCandidate
from roadtrip_planner.model.viewport import Viewport

logger = logging.getLogger(__name__)


class ProxyClientError(RuntimeError):
    """A proxy request failed.

    Attributes:
        status: HTTP status of the proxy response, None for network failures
        message: The proxy's {"error": ...} text when it sent one
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message if status is None else f"{message} (HTTP {status})")
        self.message = message
        self.status = status

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


@dataclass(frozen=True)
class ClientSettings:
    """Proxy base URL and the configured start position."""

    proxy_url: str = ClientConfig.DEFAULT_PROXY_URL
    timeout_s: float = ClientConfig.TIMEOUT_S
    start_lon: float | None = MapConfig.START_CENTER_LON
    start_lat: float | None = MapConfig.START_CENTER_LAT

    @property
    def start_position(self) -> tuple[float, float] | None:
        """(lon, lat) of the user, None when not configured."""
        if self.start_lon is None or self.start_lat is None:
            return None
        return (self.start_lon, self.start_lat)

    @staticmethod
    def from_env() -> "ClientSettings":
        """Read ROADTRIP_PROXY_URL and ROADTRIP_START_LON/LAT.

        Raises:
            ValueError: If a start coordinate is set but not a number.
        """
        lon = os.environ.get(ClientConfig.ENV_START_LON)
        lat = os.environ.get(ClientConfig.ENV_START_LAT)
        return ClientSettings(
            proxy_url=os.environ.get(ClientConfig.ENV_PROXY_URL) or ClientConfig.DEFAULT_PROXY_URL,
            start_lon=float(lon) if lon else MapConfig.START_CENTER_LON,
            start_lat=float(lat) if lat else MapConfig.START_CENTER_LAT,
        )


class ProxyClient:
    """Typed wrapper around the /api routes.

    Example:
        client = ProxyClient(ClientSettings.from_env())
        candidates = client.geocode("Boston")
    """

    def __init__(self, settings: ClientSettings | None = None) -> None:
        self.settings = settings or ClientSettings()
        self.base_url = self.settings.proxy_url.rstrip("/") + "/api"

    # =========================================================================
    # ROUTES
    # =========================================================================

    def geocode(self, query: str) -> list[GeocodeCandidate]:
        """Destination candidates for query. Malformed features are skipped.

        Raises:
            ProxyClientError: On failure; status 404 means no matches.
        """
        data = self._request("GET", "/geocode", params={"query": query})
        candidates = []
        for feature in data.get("features", []) if isinstance(data, dict) else []:
            try:
                candidates.append(GeocodeCandidate.from_feature(feature))
            except ValueError as e:
                logger.warning(f"[SEARCH] Skipping geocode feature: {e}")
        return candidates

    def route(self, start: tuple[float, float], end: tuple[float, float]) -> str:
        """Encoded polyline of the driving route from start to end ((lon, lat) each).

        Raises:
            ProxyClientError: On failure or when the response holds no route.
        """
        data = self._request("POST", "/route", json={"start": list(start), "end": list(end)})
        try:
            return data["routes"][0]["geometry"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProxyClientError(f"Route response has no routes[0].geometry: {e!r}") from e

    def chargers(self, viewport: Viewport) -> list[Charger]:
        """Chargers inside viewport. Records without a position are skipped."""
        data = self._request("GET", "/chargers", params=viewport.as_query_params())
        return _parse_records(data, Charger.from_record, what="charger")

    def nearby_food(self, lon: float, lat: float) -> list[FoodLocation]:
        """Food places around (lon, lat). Records without a position are skipped."""
        data = self._request("GET", "/nearby-food", params={"lat": lat, "lng": lon})
        return _parse_records(data, FoodLocation.from_record, what="food")

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(method, url, timeout=self.settings.timeout_s, **kwargs)
        except requests.RequestException as e:
            raise ProxyClientError(f"{method} {path} failed: {e}") from e

        if not response.ok:
            raise ProxyClientError(_error_text(response), status=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ProxyClientError(f"{method} {path} returned invalid JSON: {e}") from e


def _error_text(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason or "Request failed"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason or "Request failed"


def _parse_records(data: Any, parse, what: str) -> list:
    if not isinstance(data, list):
        raise ProxyClientError(f"Expected a list of {what} records, got {type(data).__name__}")
    items = []
    for record in data:
        try:
            items.append(parse(record))
        except (ValueError, AttributeError) as e:
            logger.warning(f"[{what.upper()}] Skipping record: {e}")
    return items
