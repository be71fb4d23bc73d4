"""Upstream HTTP clients for the proxy layer.

One small client per third-party service. Each call attaches credentials,
forwards the simplified parameters and returns decoded JSON. Every failure
(network error, timeout, non-2xx status, undecodable body) becomes an
UpstreamError; nothing retries.

Services:
    ChargerMapClient: chargers inside a bounding box
    OpenRouteServiceClient: geocoding and driving directions
    SerpApiClient: Google-Maps "food" search around a point
"""

import logging
from typing import Any

import requests

from roadtrip_planner.constants import ProxyConfig
from roadtrip_planner.proxy.errors import UpstreamError
from roadtrip_planner.proxy.settings import ProxySettings

logger = logging.getLogger(__name__)


def _decode(service: str, response: requests.Response) -> Any:
    """Raise UpstreamError for non-2xx responses, else return the JSON body."""
    if not response.ok:
        logger.warning(f"[PROXY] {service} answered {response.status_code}: {response.text[:200]}")
        raise UpstreamError(service, f"HTTP error! status: {response.status_code}", status=response.status_code)
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(service, f"invalid JSON body: {e}") from e


class ChargerMapClient:
    """Charger map service: all connector classes inside a bounding box."""

    SERVICE = "chargermap"

    def __init__(self, settings: ProxySettings) -> None:
        self.base_url = settings.charger_map_url.rstrip("/")
        self.timeout_s = settings.timeout_s

    def in_map(self, n: str, e: str, s: str, w: str) -> Any:
        """Fetch chargers inside the box. Edges are forwarded verbatim."""
        params = {
            "n": n,
            "e": e,
            "s": s,
            "w": w,
            "connectors": "null",
            "dc": "true",
            "level1": "true",
            "level2": "true",
        }
        try:
            response = requests.get(f"{self.base_url}/in_map", params=params, timeout=self.timeout_s)
        except requests.RequestException as err:
            raise UpstreamError(self.SERVICE, str(err)) from err
        return _decode(self.SERVICE, response)


class OpenRouteServiceClient:
    """OpenRouteService: geocoding search and driving-car directions."""

    SERVICE = "openrouteservice"

    def __init__(self, settings: ProxySettings) -> None:
        self.api_key = settings.openroute_api_key
        self.geocode_url = settings.geocode_url
        self.directions_url = settings.directions_url
        self.timeout_s = settings.timeout_s

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def geocode(self, text: str) -> dict[str, Any]:
        """Search places by free text. Returns the GeoJSON FeatureCollection."""
        try:
            response = requests.post(
                self.geocode_url,
                params={"api_key": self.api_key or "", "text": text},
                json={},
                headers={"Content-Type": "application/json; charset=utf-8", "Accept": "*/*"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as err:
            raise UpstreamError(self.SERVICE, str(err)) from err
        return _decode(self.SERVICE, response)

    def directions(self, start: list[float], end: list[float]) -> dict[str, Any]:
        """Driving route between two [lng, lat] points.

        The answer's routes[0].geometry is an encoded polyline.
        """
        try:
            response = requests.post(
                self.directions_url,
                json={"coordinates": [start, end]},
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json, application/geo+json",
                    "Authorization": self.api_key or "",
                },
                timeout=self.timeout_s,
            )
        except requests.RequestException as err:
            raise UpstreamError(self.SERVICE, str(err)) from err
        return _decode(self.SERVICE, response)


class SerpApiClient:
    """SerpApi Google-Maps engine: food places around a point."""

    SERVICE = "serpapi"

    def __init__(self, settings: ProxySettings) -> None:
        self.api_key = settings.serp_api_key
        self.url = settings.serp_url
        self.timeout_s = settings.timeout_s

    def nearby_food(self, lat: str, lng: str) -> list[dict[str, Any]]:
        """Local food results at zoom 14 around (lat, lng); [] when none."""
        params = {
            "engine": "google_maps",
            "q": ProxyConfig.FOOD_QUERY,
            "ll": f"@{lat},{lng},{ProxyConfig.FOOD_SEARCH_ZOOM}z",
            "google_domain": "google.com",
            "hl": "en",
            "type": "search",
            "api_key": self.api_key or "",
        }
        try:
            response = requests.get(self.url, params=params, timeout=self.timeout_s)
        except requests.RequestException as err:
            raise UpstreamError(self.SERVICE, str(err)) from err
        data = _decode(self.SERVICE, response)
        if not isinstance(data, dict):
            raise UpstreamError(self.SERVICE, f"unexpected body type {type(data).__name__}")
        return data.get("local_results") or []
