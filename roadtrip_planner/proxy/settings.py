"""Proxy settings read from the environment.

API keys never live in code. A missing OpenRouteService key is not an
error at startup: the route endpoint reports it per request, so the other
endpoints keep working.
"""

import os
from dataclasses import dataclass

from roadtrip_planner.constants import ProxyConfig


@dataclass(frozen=True)
class ProxySettings:
    """Upstream credentials and endpoints for the proxy layer."""

    openroute_api_key: str | None = None
    serp_api_key: str | None = None
    charger_map_url: str = ProxyConfig.CHARGER_MAP_URL
    geocode_url: str = ProxyConfig.GEOCODE_URL
    directions_url: str = ProxyConfig.DIRECTIONS_URL
    serp_url: str = ProxyConfig.SERP_URL
    timeout_s: float = ProxyConfig.UPSTREAM_TIMEOUT_S

    @staticmethod
    def from_env() -> "ProxySettings":
        """Build settings from OPENROUTE_API_KEY, SERP_API_KEY and CHARGER_MAP_URL."""
        return ProxySettings(
            openroute_api_key=os.environ.get(ProxyConfig.ENV_OPENROUTE_API_KEY) or None,
            serp_api_key=os.environ.get(ProxyConfig.ENV_SERP_API_KEY) or None,
            charger_map_url=os.environ.get(ProxyConfig.ENV_CHARGER_MAP_URL) or ProxyConfig.CHARGER_MAP_URL,
        )
