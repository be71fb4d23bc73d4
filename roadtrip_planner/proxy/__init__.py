"""Proxy layer: Flask routes forwarding to geocoding, routing, places and charger APIs.

- server.py: create_app() factory
- routes.py: /api blueprint (chargers, geocode, nearby-food, route, health)
- upstream.py: requests-based upstream clients
- errors.py: ProxyError (client-facing) / UpstreamError (upstream failure)
- settings.py: ProxySettings from environment
"""

from roadtrip_planner.proxy.errors import ProxyError, UpstreamError
from roadtrip_planner.proxy.server import create_app
from roadtrip_planner.proxy.settings import ProxySettings

__all__ = [
    "ProxyError",
    "ProxySettings",
    "UpstreamError",
    "create_app",
]
