"""Flask application factory for the proxy layer.

Run: python -m roadtrip_planner.proxy
"""

import logging

from flask import Flask
from flask_cors import CORS

from roadtrip_planner.proxy.errors import ProxyError, handle_proxy_error
from roadtrip_planner.proxy.routes import EXTENSION_KEY, UpstreamClients, api
from roadtrip_planner.proxy.settings import ProxySettings
from roadtrip_planner.proxy.upstream import ChargerMapClient, OpenRouteServiceClient, SerpApiClient

logger = logging.getLogger(__name__)


def create_app(settings: ProxySettings | None = None) -> Flask:
    """Create the proxy app.

    Args:
        settings: Upstream credentials/endpoints. Read from the environment when None.

    Returns:
        Configured Flask app with the /api blueprint and JSON error handling.
    """
    settings = settings or ProxySettings.from_env()

    app = Flask(__name__)
    CORS(app)

    app.extensions[EXTENSION_KEY] = UpstreamClients(
        chargers=ChargerMapClient(settings),
        openroute=OpenRouteServiceClient(settings),
        serp=SerpApiClient(settings),
    )
    app.register_blueprint(api)
    app.register_error_handler(ProxyError, handle_proxy_error)

    logger.info(
        f"[PROXY] App created: openroute_key={'set' if settings.openroute_api_key else 'missing'}, "
        f"serp_key={'set' if settings.serp_api_key else 'missing'}, chargers={settings.charger_map_url}"
    )
    return app
