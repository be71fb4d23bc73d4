"""Configuration constants for Road Trip Planner.

All configurable parameters are centralized here for easy tuning.
Secrets and deployment overrides are read from the environment by
ProxySettings / ClientSettings, never hard-coded.

Classes:
    AppConfig: UI application settings
    MapConfig: Default map view parameters and zoom levels
    SearchConfig: Destination search debounce
    FilterConfig: Default connector-class filter
    ProxyConfig: Upstream service URLs, timeouts, env variable names
    ClientConfig: Front-end to proxy connection settings
    MarkerConfig: Map marker icons and sizes
    StyleConfig: Route overlay styling
    ClickConfig: Marker click detection types
"""

from pathlib import Path

# Package root directory (where roadtrip_planner/ lives)
PACKAGE_DIR = Path(__file__).parent

# Project root directory (parent of roadtrip_planner/)
PROJECT_ROOT = PACKAGE_DIR.parent


class AppConfig:
    """UI application settings."""

    TITLE = "Road Trip Planner - Chargers and Food Along the Way"
    ICON = "🚗"
    LAYOUT = "wide"


class MapConfig:
    """Default map view parameters."""

    # Initial center before the user position is known (New Jersey, as a neutral default)
    START_CENTER_LON = -74.5
    START_CENTER_LAT = 40.0
    DEFAULT_ZOOM = 9

    # Zoom levels when a selection is highlighted
    # Higher number = more zoomed in
    CHARGER_ZOOM = 15
    FOOD_ZOOM = 17

    # Fit-to-bounds margin around user + destination
    FIT_PADDING_PX = 50
    # Never zoom in further than this when fitting (two identical points would be infinite)
    MAX_FIT_ZOOM = 16

    # Map widget pixel size used for viewport math
    WIDTH_PX = 900
    HEIGHT_PX = 640

    # Web Mercator tile size (deck.gl/Mapbox use 512px tiles)
    TILE_SIZE_PX = 512
    # Mercator projection is undefined at the poles
    MAX_LATITUDE = 85.05112878


class SearchConfig:
    """Destination search settings."""

    DEBOUNCE_S = 0.3
    MAX_RESULTS_SHOWN = 10


class FilterConfig:
    """Default connector-class filter (only DC fast enabled)."""

    DEFAULT_DC_FAST = True
    DEFAULT_LEVEL2 = False
    DEFAULT_LEVEL1 = False


class ProxyConfig:
    """Upstream service URLs and proxy settings."""

    CHARGER_MAP_URL = "https://chargermap.fly.dev"
    GEOCODE_URL = "https://api.openrouteservice.org/geocode/search"
    DIRECTIONS_URL = "https://api.openrouteservice.org/v2/directions/driving-car"
    SERP_URL = "https://serpapi.com/search.json"

    # SerpApi Google-Maps search parameters for nearby food
    FOOD_QUERY = "food"
    FOOD_SEARCH_ZOOM = 14

    UPSTREAM_TIMEOUT_S = 15

    # Environment variable names
    ENV_OPENROUTE_API_KEY = "OPENROUTE_API_KEY"
    ENV_SERP_API_KEY = "SERP_API_KEY"
    ENV_CHARGER_MAP_URL = "CHARGER_MAP_URL"

    HOST = "127.0.0.1"
    PORT = 5000


class ClientConfig:
    """Front-end to proxy connection settings."""

    DEFAULT_PROXY_URL = f"http://{ProxyConfig.HOST}:{ProxyConfig.PORT}"
    TIMEOUT_S = 20

    ENV_PROXY_URL = "ROADTRIP_PROXY_URL"
    ENV_START_LON = "ROADTRIP_START_LON"
    ENV_START_LAT = "ROADTRIP_START_LAT"


class MarkerConfig:
    """Map marker icons and sizes."""

    USER_ICON_URL = "https://img.icons8.com/color/48/000000/car.png"
    DESTINATION_ICON_URL = "https://img.icons8.com/color/48/000000/marker.png"
    DC_FAST_ICON_URL = "https://img.icons8.com/color/48/000000/lightning-bolt.png"
    LEVEL2_ICON_URL = "https://img.icons8.com/color/48/000000/electrical.png"
    LEVEL1_ICON_URL = "https://img.icons8.com/color/48/000000/charging-battery.png"
    FOOD_ICON_URL = "https://img.icons8.com/color/48/000000/restaurant.png"

    ICON_SIZE_PX = 30
    # Emphasized (selected) markers are drawn this much larger
    EMPHASIS_SCALE = 1.5


class StyleConfig:
    """Route and popup styling."""

    ROUTE_COLOR_RGBA = [56, 135, 190, 191]  # #3887be at 0.75 opacity
    ROUTE_WIDTH_PX = 5

    # Open popup label drawn above its marker
    POPUP_TEXT_SIZE_PX = 13
    POPUP_TEXT_COLOR_RGBA = [33, 33, 33, 255]
    POPUP_BACKGROUND_RGBA = [255, 255, 255, 230]
    POPUP_OFFSET_PX = [0, -48]

    TOOLTIP_STYLE = {"backgroundColor": "white", "color": "#212121", "maxWidth": "240px", "fontSize": "12px"}


class ClickConfig:
    """Marker click detection settings."""

    TYPE_CHARGER = "charger"
    TYPE_FOOD = "food"
    TYPE_USER = "user"
    TYPE_DESTINATION = "destination"

    PICKING_RADIUS_PX = 8
