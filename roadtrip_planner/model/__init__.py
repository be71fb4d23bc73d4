"""Data model classes for the road trip planner.

- Charger / ConnectorClass: Charging station with per-class connector counts
- ChargerFilter: Which connector classes are shown
- FoodLocation: Nearby place to eat
- GeocodeCandidate: Destination search result
- RouteGeometry: Decoded route line and its bounds
- Viewport: Geographic bounding rectangle
- Marker / Popup / Icon: Overlay records on the map widget
"""

from roadtrip_planner.model.charger import Charger, ConnectorClass
from roadtrip_planner.model.charger_filter import ChargerFilter
from roadtrip_planner.model.food_location import FoodLocation
from roadtrip_planner.model.geocode import GeocodeCandidate
from roadtrip_planner.model.map_overlay import Icon, Marker, MarkerCategory, Popup
from roadtrip_planner.model.route_geometry import RouteGeometry, RouteGeometryError
from roadtrip_planner.model.viewport import Viewport

__all__ = [
    "Charger",
    "ChargerFilter",
    "ConnectorClass",
    "FoodLocation",
    "GeocodeCandidate",
    "Icon",
    "Marker",
    "MarkerCategory",
    "Popup",
    "RouteGeometry",
    "RouteGeometryError",
    "Viewport",
]
