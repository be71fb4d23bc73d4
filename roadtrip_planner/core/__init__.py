"""Core foundation: geodesic / Web Mercator math and route polyline decoding.

- GeoCalculator: Distances, projection, viewport and fit-to-bounds math
- decode_route / encode_route: Polyline <-> RouteGeometry conversion
"""

from roadtrip_planner.core.geo_calculator import GeoCalculator
from roadtrip_planner.core.polyline_codec import decode_route, encode_route

__all__ = [
    "GeoCalculator",
    "decode_route",
    "encode_route",
]
