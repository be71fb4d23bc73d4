"""Decoding of routing-service polylines into route geometry.

The routing service returns the route as a Google-encoded polyline
(precision 5). The polyline library decodes it in (lat, lng) order;
everything on the map uses GeoJSON (lng, lat) order, so the pairs are
swapped here, once.
"""

import logging

import polyline as polyline_codec

from roadtrip_planner.model.route_geometry import RouteGeometry, RouteGeometryError

logger = logging.getLogger(__name__)


def decode_route(encoded: str) -> RouteGeometry:
    """Decode an encoded polyline into a RouteGeometry.

    Args:
        encoded: Encoded polyline string from routes[0].geometry.

    Returns:
        RouteGeometry with (lon, lat) coordinates in route order.

    Raises:
        RouteGeometryError: If the string is empty or cannot be decoded.
    """
    if not isinstance(encoded, str) or not encoded:
        raise RouteGeometryError(f"Route geometry must be a non-empty encoded polyline, got {encoded!r}")

    try:
        points = polyline_codec.decode(encoded)
    except (IndexError, ValueError, TypeError) as e:
        raise RouteGeometryError(f"Cannot decode route polyline: {e}") from e

    coordinates = [(lng, lat) for lat, lng in points]
    logger.info(f"[ROUTE] Decoded polyline into {len(coordinates)} points")
    return RouteGeometry(coordinates=coordinates)


def encode_route(route: RouteGeometry) -> str:
    """Encode a RouteGeometry back into a polyline string (precision 5)."""
    return polyline_codec.encode([(lat, lon) for lon, lat in route.coordinates])
