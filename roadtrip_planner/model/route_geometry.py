"""RouteGeometry - The driving route as an ordered coordinate sequence.

Coordinates are (lon, lat) pairs in route order, GeoJSON convention.
The same geometry drives two things:
- The line overlay on the map (as a one-feature FeatureCollection)
- The bounding box in which chargers are requested
"""

from dataclasses import dataclass
from typing import Any

from shapely.geometry import LineString

from roadtrip_planner.model.viewport import Viewport


class RouteGeometryError(ValueError):
    """Route geometry is missing or malformed."""


@dataclass(frozen=True)
class RouteGeometry:
    """Decoded route polyline.

    Attributes:
        coordinates: Ordered (lon, lat) pairs
    """

    coordinates: list[tuple[float, float]]

    def __post_init__(self) -> None:
        if len(self.coordinates) < 2:
            raise RouteGeometryError(f"A route needs at least 2 points, got {len(self.coordinates)}")

    @staticmethod
    def from_geojson(data: dict[str, Any]) -> "RouteGeometry":
        """Parse a LineString geometry, Feature or FeatureCollection.

        Raises:
            RouteGeometryError: If no LineString coordinates can be found.
        """
        try:
            if data["type"] == "FeatureCollection":
                data = data["features"][0]
            if data["type"] == "Feature":
                data = data["geometry"]
            geometry_type = data["type"]
            raw_coordinates = data["coordinates"]
        except (KeyError, IndexError, TypeError) as e:
            raise RouteGeometryError(f"Malformed route geometry: {e!r}") from e

        if geometry_type != "LineString":
            raise RouteGeometryError(f"Expected LineString geometry, got {geometry_type!r}")

        try:
            coordinates = [(float(lon), float(lat)) for lon, lat, *_ in raw_coordinates]
        except (TypeError, ValueError) as e:
            raise RouteGeometryError(f"Malformed route coordinates: {e}") from e
        return RouteGeometry(coordinates=coordinates)

    @property
    def line(self) -> LineString:
        return LineString(self.coordinates)

    @property
    def bounds(self) -> Viewport:
        """Bounding viewport of the whole route."""
        west, south, east, north = self.line.bounds
        return Viewport(north=north, east=east, south=south, west=west)

    def to_line_geometry(self) -> dict[str, Any]:
        """GeoJSON LineString with [lng, lat] points."""
        return {
            "type": "LineString",
            "coordinates": [[lon, lat] for lon, lat in self.coordinates],
        }

    def to_feature_collection(self) -> dict[str, Any]:
        """One-feature FeatureCollection for the route overlay source."""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "properties": {},
                    "geometry": self.to_line_geometry(),
                }
            ],
        }

    def __len__(self) -> int:
        return len(self.coordinates)
