"""Viewport - A geographic bounding rectangle on the map.

Used for:
- The currently visible map area (read from the map widget)
- Charger search boxes sent to the charger proxy (n, e, s, w)
- Fit-to-bounds targets (user position + destination, route extent)

Containment is boundary-inclusive: a point exactly on an edge is inside,
matching the map widget's contains semantics.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from shapely.geometry import MultiPoint


@dataclass(frozen=True)
class Viewport:
    """Geographic bounding rectangle in decimal degrees.

    Attributes:
        north: Northern edge latitude
        east: Eastern edge longitude
        south: Southern edge latitude
        west: Western edge longitude
    """

    north: float
    east: float
    south: float
    west: float

    def __post_init__(self) -> None:
        if self.south > self.north:
            raise ValueError(f"Viewport south ({self.south}) is above north ({self.north})")

    @staticmethod
    def from_points(points: Iterable[tuple[float, float]]) -> "Viewport":
        """Smallest rectangle enclosing all (lon, lat) points.

        Raises:
            ValueError: If no points are given.
        """
        points = list(points)
        if not points:
            raise ValueError("Cannot build a viewport from zero points")
        west, south, east, north = MultiPoint(points).bounds
        return Viewport(north=north, east=east, south=south, west=west)

    def contains(self, lon: float, lat: float) -> bool:
        """Check whether (lon, lat) lies inside or on the edge of the rectangle."""
        return self.south <= lat <= self.north and self.west <= lon <= self.east

    @property
    def center(self) -> tuple[float, float]:
        """Return (lon, lat) center of the rectangle."""
        return ((self.west + self.east) / 2, (self.south + self.north) / 2)

    def as_query_params(self) -> dict[str, float]:
        """Return the n/e/s/w query parameters used by the charger proxy."""
        return {"n": self.north, "e": self.east, "s": self.south, "w": self.west}

    def __repr__(self) -> str:
        return f"Viewport(n={self.north:.5f}, e={self.east:.5f}, s={self.south:.5f}, w={self.west:.5f})"
