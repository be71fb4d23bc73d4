"""FoodLocation - A place to eat near a selected charger.

Built from a SerpApi Google-Maps "local_results" entry. There is no
guaranteed-unique identifier; selection and highlighting match by exact
position equality.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote_plus


@dataclass(frozen=True)
class FoodLocation:
    """A restaurant/cafe with rating and position.

    Attributes:
        title: Display name
        address: Street address
        rating: Average rating (0-5), None if unrated
        reviews: Number of reviews, None if unknown
        type: Category, e.g. "Pizza restaurant"
        latitude: Latitude in decimal degrees (WGS84)
        longitude: Longitude in decimal degrees (WGS84)
        thumbnail: Optional image URL
        place_id: Optional external place reference
    """

    title: str
    address: str
    rating: float | None
    reviews: int | None
    type: str
    latitude: float
    longitude: float
    thumbnail: str | None = None
    place_id: str | None = None

    @staticmethod
    def from_record(record: dict[str, Any]) -> "FoodLocation":
        """Build a FoodLocation from a local_results entry.

        Raises:
            ValueError: If the entry has no gps_coordinates.
        """
        coords = record.get("gps_coordinates") or {}
        try:
            latitude = float(coords["latitude"])
            longitude = float(coords["longitude"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Food result {record.get('title')!r} has no valid gps_coordinates") from e

        return FoodLocation(
            title=record.get("title") or "Unnamed place",
            address=record.get("address") or "",
            rating=record.get("rating"),
            reviews=record.get("reviews"),
            type=record.get("type") or "",
            latitude=latitude,
            longitude=longitude,
            thumbnail=record.get("thumbnail") or None,
            place_id=record.get("place_id") or None,
        )

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.longitude, self.latitude)

    @property
    def maps_url(self) -> str:
        """External map link, by place reference when known."""
        if self.place_id:
            return f"https://www.google.com/maps/search/?api=1&query={quote_plus(self.title)}&query_place_id={self.place_id}"
        return f"https://www.google.com/maps/search/?api=1&query={self.latitude},{self.longitude}"

    def same_position(self, other: "FoodLocation") -> bool:
        return self.lon_lat == other.lon_lat
