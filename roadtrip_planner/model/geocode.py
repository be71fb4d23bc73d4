"""GeocodeCandidate - One destination match from the geocoding service."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GeocodeCandidate:
    """A geocoded place the user can pick as destination.

    Attributes:
        id: Geocoder feature id
        name: Short name (shown in the search box after selection)
        label: Full label (shown in the result list)
        longitude: Longitude in decimal degrees (WGS84)
        latitude: Latitude in decimal degrees (WGS84)
    """

    id: str
    name: str
    label: str
    longitude: float
    latitude: float

    @staticmethod
    def from_feature(feature: dict[str, Any]) -> "GeocodeCandidate":
        """Build a candidate from a GeoJSON feature.

        Raises:
            ValueError: If the feature lacks properties or point coordinates.
        """
        try:
            props = feature["properties"]
            lon, lat = feature["geometry"]["coordinates"][:2]
            return GeocodeCandidate(
                id=str(props.get("id", "")),
                name=props.get("name") or props.get("label") or "",
                label=props.get("label") or props.get("name") or "",
                longitude=float(lon),
                latitude=float(lat),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed geocode feature: {e}") from e

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.longitude, self.latitude)
