"""Charger - An EV charging station returned by the charger service.

A Charger carries independent connector counts for three power classes.
A count of None or 0 means no connectors of that class were reported.

Record shape (charger service, relayed verbatim by the proxy):
    {"id": 42, "name": "...", "address": "...", "latitude": 40.1,
     "longitude": -74.2, "level1": null, "level2": 4, "dcfast": 2}
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ConnectorClass(Enum):
    """Charger power categories, in display precedence order (highest first)."""

    DC_FAST = "dcfast"
    LEVEL2 = "level2"
    LEVEL1 = "level1"

    @property
    def display_name(self) -> str:
        return {
            ConnectorClass.DC_FAST: "DC Fast",
            ConnectorClass.LEVEL2: "Level 2",
            ConnectorClass.LEVEL1: "Level 1",
        }[self]


# Icon precedence: DC fast > level 2 > level 1
CONNECTOR_PRECEDENCE = (ConnectorClass.DC_FAST, ConnectorClass.LEVEL2, ConnectorClass.LEVEL1)


@dataclass(frozen=True)
class Charger:
    """A charging station with position and per-class connector counts.

    Attributes:
        id: Charger service identifier
        name: Display name
        address: Street address
        latitude: Latitude in decimal degrees (WGS84)
        longitude: Longitude in decimal degrees (WGS84)
        level1: Number of level 1 connectors, None if not reported
        level2: Number of level 2 connectors, None if not reported
        dcfast: Number of DC fast connectors, None if not reported
    """

    id: int | str
    name: str
    address: str
    latitude: float
    longitude: float
    level1: int | None = None
    level2: int | None = None
    dcfast: int | None = None

    @staticmethod
    def from_record(record: dict[str, Any]) -> "Charger":
        """Build a Charger from a charger-service JSON record.

        Raises:
            ValueError: If the record has no usable position.
        """
        try:
            latitude = float(record["latitude"])
            longitude = float(record["longitude"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Charger record {record.get('id')!r} has no valid position") from e

        return Charger(
            id=record.get("id", f"{latitude},{longitude}"),
            name=record.get("name") or "Charger",
            address=record.get("address") or "",
            latitude=latitude,
            longitude=longitude,
            level1=record.get("level1"),
            level2=record.get("level2"),
            dcfast=record.get("dcfast"),
        )

    def count(self, connector: ConnectorClass) -> int:
        """Connector count for a class, 0 when not reported."""
        return getattr(self, connector.value) or 0

    def has(self, connector: ConnectorClass) -> bool:
        """Check if at least one connector of this class is reported."""
        return self.count(connector) > 0

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.longitude, self.latitude)

    @property
    def maps_url(self) -> str:
        """External map link for directions to this charger."""
        return f"https://www.google.com/maps/search/?api=1&query={self.latitude},{self.longitude}"

    def __repr__(self) -> str:
        return (
            f"Charger(id={self.id!r}, name={self.name!r}, "
            f"dcfast={self.dcfast}, level2={self.level2}, level1={self.level1})"
        )
