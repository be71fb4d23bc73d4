"""Map overlay records - markers, popups and icons placed on the map widget.

Markers are plain data: the map widget stores them, the overlay engine
creates and removes them, and the pydeck renderer turns them into an
IconLayer. Emphasis and popup-open are the only fields that change after
creation besides position.
"""

from dataclasses import dataclass
from enum import Enum
from html import escape

from roadtrip_planner.constants import MarkerConfig


class MarkerCategory(Enum):
    """Marker collections owned by the overlay engine."""

    USER = "user"
    DESTINATION = "destination"
    CHARGER = "charger"
    FOOD = "food"


@dataclass(frozen=True)
class Icon:
    """Marker icon image."""

    url: str
    size_px: int = MarkerConfig.ICON_SIZE_PX

    def to_icon_data(self) -> dict[str, str | int]:
        """Pydeck IconLayer icon description."""
        return {
            "url": self.url,
            "width": 48,
            "height": 48,
            "anchorY": 48,
        }


@dataclass(frozen=True)
class Popup:
    """Popup content attached to a marker.

    Attributes:
        title: Bold heading line
        lines: Detail lines (address, counts, rating...)
        link_url: External map link
        link_text: Link label
        image_url: Optional thumbnail; no image element when None
    """

    title: str
    lines: tuple[str, ...] = ()
    link_url: str | None = None
    link_text: str = "Open in Google Maps"
    image_url: str | None = None

    def to_html(self) -> str:
        """Render popup as an HTML fragment."""
        parts = []
        if self.image_url:
            parts.append(f'<img src="{escape(self.image_url)}" alt="{escape(self.title)}" style="width:100%;max-width:200px"/>')
        parts.append(f"<b>{escape(self.title)}</b>")
        parts.extend(f"<div>{escape(line)}</div>" for line in self.lines if line)
        if self.link_url:
            parts.append(f'<a href="{escape(self.link_url)}" target="_blank" rel="noopener noreferrer">{escape(self.link_text)}</a>')
        return "".join(parts)

    def to_text(self) -> str:
        """Plain-text form for map labels."""
        return "\n".join([self.title, *[line for line in self.lines if line]])


@dataclass
class Marker:
    """A point overlay bound to a geographic position.

    Attributes:
        id: Unique id within the map widget
        category: Which engine collection owns this marker
        lon: Longitude in decimal degrees
        lat: Latitude in decimal degrees
        icon: Marker image
        popup: Optional popup content
        ref_id: Id of the domain object (charger id), for click dispatch
        emphasized: Drawn enlarged (selected)
        popup_open: Popup currently shown
    """

    id: str
    category: MarkerCategory
    lon: float
    lat: float
    icon: Icon
    popup: Popup | None = None
    ref_id: str | None = None
    emphasized: bool = False
    popup_open: bool = False

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lon, self.lat)

    def set_lon_lat(self, lon: float, lat: float) -> None:
        self.lon = lon
        self.lat = lat

    @property
    def scale(self) -> float:
        return MarkerConfig.EMPHASIS_SCALE if self.emphasized else 1.0

    def to_layer_datum(self) -> dict:
        """Row for the pydeck IconLayer.

        type and id drive click dispatch; popup_html fills the hover tooltip.
        """
        return {
            "type": self.category.value,
            "id": self.ref_id or self.id,
            "marker_id": self.id,
            "position": [self.lon, self.lat],
            "icon_data": self.icon.to_icon_data(),
            "size": self.icon.size_px * self.scale,
            "popup_html": self.popup.to_html() if self.popup else "",
        }
