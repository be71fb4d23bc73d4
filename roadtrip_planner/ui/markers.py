"""Marker and popup construction for every overlay category.

Each builder turns one domain object into a Marker with its icon and popup.
Charger and food marker ids carry the position in the current list, so
duplicate records never collide on the map.
"""

from roadtrip_planner.constants import MarkerConfig
from roadtrip_planner.model.charger import Charger, ConnectorClass
from roadtrip_planner.model.charger_filter import ChargerFilter
from roadtrip_planner.model.food_location import FoodLocation
from roadtrip_planner.model.geocode import GeocodeCandidate
from roadtrip_planner.model.map_overlay import Icon, Marker, MarkerCategory, Popup

USER_MARKER_ID = "user"
DESTINATION_MARKER_ID = "destination"

CONNECTOR_ICONS = {
    ConnectorClass.DC_FAST: Icon(url=MarkerConfig.DC_FAST_ICON_URL),
    ConnectorClass.LEVEL2: Icon(url=MarkerConfig.LEVEL2_ICON_URL),
    ConnectorClass.LEVEL1: Icon(url=MarkerConfig.LEVEL1_ICON_URL),
}


def user_marker(lon: float, lat: float) -> Marker:
    return Marker(
        id=USER_MARKER_ID,
        category=MarkerCategory.USER,
        lon=lon,
        lat=lat,
        icon=Icon(url=MarkerConfig.USER_ICON_URL),
        popup=Popup(title="You are here"),
    )


def destination_marker(lon: float, lat: float, destination: GeocodeCandidate | None = None) -> Marker:
    title = destination.label if destination is not None else "Destination"
    return Marker(
        id=DESTINATION_MARKER_ID,
        category=MarkerCategory.DESTINATION,
        lon=lon,
        lat=lat,
        icon=Icon(url=MarkerConfig.DESTINATION_ICON_URL),
        popup=Popup(title=title),
    )


def charger_popup(charger: Charger) -> Popup:
    """Name, address, per-class connector counts and a Google Maps link."""
    counts = tuple(
        f"{connector.display_name}: {charger.count(connector)}"
        for connector in (ConnectorClass.LEVEL1, ConnectorClass.LEVEL2, ConnectorClass.DC_FAST)
        if charger.has(connector)
    )
    return Popup(
        title=charger.name,
        lines=(charger.address, *counts),
        link_url=charger.maps_url,
    )


def charger_marker(charger: Charger, charger_filter: ChargerFilter, index: int = 0) -> Marker | None:
    """Marker for charger, or None when the filter rejects it.

    The icon is that of the highest-precedence connector class the charger
    has and the filter enables (DC fast > level 2 > level 1).
    """
    connector = charger_filter.display_class(charger)
    if connector is None:
        return None
    return Marker(
        id=f"charger:{index}",
        category=MarkerCategory.CHARGER,
        lon=charger.longitude,
        lat=charger.latitude,
        icon=CONNECTOR_ICONS[connector],
        popup=charger_popup(charger),
        ref_id=str(charger.id),
    )


def food_popup(food: FoodLocation) -> Popup:
    """Title, address, rating with review count, category and a map link.

    The image element exists only when the place has a thumbnail.
    """
    rating = "Rating: n/a" if food.rating is None else f"Rating: {food.rating}"
    if food.reviews is not None:
        rating += f" ({food.reviews} reviews)"
    return Popup(
        title=food.title,
        lines=(food.address, rating, food.type),
        link_url=food.maps_url,
        image_url=food.thumbnail,
    )


def food_marker(food: FoodLocation, index: int) -> Marker:
    # Food has no unique id: index within the current list keeps ids unique
    return Marker(
        id=f"food:{index}",
        category=MarkerCategory.FOOD,
        lon=food.longitude,
        lat=food.latitude,
        icon=Icon(url=MarkerConfig.FOOD_ICON_URL),
        popup=food_popup(food),
        ref_id=str(index),
    )
