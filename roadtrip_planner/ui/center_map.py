"""MapOverlayEngine - Keeps the map widget in sync with the trip.

The engine owns one MapWidget for the whole session and is the only code
that mutates it. The controller hands it a MapProps snapshot on every
render; apply() works out what changed and runs the matching sync
operations:

    user position      -> sync_user_marker
    destination        -> sync_destination_marker (fit user + destination)
    route geometry     -> sync_route
    route coordinates  -> fetch_chargers(route bounding box)
    chargers / filter  -> sync_charger_markers (then recompute visible)
    food               -> sync_food_markers
    selections         -> highlight_charger / highlight_food
    clear flag (on)    -> clear_map (runs first, then re-places the destination)

The engine reports upward only through the two callbacks in MapProps:
the replaced charger list after a fetch, and the viewport-visible subset
after every viewport change. The controller treats both as replace,
never merge.

Panning never fetches chargers; it only recomputes which of the last
fetched chargers are visible.

Marker sync is all-or-nothing per category: every sync removes the
category's markers and recreates them.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pydeck as pdk

from roadtrip_planner.constants import MapConfig
from roadtrip_planner.model.charger import Charger
from roadtrip_planner.model.charger_filter import ChargerFilter
from roadtrip_planner.model.food_location import FoodLocation
from roadtrip_planner.model.geocode import GeocodeCandidate
from roadtrip_planner.model.map_overlay import Marker, MarkerCategory
from roadtrip_planner.model.route_geometry import RouteGeometryError
from roadtrip_planner.model.viewport import Viewport
from roadtrip_planner.ui import markers as marker_builders
from roadtrip_planner.ui.map_widget import MOVE_END, MapWidget
from roadtrip_planner.ui.proxy_client import ProxyClient, ProxyClientError
from roadtrip_planner.ui.request_fence import FetchSlot, RequestFence
from roadtrip_planner.ui.state_machine import MarkerLifecycle

logger = logging.getLogger(__name__)

ROUTE_LAYER_ID = "route"

LonLat = tuple[float, float]
ChargersCallback = Callable[[list[Charger]], None]


def _ignore(_chargers: list[Charger]) -> None:
    pass


@dataclass(frozen=True)
class MapProps:
    """Everything the engine needs from the controller for one render.

    Attributes:
        user_position: (lon, lat) of the trip start, None when unknown
        destination: Selected destination candidate
        route_geometry: Route line as GeoJSON (FeatureCollection/Feature/LineString)
        route_coordinates: Route points; a new sequence triggers a charger fetch
        chargers: Authoritative charger list owned by the controller
        charger_filter: Active connector-class filter
        selected_charger: Charger to highlight
        food: Food list owned by the controller
        selected_food: Food item to highlight
        clear_requested: One-shot clear-map flag
        on_chargers_changed: Receives the replaced list after a fetch or clear
        on_visible_chargers_changed: Receives the viewport-visible subset
    """

    user_position: LonLat | None = None
    destination: GeocodeCandidate | None = None
    route_geometry: dict[str, Any] | None = None
    route_coordinates: tuple[LonLat, ...] | None = None
    chargers: tuple[Charger, ...] = ()
    charger_filter: ChargerFilter = field(default_factory=ChargerFilter)
    selected_charger: Charger | None = None
    food: tuple[FoodLocation, ...] = ()
    selected_food: FoodLocation | None = None
    clear_requested: bool = False
    on_chargers_changed: ChargersCallback = field(default=_ignore, compare=False)
    on_visible_chargers_changed: ChargersCallback = field(default=_ignore, compare=False)


class MapOverlayEngine:
    """Owns the map widget and all overlays on it.

    Example:
        engine = MapOverlayEngine(client=ProxyClient())
        engine.apply(props)
        deck = engine.render()
        ...
        engine.teardown()
    """

    def __init__(
        self,
        client: ProxyClient,
        fence: RequestFence | None = None,
        widget_factory: Callable[[], MapWidget] = MapWidget,
    ) -> None:
        self.client = client
        self.fence = fence or RequestFence()
        self._widget_factory = widget_factory
        self.widget: MapWidget | None = None

        self._props = MapProps()
        self._chargers: list[Charger] = []
        self._filter = ChargerFilter()
        self._food: list[FoodLocation] = []
        self._selected_charger: Charger | None = None
        self._selected_food: FoodLocation | None = None
        self._last_visible: list[Charger] | None = None
        self._on_chargers_changed: ChargersCallback = _ignore
        self._on_visible_chargers_changed: ChargersCallback = _ignore

        self.lifecycles = {
            MarkerCategory.USER: MarkerLifecycle("user"),
            MarkerCategory.DESTINATION: MarkerLifecycle("destination"),
            MarkerCategory.CHARGER: MarkerLifecycle("chargers"),
            MarkerCategory.FOOD: MarkerLifecycle("food"),
        }
        self.route_lifecycle = MarkerLifecycle("route")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_initialized(self) -> bool:
        return self.widget is not None

    @property
    def chargers(self) -> list[Charger]:
        """Last known authoritative charger list."""
        return list(self._chargers)

    def initialize(self, center: LonLat | None = None) -> MapWidget:
        """Create the map widget once. Later calls return the existing widget."""
        if self.widget is not None:
            return self.widget
        lon, lat = center or (MapConfig.START_CENTER_LON, MapConfig.START_CENTER_LAT)
        widget = self._widget_factory()
        widget.center_lon, widget.center_lat = lon, lat
        widget.on(MOVE_END, self.recompute_visible_chargers)
        self.widget = widget
        logger.info(f"[MAP] Map widget created at ({lon:.5f}, {lat:.5f})")
        return widget

    def teardown(self) -> None:
        """Unsubscribe, drop every overlay and destroy the widget. Idempotent."""
        if self.widget is None:
            return
        # Responses to requests issued before teardown must not touch the next widget
        self.fence.invalidate(FetchSlot.CHARGERS)
        self.widget.off(MOVE_END, self.recompute_visible_chargers)
        for category in self.lifecycles:
            self._remove_category(category)
        self._remove_route()
        self.widget.destroy()
        self.widget = None
        self._props = MapProps()
        self._chargers = []
        self._filter = ChargerFilter()
        self._food = []
        self._selected_charger = None
        self._selected_food = None
        self._last_visible = None
        logger.info("[MAP] Engine torn down")

    def _require_widget(self) -> MapWidget:
        if self.widget is None:
            raise RuntimeError("Map engine not initialized - call initialize() first")
        return self.widget

    # =========================================================================
    # PROPS
    # =========================================================================

    def apply(self, props: MapProps) -> None:
        """Run the sync operations whose inputs changed since the last apply."""
        self.initialize(center=props.user_position)
        previous = self._props
        self._props = props
        self._on_chargers_changed = props.on_chargers_changed
        self._on_visible_chargers_changed = props.on_visible_chargers_changed

        cleared = props.clear_requested and not previous.clear_requested
        if cleared:
            self.clear_map()

        if props.user_position != previous.user_position:
            self.sync_user_marker(props.user_position)

        # The clear snapshot carries the newly selected destination, which may
        # equal the previous one; the clear has just removed its marker
        if props.destination is not None and (cleared or props.destination != previous.destination):
            self.sync_destination_marker(props.destination)

        if props.route_geometry is not None and props.route_geometry != previous.route_geometry:
            self.sync_route(props.route_geometry)

        if props.route_coordinates and props.route_coordinates != previous.route_coordinates:
            try:
                bounds = Viewport.from_points(props.route_coordinates)
            except ValueError as e:
                logger.error(f"[CHARGERS] Cannot compute route bounds: {e}")
            else:
                self.fetch_chargers(bounds)

        # Compared with the previous props: a fetch above already replaced
        # self._chargers and this snapshot predates it
        chargers_changed = props.chargers != previous.chargers
        if chargers_changed:
            self._chargers = list(props.chargers)
        if chargers_changed or props.charger_filter != self._filter:
            self._filter = props.charger_filter
            self.sync_charger_markers()

        if props.food != previous.food:
            self._food = list(props.food)
            self.sync_food_markers()
            # New markers start without emphasis
            self._selected_food = None

        if props.selected_charger != self._selected_charger:
            self.highlight_charger(props.selected_charger)

        if props.selected_food != self._selected_food:
            self.highlight_food(props.selected_food)

    # =========================================================================
    # USER AND DESTINATION
    # =========================================================================

    def sync_user_marker(self, position: LonLat | None) -> None:
        """Create or move the user marker. First creation flies the view to it."""
        if position is None:
            return
        widget = self._require_widget()
        lon, lat = position
        existing = widget.markers.get(marker_builders.USER_MARKER_ID)
        if existing is not None:
            existing.set_lon_lat(lon, lat)
            self.lifecycles[MarkerCategory.USER].populate()
            return
        widget.add_marker(marker_builders.user_marker(lon, lat))
        self.lifecycles[MarkerCategory.USER].populate()
        widget.fly_to(lon=lon, lat=lat)
        logger.info(f"[MAP] User marker at ({lon:.5f}, {lat:.5f})")

    def sync_destination_marker(self, destination: GeocodeCandidate | None) -> None:
        """Create or move the destination marker and fit user + destination in view."""
        if destination is None:
            return
        widget = self._require_widget()
        lon, lat = destination.lon_lat
        existing = widget.markers.get(marker_builders.DESTINATION_MARKER_ID)
        if existing is not None:
            existing.set_lon_lat(lon, lat)
            existing.popup = marker_builders.destination_marker(lon, lat, destination).popup
        else:
            widget.add_marker(marker_builders.destination_marker(lon, lat, destination))
        self.lifecycles[MarkerCategory.DESTINATION].populate()

        user_position = self._props.user_position
        if user_position is not None:
            widget.fit_bounds(Viewport.from_points([user_position, (lon, lat)]), padding_px=MapConfig.FIT_PADDING_PX)
        logger.info(f"[MAP] Destination marker at ({lon:.5f}, {lat:.5f}): {destination.label}")

    # =========================================================================
    # ROUTE
    # =========================================================================

    def sync_route(self, route_geometry: dict[str, Any]) -> None:
        """Update the route source in place, or add the route layer.

        Malformed geometry is logged and ignored; the previous route stays.
        """
        widget = self._require_widget()
        try:
            if widget.get_source(ROUTE_LAYER_ID) is not None:
                widget.set_source_data(ROUTE_LAYER_ID, route_geometry)
            else:
                widget.add_line_layer(ROUTE_LAYER_ID, route_geometry)
        except (RouteGeometryError, KeyError, TypeError, ValueError) as e:
            logger.error(f"[ROUTE] Ignoring malformed route geometry: {e}")
            return
        self.route_lifecycle.populate()
        logger.info(f"[ROUTE] Route layer holds {len(widget.sources[ROUTE_LAYER_ID])} points")

    def _remove_route(self) -> None:
        if self.widget is not None:
            self.widget.remove_layer(ROUTE_LAYER_ID)
        self.route_lifecycle.ensure_absent()

    # =========================================================================
    # CHARGERS
    # =========================================================================

    def fetch_chargers(self, viewport: Viewport) -> bool:
        """Fetch chargers inside viewport and replace the charger list.

        On failure the last known list stays and nothing is reported.
        A response superseded by a newer fetch is dropped.

        Returns:
            True if the list was replaced.
        """
        token = self.fence.issue(FetchSlot.CHARGERS)
        logger.info(f"[CHARGERS] Fetching chargers in {viewport}")
        try:
            chargers = self.client.chargers(viewport)
        except ProxyClientError as e:
            logger.error(f"[CHARGERS] Error fetching chargers: {e}")
            return False
        if not self.fence.is_current(FetchSlot.CHARGERS, token):
            return False

        self._chargers = chargers
        logger.info(f"[CHARGERS] Received {len(chargers)} chargers")
        self.sync_charger_markers()
        self._on_chargers_changed(list(chargers))
        return True

    def recompute_visible_chargers(self) -> list[Charger]:
        """Report the chargers inside the current viewport (edges included).

        Runs on every moveend; the callback fires only when the subset changed.
        """
        if self.widget is None:
            return []
        bounds = self.widget.get_bounds()
        visible = [c for c in self._chargers if bounds.contains(c.longitude, c.latitude)]
        if visible != self._last_visible:
            self._last_visible = visible
            logger.info(f"[CHARGERS] {len(visible)} of {len(self._chargers)} chargers visible in {bounds}")
            self._on_visible_chargers_changed(list(visible))
        return visible

    def sync_charger_markers(self) -> None:
        """Recreate one marker per charger accepted by the filter, then recompute visible."""
        widget = self._require_widget()
        self._remove_category(MarkerCategory.CHARGER)
        created = 0
        for index, charger in enumerate(self._chargers):
            marker = marker_builders.charger_marker(charger, self._filter, index=index)
            if marker is not None:
                widget.add_marker(marker)
                created += 1
        if created:
            self.lifecycles[MarkerCategory.CHARGER].populate()
        logger.info(f"[CHARGERS] {created} charger markers for filter {[c.value for c in self._filter.enabled_classes]}")
        if self._selected_charger is not None:
            self._emphasize(MarkerCategory.CHARGER, self._selected_charger.lon_lat)
        self.recompute_visible_chargers()

    # =========================================================================
    # FOOD
    # =========================================================================

    def sync_food_markers(self) -> None:
        """Recreate one marker and popup per food place."""
        widget = self._require_widget()
        self._remove_category(MarkerCategory.FOOD)
        for index, food in enumerate(self._food):
            widget.add_marker(marker_builders.food_marker(food, index=index))
        if self._food:
            self.lifecycles[MarkerCategory.FOOD].populate()
        logger.info(f"[MAP] {len(self._food)} food markers")

    # =========================================================================
    # SELECTION
    # =========================================================================

    def highlight_charger(self, charger: Charger | None) -> None:
        """Fly to the charger and emphasize its marker only."""
        self._selected_charger = charger
        if charger is None:
            return
        widget = self._require_widget()
        widget.fly_to(lon=charger.longitude, lat=charger.latitude, zoom=MapConfig.CHARGER_ZOOM)
        self._emphasize(MarkerCategory.CHARGER, charger.lon_lat)

    def highlight_food(self, food: FoodLocation | None) -> None:
        """Fly to the food place, emphasize its marker only and open its popup."""
        self._selected_food = food
        if food is None:
            return
        widget = self._require_widget()
        widget.fly_to(lon=food.longitude, lat=food.latitude, zoom=MapConfig.FOOD_ZOOM)
        matched = self._emphasize(MarkerCategory.FOOD, food.lon_lat)
        for marker in widget.markers_of(MarkerCategory.FOOD):
            marker.popup_open = marker in matched

    def _emphasize(self, category: MarkerCategory, position: LonLat) -> list[Marker]:
        """Emphasize markers at exactly position, reset all others of the category."""
        matched = []
        for marker in self._require_widget().markers_of(category):
            marker.emphasized = marker.lon_lat == position
            if marker.emphasized:
                matched.append(marker)
        return matched

    # =========================================================================
    # CLEAR
    # =========================================================================

    def clear_map(self) -> None:
        """Remove route, chargers, food and destination; report an empty charger list."""
        self._require_widget()
        self.fence.invalidate(FetchSlot.CHARGERS)
        self._remove_route()
        self._remove_category(MarkerCategory.CHARGER)
        self._remove_category(MarkerCategory.FOOD)
        self._remove_category(MarkerCategory.DESTINATION)
        self._chargers = []
        self._food = []
        self._selected_charger = None
        self._selected_food = None
        logger.info("[MAP] Map cleared")
        self._on_chargers_changed([])
        self.recompute_visible_chargers()

    def _remove_category(self, category: MarkerCategory) -> None:
        if self.widget is not None:
            for marker in self.widget.markers_of(category):
                self.widget.remove_marker(marker.id)
        self.lifecycles[category].ensure_absent()

    # =========================================================================
    # RENDERING
    # =========================================================================

    def render(self) -> pdk.Deck:
        """Pydeck deck for the current widget state."""
        return self._require_widget().to_deck()

    def set_view(self, lon: float, lat: float, zoom: float) -> None:
        """Apply a pan/zoom reported by the front end (fires moveend)."""
        self._require_widget().set_view(lon=lon, lat=lat, zoom=zoom)
