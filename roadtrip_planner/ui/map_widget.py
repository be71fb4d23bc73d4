"""MapWidget - The owned map handle mutated by the overlay engine.

Holds everything the browser map would hold: view state, markers, the
route source/layer and viewport event listeners. Rendering is delegated to
pydeck (deck.gl) via to_deck(); this class never talks to Streamlit.

Coordinates use [lon, lat] order (GeoJSON standard) throughout.

Events:
    "moveend": fired after every view change (fly_to, fit_bounds, set_view)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pydeck as pdk

from roadtrip_planner.constants import ClickConfig, MapConfig, StyleConfig
from roadtrip_planner.core.geo_calculator import GeoCalculator
from roadtrip_planner.model.map_overlay import Marker, MarkerCategory
from roadtrip_planner.model.route_geometry import RouteGeometry
from roadtrip_planner.model.viewport import Viewport

logger = logging.getLogger(__name__)

MOVE_END = "moveend"

ViewportListener = Callable[[], None]


@dataclass
class LineLayer:
    """A line overlay bound to a GeoJSON source."""

    id: str
    source_id: str
    color: list[int]
    width_px: int


class MapWidgetDestroyedError(RuntimeError):
    """Operation on a map widget after destroy()."""


class MapWidget:
    """Interactive map state with markers, GeoJSON sources and line layers.

    Example:
        widget = MapWidget()
        widget.on("moveend", handler)
        widget.fly_to(lon=-74.0, lat=40.7, zoom=12)
        deck = widget.to_deck()
    """

    def __init__(
        self,
        center_lon: float = MapConfig.START_CENTER_LON,
        center_lat: float = MapConfig.START_CENTER_LAT,
        zoom: float = MapConfig.DEFAULT_ZOOM,
        width_px: int = MapConfig.WIDTH_PX,
        height_px: int = MapConfig.HEIGHT_PX,
    ) -> None:
        self.center_lon = center_lon
        self.center_lat = center_lat
        self.zoom = zoom
        self.width_px = width_px
        self.height_px = height_px
        self.markers: dict[str, Marker] = {}
        self.sources: dict[str, RouteGeometry] = {}
        self.layers: dict[str, LineLayer] = {}
        self._listeners: dict[str, list[ViewportListener]] = {}
        # Bumped on programmatic moves so the front end re-applies the view
        self.view_version = 0
        self.destroyed = False

    # =========================================================================
    # VIEW
    # =========================================================================

    def get_bounds(self) -> Viewport:
        """Geographic rectangle currently visible."""
        north, east, south, west = GeoCalculator.view_bounds(
            center_lon=self.center_lon,
            center_lat=self.center_lat,
            zoom=self.zoom,
            width_px=self.width_px,
            height_px=self.height_px,
        )
        return Viewport(north=north, east=east, south=south, west=west)

    def fly_to(self, lon: float, lat: float, zoom: float | None = None) -> None:
        """Center the view on (lon, lat), optionally changing zoom."""
        self.view_version += 1
        self.set_view(lon=lon, lat=lat, zoom=self.zoom if zoom is None else zoom)

    def fit_bounds(self, bounds: Viewport, padding_px: int = MapConfig.FIT_PADDING_PX) -> None:
        """Center on bounds and zoom so the whole rectangle is visible inside the padding."""
        zoom = GeoCalculator.zoom_to_fit(
            north=bounds.north,
            east=bounds.east,
            south=bounds.south,
            west=bounds.west,
            width_px=self.width_px,
            height_px=self.height_px,
            padding_px=padding_px,
        )
        # Center in projected space so the padding is symmetric on screen
        x_west, y_north = GeoCalculator.project(bounds.west, bounds.north, zoom)
        x_east, y_south = GeoCalculator.project(bounds.east, bounds.south, zoom)
        lon, lat = GeoCalculator.unproject((x_west + x_east) / 2, (y_north + y_south) / 2, zoom)
        logger.info(f"[MAP] fit_bounds {bounds} -> center=({lon:.5f}, {lat:.5f}) zoom={zoom:.2f}")
        self.view_version += 1
        self.set_view(lon=lon, lat=lat, zoom=zoom)

    def set_view(self, lon: float, lat: float, zoom: float) -> None:
        """Apply a view change (programmatic or user pan/zoom) and fire moveend."""
        self._ensure_alive()
        self.center_lon = lon
        self.center_lat = GeoCalculator.clamp_latitude(lat)
        self.zoom = zoom
        self.emit(MOVE_END)

    # =========================================================================
    # EVENTS
    # =========================================================================

    def on(self, event: str, listener: ViewportListener) -> None:
        self._ensure_alive()
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: ViewportListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str) -> None:
        # Copy: a listener may unsubscribe while we iterate
        for listener in list(self._listeners.get(event, [])):
            listener()

    # =========================================================================
    # MARKERS
    # =========================================================================

    def add_marker(self, marker: Marker) -> Marker:
        self._ensure_alive()
        if marker.id in self.markers:
            raise ValueError(f"Marker {marker.id} already on the map")
        self.markers[marker.id] = marker
        return marker

    def remove_marker(self, marker_id: str) -> None:
        self.markers.pop(marker_id, None)

    def markers_of(self, category: MarkerCategory) -> list[Marker]:
        return [m for m in self.markers.values() if m.category == category]

    def open_popups(self) -> list[Marker]:
        """Markers whose popup is currently open."""
        return [m for m in self.markers.values() if m.popup_open and m.popup is not None]

    # =========================================================================
    # SOURCES AND LAYERS
    # =========================================================================

    def get_source(self, source_id: str) -> RouteGeometry | None:
        return self.sources.get(source_id)

    def set_source_data(self, source_id: str, data: dict[str, Any]) -> None:
        """Replace a source's data in place.

        Raises:
            KeyError: If the source does not exist.
            RouteGeometryError: If data is not a LineString geometry.
        """
        if source_id not in self.sources:
            raise KeyError(f"No source {source_id!r}")
        self.sources[source_id] = RouteGeometry.from_geojson(data)

    def add_line_layer(
        self,
        layer_id: str,
        data: dict[str, Any],
        color: list[int] = StyleConfig.ROUTE_COLOR_RGBA,
        width_px: int = StyleConfig.ROUTE_WIDTH_PX,
    ) -> None:
        """Add a GeoJSON source and a line layer drawing it (same id for both).

        Raises:
            ValueError: If the layer id is taken.
            RouteGeometryError: If data is not a LineString geometry.
        """
        self._ensure_alive()
        if layer_id in self.layers:
            raise ValueError(f"Layer {layer_id} already exists")
        geometry = RouteGeometry.from_geojson(data)
        self.sources[layer_id] = geometry
        self.layers[layer_id] = LineLayer(id=layer_id, source_id=layer_id, color=list(color), width_px=width_px)

    def remove_layer(self, layer_id: str) -> None:
        """Remove a line layer and its source. Missing ids are ignored."""
        layer = self.layers.pop(layer_id, None)
        if layer is not None:
            self.sources.pop(layer.source_id, None)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def destroy(self) -> None:
        """Drop all overlays and listeners. The widget cannot be used afterwards."""
        self.markers.clear()
        self.sources.clear()
        self.layers.clear()
        self._listeners.clear()
        self.destroyed = True
        logger.info("[MAP] Map widget destroyed")

    def _ensure_alive(self) -> None:
        if self.destroyed:
            raise MapWidgetDestroyedError("Map widget was destroyed")

    # =========================================================================
    # RENDERING
    # =========================================================================

    def get_view_state(self) -> pdk.ViewState:
        return pdk.ViewState(
            longitude=self.center_lon,
            latitude=self.center_lat,
            zoom=self.zoom,
            pitch=0,
            bearing=0,
        )

    def to_deck(self) -> pdk.Deck:
        """Render current overlays. Z-order: route lines, markers, open popups.

        Hovering a marker shows its popup HTML (map link, thumbnail). An open
        popup stays drawn as a text label above its marker.
        """
        layers: list[pdk.Layer] = []

        for layer in self.layers.values():
            geometry = self.sources.get(layer.source_id)
            if geometry is None:
                continue
            layers.append(
                pdk.Layer(
                    "PathLayer",
                    [{"path": [list(p) for p in geometry.coordinates], "type": "route", "popup_html": ""}],
                    id=layer.id,
                    get_path="path",
                    get_color=layer.color,
                    get_width=layer.width_px,
                    width_units="pixels",
                    cap_rounded=True,
                    joint_rounded=True,
                    pickable=False,
                )
            )

        marker_rows = [m.to_layer_datum() for m in self.markers.values()]
        if marker_rows:
            layers.append(
                pdk.Layer(
                    "IconLayer",
                    marker_rows,
                    id="markers",
                    get_icon="icon_data",
                    get_position="position",
                    get_size="size",
                    size_units="pixels",
                    pickable=True,
                )
            )

        popup_rows = [{"position": [m.lon, m.lat], "text": m.popup.to_text()} for m in self.open_popups()]
        if popup_rows:
            layers.append(
                pdk.Layer(
                    "TextLayer",
                    popup_rows,
                    id="open_popups",
                    get_position="position",
                    get_text="text",
                    get_size=StyleConfig.POPUP_TEXT_SIZE_PX,
                    get_color=StyleConfig.POPUP_TEXT_COLOR_RGBA,
                    get_pixel_offset=StyleConfig.POPUP_OFFSET_PX,
                    get_text_anchor='"middle"',
                    get_alignment_baseline='"bottom"',
                    background=True,
                    get_background_color=StyleConfig.POPUP_BACKGROUND_RGBA,
                    pickable=False,
                )
            )

        return pdk.Deck(
            map_provider="carto",
            map_style=pdk.map_styles.CARTO_ROAD,
            initial_view_state=self.get_view_state(),
            layers=layers,
            tooltip={"html": "{popup_html}", "style": StyleConfig.TOOLTIP_STYLE},
            parameters={"pickingRadius": ClickConfig.PICKING_RADIUS_PX},
        )
