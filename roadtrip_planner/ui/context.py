"""Mutable trip state shared by the state machine, the controller and the UI.

TripContext is the state machine's model. actions.py is the only writer;
the sidebar reads it directly and the map engine receives it as MapProps.
Nothing here fetches data or calls Streamlit.

Every sub-context implements BaseContext.clear():
    UserLocationContext: Start position of the trip
    SearchContext: Destination query, debounce and geocode results
    DestinationContext: Selected geocode candidate
    RouteContext: Decoded route geometry
    ChargerContext: Authoritative list, engine-reported visible subset, selection
    FoodContext: Food near the selected charger and the selected item
    MapSignalContext: One-shot clear-map flag
    DeferredContext: Work to run after the next map render
    UIMessagesContext: Toasts queued for display
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from roadtrip_planner.model.charger_filter import ChargerFilter
from roadtrip_planner.ui.debounce import Debouncer
from roadtrip_planner.ui.request_fence import RequestFence

if TYPE_CHECKING:
    from roadtrip_planner.model import Charger, FoodLocation, GeocodeCandidate, RouteGeometry
    from roadtrip_planner.model.message import ToastMessage


# (lon, lat), the order pydeck and GeoJSON use
LonLat = tuple[float, float]


class BaseContext(ABC):
    """A piece of trip state that can be reset."""

    @abstractmethod
    def clear(self) -> None:
        ...


@dataclass
class UserLocationContext(BaseContext):
    """Where the trip starts."""

    lon: float | None = None
    lat: float | None = None

    def clear(self) -> None:
        self.lon = None
        self.lat = None

    def set(self, lon: float, lat: float) -> None:
        self.lon = lon
        self.lat = lat

    @property
    def position(self) -> LonLat | None:
        if self.lon is None or self.lat is None:
            return None
        return (self.lon, self.lat)


@dataclass
class SearchContext(BaseContext):
    """Destination search box state.

    The debouncer holds the typed query until it has been quiet long enough;
    last_query is what the search box showed on the previous run.
    """

    last_query: str = ""
    results: list[GeocodeCandidate] = field(default_factory=list)
    debouncer: Debouncer[str] = field(default_factory=Debouncer)

    def clear(self) -> None:
        self.last_query = ""
        self.results = []
        self.debouncer.cancel()

    def clear_results(self) -> None:
        self.results = []


@dataclass
class DestinationContext(BaseContext):
    """Selected destination."""

    candidate: GeocodeCandidate | None = None

    def clear(self) -> None:
        self.candidate = None

    @property
    def position(self) -> LonLat | None:
        return self.candidate.lon_lat if self.candidate is not None else None


@dataclass
class RouteContext(BaseContext):
    """Current route. geometry is None until a route was found."""

    geometry: RouteGeometry | None = None

    def clear(self) -> None:
        self.geometry = None

    @property
    def coordinates(self) -> tuple[LonLat, ...] | None:
        if self.geometry is None:
            return None
        return tuple(self.geometry.coordinates)


@dataclass
class ChargerContext(BaseContext):
    """Charger lists and selection.

    Attributes:
        all: Authoritative list, replaced whenever the map engine fetches
        visible: Subset inside the map viewport, as last reported by the engine
        selected: Charger picked from the list or the map
    """

    all: list[Charger] = field(default_factory=list)
    visible: list[Charger] = field(default_factory=list)
    selected: Charger | None = None

    def clear(self) -> None:
        self.all = []
        self.visible = []
        self.selected = None


@dataclass
class FoodContext(BaseContext):
    """Food places around the selected charger."""

    items: list[FoodLocation] = field(default_factory=list)
    selected: FoodLocation | None = None

    def clear(self) -> None:
        self.items = []
        self.selected = None


@dataclass
class MapSignalContext(BaseContext):
    """Commands for the map engine.

    clear_requested is a one-shot: the engine acts when it turns on, and
    the controller turns it off again once routing has finished.
    """

    clear_requested: bool = False

    def clear(self) -> None:
        self.clear_requested = False


@dataclass
class DeferredContext(BaseContext):
    """Deferred action flags for work that runs after the map has rendered.

    handle_deferred_actions() in actions.py performs the work at the end of
    the next render cycle, so the map has already applied the clear signal.
    """

    route_planning: bool = False

    def clear(self) -> None:
        self.route_planning = False


@dataclass
class UIMessagesContext(BaseContext):
    """Toasts queued by actions, shown on the next render."""

    toasts: list[ToastMessage] = field(default_factory=list)

    def clear(self) -> None:
        self.toasts = []

    def push(self, toast: ToastMessage) -> None:
        self.toasts.append(toast)

    def drain(self) -> list[ToastMessage]:
        toasts, self.toasts = self.toasts, []
        return toasts


@dataclass
class TripContext:
    """Shared context/model for the trip planner state machine.

    Holds all mutable trip state. The controller owns it and passes it to
    the map engine as MapProps; the engine only reports back through the
    callbacks in MapProps.

    python-statemachine writes the current state name to .state.
    """

    state: str | None = None

    user: UserLocationContext = field(default_factory=UserLocationContext)
    search: SearchContext = field(default_factory=SearchContext)
    destination: DestinationContext = field(default_factory=DestinationContext)
    route: RouteContext = field(default_factory=RouteContext)
    chargers: ChargerContext = field(default_factory=ChargerContext)
    food: FoodContext = field(default_factory=FoodContext)
    charger_filter: ChargerFilter = field(default_factory=ChargerFilter)
    map_signal: MapSignalContext = field(default_factory=MapSignalContext)
    deferred: DeferredContext = field(default_factory=DeferredContext)
    messages: UIMessagesContext = field(default_factory=UIMessagesContext)
    fence: RequestFence = field(default_factory=RequestFence)

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def reset_trip(self) -> None:
        """Forget route, chargers, food and selections. Keeps user and filter."""
        self.route.clear()
        self.chargers.clear()
        self.food.clear()

    @property
    def displayed_chargers(self) -> list[Charger]:
        """Engine-reported visible chargers that pass the active filter."""
        return self.charger_filter.apply(self.chargers.visible)

    def __repr__(self) -> str:
        destination = self.destination.candidate.name if self.destination.candidate else None
        return (
            f"TripContext(state={self.state}, destination={destination!r}, "
            f"route_points={len(self.route.geometry) if self.route.geometry else 0}, "
            f"chargers={len(self.chargers.all)}, visible={len(self.chargers.visible)}, "
            f"food={len(self.food.items)})"
        )
