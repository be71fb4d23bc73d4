"""Shared pytest fixtures for roadtrip_planner tests.

Provides FakeProxyClient (an in-memory stand-in for the HTTP proxy client)
and reusable chargers, food places and geocode candidates.

COORDINATE SYSTEM:
    Test data sits around New York / New Jersey (lon ~ -74, lat ~ 40.7),
    the default start region, so map views at the default zoom contain it.
"""

from collections.abc import Callable

import polyline
import pytest

from roadtrip_planner.model.charger import Charger
from roadtrip_planner.model.food_location import FoodLocation
from roadtrip_planner.model.geocode import GeocodeCandidate
from roadtrip_planner.model.viewport import Viewport
from roadtrip_planner.ui.center_map import MapOverlayEngine
from roadtrip_planner.ui.context import TripContext
from roadtrip_planner.ui.proxy_client import ClientSettings, ProxyClientError
from roadtrip_planner.ui.state_machine import TripPlannerStateMachine

# (lon, lat) of the trip start used by most tests (Manhattan)
START = (-74.006, 40.7128)

# Route New York -> Philadelphia as (lat, lng) points, as the routing service encodes it
ROUTE_LAT_LNG = [(40.7128, -74.006), (40.4, -74.4), (40.22, -74.76), (39.9526, -75.1652)]


# =============================================================================
# FAKE PROXY CLIENT
# =============================================================================


class FakeProxyClient:
    """ProxyClient without HTTP: canned answers, recorded calls.

    Set *_error to a ProxyClientError to make the matching call fail.
    before_answer runs inside the call, after recording it; tests use it to
    simulate a newer request being issued while this one is in flight.
    """

    def __init__(self) -> None:
        self.settings = ClientSettings(start_lon=START[0], start_lat=START[1])
        self.geocode_results: list[GeocodeCandidate] = []
        self.geocode_error: ProxyClientError | None = None
        self.route_polyline: str = polyline.encode(ROUTE_LAT_LNG)
        self.route_error: ProxyClientError | None = None
        self.charger_results: list[Charger] = []
        self.charger_error: ProxyClientError | None = None
        self.food_results: list[FoodLocation] = []
        self.food_error: ProxyClientError | None = None
        self.before_answer: Callable[[str], None] | None = None
        self.calls: list[tuple[str, tuple]] = []

    def _answer(self, name: str, args: tuple, error: ProxyClientError | None, result):
        self.calls.append((name, args))
        if self.before_answer is not None:
            self.before_answer(name)
        if error is not None:
            raise error
        return result

    def geocode(self, query: str) -> list[GeocodeCandidate]:
        return self._answer("geocode", (query,), self.geocode_error, list(self.geocode_results))

    def route(self, start: tuple[float, float], end: tuple[float, float]) -> str:
        return self._answer("route", (start, end), self.route_error, self.route_polyline)

    def chargers(self, viewport: Viewport) -> list[Charger]:
        return self._answer("chargers", (viewport,), self.charger_error, list(self.charger_results))

    def nearby_food(self, lon: float, lat: float) -> list[FoodLocation]:
        return self._answer("nearby_food", (lon, lat), self.food_error, list(self.food_results))

    def calls_to(self, name: str) -> list[tuple]:
        return [args for called, args in self.calls if called == name]


# =============================================================================
# DATA FACTORIES
# =============================================================================


def make_charger(
    charger_id: int | str = 1,
    lon: float = START[0],
    lat: float = START[1],
    level1: int | None = None,
    level2: int | None = None,
    dcfast: int | None = 2,
    name: str | None = None,
) -> Charger:
    return Charger(
        id=charger_id,
        name=name or f"Charger {charger_id}",
        address=f"{charger_id} Main St",
        latitude=lat,
        longitude=lon,
        level1=level1,
        level2=level2,
        dcfast=dcfast,
    )


def make_food(
    title: str = "Joe's Pizza",
    lon: float = START[0],
    lat: float = START[1],
    thumbnail: str | None = None,
) -> FoodLocation:
    return FoodLocation(
        title=title,
        address="7 Carmine St",
        rating=4.5,
        reviews=1200,
        type="Pizza restaurant",
        latitude=lat,
        longitude=lon,
        thumbnail=thumbnail,
    )


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def fake_client() -> FakeProxyClient:
    return FakeProxyClient()


@pytest.fixture
def philadelphia() -> GeocodeCandidate:
    """Destination candidate about 130 km south-west of the start."""
    return GeocodeCandidate(
        id="whosonfirst:locality:101718083",
        name="Philadelphia",
        label="Philadelphia, PA, USA",
        longitude=-75.1652,
        latitude=39.9526,
    )


@pytest.fixture
def boston() -> GeocodeCandidate:
    return GeocodeCandidate(
        id="whosonfirst:locality:85950361",
        name="Boston",
        label="Boston, MA, USA",
        longitude=-71.0589,
        latitude=42.3601,
    )


@pytest.fixture
def mixed_chargers() -> list[Charger]:
    """Three chargers near the start, one per connector mix.

    1: DC fast + level 2 (icon DC fast by default)
    2: level 2 only (hidden by the default DC-only filter)
    3: level 1 only
    """
    return [
        make_charger(1, lon=-74.0, lat=40.71, level2=4, dcfast=2),
        make_charger(2, lon=-74.01, lat=40.72, level2=6, dcfast=None),
        make_charger(3, lon=-74.02, lat=40.73, level1=1, dcfast=0),
    ]


@pytest.fixture
def food_places() -> list[FoodLocation]:
    return [
        make_food("Joe's Pizza", lon=-74.0001, lat=40.7101),
        make_food("Corner Cafe", lon=-74.0002, lat=40.7102, thumbnail="https://example.com/cafe.jpg"),
    ]


@pytest.fixture
def sm_ctx() -> tuple[TripPlannerStateMachine, TripContext]:
    """State machine without UI listener, user located at START."""
    sm, ctx = TripPlannerStateMachine.create(add_ui_listener=False)
    ctx.user.set(lon=START[0], lat=START[1])
    return sm, ctx


@pytest.fixture
def engine(fake_client: FakeProxyClient) -> MapOverlayEngine:
    """Engine with an initialized widget centered on START."""
    map_engine = MapOverlayEngine(client=fake_client)
    map_engine.initialize(center=START)
    return map_engine
