"""Tests for the trip planning controller and its UI plumbing.

Tests: TripPlannerStateMachine, TripContext, actions (search, route, chargers, food),
Debouncer, RequestFence, click dispatch, st_deckgl event parsing, ProxyClient
Focus: State transitions, clear-map signal, debounce timing, stale-response fencing,
full select-city -> route -> chargers -> food workflow against the map engine

Note: FakeProxyClient and data factories are defined in conftest.py.
"""

import warnings
from unittest.mock import MagicMock, patch

import pytest
import requests
from statemachine.exceptions import TransitionNotAllowed

from conftest import ROUTE_LAT_LNG, START, FakeProxyClient
from roadtrip_planner.constants import SearchConfig
from roadtrip_planner.model.charger import Charger, ConnectorClass
from roadtrip_planner.model.food_location import FoodLocation
from roadtrip_planner.model.geocode import GeocodeCandidate
from roadtrip_planner.model.map_overlay import MarkerCategory
from roadtrip_planner.model.message import (
    FetchFailedMessage,
    NoResultsMessage,
    NoUserLocationMessage,
    TripStatusMessage,
)
from roadtrip_planner.model.route_geometry import RouteGeometry
from roadtrip_planner.model.viewport import Viewport
from roadtrip_planner.ui import actions
from roadtrip_planner.ui.center_map import ROUTE_LAYER_ID, MapOverlayEngine
from roadtrip_planner.ui.click_handlers import dispatch_click
from roadtrip_planner.ui.context import TripContext
from roadtrip_planner.ui.debounce import Debouncer
from roadtrip_planner.ui.proxy_client import ClientSettings, ProxyClient, ProxyClientError
from roadtrip_planner.ui.pydeck_click_handler import PydeckClickResult, parse_event, render_pydeck_map
from roadtrip_planner.ui.request_fence import FetchSlot, RequestFence
from roadtrip_planner.ui.state_machine import TripPlannerStateMachine

StateMachineContext = tuple[TripPlannerStateMachine, TripContext]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock(sm_ctx: StateMachineContext) -> FakeClock:
    """Fake clock wired into the context's search debouncer."""
    fake = FakeClock()
    _, ctx = sm_ctx
    ctx.search.debouncer = Debouncer(clock=fake)
    return fake


# =============================================================================
# STATE MACHINE
# =============================================================================


class TestTripPlannerStateMachine:
    """TripPlannerStateMachine - idle / routing / route_ready."""

    def test_starts_idle(self, sm_ctx: StateMachineContext) -> None:
        sm, ctx = sm_ctx
        assert sm.is_idle
        assert ctx.map_signal.clear_requested is False

    def test_select_city_resets_trip_and_asserts_clear(
        self,
        sm_ctx: StateMachineContext,
        philadelphia: GeocodeCandidate,
        boston: GeocodeCandidate,
        mixed_chargers: list[Charger],
        food_places: list[FoodLocation],
    ) -> None:
        sm, ctx = sm_ctx
        ctx.search.results = [philadelphia, boston]
        ctx.chargers.all = mixed_chargers
        ctx.chargers.visible = mixed_chargers
        ctx.chargers.selected = mixed_chargers[0]
        ctx.food.items = food_places

        actions.select_city(sm, philadelphia)

        assert sm.is_routing
        assert ctx.destination.candidate == philadelphia
        assert ctx.search.results == []
        assert ctx.chargers.all == []
        assert ctx.chargers.visible == []
        assert ctx.chargers.selected is None
        assert ctx.food.items == []
        assert ctx.map_signal.clear_requested is True
        assert ctx.deferred.route_planning is True
        assert ctx.user.position == START

    def test_select_city_allowed_from_route_ready(
        self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, philadelphia: GeocodeCandidate, boston: GeocodeCandidate
    ) -> None:
        sm, ctx = sm_ctx
        actions.select_city(sm, philadelphia)
        actions.plan_route(sm, ctx, fake_client)
        assert sm.is_route_ready

        actions.select_city(sm, boston)
        assert sm.is_routing
        assert ctx.route.geometry is None
        assert ctx.destination.candidate == boston

    def test_route_found_requires_routing(self, sm_ctx: StateMachineContext) -> None:
        sm, _ = sm_ctx
        geometry = RouteGeometry(coordinates=[START, (-75.0, 40.0)])
        with pytest.raises(TransitionNotAllowed):
            sm.route_found(geometry=geometry)
        assert sm.try_transition("route_failed") is False
        assert sm.is_idle

    def test_state_name_follows_transitions(self, sm_ctx: StateMachineContext, philadelphia: GeocodeCandidate) -> None:
        sm, _ = sm_ctx
        assert sm.get_state_name() == "Idle"
        sm.select_city(candidate=philadelphia)
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            assert sm.get_state_name() == "Routing"
        assert "Routing" in repr(sm)
        assert sm.try_transition("select_city", candidate=philadelphia) is True

    def test_ui_listener_triggers_rerun(self, philadelphia: GeocodeCandidate) -> None:
        with patch("roadtrip_planner.ui.infra.trigger_rerun") as rerun:
            sm, _ = TripPlannerStateMachine.create(add_ui_listener=True)
            sm.select_city(candidate=philadelphia)
        rerun.assert_called_once()


# =============================================================================
# DESTINATION SEARCH
# =============================================================================


class TestSearch:
    """Debounced geocoding."""

    def test_geocode_runs_after_quiet_period(
        self, sm_ctx: StateMachineContext, clock: FakeClock, fake_client: FakeProxyClient, boston: GeocodeCandidate
    ) -> None:
        """Only the last text typed within the delay is geocoded."""
        _, ctx = sm_ctx
        fake_client.geocode_results = [boston]

        actions.update_search(ctx, "Bos")
        clock.advance(0.1)
        actions.update_search(ctx, "Boston")
        clock.advance(0.25)
        assert actions.poll_search(ctx, fake_client) is False

        clock.advance(0.1)
        assert actions.poll_search(ctx, fake_client) is True
        assert fake_client.calls_to("geocode") == [("Boston",)]
        assert ctx.search.results == [boston]

    def test_unchanged_text_does_not_restart_delay(
        self, sm_ctx: StateMachineContext, clock: FakeClock, fake_client: FakeProxyClient
    ) -> None:
        _, ctx = sm_ctx
        actions.update_search(ctx, "Boston")
        clock.advance(0.2)
        actions.update_search(ctx, "Boston")  # rerun without typing
        clock.advance(0.15)
        assert actions.poll_search(ctx, fake_client) is True

    def test_empty_query_clears_immediately(
        self, sm_ctx: StateMachineContext, clock: FakeClock, fake_client: FakeProxyClient, boston: GeocodeCandidate
    ) -> None:
        _, ctx = sm_ctx
        ctx.search.results = [boston]
        actions.update_search(ctx, "Bos")
        actions.update_search(ctx, "")

        assert ctx.search.results == []
        clock.advance(1.0)
        assert actions.poll_search(ctx, fake_client) is False
        assert fake_client.calls_to("geocode") == []

    def test_no_matches_clears_results_and_tells_user(
        self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, boston: GeocodeCandidate
    ) -> None:
        _, ctx = sm_ctx
        ctx.search.results = [boston]
        fake_client.geocode_error = ProxyClientError("No results found", status=404)

        actions.run_geocode(ctx, fake_client, "Xyzzyville")

        assert ctx.search.results == []
        assert ctx.messages.drain() == [NoResultsMessage(query="Xyzzyville")]

    def test_geocode_failure_keeps_results(
        self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, boston: GeocodeCandidate
    ) -> None:
        _, ctx = sm_ctx
        ctx.search.results = [boston]
        fake_client.geocode_error = ProxyClientError("Error fetching geocode data", status=500)

        actions.run_geocode(ctx, fake_client, "Bost")

        assert ctx.search.results == [boston]
        (toast,) = ctx.messages.drain()
        assert isinstance(toast, FetchFailedMessage)

    def test_results_are_capped(self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient) -> None:
        _, ctx = sm_ctx
        fake_client.geocode_results = [
            GeocodeCandidate(id=str(i), name=f"Springfield {i}", label=f"Springfield {i}", longitude=-90.0, latitude=39.8)
            for i in range(SearchConfig.MAX_RESULTS_SHOWN + 5)
        ]
        actions.run_geocode(ctx, fake_client, "Springfield")
        assert len(ctx.search.results) == SearchConfig.MAX_RESULTS_SHOWN

    def test_superseded_geocode_is_dropped(
        self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, boston: GeocodeCandidate
    ) -> None:
        _, ctx = sm_ctx
        fake_client.geocode_results = [boston]
        fake_client.before_answer = lambda name: ctx.fence.issue(FetchSlot.GEOCODE)
        actions.run_geocode(ctx, fake_client, "Boston")
        assert ctx.search.results == []


# =============================================================================
# ROUTE PLANNING
# =============================================================================


class TestPlanRoute:
    """plan_route and deferred route planning."""

    def test_route_found(self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, philadelphia: GeocodeCandidate) -> None:
        sm, ctx = sm_ctx
        actions.select_city(sm, philadelphia)

        assert actions.plan_route(sm, ctx, fake_client) is True

        assert sm.is_route_ready
        assert fake_client.calls_to("route") == [(START, philadelphia.lon_lat)]
        assert ctx.route.geometry is not None
        assert len(ctx.route.geometry) == len(ROUTE_LAT_LNG)
        first_lon, first_lat = ctx.route.geometry.coordinates[0]
        assert (first_lon, first_lat) == pytest.approx((ROUTE_LAT_LNG[0][1], ROUTE_LAT_LNG[0][0]))
        assert ctx.map_signal.clear_requested is False
        assert ctx.deferred.route_planning is False

    def test_route_failure_returns_to_idle(
        self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, philadelphia: GeocodeCandidate
    ) -> None:
        """A failed request logs, tells the user and de-asserts the clear flag."""
        sm, ctx = sm_ctx
        actions.select_city(sm, philadelphia)
        fake_client.route_error = ProxyClientError("Failed to fetch route", status=500)

        assert actions.plan_route(sm, ctx, fake_client) is False

        assert sm.is_idle
        assert ctx.route.geometry is None
        assert ctx.map_signal.clear_requested is False
        (toast,) = ctx.messages.drain()
        assert isinstance(toast, FetchFailedMessage)
        assert toast.what == "route"

    def test_undecodable_route_returns_to_idle(
        self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, philadelphia: GeocodeCandidate
    ) -> None:
        sm, ctx = sm_ctx
        actions.select_city(sm, philadelphia)
        fake_client.route_polyline = ""
        assert actions.plan_route(sm, ctx, fake_client) is False
        assert sm.is_idle
        assert ctx.map_signal.clear_requested is False

    def test_unknown_user_location_refuses_route(self, fake_client: FakeProxyClient, philadelphia: GeocodeCandidate) -> None:
        sm, ctx = TripPlannerStateMachine.create(add_ui_listener=False)
        actions.select_city(sm, philadelphia)

        assert actions.plan_route(sm, ctx, fake_client) is False

        assert sm.is_idle
        assert fake_client.calls_to("route") == []
        assert ctx.messages.drain() == [NoUserLocationMessage()]
        assert ctx.map_signal.clear_requested is False

    def test_superseded_route_is_dropped(
        self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, philadelphia: GeocodeCandidate
    ) -> None:
        sm, ctx = sm_ctx
        actions.select_city(sm, philadelphia)
        fake_client.before_answer = lambda name: ctx.fence.issue(FetchSlot.ROUTE)

        assert actions.plan_route(sm, ctx, fake_client) is False
        assert sm.is_routing
        assert ctx.route.geometry is None

    def test_deferred_planning_runs_once(
        self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, philadelphia: GeocodeCandidate
    ) -> None:
        sm, ctx = sm_ctx
        actions.run_deferred_actions(sm, ctx, fake_client)
        assert fake_client.calls_to("route") == []

        actions.select_city(sm, philadelphia)
        actions.run_deferred_actions(sm, ctx, fake_client)
        actions.run_deferred_actions(sm, ctx, fake_client)

        assert sm.is_route_ready
        assert len(fake_client.calls_to("route")) == 1


# =============================================================================
# CHARGERS, FOOD, FILTERS
# =============================================================================


class TestChargersAndFood:
    """Charger selection, nearby food and the connector filter."""

    def test_select_charger_loads_food_around_it(
        self,
        sm_ctx: StateMachineContext,
        fake_client: FakeProxyClient,
        mixed_chargers: list[Charger],
        food_places: list[FoodLocation],
    ) -> None:
        _, ctx = sm_ctx
        fake_client.food_results = food_places
        charger = mixed_chargers[0]

        actions.select_charger(ctx, fake_client, charger)

        assert ctx.chargers.selected == charger
        assert fake_client.calls_to("nearby_food") == [(charger.longitude, charger.latitude)]
        assert ctx.food.items == food_places
        assert ctx.food.selected is None

    def test_food_failure_keeps_list(
        self,
        sm_ctx: StateMachineContext,
        fake_client: FakeProxyClient,
        mixed_chargers: list[Charger],
        food_places: list[FoodLocation],
    ) -> None:
        _, ctx = sm_ctx
        ctx.food.items = food_places
        fake_client.food_error = ProxyClientError("Failed to fetch nearby food", status=500)

        assert actions.fetch_nearby_food(ctx, fake_client, mixed_chargers[1]) is False
        assert ctx.food.items == food_places
        assert len(ctx.messages.drain()) == 1

    def test_displayed_chargers_follow_filter(self, sm_ctx: StateMachineContext, mixed_chargers: list[Charger]) -> None:
        """Displayed = engine-reported visible subset intersected with the filter."""
        _, ctx = sm_ctx
        ctx.chargers.all = mixed_chargers
        ctx.chargers.visible = mixed_chargers[:2]
        assert [c.id for c in actions.displayed_chargers(ctx)] == [1]

        actions.toggle_filter(ctx, ConnectorClass.LEVEL2)
        assert [c.id for c in actions.displayed_chargers(ctx)] == [1, 2]

        actions.toggle_filter(ctx, ConnectorClass.LEVEL1)
        # Charger 3 passes the filter but is not in view
        assert [c.id for c in actions.displayed_chargers(ctx)] == [1, 2]

    def test_set_filter_reports_change(self, sm_ctx: StateMachineContext) -> None:
        _, ctx = sm_ctx
        assert actions.set_filter(ctx, ConnectorClass.DC_FAST, True) is False
        assert actions.set_filter(ctx, ConnectorClass.LEVEL1, True) is True
        assert ctx.charger_filter.level1 is True

    def test_map_props_callbacks_replace_lists(self, sm_ctx: StateMachineContext, mixed_chargers: list[Charger]) -> None:
        _, ctx = sm_ctx
        ctx.chargers.all = mixed_chargers
        props = actions.build_map_props(ctx)

        props.on_chargers_changed([mixed_chargers[2]])
        props.on_visible_chargers_changed([])
        assert ctx.chargers.all == [mixed_chargers[2]]
        assert ctx.chargers.visible == []
        assert props.chargers == tuple(mixed_chargers)
        assert props.route_geometry is None

    def test_trip_status_message(self) -> None:
        assert "Search" in TripStatusMessage(None, 0, 0, 0).message
        assert "Planning route" in TripStatusMessage("Boston", 0, 0, 0).message
        assert "2 of 5 chargers" in TripStatusMessage("Boston", 120, 2, 5).message


# =============================================================================
# CLICK DISPATCH
# =============================================================================


class TestClickDispatch:
    """Marker clicks from the deck.gl component."""

    def test_charger_click_selects_and_loads_food(
        self,
        sm_ctx: StateMachineContext,
        fake_client: FakeProxyClient,
        mixed_chargers: list[Charger],
        food_places: list[FoodLocation],
    ) -> None:
        _, ctx = sm_ctx
        ctx.chargers.all = mixed_chargers
        fake_client.food_results = food_places
        click = {"type": "charger", "id": "2", "marker_id": "charger:1"}

        assert dispatch_click(ctx, fake_client, click) is True
        assert ctx.chargers.selected == mixed_chargers[1]
        assert ctx.food.items == food_places

        # Same marker again: nothing changes
        assert dispatch_click(ctx, fake_client, click) is False
        assert len(fake_client.calls_to("nearby_food")) == 1

    def test_food_click_selects_by_index(self, sm_ctx: StateMachineContext, fake_client: FakeProxyClient, food_places: list[FoodLocation]) -> None:
        _, ctx = sm_ctx
        ctx.food.items = food_places
        assert dispatch_click(ctx, fake_client, {"type": "food", "id": "1", "marker_id": "food:1"}) is True
        assert ctx.food.selected == food_places[1]

    @pytest.mark.parametrize(
        "click",
        [
            {"type": "charger", "id": "999"},
            {"type": "food", "id": "7"},
            {"type": "food", "id": "not-a-number"},
            {"type": "user", "id": "user"},
            {},
        ],
    )
    def test_unmatched_clicks_are_ignored(
        self,
        sm_ctx: StateMachineContext,
        fake_client: FakeProxyClient,
        mixed_chargers: list[Charger],
        food_places: list[FoodLocation],
        click: dict,
    ) -> None:
        _, ctx = sm_ctx
        ctx.chargers.all = mixed_chargers
        ctx.food.items = food_places
        assert dispatch_click(ctx, fake_client, click) is False
        assert ctx.chargers.selected is None
        assert ctx.food.selected is None


class TestParseEvent:
    """st_deckgl event parsing."""

    def test_marker_click(self) -> None:
        event = {
            "type": "charger",
            "id": "42",
            "marker_id": "charger:0",
            "coordinate": [-74.0, 40.7],
            "eventType": "click",
            "viewState": {"longitude": -74.0, "latitude": 40.7, "zoom": 11},
        }
        result = parse_event(event)
        assert result.clicked_object == {"type": "charger", "id": "42", "marker_id": "charger:0"}
        assert result.view_state == (-74.0, 40.7, 11.0)

    def test_plain_map_click_has_no_object(self) -> None:
        result = parse_event({"type": "click", "coordinate": [-74.0, 40.7]})
        assert result.clicked_object is None
        assert not result.is_object_click

    @pytest.mark.parametrize("event", [None, {}, "click", []])
    def test_empty_events(self, event: object) -> None:
        assert parse_event(event) == parse_event(None)
        assert parse_event(event).clicked_object is None

    def test_malformed_view_state_ignored(self) -> None:
        result = parse_event({"type": "food", "id": "0", "viewState": {"longitude": "west"}})
        assert result.view_state is None
        assert result.clicked_object == {"type": "food", "id": "0"}


class TestClickDeduplication:
    """render_pydeck_map reports each marker click once across reruns."""

    CHARGER_CLICK = {"type": "charger", "id": "42", "marker_id": "charger:0", "eventType": "click"}
    FOOD_CLICK = {"type": "food", "id": "1", "marker_id": "food:1", "eventType": "click"}

    def _render(self, session: dict, event: object) -> PydeckClickResult:
        with patch("roadtrip_planner.ui.pydeck_click_handler.st") as st_mock, patch(
            "roadtrip_planner.ui.pydeck_click_handler.st_deckgl", return_value=event
        ) as deckgl:
            st_mock.session_state = session
            result = render_pydeck_map(MagicMock(), key="trip_map")
        assert deckgl.call_args.kwargs["events"] == ["click"]
        return result

    def test_repeated_event_reported_once(self) -> None:
        session: dict = {}
        first = self._render(session, self.CHARGER_CLICK)
        second = self._render(session, self.CHARGER_CLICK)
        assert first.clicked_object == {"type": "charger", "id": "42", "marker_id": "charger:0"}
        assert second.clicked_object is None

    def test_different_marker_is_new_click(self) -> None:
        session: dict = {}
        self._render(session, self.CHARGER_CLICK)
        result = self._render(session, self.FOOD_CLICK)
        assert result.clicked_object is not None
        assert result.clicked_object["type"] == "food"

    def test_keys_are_per_component(self) -> None:
        session: dict = {}
        self._render(session, self.CHARGER_CLICK)
        assert session["_deckgl_last_click_trip_map"] == "charger_charger:0"

    def test_no_event(self) -> None:
        assert self._render({}, None).clicked_object is None


# =============================================================================
# DEBOUNCE AND FENCE
# =============================================================================


class TestDebouncer:
    """Debouncer - latest value after quiescence."""

    def test_latest_value_wins(self) -> None:
        clock = FakeClock()
        debouncer: Debouncer[str] = Debouncer(delay_s=0.3, clock=clock)
        debouncer.submit("B")
        debouncer.submit("Bo")
        assert debouncer.remaining() == pytest.approx(0.3)
        clock.advance(0.5)
        assert debouncer.poll() == "Bo"
        assert debouncer.poll() is None
        assert not debouncer.has_pending

    def test_each_submit_restarts_the_wait(self) -> None:
        """A second commit inside the window postpones the value by a full delay."""
        clock = FakeClock()
        debouncer: Debouncer[str] = Debouncer(delay_s=0.3, clock=clock)
        debouncer.submit("Bos")
        clock.advance(0.2)
        debouncer.submit("Boston")
        clock.advance(0.2)
        assert debouncer.poll() is None
        assert debouncer.remaining() == pytest.approx(0.1)
        clock.advance(0.15)
        assert debouncer.poll() == "Boston"

    def test_cancel(self) -> None:
        clock = FakeClock()
        debouncer: Debouncer[str] = Debouncer(delay_s=0.3, clock=clock)
        debouncer.submit("Boston")
        debouncer.cancel()
        clock.advance(1.0)
        assert debouncer.poll() is None
        assert debouncer.remaining() == 0.0


class TestRequestFence:
    """RequestFence - last request wins, per slot."""

    def test_newer_token_supersedes(self) -> None:
        fence = RequestFence()
        first = fence.issue(FetchSlot.CHARGERS)
        second = fence.issue(FetchSlot.CHARGERS)
        assert not fence.is_current(FetchSlot.CHARGERS, first)
        assert fence.is_current(FetchSlot.CHARGERS, second)

    def test_slots_are_independent(self) -> None:
        fence = RequestFence()
        chargers = fence.issue(FetchSlot.CHARGERS)
        fence.issue(FetchSlot.GEOCODE)
        fence.invalidate(FetchSlot.FOOD)
        assert fence.is_current(FetchSlot.CHARGERS, chargers)

    def test_invalidate_drops_in_flight(self) -> None:
        fence = RequestFence()
        token = fence.issue(FetchSlot.ROUTE)
        fence.invalidate(FetchSlot.ROUTE)
        assert not fence.is_current(FetchSlot.ROUTE, token)
        assert fence.latest(FetchSlot.ROUTE) == token + 1


# =============================================================================
# PROXY CLIENT
# =============================================================================


def _response(status: int = 200, body: object = None) -> MagicMock:
    response = MagicMock()
    response.ok = status < 400
    response.status_code = status
    response.reason = "Error"
    response.json.return_value = body
    return response


class TestProxyClient:
    """ProxyClient - HTTP calls to the proxy layer (requests patched)."""

    @pytest.fixture
    def client(self) -> ProxyClient:
        return ProxyClient(ClientSettings(proxy_url="http://proxy.test/"))

    def test_geocode_parses_features_and_skips_malformed(self, client: ProxyClient) -> None:
        body = {
            "features": [
                {"geometry": {"coordinates": [-71.0589, 42.3601]}, "properties": {"name": "Boston", "label": "Boston, MA"}},
                {"properties": {"name": "No geometry"}},
            ]
        }
        with patch("roadtrip_planner.ui.proxy_client.requests.request", return_value=_response(body=body)) as request:
            candidates = client.geocode("Boston")

        assert [c.name for c in candidates] == ["Boston"]
        request.assert_called_once()
        args, kwargs = request.call_args
        assert args == ("GET", "http://proxy.test/api/geocode")
        assert kwargs["params"] == {"query": "Boston"}

    def test_not_found_carries_status_and_message(self, client: ProxyClient) -> None:
        response = _response(status=404, body={"error": "No results found"})
        with patch("roadtrip_planner.ui.proxy_client.requests.request", return_value=response):
            with pytest.raises(ProxyClientError) as excinfo:
                client.geocode("Xyzzyville")
        assert excinfo.value.is_not_found
        assert excinfo.value.message == "No results found"

    def test_network_failure(self, client: ProxyClient) -> None:
        with patch(
            "roadtrip_planner.ui.proxy_client.requests.request",
            side_effect=requests.ConnectionError("connection refused"),
        ):
            with pytest.raises(ProxyClientError) as excinfo:
                client.chargers(Viewport(north=41.0, east=-73.0, south=40.0, west=-75.0))
        assert excinfo.value.status is None

    def test_route_returns_encoded_geometry(self, client: ProxyClient) -> None:
        body = {"routes": [{"geometry": "_p~iF~ps|U_ulLnnqC"}]}
        with patch("roadtrip_planner.ui.proxy_client.requests.request", return_value=_response(body=body)) as request:
            encoded = client.route(start=START, end=(-75.1652, 39.9526))
        assert encoded == "_p~iF~ps|U_ulLnnqC"
        assert request.call_args.kwargs["json"] == {"start": list(START), "end": [-75.1652, 39.9526]}

    def test_route_without_routes_raises(self, client: ProxyClient) -> None:
        with patch("roadtrip_planner.ui.proxy_client.requests.request", return_value=_response(body={"routes": []})):
            with pytest.raises(ProxyClientError, match="routes"):
                client.route(start=START, end=(-75.1652, 39.9526))

    def test_chargers_sends_edges_and_skips_bad_records(self, client: ProxyClient) -> None:
        body = [
            {"id": 1, "name": "A", "latitude": 40.7, "longitude": -74.0, "dcfast": 2},
            {"id": 2, "name": "No position"},
        ]
        viewport = Viewport(north=41.0, east=-73.0, south=40.0, west=-75.0)
        with patch("roadtrip_planner.ui.proxy_client.requests.request", return_value=_response(body=body)) as request:
            chargers = client.chargers(viewport)
        assert [c.id for c in chargers] == [1]
        assert request.call_args.kwargs["params"] == {"n": 41.0, "e": -73.0, "s": 40.0, "w": -75.0}

    def test_nearby_food_sends_lat_lng(self, client: ProxyClient) -> None:
        body = [{"title": "Joe's Pizza", "gps_coordinates": {"latitude": 40.73, "longitude": -74.0}}]
        with patch("roadtrip_planner.ui.proxy_client.requests.request", return_value=_response(body=body)) as request:
            food = client.nearby_food(lon=-74.0, lat=40.73)
        assert [f.title for f in food] == ["Joe's Pizza"]
        assert request.call_args.kwargs["params"] == {"lat": 40.73, "lng": -74.0}

    def test_non_list_records_raise(self, client: ProxyClient) -> None:
        with patch("roadtrip_planner.ui.proxy_client.requests.request", return_value=_response(body={"oops": 1})):
            with pytest.raises(ProxyClientError, match="Expected a list"):
                client.nearby_food(lon=-74.0, lat=40.73)

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ROADTRIP_PROXY_URL", "http://example.test:8080")
        monkeypatch.setenv("ROADTRIP_START_LON", "-71.06")
        monkeypatch.setenv("ROADTRIP_START_LAT", "42.36")
        settings = ClientSettings.from_env()
        assert settings.proxy_url == "http://example.test:8080"
        assert settings.start_position == (-71.06, 42.36)


# =============================================================================
# FULL WORKFLOW
# =============================================================================


class TestTripWorkflow:
    """Controller and map engine together, render by render."""

    def test_select_city_to_food(
        self,
        sm_ctx: StateMachineContext,
        fake_client: FakeProxyClient,
        philadelphia: GeocodeCandidate,
        boston: GeocodeCandidate,
        mixed_chargers: list[Charger],
        food_places: list[FoodLocation],
    ) -> None:
        sm, ctx = sm_ctx
        engine = MapOverlayEngine(client=fake_client, fence=ctx.fence)
        fake_client.charger_results = mixed_chargers
        fake_client.food_results = food_places

        # Render 1: nothing selected yet
        engine.apply(actions.build_map_props(ctx))
        widget = engine.widget
        assert widget is not None
        assert list(widget.markers) == ["user"]

        # User picks Philadelphia; the next render clears, then routing runs
        actions.select_city(sm, philadelphia)
        engine.apply(actions.build_map_props(ctx))
        actions.run_deferred_actions(sm, ctx, fake_client)
        assert sm.is_route_ready

        # Render after route_found: route drawn, chargers fetched and reported
        engine.apply(actions.build_map_props(ctx))
        assert ROUTE_LAYER_ID in widget.layers
        assert ctx.chargers.all == mixed_chargers
        assert ctx.chargers.visible == mixed_chargers
        assert [c.id for c in actions.displayed_chargers(ctx)] == [1]

        # Click the DC fast charger on the map
        assert dispatch_click(ctx, fake_client, {"type": "charger", "id": "1", "marker_id": "charger:0"})
        engine.apply(actions.build_map_props(ctx))
        assert len(widget.markers_of(MarkerCategory.FOOD)) == len(food_places)
        emphasized = [m.ref_id for m in widget.markers_of(MarkerCategory.CHARGER) if m.emphasized]
        assert emphasized == ["1"]

        # Pick a place to eat from the list
        actions.select_food(ctx, food_places[0])
        engine.apply(actions.build_map_props(ctx))
        assert [m.popup_open for m in widget.markers_of(MarkerCategory.FOOD)] == [True, False]

        # A new destination wipes the old trip from the map
        actions.select_city(sm, boston)
        engine.apply(actions.build_map_props(ctx))
        assert ROUTE_LAYER_ID not in widget.layers
        assert widget.markers_of(MarkerCategory.CHARGER) == []
        assert widget.markers_of(MarkerCategory.FOOD) == []
        assert ctx.chargers.all == []
        assert [m.lon_lat for m in widget.markers_of(MarkerCategory.DESTINATION)] == [boston.lon_lat]

    def test_same_city_twice_keeps_destination_marker(
        self,
        sm_ctx: StateMachineContext,
        fake_client: FakeProxyClient,
        philadelphia: GeocodeCandidate,
        mixed_chargers: list[Charger],
    ) -> None:
        sm, ctx = sm_ctx
        engine = MapOverlayEngine(client=fake_client, fence=ctx.fence)
        fake_client.charger_results = mixed_chargers
        engine.apply(actions.build_map_props(ctx))
        widget = engine.widget
        assert widget is not None

        for _ in range(2):
            actions.select_city(sm, philadelphia)
            engine.apply(actions.build_map_props(ctx))
            actions.run_deferred_actions(sm, ctx, fake_client)
            engine.apply(actions.build_map_props(ctx))

            assert sm.is_route_ready
            assert ROUTE_LAYER_ID in widget.layers
            assert [m.lon_lat for m in widget.markers_of(MarkerCategory.DESTINATION)] == [philadelphia.lon_lat]
            assert ctx.chargers.all == mixed_chargers
