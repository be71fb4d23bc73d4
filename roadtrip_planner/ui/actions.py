"""Trip planning actions - the controller between user input, proxy and map.

Every action takes the state machine / context / client explicitly so it
can run outside Streamlit. The few functions at the bottom read them from
st.session_state for app.py and the sidebar.

Flow for a destination search:
    update_search (each rerun) -> debounce -> poll_search -> run_geocode
    select_city -> sm.select_city -> rerun -> map clears
    handle_deferred_actions -> plan_route -> sm.route_found -> rerun
    map engine sees new route coordinates -> fetches chargers

Every fetch takes a token from the context's RequestFence; a response
whose token was superseded is dropped.
"""

import logging

import streamlit as st

from roadtrip_planner.constants import SearchConfig
from roadtrip_planner.core.polyline_codec import decode_route
from roadtrip_planner.model.charger import Charger, ConnectorClass
from roadtrip_planner.model.food_location import FoodLocation
from roadtrip_planner.model.geocode import GeocodeCandidate
from roadtrip_planner.model.message import FetchFailedMessage, NoResultsMessage, NoUserLocationMessage
from roadtrip_planner.model.route_geometry import RouteGeometryError
from roadtrip_planner.ui.center_map import MapProps
from roadtrip_planner.ui.context import TripContext
from roadtrip_planner.ui.proxy_client import ProxyClient, ProxyClientError
from roadtrip_planner.ui.request_fence import FetchSlot
from roadtrip_planner.ui.state_machine import TripPlannerStateMachine

logger = logging.getLogger(__name__)


# =============================================================================
# DESTINATION SEARCH
# =============================================================================


def update_search(ctx: TripContext, query: str) -> None:
    """Feed the current search box text into the debouncer.

    An empty query clears results at once and cancels any pending search.
    Unchanged text (a rerun without typing) does not restart the delay.
    """
    if query == ctx.search.last_query:
        return
    ctx.search.last_query = query

    if not query.strip():
        ctx.search.clear_results()
        ctx.search.debouncer.cancel()
        ctx.fence.invalidate(FetchSlot.GEOCODE)
        logger.info("[SEARCH] Query cleared")
        return

    ctx.search.debouncer.submit(query.strip())


def poll_search(ctx: TripContext, client: ProxyClient) -> bool:
    """Run the debounced geocode query if it is due. Returns True if one ran."""
    query = ctx.search.debouncer.poll()
    if query is None:
        return False
    run_geocode(ctx=ctx, client=client, query=query)
    return True


def run_geocode(ctx: TripContext, client: ProxyClient, query: str) -> None:
    """Replace search results with the geocoder's candidates for query."""
    token = ctx.fence.issue(FetchSlot.GEOCODE)
    logger.info(f"[SEARCH] Geocoding {query!r}")
    try:
        candidates = client.geocode(query)
    except ProxyClientError as e:
        if not ctx.fence.is_current(FetchSlot.GEOCODE, token):
            return
        if e.is_not_found:
            ctx.search.clear_results()
            ctx.messages.push(NoResultsMessage(query=query))
            return
        logger.error(f"[SEARCH] Error searching cities: {e}")
        ctx.messages.push(FetchFailedMessage(what="search results", detail=e.message))
        return

    if not ctx.fence.is_current(FetchSlot.GEOCODE, token):
        return
    ctx.search.results = candidates[: SearchConfig.MAX_RESULTS_SHOWN]
    logger.info(f"[SEARCH] {len(candidates)} candidates for {query!r}")


# =============================================================================
# ROUTE
# =============================================================================


def select_city(sm: TripPlannerStateMachine, candidate: GeocodeCandidate) -> None:
    """Make candidate the destination and queue route planning.

    The transition resets the trip and asserts the clear-map signal.
    """
    logger.info(f"[ROUTE] Destination selected: {candidate.label}")
    sm.select_city(candidate=candidate)


def plan_route(sm: TripPlannerStateMachine, ctx: TripContext, client: ProxyClient) -> bool:
    """Request and decode the route from the user position to the destination.

    On success the route is published through route_found. On failure the
    error is logged and route_failed de-asserts the clear-map signal.

    Returns:
        True if a route was published.
    """
    ctx.deferred.route_planning = False
    destination = ctx.destination.candidate
    start = ctx.user.position

    if destination is None:
        logger.warning("[ROUTE] No destination selected, nothing to plan")
        sm.try_transition("route_failed", reason="no destination")
        return False
    if start is None:
        logger.warning("[ROUTE] User location unknown, cannot plan route")
        ctx.messages.push(NoUserLocationMessage())
        sm.try_transition("route_failed", reason="no user location")
        return False

    token = ctx.fence.issue(FetchSlot.ROUTE)
    logger.info(f"[ROUTE] Planning route {start} -> {destination.lon_lat}")
    try:
        geometry = decode_route(client.route(start=start, end=destination.lon_lat))
    except (ProxyClientError, RouteGeometryError) as e:
        if not ctx.fence.is_current(FetchSlot.ROUTE, token):
            return False
        logger.error(f"[ROUTE] Error planning route: {e}")
        ctx.messages.push(FetchFailedMessage(what="route", detail=str(e)))
        sm.try_transition("route_failed", reason=str(e))
        return False

    if not ctx.fence.is_current(FetchSlot.ROUTE, token):
        return False
    return sm.try_transition("route_found", geometry=geometry)


# =============================================================================
# CHARGERS AND FOOD
# =============================================================================


def select_charger(ctx: TripContext, client: ProxyClient, charger: Charger) -> None:
    """Select charger and load food around it."""
    logger.info(f"[CHARGERS] Selected {charger!r}")
    ctx.chargers.selected = charger
    ctx.food.selected = None
    fetch_nearby_food(ctx=ctx, client=client, charger=charger)


def fetch_nearby_food(ctx: TripContext, client: ProxyClient, charger: Charger) -> bool:
    """Replace the food list with places around charger. Failures keep the old list."""
    token = ctx.fence.issue(FetchSlot.FOOD)
    try:
        items = client.nearby_food(lon=charger.longitude, lat=charger.latitude)
    except ProxyClientError as e:
        logger.error(f"[FOOD] Error fetching nearby food: {e}")
        if ctx.fence.is_current(FetchSlot.FOOD, token):
            ctx.messages.push(FetchFailedMessage(what="nearby food", detail=e.message))
        return False

    if not ctx.fence.is_current(FetchSlot.FOOD, token):
        return False
    ctx.food.items = items
    ctx.food.selected = None
    logger.info(f"[FOOD] {len(items)} places near {charger.name}")
    return True


def select_food(ctx: TripContext, food: FoodLocation) -> None:
    logger.info(f"[FOOD] Selected {food.title}")
    ctx.food.selected = food


def toggle_filter(ctx: TripContext, connector: ConnectorClass) -> None:
    """Switch one connector class on or off."""
    ctx.charger_filter = ctx.charger_filter.toggled(connector)
    logger.info(f"[CHARGERS] Filter now {[c.value for c in ctx.charger_filter.enabled_classes]}")


def set_filter(ctx: TripContext, connector: ConnectorClass, enabled: bool) -> bool:
    """Returns True if the filter changed."""
    if ctx.charger_filter.is_enabled(connector) == enabled:
        return False
    toggle_filter(ctx=ctx, connector=connector)
    return True


def displayed_chargers(ctx: TripContext) -> list[Charger]:
    """Engine-reported visible chargers intersected with the active filter."""
    return ctx.displayed_chargers


# =============================================================================
# MAP PROPS
# =============================================================================


def build_map_props(ctx: TripContext) -> MapProps:
    """Snapshot of the trip for the map engine, with callbacks bound to ctx."""
    geometry = ctx.route.geometry

    def on_chargers_changed(chargers: list[Charger]) -> None:
        ctx.chargers.all = chargers

    def on_visible_chargers_changed(chargers: list[Charger]) -> None:
        ctx.chargers.visible = chargers

    return MapProps(
        user_position=ctx.user.position,
        destination=ctx.destination.candidate,
        route_geometry=geometry.to_feature_collection() if geometry is not None else None,
        route_coordinates=ctx.route.coordinates,
        chargers=tuple(ctx.chargers.all),
        charger_filter=ctx.charger_filter,
        selected_charger=ctx.chargers.selected,
        food=tuple(ctx.food.items),
        selected_food=ctx.food.selected,
        clear_requested=ctx.map_signal.clear_requested,
        on_chargers_changed=on_chargers_changed,
        on_visible_chargers_changed=on_visible_chargers_changed,
    )


# =============================================================================
# DEFERRED ACTIONS
# =============================================================================


def run_deferred_actions(sm: TripPlannerStateMachine, ctx: TripContext, client: ProxyClient) -> None:
    """Execute work queued by the last transition."""
    if not ctx.deferred.route_planning:
        return
    if not sm.is_routing:
        ctx.deferred.route_planning = False
        return
    plan_route(sm=sm, ctx=ctx, client=client)


# =============================================================================
# STREAMLIT SESSION WRAPPERS
# =============================================================================


def handle_deferred_actions() -> None:
    """Run deferred work for the session. Called at the end of every render."""
    sm: TripPlannerStateMachine = st.session_state.state_machine
    ctx: TripContext = st.session_state.context
    client: ProxyClient = st.session_state.proxy_client

    if ctx.deferred.route_planning and sm.is_routing:
        with st.spinner("🛣️ Planning route..."):
            run_deferred_actions(sm=sm, ctx=ctx, client=client)
    else:
        run_deferred_actions(sm=sm, ctx=ctx, client=client)


def show_pending_toasts(ctx: TripContext) -> None:
    for toast in ctx.messages.drain():
        toast.display()
