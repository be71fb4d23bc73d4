"""Road Trip Planner - Chargers and food along an EV road trip.

Search a destination, get a driving route from your start position, see
charging stations in view along the way and places to eat near a charger.

Requires the proxy layer: python -m roadtrip_planner.proxy
Run: streamlit run roadtrip_planner/app.py
"""

import logging
import traceback

import streamlit as st

from roadtrip_planner.constants import AppConfig, MapConfig
from roadtrip_planner.ui import (
    ClientSettings,
    MapOverlayEngine,
    ProxyClient,
    SidebarRenderer,
    TripContext,
    TripPlannerStateMachine,
    build_map_props,
    dispatch_click,
    handle_deferred_actions,
)
from roadtrip_planner.ui.actions import show_pending_toasts
from roadtrip_planner.ui.infra import reload_map
from roadtrip_planner.ui.pydeck_click_handler import render_pydeck_map

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# SESSION STATE
# =============================================================================


def init_session_state() -> None:
    """Create client, state machine and map engine once per session."""
    if "proxy_client" not in st.session_state:
        settings = ClientSettings.from_env()
        st.session_state.proxy_client = ProxyClient(settings)
        logger.info(f"[MAIN] Proxy at {settings.proxy_url}, start position {settings.start_position}")
    if "state_machine" not in st.session_state:
        sm, ctx = TripPlannerStateMachine.create()
        _set_user_location(ctx)
        st.session_state.state_machine = sm
        st.session_state.context = ctx
    if "map_engine" not in st.session_state:
        st.session_state.map_engine = MapOverlayEngine(client=st.session_state.proxy_client)
    if "map_version" not in st.session_state:
        st.session_state.map_version = 0


def _set_user_location(ctx: TripContext) -> None:
    client: ProxyClient = st.session_state.proxy_client
    position = client.settings.start_position
    if position is not None:
        ctx.user.set(lon=position[0], lat=position[1])


def reset_ui_state() -> None:
    """Reset trip state after an error while keeping the user location.

    The map engine is torn down and recreated empty; the next render
    re-applies the fresh context to it.
    """
    logger.info("Resetting UI state due to error recovery")
    sm, ctx = TripPlannerStateMachine.create()
    _set_user_location(ctx)
    st.session_state.state_machine = sm
    st.session_state.context = ctx

    engine: MapOverlayEngine = st.session_state.map_engine
    engine.teardown()

    st.session_state.map_version = st.session_state.get("map_version", 0) + 1
    logger.info("UI state reset complete - user location preserved")


# =============================================================================
# MAP RENDERING
# =============================================================================


def _render_map() -> None:
    """Apply the trip to the map engine, render it and handle marker clicks."""
    try:
        _render_map_inner()
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        logger.error(f"[RENDER] Map error caught: {error_msg}\n{traceback.format_exc()}")
        st.error(f"⚠️ [RENDER] Something went wrong: {error_msg}")
        reset_ui_state()
        if st.button("🔄 Reset and Continue", type="primary"):
            st.rerun()


def _render_map_inner() -> None:
    ctx: TripContext = st.session_state.context
    engine: MapOverlayEngine = st.session_state.map_engine
    client: ProxyClient = st.session_state.proxy_client

    engine.apply(build_map_props(ctx))
    widget = engine.widget
    map_key = f"trip_map_{st.session_state.map_version}_{widget.view_version}"

    result = render_pydeck_map(deck=engine.render(), key=map_key, height=MapConfig.HEIGHT_PX)

    # deck.gl labels cannot hold links; the open popup's full content goes under the map
    for marker in widget.open_popups():
        st.markdown(marker.popup.to_html(), unsafe_allow_html=True)

    if result.view_state is not None:
        lon, lat, zoom = result.view_state
        if (lon, lat, zoom) != (widget.center_lon, widget.center_lat, widget.zoom):
            engine.set_view(lon=lon, lat=lat, zoom=zoom)

    if result.clicked_object is not None and dispatch_click(ctx=ctx, client=client, clicked_object=result.clicked_object):
        reload_map()


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Application entry point."""
    st.set_page_config(page_title=AppConfig.TITLE, page_icon=AppConfig.ICON, layout=AppConfig.LAYOUT)
    init_session_state()
    _run_app_ui()


def _run_app_ui() -> None:
    sm: TripPlannerStateMachine = st.session_state.state_machine
    ctx: TripContext = st.session_state.context
    client: ProxyClient = st.session_state.proxy_client

    logger.info(f"[MAIN] Render cycle starting: state={sm.get_state_name()}, {ctx!r}")

    # Map first: engine callbacks update the charger lists the sidebar shows
    _render_map()

    # The map may have been reset; read the current objects again
    sm = st.session_state.state_machine
    ctx = st.session_state.context
    SidebarRenderer(state_machine=sm, context=ctx, client=client).render()

    show_pending_toasts(ctx)

    # Route planning runs after the map has applied the clear signal
    handle_deferred_actions()


if __name__ == "__main__":
    main()
