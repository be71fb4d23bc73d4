"""Pydeck map rendering with click support via streamlit-deckgl.

st_deckgl returns the deck.gl event of the last interaction. Picked object
properties are spread into the event dict (there is no "object" key), so a
marker click carries the "type" and "id" fields of its IconLayer row.
"""

import logging
from dataclasses import dataclass
from typing import Any

import pydeck as pdk
import streamlit as st
from streamlit_deckgl import st_deckgl  # type: ignore[import-untyped]

from roadtrip_planner.constants import MapConfig

logger = logging.getLogger(__name__)


@dataclass
class PydeckClickResult:
    """Result of one map render.

    Attributes:
        clicked_object: The picked marker row (dict) or None
        view_state: (lon, lat, zoom) when the event reports the current view
    """

    clicked_object: dict[str, Any] | None
    view_state: tuple[float, float, float] | None = None

    @property
    def is_object_click(self) -> bool:
        return self.clicked_object is not None

    @staticmethod
    def empty() -> "PydeckClickResult":
        return PydeckClickResult(clicked_object=None)


def parse_event(event: Any) -> PydeckClickResult:
    """Extract the picked marker and view state from an st_deckgl event."""
    if not isinstance(event, dict) or not event:
        return PydeckClickResult.empty()

    clicked_object: dict[str, Any] | None = None
    # Our marker rows set "type"; a plain map click has none
    if event.get("type") and event["type"] != "click":
        clicked_object = {k: v for k, v in event.items() if k not in ("coordinate", "eventType", "viewState")}

    view_state = None
    raw_view = event.get("viewState")
    if isinstance(raw_view, dict):
        try:
            view_state = (float(raw_view["longitude"]), float(raw_view["latitude"]), float(raw_view["zoom"]))
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Ignoring malformed viewState: {raw_view}")

    return PydeckClickResult(clicked_object=clicked_object, view_state=view_state)


def render_pydeck_map(deck: pdk.Deck, key: str, height: int = MapConfig.HEIGHT_PX) -> PydeckClickResult:
    """Render deck under key and return the click it reported.

    clicked_object is None when nothing was picked, or when the component
    replays the click it already reported on an earlier run.
    """
    last_click_key = f"_deckgl_last_click_{key}"
    if last_click_key not in st.session_state:
        st.session_state[last_click_key] = None

    # MUST pass events=['click'] to enable click detection
    event = st_deckgl(deck, key=key, height=height, events=["click"])
    result = parse_event(event)
    if result.clicked_object is None:
        return result

    # The component returns its last event on every rerun; only report it once
    click_id = f"{result.clicked_object.get('type')}_{result.clicked_object.get('marker_id')}"
    if click_id == st.session_state[last_click_key]:
        return PydeckClickResult(clicked_object=None, view_state=result.view_state)
    st.session_state[last_click_key] = click_id
    logger.debug(f"Marker click detected: {click_id}")
    return result
