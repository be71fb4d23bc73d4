"""Sidebar UI renderer for the road trip planner.

Renders the left sidebar with:
- Destination search box and geocode results
- Trip status message
- Connector-class filter toggles
- Chargers visible on the map (filtered), with selection
- Food near the selected charger, with selection
"""

import logging
import time

import streamlit as st

from roadtrip_planner.model.charger import ConnectorClass
from roadtrip_planner.model.charger_filter import ChargerFilter
from roadtrip_planner.model.message import TripStatusMessage
from roadtrip_planner.ui import actions, infra
from roadtrip_planner.ui.context import TripContext
from roadtrip_planner.ui.proxy_client import ProxyClient
from roadtrip_planner.ui.state_machine import TripPlannerStateMachine

logger = logging.getLogger(__name__)


class SidebarRenderer:
    """Renders the sidebar and runs the actions its widgets trigger."""

    def __init__(self, state_machine: TripPlannerStateMachine, context: TripContext, client: ProxyClient) -> None:
        self.sm = state_machine
        self.ctx = context
        self.client = client

    def render(self) -> None:
        with st.sidebar:
            st.title("🚗 Road Trip Planner")
            self._render_search()
            self._render_status()
            self._render_filters()
            self._render_chargers()
            self._render_food()

    def _render_search(self) -> None:
        query = st.text_input("Destination", placeholder="Enter destination", key="destination_query")
        actions.update_search(ctx=self.ctx, query=query)

        # The text arrives on commit only, so this waits delay_s after the
        # commit within the run (see Debouncer)
        debouncer = self.ctx.search.debouncer
        if debouncer.has_pending:
            with st.spinner("Searching..."):
                time.sleep(debouncer.remaining())
                actions.poll_search(ctx=self.ctx, client=self.client)

        for index, candidate in enumerate(self.ctx.search.results):
            if st.button(candidate.label, key=f"city_{index}_{candidate.id}", use_container_width=True):
                actions.select_city(sm=self.sm, candidate=candidate)

    def _render_status(self) -> None:
        candidate = self.ctx.destination.candidate
        route = self.ctx.route.geometry
        TripStatusMessage(
            destination=candidate.name if candidate else None,
            route_points=len(route) if route is not None else 0,
            chargers_shown=len(actions.displayed_chargers(self.ctx)),
            chargers_total=len(self.ctx.chargers.all),
        ).display()

    def _render_filters(self) -> None:
        st.subheader("Connector types")
        defaults = ChargerFilter()
        cols = st.columns(3)
        changed = False
        for col, connector in zip(cols, (ConnectorClass.DC_FAST, ConnectorClass.LEVEL2, ConnectorClass.LEVEL1)):
            with col:
                enabled = st.checkbox(
                    connector.display_name,
                    value=defaults.is_enabled(connector),
                    key=f"filter_{connector.value}",
                )
            changed |= actions.set_filter(ctx=self.ctx, connector=connector, enabled=enabled)
        if changed:
            # The map rendered before the sidebar; redraw it with the new filter
            infra.trigger_rerun()

    def _render_chargers(self) -> None:
        chargers = actions.displayed_chargers(self.ctx)
        st.subheader(f"Chargers on route ({len(chargers)})")
        if not chargers:
            st.caption("No chargers in view for the selected connector types.")
            return
        with st.container(height=260):
            for index, charger in enumerate(chargers):
                selected = charger == self.ctx.chargers.selected
                label = f"{'👉 ' if selected else '⚡ '}{charger.name}"
                if st.button(label, key=f"charger_{index}", use_container_width=True):
                    actions.select_charger(ctx=self.ctx, client=self.client, charger=charger)
                    infra.trigger_rerun()

        selected = self.ctx.chargers.selected
        if selected is not None:
            counts = ", ".join(
                f"{c.display_name}: {selected.count(c)}" for c in ConnectorClass if selected.has(c)
            )
            st.markdown(f"**{selected.name}**  \n{selected.address}  \n{counts}")
            st.link_button("Open in Google Maps", selected.maps_url)

    def _render_food(self) -> None:
        if self.ctx.chargers.selected is None:
            return
        items = self.ctx.food.items
        st.subheader(f"Food nearby ({len(items)})")
        for index, food in enumerate(items):
            rating = f" ⭐ {food.rating}" if food.rating is not None else ""
            marker = "👉 " if food == self.ctx.food.selected else "🍴 "
            if st.button(f"{marker}{food.title}{rating}", key=f"food_{index}", use_container_width=True):
                actions.select_food(ctx=self.ctx, food=food)
                infra.trigger_rerun()
