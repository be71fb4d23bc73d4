"""State machines for the road trip planner UI.

Two kinds, both on python-statemachine:
- TripPlannerStateMachine drives the trip: idle -> routing -> route_ready
- MarkerLifecycle tracks whether one overlay category is on the map

Render cycle
------------
A sidebar or map click fires a transition. Its before_* hook edits the
TripContext (new destination, trip reset, clear flag raised, route request
queued) and StreamlitUIListener reruns the script. On that rerun the map
engine applies the context first; only then does handle_deferred_actions()
send the queued route request.

States:
    IDLE: No route yet, or the last route request failed
    ROUTING: Destination chosen, route not back yet
    ROUTE_READY: Route drawn and chargers fetched for its bounding box

Transitions:
    any -> ROUTING: select_city
    ROUTING -> ROUTE_READY: route_found
    ROUTING -> IDLE: route_failed
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from roadtrip_planner.ui import infra
from roadtrip_planner.ui.context import TripContext

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from roadtrip_planner.model import GeocodeCandidate, RouteGeometry


class MarkerLifecycle(StateMachine):
    """Lifecycle of one overlay category on the map.

    absent -> present: first sync creates the overlays
    present -> present: later syncs reposition or recreate them in bulk
    present -> absent: clear-map or teardown removes them
    """

    absent = State("Absent", initial=True)
    present = State("Present")

    populate = absent.to(present) | present.to(present)
    remove = present.to(absent)

    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__()

    @property
    def is_present(self) -> bool:
        return self.present.is_active

    def ensure_absent(self) -> bool:
        """Move to absent if present. Returns True if a removal happened."""
        if not self.is_present:
            return False
        self.remove()
        return True

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.debug(f"[MAP] {self.category}: {source.name} --({event})--> {target.name}")


class StreamlitUIListener:
    """Reruns the Streamlit script after every trip transition."""

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.info(f"[STATE] {event}: {source.name} -> {target.name}")
        infra.trigger_rerun()


class TripPlannerStateMachine(StateMachine):
    """Trip planning workflow over a TripContext model."""

    # ==========================================================================
    # State Definitions
    # ==========================================================================

    idle = State("Idle", initial=True)
    routing = State("Routing")
    route_ready = State("RouteReady")

    # ==========================================================================
    # Transitions
    # ==========================================================================

    # Choose a destination (new trip, or replace the current one)
    select_city = idle.to(routing) | routing.to(routing) | route_ready.to(routing)

    # Route request finished
    route_found = routing.to(route_ready)
    route_failed = routing.to(idle)

    # ==========================================================================
    # State Check Properties
    # ==========================================================================

    @property
    def is_idle(self) -> bool:
        return self.idle.is_active

    @property
    def is_routing(self) -> bool:
        return self.routing.is_active

    @property
    def is_route_ready(self) -> bool:
        return self.route_ready.is_active

    # ==========================================================================
    # Transition Actions (before_* hooks)
    # ==========================================================================

    def before_select_city(self, candidate: GeocodeCandidate) -> None:
        """Set destination, reset the trip, clear the map and queue routing."""
        self.context.destination.candidate = candidate
        self.context.search.clear_results()
        self.context.reset_trip()
        self.context.map_signal.clear_requested = True
        self.context.deferred.route_planning = True

    def before_route_found(self, geometry: RouteGeometry) -> None:
        self.context.route.geometry = geometry
        self.context.map_signal.clear_requested = False

    def before_route_failed(self, reason: str = "") -> None:
        # The map must not stay cleared after a failed request
        self.context.map_signal.clear_requested = False
        self.context.deferred.route_planning = False
        if reason:
            logger.warning(f"[ROUTE] Route request failed: {reason}")

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(self, context: TripContext | None = None, start_value: str | None = None) -> None:
        """The context becomes the machine's model; start_value restores a saved state."""
        super().__init__(model=context if context is not None else TripContext(), start_value=start_value)

    # ==========================================================================
    # Utility Methods
    # ==========================================================================

    @property
    def context(self) -> TripContext:
        return self.model

    def get_state_name(self) -> str:
        return self.states_map[self.current_state_value].name

    def __repr__(self) -> str:
        return f"TripPlannerStateMachine({self.get_state_name()}, {self.context!r})"

    def try_transition(self, event: str, **kwargs: Any) -> bool:
        """Send event; False (and a warning) when the current state does not allow it."""
        try:
            self.send(event, **kwargs)
        except TransitionNotAllowed:
            logger.warning(f"[STATE] {event} ignored in {self.get_state_name()}")
            return False
        return True

    @staticmethod
    def create(add_ui_listener: bool = True) -> tuple[TripPlannerStateMachine, TripContext]:
        """Build a machine on a fresh TripContext.

        Pass add_ui_listener=False outside a Streamlit script run (tests),
        where st.rerun() cannot be called.
        """
        context = TripContext()
        sm = TripPlannerStateMachine(context=context)
        if add_ui_listener:
            sm.add_listener(StreamlitUIListener())
        logger.info(f"[STATE] Trip state machine created (ui_listener={add_ui_listener})")
        return sm, context
