"""User interface components for the road trip planner.

File Structure (layout-based naming):
- left_panel.py: Sidebar with search, filters, charger and food lists
- center_map.py: MapOverlayEngine owning the map widget and its overlays
- map_widget.py: MapWidget (view state, markers, layers, moveend events)

Core Components:
- state_machine.py: TripPlannerStateMachine (3 states) + MarkerLifecycle
- context.py: TripContext and its sub-contexts
- actions.py: Controller actions (search, select city, plan route, ...)
- click_handlers.py: Marker click dispatch
- proxy_client.py: HTTP client for the proxy layer
- debounce.py / request_fence.py: search debounce and stale-response fencing
"""

from roadtrip_planner.ui.actions import (
    build_map_props,
    displayed_chargers,
    handle_deferred_actions,
    plan_route,
    poll_search,
    select_charger,
    select_city,
    select_food,
    toggle_filter,
    update_search,
)
from roadtrip_planner.ui.center_map import MapOverlayEngine, MapProps
from roadtrip_planner.ui.click_handlers import dispatch_click
from roadtrip_planner.ui.context import TripContext
from roadtrip_planner.ui.left_panel import SidebarRenderer
from roadtrip_planner.ui.map_widget import MapWidget
from roadtrip_planner.ui.proxy_client import ClientSettings, ProxyClient, ProxyClientError
from roadtrip_planner.ui.state_machine import (
    MarkerLifecycle,
    StreamlitUIListener,
    TripPlannerStateMachine,
)

__all__ = [
    "TripPlannerStateMachine",
    "TripContext",
    "StreamlitUIListener",
    "MarkerLifecycle",
    "MapOverlayEngine",
    "MapProps",
    "MapWidget",
    "SidebarRenderer",
    "ClientSettings",
    "ProxyClient",
    "ProxyClientError",
    "dispatch_click",
    "build_map_props",
    "displayed_chargers",
    "handle_deferred_actions",
    "plan_route",
    "poll_search",
    "select_charger",
    "select_city",
    "select_food",
    "toggle_filter",
    "update_search",
]
