"""Road Trip Planner - Chargers and food along an EV road trip.

Pick a destination, get a driving route from your start position and see
charging stations and places to eat along the way on an interactive map.

Modules:
    core: Web Mercator / viewport math, route polyline decoding
    model: Data structures (Charger, FoodLocation, RouteGeometry, Viewport, Marker)
    proxy: Flask routes forwarding to geocoding, routing, places and charger APIs
    ui: Streamlit interface (map overlay engine, state machine, controller, sidebar)

Example:
    from roadtrip_planner.proxy import create_app
    from roadtrip_planner.ui import MapOverlayEngine, ProxyClient
"""
