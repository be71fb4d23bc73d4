"""Proxy routes - thin request forwarding to upstream services.

Each route validates that its required inputs are present, calls one
upstream client and relays the JSON. There is no business logic here.

Error mapping:
    missing input        -> 400 {"error": ...}
    no geocode matches   -> 404 {"error": "No results found"}
    upstream failure     -> 500 {"error": ...} (details logged server-side only)
"""

import logging
from dataclasses import dataclass

from flask import Blueprint, current_app, jsonify, request

from roadtrip_planner.proxy.errors import ProxyError, UpstreamError
from roadtrip_planner.proxy.upstream import ChargerMapClient, OpenRouteServiceClient, SerpApiClient

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")

EXTENSION_KEY = "roadtrip_upstream"


@dataclass(frozen=True)
class UpstreamClients:
    """Upstream clients shared by all routes of one app."""

    chargers: ChargerMapClient
    openroute: OpenRouteServiceClient
    serp: SerpApiClient


def _clients() -> UpstreamClients:
    return current_app.extensions[EXTENSION_KEY]


@api.get("/health")
def health():
    return jsonify({"status": "ok"})


@api.get("/chargers")
def chargers():
    """Chargers inside the n/e/s/w bounding box."""
    n = request.args.get("n")
    e = request.args.get("e")
    s = request.args.get("s")
    w = request.args.get("w")

    if not n or not e or not s or not w:
        raise ProxyError.bad_request("Missing bounding box parameters")

    try:
        data = _clients().chargers.in_map(n=n, e=e, s=s, w=w)
    except UpstreamError:
        logger.exception("[PROXY] Error fetching chargers")
        raise ProxyError.server_error("Failed to fetch chargers")

    logger.info(f"[PROXY] chargers n={n} e={e} s={s} w={w} -> {len(data) if isinstance(data, list) else '?'} records")
    return jsonify(data)


@api.get("/geocode")
def geocode():
    """Destination candidates for a free-text query."""
    query = request.args.get("query")
    if not query:
        raise ProxyError.bad_request("Query parameter is required")

    try:
        data = _clients().openroute.geocode(text=query)
    except UpstreamError:
        logger.exception("[PROXY] Error fetching geocode data")
        raise ProxyError.server_error("Error fetching geocode data")

    features = data.get("features") if isinstance(data, dict) else None
    if not features:
        raise ProxyError.not_found("No results found")

    logger.info(f"[PROXY] geocode {query!r} -> {len(features)} features")
    return jsonify(data)


@api.get("/nearby-food")
def nearby_food():
    """Food places around lat/lng."""
    lat = request.args.get("lat")
    lng = request.args.get("lng")
    if not lat or not lng:
        raise ProxyError.bad_request("Latitude and longitude are required")

    try:
        results = _clients().serp.nearby_food(lat=lat, lng=lng)
    except UpstreamError:
        logger.exception("[PROXY] Error fetching nearby food")
        raise ProxyError.server_error("Failed to fetch nearby food")

    logger.info(f"[PROXY] nearby-food ({lat}, {lng}) -> {len(results)} results")
    return jsonify(results)


@api.post("/route")
def route():
    """Driving route between start and end, each [lng, lat]."""
    openroute = _clients().openroute
    if not openroute.is_configured:
        logger.error("[PROXY] OpenRouteService API key is not set")
        raise ProxyError.server_error("Server configuration error")

    body = request.get_json(silent=True) or {}
    start = body.get("start") if isinstance(body, dict) else None
    end = body.get("end") if isinstance(body, dict) else None
    if not start or not end:
        raise ProxyError.bad_request("Start and end coordinates are required")

    try:
        data = openroute.directions(start=start, end=end)
    except UpstreamError:
        logger.exception("[PROXY] Error fetching route")
        raise ProxyError.server_error("Failed to fetch route")

    logger.info(f"[PROXY] route {start} -> {end}")
    return jsonify(data)
