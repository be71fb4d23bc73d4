"""Proxy error types.

ProxyError is what a route raises to answer the client: it carries the
HTTP status and the public message. UpstreamError is what an upstream
client raises; routes log it and translate it into a generic ProxyError(500)
so upstream details never reach the browser.
"""

from flask import jsonify


class ProxyError(Exception):
    """Error answered to the client as {"error": message} with a status."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    @staticmethod
    def bad_request(message: str) -> "ProxyError":
        return ProxyError(message, 400)

    @staticmethod
    def not_found(message: str) -> "ProxyError":
        return ProxyError(message, 404)

    @staticmethod
    def server_error(message: str) -> "ProxyError":
        return ProxyError(message, 500)


class UpstreamError(RuntimeError):
    """An upstream service call failed (network, non-2xx status, bad JSON)."""

    def __init__(self, service: str, detail: str, status: int | None = None) -> None:
        super().__init__(f"{service}: {detail}")
        self.service = service
        self.status = status


def handle_proxy_error(error: ProxyError):
    """Flask error handler rendering ProxyError as JSON."""
    return jsonify({"error": error.message}), error.status
