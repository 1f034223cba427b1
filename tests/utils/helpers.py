"""Test helper functions."""

from io import BytesIO
from typing import Dict, Any, Optional
from unittest.mock import Mock


class MockSocket:
    """Minimal socket for constructing BaseHTTPRequestHandler instances."""

    def __init__(self, raw: bytes = b"HEAD / HTTP/1.1\r\n\r\n"):
        self.raw = raw

    def makefile(self, *args, **kwargs):
        return BytesIO(self.raw)

    def sendall(self, data):
        pass

    def close(self):
        pass


def build_handler(handler_cls, path: str, headers: Optional[Dict[str, str]] = None):
    """Create a handler ready for a direct do_GET call with captured output."""
    h = handler_cls(MockSocket(), ("127.0.0.1", 8000), None)
    h.path = path
    h.headers = headers or {}
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()
    return h


def create_vercel_request(
    method: str = "POST",
    path: str = "/api/listings/backfill",
    query: Dict[str, Any] = None,
    headers: Dict[str, str] = None
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    if headers is None:
        headers = {
            "content-type": "application/json"
        }

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": "",
        "query": query or {}
    }
