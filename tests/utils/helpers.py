"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional, Tuple

import httpx


class MockSocket:
    """Socket stand-in for BaseHTTPRequestHandler: feeds a raw request, collects the response."""

    def __init__(self, raw_request: bytes):
        self._raw_request = raw_request
        self.sent = BytesIO()

    def makefile(self, *args, **kwargs):
        return BytesIO(self._raw_request)

    def sendall(self, data):
        self.sent.write(data)

    def close(self):
        pass


def build_raw_request(
    method: str,
    path: str,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    payload = b""
    if body is not None:
        if isinstance(body, bytes):
            payload = body
        else:
            payload = (body if isinstance(body, str) else json.dumps(body)).encode("utf-8")
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if payload:
        lines.append("Content-Type: application/json")
        if not any(name.lower() == "content-length" for name in (headers or {})):
            lines.append(f"Content-Length: {len(payload)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + payload


def call_handler(
    handler_cls,
    method: str,
    path: str,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Dict[str, str], Any]:
    """Run a Vercel-style handler class against one request.

    Returns (status, headers, parsed JSON body).
    """
    sock = MockSocket(build_raw_request(method, path, body, headers))
    handler_cls(sock, ("127.0.0.1", 8000), None)

    raw = sock.sent.getvalue().decode("utf-8")
    head, _, payload = raw.partition("\r\n\r\n")
    status_line, *header_lines = head.split("\r\n")
    status = int(status_line.split(" ")[1])
    response_headers = {}
    for line in header_lines:
        name, _, value = line.partition(":")
        response_headers[name.strip()] = value.strip()
    return status, response_headers, json.loads(payload) if payload else None


def viewer_headers(user_id: str, role: Optional[str] = None, cookie: Optional[str] = None) -> Dict[str, str]:
    headers = {"X-User-Id": user_id}
    if role:
        headers["X-User-Role"] = role
    if cookie:
        headers["Cookie"] = cookie
    return headers


def nominatim_transport(search=None, reverse=None, status_code: int = 200, recorder: Optional[list] = None):
    """httpx.MockTransport answering /search and /reverse with canned payloads."""

    def handle(request: httpx.Request) -> httpx.Response:
        if recorder is not None:
            recorder.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": "provider error"})
        if request.url.path.endswith("/search"):
            return httpx.Response(200, json=search if search is not None else [])
        if request.url.path.endswith("/reverse"):
            return httpx.Response(200, json=reverse if reverse is not None else {"error": "Unable to geocode"})
        return httpx.Response(404)

    return httpx.MockTransport(handle)
