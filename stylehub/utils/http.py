"""Shared plumbing for the serverless HTTP handlers in ``api/``.

Each route module defines ``class handler(JSONRequestHandler)`` and implements
``do_GET``/``do_POST``/``do_DELETE`` by passing a coroutine factory to
``respond``. Identity comes from headers set by the auth layer in front of
these functions; this module never authenticates anyone itself.
"""

import asyncio
import json
from http.cookies import CookieError, SimpleCookie
from http.server import BaseHTTPRequestHandler
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import parse_qs, urlparse

from pydantic import BaseModel, ValidationError

from stylehub.utils.errors import InvalidRequest, StyleHubError, Unauthorized
from stylehub.utils.logging import correlation_context, get_structured_logger, mask_user_id
from stylehub.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"
REQUEST_ID_HEADER = "X-Request-Id"

ROLE_COOKIE = "roleView"
LEGACY_ROLE_COOKIE = "sh_role"
ROLE_COOKIE_MAX_AGE = 60 * 60 * 24 * 30


class Viewer(BaseModel):
    """Caller identity plus the inputs the view resolver needs."""
    user_id: str
    declared_role: Optional[str] = None
    stored_preference: Optional[str] = None


def to_jsonable(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    if isinstance(payload, list):
        return [to_jsonable(item) for item in payload]
    if isinstance(payload, dict):
        return {key: to_jsonable(value) for key, value in payload.items()}
    return payload


def role_cookie_header(view: str) -> str:
    """Set-Cookie value that stores the role view for 30 days."""
    cookie = SimpleCookie()
    cookie[ROLE_COOKIE] = view
    cookie[ROLE_COOKIE]["path"] = "/"
    cookie[ROLE_COOKIE]["max-age"] = ROLE_COOKIE_MAX_AGE
    cookie[ROLE_COOKIE]["samesite"] = "Lax"
    return cookie[ROLE_COOKIE].OutputString()


def _scan_cookie(raw: str, name: str) -> Optional[str]:
    """Find one cookie by name, one ``key=value`` pair at a time."""
    for pair in raw.split(";"):
        key, sep, value = pair.strip().partition("=")
        if not sep or key != name:
            continue
        jar = SimpleCookie()
        try:
            jar.load(f"{key}={value}")
        except CookieError:
            return value.strip('"') or None
        morsel = jar.get(name)
        return morsel.value if morsel else None
    return None


class JSONRequestHandler(BaseHTTPRequestHandler):
    """BaseHTTPRequestHandler with JSON in/out and StyleHubError mapping."""

    route_name = "api"

    def log_message(self, format, *args):
        logger.debug("HTTP access", route=self.route_name, detail=format % args)

    # Request parsing

    @property
    def query(self) -> dict[str, str]:
        parsed = parse_qs(urlparse(self.path).query)
        return {key: values[0] for key, values in parsed.items() if values}

    def read_json(self) -> dict:
        """Parse the request body as a JSON object. Empty body gives {}."""
        try:
            content_length = int(self.headers.get("Content-Length", 0) or 0)
        except ValueError:
            raise InvalidRequest("Content-Length is not a number")
        try:
            raw_body = self.rfile.read(content_length).decode("utf-8") if content_length > 0 else ""
        except UnicodeDecodeError:
            raise InvalidRequest("Body is not valid UTF-8")
        if not raw_body:
            return {}
        try:
            body = json.loads(raw_body)
        except json.JSONDecodeError:
            raise InvalidRequest("Body is not valid JSON")
        if not isinstance(body, dict):
            raise InvalidRequest("Body must be a JSON object")
        return body

    def cookie(self, name: str) -> Optional[str]:
        raw = self.headers.get("Cookie")
        if not raw:
            return None
        jar = SimpleCookie()
        try:
            jar.load(raw)
        except CookieError:
            # Foreign cookies on the domain can be unparseable as a whole.
            return _scan_cookie(raw, name)
        morsel = jar.get(name)
        return morsel.value if morsel else None

    def viewer(self) -> Viewer:
        """Identity of the caller. Raises Unauthorized when absent."""
        user_id = (self.headers.get(USER_ID_HEADER) or "").strip()
        if not user_id:
            raise Unauthorized("Missing user identity")
        return Viewer(
            user_id=user_id,
            declared_role=self.headers.get(USER_ROLE_HEADER) or None,
            stored_preference=self.cookie(ROLE_COOKIE) or self.cookie(LEGACY_ROLE_COOKIE),
        )

    # Responses

    def send_json(self, status: int, payload: Any, headers: Optional[dict] = None) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Cache-Control", "no-store")
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(json.dumps(to_jsonable(payload)).encode("utf-8"))

    def send_error_json(self, error: StyleHubError) -> None:
        self.send_json(error.status_code, {"error": error.public_message, "detail": error.message})

    def respond(self, operation: Callable[[], Awaitable[Any]], status: int = 200) -> None:
        """Run ``operation`` and write its result, or the mapped error, as JSON.

        ``operation`` may return a payload, or ``(payload, headers)``.
        """
        LoggingConfig.ensure_configured()
        with correlation_context(self.headers.get(REQUEST_ID_HEADER) or None):
            try:
                result = asyncio.run(operation())
            except ValidationError as e:
                logger.info("Request validation failed", route=self.route_name, errors=e.error_count())
                self.send_json(
                    400,
                    {"error": "Bad request", "detail": e.errors(include_url=False, include_context=False)},
                )
                return
            except StyleHubError as e:
                log = logger.error if e.status_code >= 500 else logger.info
                log(
                    "Request failed",
                    route=self.route_name,
                    error_type=type(e).__name__,
                    status_code=e.status_code,
                    user_id=mask_user_id(self.headers.get(USER_ID_HEADER)),
                )
                self.send_error_json(e)
                return
            except Exception as e:
                logger.exception("Unhandled error", route=self.route_name, error=str(e))
                self.send_json(500, {"error": "internal server error"})
                return

            headers = None
            if isinstance(result, tuple):
                result, headers = result
            self.send_json(status, result, headers)
