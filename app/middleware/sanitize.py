# =============================================================================
# app/middleware/sanitize.py - Input Sanitization Stage
# =============================================================================
# Neutralizes injection-style payloads before they reach routing:
# - NoSQL operator injection: keys starting with "$" or containing "."
#   are dropped (e.g. {"email": {"$gt": ""}} -> {"email": {}})
# - XSS: "<" and ">" in string values are HTML-escaped
#
# Applies to JSON and urlencoded bodies and to the query string.
# =============================================================================

import json
import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def is_prohibited_key(key: str) -> bool:
    """Keys that would be read as query operators or nested paths by a document store."""
    return key.startswith("$") or "." in key


def clean_string(value: str) -> str:
    return value.replace("<", "&lt;").replace(">", "&gt;")


def sanitize_value(value: Any) -> Any:
    """
    Recursively sanitize a decoded JSON value.

    Example:
        sanitize_value({"name": "<b>x</b>", "$where": "1"})
        -> {"name": "&lt;b&gt;x&lt;/b&gt;"}
    """
    if isinstance(value, dict):
        return {
            key: sanitize_value(item)
            for key, item in value.items()
            if not is_prohibited_key(key)
        }
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    if isinstance(value, str):
        return clean_string(value)
    return value


def sanitize_pairs(pairs: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """Sanitize decoded key/value pairs of a query string or form body."""
    return [
        (key, clean_string(value))
        for key, value in pairs
        if not is_prohibited_key(key)
    ]


def sanitize_query_string(query_string: bytes) -> bytes:
    pairs = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
    return urlencode(sanitize_pairs(pairs)).encode("latin-1")


class SanitizeMiddleware:
    """
    Rewrite the query string and body with sanitized content.

    Pre:  body size already bounded by the body_limit stage.
    Post: downstream stages see sanitized query params and, for JSON or
          urlencoded requests, a sanitized body with a matching
          Content-Length. Undecodable bodies are passed through as-is so
          the schema stage can report them.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope = dict(scope)
        if scope.get("query_string"):
            scope["query_string"] = sanitize_query_string(scope["query_string"])

        headers = dict(scope.get("headers") or [])
        content_type = headers.get(b"content-type", b"").decode("latin-1").split(";")[0].strip().lower()
        if content_type not in (JSON_CONTENT_TYPE, FORM_CONTENT_TYPE):
            await self.app(scope, receive, send)
            return

        body = await self._read_body(receive)
        cleaned = self._sanitize_body(body, content_type)

        scope["headers"] = [
            (name, value) for name, value in scope.get("headers", [])
            if name != b"content-length"
        ] + [(b"content-length", str(len(cleaned)).encode("latin-1"))]

        body_sent = False

        async def replay_receive() -> Message:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": cleaned, "more_body": False}
            return await receive()

        await self.app(scope, replay_receive, send)

    @staticmethod
    async def _read_body(receive: Receive) -> bytes:
        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)
        return b"".join(chunks)

    @staticmethod
    def _sanitize_body(body: bytes, content_type: str) -> bytes:
        if not body:
            return body

        if content_type == JSON_CONTENT_TYPE:
            try:
                decoded = json.loads(body)
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.debug("Body is not valid JSON; passing through for validation")
                return body
            return json.dumps(sanitize_value(decoded)).encode("utf-8")

        pairs = parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True)
        return urlencode(sanitize_pairs(pairs)).encode("utf-8")
