# =============================================================================
# app/middleware/pollution.py - HTTP Parameter Pollution Guard
# =============================================================================
# Collapses repeated query keys so handlers never receive an unexpected
# list where they expect a single value.
#
# Policy: the LAST occurrence wins. Keys in the whitelist keep every value.
#
#   ?foo=a&foo=b&date=x&date=y  ->  ?foo=b&date=x&date=y
# =============================================================================

from urllib.parse import parse_qsl, urlencode

from starlette.types import ASGIApp, Receive, Scope, Send


def collapse_query_pairs(
    pairs: list[tuple[str, str]],
    whitelist: set[str] | frozenset[str],
) -> list[tuple[str, str]]:
    """
    Apply the last-wins policy to decoded query pairs.

    Keys keep the position of their first occurrence so the rewritten
    query string stays stable.
    """
    collapsed: dict[str, list[str]] = {}
    for key, value in pairs:
        if key in whitelist:
            collapsed.setdefault(key, []).append(value)
        else:
            collapsed[key] = [value]
    return [(key, value) for key, values in collapsed.items() for value in values]


class ParameterPollutionMiddleware:
    """
    Rewrite the query string with duplicate keys collapsed.

    Pre:  query string already sanitized.
    Post: every non-whitelisted key appears at most once.
    """

    def __init__(self, app: ASGIApp, whitelist: list[str] | None = None):
        self.app = app
        self.whitelist = frozenset(whitelist or [])

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope.get("query_string"):
            pairs = parse_qsl(scope["query_string"].decode("latin-1"), keep_blank_values=True)
            scope = dict(scope)
            scope["query_string"] = urlencode(
                collapse_query_pairs(pairs, self.whitelist)
            ).encode("latin-1")
        await self.app(scope, receive, send)
