"""
Analytics beacon interception.

Requests to the Universal Analytics (legacy) or GA4 (current) collect
endpoints are parsed into ObservedEvents and aborted so they never reach
Google. Everything else continues untouched.
"""

import urllib.parse
from typing import Dict, List, Optional

from config import DEFAULT_ANALYTICS_ENDPOINTS, PROTOCOL_FIELDS
from models import ObservedEvent
from run_logger import unified_logger


def detect_protocol(request_url: str, endpoints: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Return the protocol whose collect endpoint the URL targets, or None."""
    endpoints = endpoints or DEFAULT_ANALYTICS_ENDPOINTS
    for protocol, pattern in endpoints.items():
        if pattern in request_url:
            return protocol
    return None


def _parse_params(query: str) -> Dict[str, str]:
    parsed = urllib.parse.parse_qs(query, keep_blank_values=True)
    return {k: (v[0] if v else "") for k, v in parsed.items()}


def _select_fields(protocol: str, params: Dict[str, str]) -> ObservedEvent:
    fields = PROTOCOL_FIELDS[protocol]
    return ObservedEvent(protocol=protocol, params={k: params[k] for k in fields if k in params})


def parse_beacon(request_url: str, post_data: Optional[str] = None,
                 endpoints: Optional[Dict[str, str]] = None) -> List[ObservedEvent]:
    """
    Parse a beacon request into observed events.

    Args:
        request_url: Full request URL including the query string
        post_data: Request body, used for batched GA4 hits
        endpoints: Protocol -> URL substring patterns

    Returns:
        Observed events in body order; empty if the URL is not a beacon
    """
    protocol = detect_protocol(request_url, endpoints)
    if protocol is None:
        return []

    query = urllib.parse.urlsplit(request_url).query
    url_params = _parse_params(query)

    # Batched hits: one url-encoded event per body line, overlaying the shared query
    lines = [line for line in (post_data or "").splitlines() if line.strip()]
    if not lines:
        return [_select_fields(protocol, url_params)]

    events = []
    for line in lines:
        params = dict(url_params)
        params.update(_parse_params(line.strip()))
        events.append(_select_fields(protocol, params))
    return events


class BeaconInterceptor:
    """Per-session route handler and owner of that session's observed events."""

    def __init__(self, endpoints: Optional[Dict[str, str]] = None, logger=unified_logger):
        self.endpoints = endpoints or DEFAULT_ANALYTICS_ENDPOINTS
        self.logger = logger
        self._events: List[ObservedEvent] = []

    @property
    def events(self) -> List[ObservedEvent]:
        """Snapshot of the events captured so far, in interception order."""
        return list(self._events)

    async def attach(self, page) -> None:
        await page.route("**/*", self.handle_route)

    async def handle_route(self, route) -> None:
        request = route.request
        request_url = request.url

        if detect_protocol(request_url, self.endpoints) is None:
            await route.continue_()
            return

        try:
            post_data = request.post_data if request.method == "POST" else None
            captured = parse_beacon(request_url, post_data, self.endpoints)
        except Exception as e:
            self.logger.log_error(f"PARSE_ERROR: {str(e)[:100]} ({request_url[:120]})")
            captured = []

        self._events.extend(captured)
        for event in captured:
            self.logger.log_debug(f"Captured {event.protocol} beacon: {event.params}")

        await route.abort()
