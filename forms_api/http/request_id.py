"""Request context middleware.

Binds a request id to each request, taken from the incoming X-Request-Id
header or generated, echoes it on the response and exposes it to logging.
The optional X-Whodunnit header becomes the actor for audit events.
"""

from __future__ import annotations

import uuid

from forms_api.logging_setup import REQUEST_ID
from forms_api.logic.events import WHODUNNIT


def _header(scope, name: bytes):  # type: ignore[no-untyped-def]
    for key, value in scope.get("headers") or []:
        if key.lower() == name:
            return value.decode("latin-1").strip() or None
    return None


class RequestIdMiddleware:
    def __init__(self, app, header_name: str = "X-Request-Id") -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        header_bytes = self.header_name.lower().encode("latin-1")
        request_id = _header(scope, header_bytes) or str(uuid.uuid4())

        async def send_wrapper(message):  # type: ignore[no-untyped-def]
            if message.get("type") == "http.response.start":
                headers = list(message.get("headers") or [])
                lower = [k.lower() for k, _ in headers]
                if header_bytes not in lower:
                    headers.append((self.header_name.encode("latin-1"), request_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        token = REQUEST_ID.set(request_id)
        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            REQUEST_ID.reset(token)


class WhodunnitMiddleware:
    """Bind the X-Whodunnit request header to the audit actor for the request."""

    def __init__(self, app, header_name: str = "X-Whodunnit") -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.header_name = header_name.lower().encode("latin-1")

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return
        token = WHODUNNIT.set(_header(scope, self.header_name))
        try:
            await self.app(scope, receive, send)
        finally:
            WHODUNNIT.reset(token)


__all__ = ["RequestIdMiddleware", "WhodunnitMiddleware"]
