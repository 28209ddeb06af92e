"""HTTP request contexts and the middlewares that run around HTTP handlers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from email.utils import formatdate
from http import HTTPStatus
from typing import Any, Callable, Sequence

from miniblog import contextx, log

Next = Callable[[], None]
Middleware = Callable[["HTTPContext", Next], None]
Handler = Callable[["HTTPContext"], None]

DEFAULT_USER_ID = "user-000001"


@dataclass
class HTTPContext:
    """State of one HTTP request while it passes through the middleware chain.

    Request header names are stored lower-cased so lookups ignore case.
    """

    method: str = "GET"
    path: str = "/"
    request_headers: dict[str, str] = field(default_factory=dict)
    tls: bool = False
    context: contextx.Context = field(default_factory=contextx.Context)
    response_headers: dict[str, str] = field(default_factory=dict)
    status: int = int(HTTPStatus.OK)
    aborted: bool = False

    def __post_init__(self) -> None:
        self.request_headers = {
            name.lower(): value for name, value in self.request_headers.items()
        }

    def abort_with_status(self, status: int) -> None:
        """Set the response status and stop the remaining handlers from running."""
        self.status = int(status)
        self.aborted = True


def run_chain(c: HTTPContext, middlewares: Sequence[Middleware], handler: Handler) -> None:
    """Run ``middlewares`` in order, then ``handler``, unless the chain is aborted.

    Each middleware continues the chain by calling the ``next_`` it is given.
    """
    chain = tuple(middlewares)

    def step(rest: tuple[Middleware, ...]) -> None:
        if c.aborted:
            return
        if not rest:
            handler(c)
            return
        rest[0](c, lambda: step(rest[1:]))

    step(chain)


def protocol_name(use_tls: Any) -> str:
    """Return the protocol a server speaks.

    ``use_tls`` is either a flag or a TLS configuration object such as an
    ``ssl.SSLContext``; None or False mean plain ``http``, anything else ``https``.
    """
    if use_tls is None or use_tls is False:
        return "http"
    return "https"


def no_cache(c: HTTPContext, next_: Next) -> None:
    """Forbid clients from caching the response."""
    c.response_headers["Cache-Control"] = "no-cache, no-store, max-age=0, must-revalidate"
    c.response_headers["Expires"] = "Thu, 01 Jan 1970 00:00:00 GMT"
    c.response_headers["Last-Modified"] = formatdate(usegmt=True)
    next_()


def cors(c: HTTPContext, next_: Next) -> None:
    """Answer CORS preflight requests; let every other request through."""
    if c.method.upper() == "OPTIONS":
        c.response_headers["Access-Control-Allow-Origin"] = "*"
        c.response_headers["Access-Control-Allow-Methods"] = (
            "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        )
        c.response_headers["Access-Control-Allow-Headers"] = (
            "authorization, origin, content-type, accept"
        )
        c.response_headers["Allow"] = "HEAD, GET, POST, PUT, PATCH, DELETE, OPTIONS"
        c.response_headers["Content-Type"] = "application/json"
        c.abort_with_status(int(HTTPStatus.OK))
        return
    next_()


def secure(c: HTTPContext, next_: Next) -> None:
    """Add security-related response headers."""
    c.response_headers["Access-Control-Allow-Origin"] = "*"
    c.response_headers["X-Frame-Options"] = "DENY"
    c.response_headers["X-Content-Type-Options"] = "nosniff"
    c.response_headers["X-XSS-Protection"] = "1; mode=block"
    if c.tls:
        c.response_headers["Strict-Transport-Security"] = "max-age=31536000"
    next_()


def request_id_middleware() -> Middleware:
    """Return a middleware that puts a request ID into the context and the response."""

    def middleware(c: HTTPContext, next_: Next) -> None:
        request_id = c.request_headers.get(contextx.X_REQUEST_ID, "") or str(uuid.uuid4())
        c.context = contextx.with_request_id(c.context, request_id)
        c.response_headers[contextx.X_REQUEST_ID] = request_id
        next_()

    return middleware


def authn_bypass_middleware() -> Middleware:
    """Return a middleware that treats every request as authenticated.

    The user ID comes from the ``x-user-id`` header, or a fixed default.
    """

    def middleware(c: HTTPContext, next_: Next) -> None:
        user_id = c.request_headers.get(contextx.X_USER_ID, "") or DEFAULT_USER_ID
        log.debugw("Simulated authentication successful", "userID", user_id)
        c.context = contextx.with_user_id(c.context, user_id)
        next_()

    return middleware