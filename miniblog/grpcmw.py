"""Unary RPC server interceptors and a helper that chains them around a handler."""

from __future__ import annotations

import functools
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

from miniblog import contextx, log
from miniblog.errno import from_error

UnaryHandler = Callable[[contextx.Context, Any], Any]
Interceptor = Callable[[contextx.Context, Any, "UnaryServerInfo", UnaryHandler], Any]

DEFAULT_USER_ID = "user-000001"


class _RequestValidator(Protocol):
    def validate(self, ctx: contextx.Context, rq: Any) -> None: ...


@dataclass(frozen=True)
class UnaryServerInfo:
    """What an interceptor knows about the RPC being served."""

    full_method: str = ""
    server: Any = None


def _bind(
    interceptor: Interceptor,
    info: UnaryServerInfo,
    handler: UnaryHandler,
    ctx: contextx.Context,
    req: Any,
) -> Any:
    return interceptor(ctx, req, info, handler)


def chain_interceptors(
    interceptors: Sequence[Interceptor], handler: UnaryHandler
) -> Callable[..., Any]:
    """Wrap ``handler`` so that ``interceptors`` run around it, the first outermost.

    The result is called as ``call(ctx, req, info=None)``.
    """
    chain = tuple(interceptors)

    def call(ctx: contextx.Context, req: Any, info: UnaryServerInfo | None = None) -> Any:
        resolved = info if info is not None else UnaryServerInfo()
        wrapped: UnaryHandler = handler
        for interceptor in reversed(chain):
            wrapped = functools.partial(_bind, interceptor, resolved, wrapped)
        return wrapped(ctx, req)

    return call


def authn_bypass_interceptor() -> Interceptor:
    """Return an interceptor that treats every call as authenticated.

    The user ID comes from the ``x-user-id`` metadata, or a fixed default.
    """

    def interceptor(
        ctx: contextx.Context, req: Any, info: UnaryServerInfo, handler: UnaryHandler
    ) -> Any:
        user_id = DEFAULT_USER_ID
        md = contextx.metadata(ctx)
        if md is not None:
            values = md.get(contextx.X_USER_ID, [])
            if values:
                user_id = values[0]
        log.debugw("Simulated authentication successful", "userID", user_id)
        ctx = ctx.with_value(contextx.X_USER_ID, user_id)
        ctx = contextx.with_user_id(ctx, user_id)
        return handler(ctx, req)

    return interceptor


def defaulter_interceptor() -> Interceptor:
    """Return an interceptor that fills in request defaults when the request can."""

    def interceptor(
        ctx: contextx.Context, req: Any, info: UnaryServerInfo, handler: UnaryHandler
    ) -> Any:
        default = getattr(req, "default", None)
        if callable(default):
            default()
        return handler(ctx, req)

    return interceptor


def request_id_interceptor() -> Interceptor:
    """Return an interceptor that makes sure every call carries a request ID.

    The ID is read from the ``x-request-id`` metadata or generated, stored in
    the metadata and the context, and attached to any error the handler raises.
    """

    def interceptor(
        ctx: contextx.Context, req: Any, info: UnaryServerInfo, handler: UnaryHandler
    ) -> Any:
        md = contextx.metadata(ctx) or {}
        values = md.get(contextx.X_REQUEST_ID, [])
        request_id = values[0] if values else ""
        if not request_id:
            request_id = str(uuid.uuid4())
            md.setdefault(contextx.X_REQUEST_ID, []).append(request_id)
        ctx = contextx.with_metadata(ctx, md)
        ctx = contextx.with_request_id(ctx, request_id)
        try:
            return handler(ctx, req)
        except Exception as err:
            raise from_error(err).with_request_id(request_id) from err

    return interceptor


def validator_interceptor(validator: _RequestValidator) -> Interceptor:
    """Return an interceptor that validates requests; validation errors propagate."""

    def interceptor(
        ctx: contextx.Context, req: Any, info: UnaryServerInfo, handler: UnaryHandler
    ) -> Any:
        validator.validate(ctx, req)
        return handler(ctx, req)

    return interceptor