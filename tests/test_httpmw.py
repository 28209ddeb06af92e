import uuid
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime

from miniblog import contextx
from miniblog.httpmw import (
    HTTPContext,
    authn_bypass_middleware,
    cors,
    no_cache,
    protocol_name,
    request_id_middleware,
    run_chain,
    secure,
)


def _recording_handler(calls):
    def handler(c):
        calls.append("handler")

    return handler


def test_protocol_name():
    assert protocol_name(True) == "https"
    assert protocol_name(False) == "http"


def test_abort_with_status_sets_state():
    c = HTTPContext()
    c.abort_with_status(403)
    assert c.status == 403
    assert c.aborted is True


def test_request_headers_are_case_insensitive():
    c = HTTPContext(request_headers={"X-Request-ID": "abc"})
    assert c.request_headers == {"x-request-id": "abc"}


def test_run_chain_runs_in_order():
    calls = []

    def first(c, next_):
        calls.append("first")
        next_()
        calls.append("first-after")

    def second(c, next_):
        calls.append("second")
        next_()

    run_chain(HTTPContext(), [first, second], _recording_handler(calls))
    assert calls == ["first", "second", "handler", "first-after"]


def test_run_chain_stops_after_abort():
    calls = []

    def stopper(c, next_):
        c.abort_with_status(401)
        next_()

    def later(c, next_):
        calls.append("later")
        next_()

    c = HTTPContext()
    run_chain(c, [stopper, later], _recording_handler(calls))
    assert calls == []
    assert c.status == 401


def test_cors_preflight_is_answered():
    calls = []
    c = HTTPContext(method="OPTIONS")
    run_chain(c, [cors], _recording_handler(calls))
    assert calls == []
    assert c.aborted is True
    assert c.status == 200
    assert c.response_headers["Access-Control-Allow-Origin"] == "*"
    assert c.response_headers["Allow"] == "HEAD, GET, POST, PUT, PATCH, DELETE, OPTIONS"
    assert c.response_headers["Content-Type"] == "application/json"


def test_cors_passes_other_methods():
    calls = []
    c = HTTPContext(method="GET")
    run_chain(c, [cors], _recording_handler(calls))
    assert calls == ["handler"]
    assert "Access-Control-Allow-Origin" not in c.response_headers


def test_no_cache_headers():
    calls = []
    c = HTTPContext()
    run_chain(c, [no_cache], _recording_handler(calls))
    assert calls == ["handler"]
    assert c.response_headers["Cache-Control"] == "no-cache, no-store, max-age=0, must-revalidate"
    assert c.response_headers["Expires"] == "Thu, 01 Jan 1970 00:00:00 GMT"
    modified = parsedate_to_datetime(c.response_headers["Last-Modified"])
    assert c.response_headers["Last-Modified"].endswith(" GMT")
    assert abs(datetime.now(timezone.utc) - modified) < timedelta(minutes=1)


def test_secure_with_tls_sets_hsts():
    c = HTTPContext(tls=True)
    run_chain(c, [secure], lambda ctx: None)
    assert c.response_headers["Strict-Transport-Security"] == "max-age=31536000"
    assert c.response_headers["X-Frame-Options"] == "DENY"
    assert c.response_headers["X-Content-Type-Options"] == "nosniff"


def test_secure_without_tls_has_no_hsts():
    c = HTTPContext(tls=False)
    run_chain(c, [secure], lambda ctx: None)
    assert "Strict-Transport-Security" not in c.response_headers
    assert c.response_headers["X-XSS-Protection"] == "1; mode=block"


def test_request_id_is_taken_from_header():
    seen = []
    c = HTTPContext(request_headers={"x-request-id": "req-1"})
    run_chain(c, [request_id_middleware()], lambda ctx: seen.append(contextx.request_id(ctx.context)))
    assert seen == ["req-1"]
    assert c.response_headers["x-request-id"] == "req-1"


def test_request_id_is_generated_when_missing():
    c = HTTPContext()
    run_chain(c, [request_id_middleware()], lambda ctx: None)
    generated = c.response_headers["x-request-id"]
    assert uuid.UUID(generated).version == 4
    assert contextx.request_id(c.context) == generated


def test_authn_bypass_uses_default_user():
    c = HTTPContext()
    run_chain(c, [authn_bypass_middleware()], lambda ctx: None)
    assert contextx.user_id(c.context) == "user-000001"


def test_authn_bypass_uses_header_user():
    c = HTTPContext(request_headers={"X-User-Id": "user-abc"})
    run_chain(c, [authn_bypass_middleware()], lambda ctx: None)
    assert contextx.user_id(c.context) == "user-abc"