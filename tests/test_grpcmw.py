import uuid
from http import HTTPStatus

import pytest

from miniblog import contextx
from miniblog.apimodels import CreateUserRequest
from miniblog.errno import ERR_POST_NOT_FOUND, ErrorX
from miniblog.grpcmw import (
    UnaryServerInfo,
    authn_bypass_interceptor,
    chain_interceptors,
    defaulter_interceptor,
    request_id_interceptor,
    validator_interceptor,
)


def _echo(ctx, req):
    return ctx, req


def test_chain_runs_outermost_first():
    calls = []

    def make(name):
        def interceptor(ctx, req, info, handler):
            calls.append((name, info.full_method))
            return handler(ctx, req)

        return interceptor

    def handler(ctx, req):
        calls.append(("handler", None))
        return req

    call = chain_interceptors([make("a"), make("b")], handler)
    result = call(contextx.Context(), "req", UnaryServerInfo(full_method="/svc/M"))
    assert result == "req"
    assert calls == [("a", "/svc/M"), ("b", "/svc/M"), ("handler", None)]


def test_chain_without_info_uses_empty_info():
    seen = []

    def interceptor(ctx, req, info, handler):
        seen.append(info)
        return handler(ctx, req)

    chain_interceptors([interceptor], _echo)(contextx.Context(), 1)
    assert seen == [UnaryServerInfo()]


def test_authn_bypass_default_user():
    call = chain_interceptors([authn_bypass_interceptor()], _echo)
    ctx, _ = call(contextx.Context(), None)
    assert contextx.user_id(ctx) == "user-000001"
    assert ctx.value(contextx.X_USER_ID) == "user-000001"


def test_authn_bypass_user_from_metadata():
    incoming = contextx.with_metadata(contextx.Context(), {"X-User-Id": "user-42"})
    call = chain_interceptors([authn_bypass_interceptor()], _echo)
    ctx, _ = call(incoming, None)
    assert contextx.user_id(ctx) == "user-42"
    assert ctx.value(contextx.X_USER_ID) == "user-42"


def test_defaulter_fills_defaults():
    password = "password"
    request = CreateUserRequest(username="alice", password=password)
    call = chain_interceptors([defaulter_interceptor()], _echo)
    _, req = call(contextx.Context(), request)
    assert req.nickname == "你好世界"


def test_defaulter_passes_plain_requests():
    call = chain_interceptors([defaulter_interceptor()], _echo)
    _, req = call(contextx.Context(), {"plain": True})
    assert req == {"plain": True}


def test_request_id_kept_from_metadata():
    incoming = contextx.with_metadata(contextx.Context(), {"x-request-id": "req-7"})
    call = chain_interceptors([request_id_interceptor()], _echo)
    ctx, _ = call(incoming, None)
    assert contextx.request_id(ctx) == "req-7"
    assert contextx.metadata(ctx)["x-request-id"] == ["req-7"]


def test_request_id_generated_when_missing():
    call = chain_interceptors([request_id_interceptor()], _echo)
    ctx, _ = call(contextx.Context(), None)
    generated = contextx.request_id(ctx)
    assert uuid.UUID(generated).version == 4
    assert contextx.metadata(ctx)["x-request-id"] == [generated]


def test_request_id_attached_to_plain_error():
    def failing(ctx, req):
        raise ValueError("boom")

    incoming = contextx.with_metadata(contextx.Context(), {"x-request-id": "req-9"})
    call = chain_interceptors([request_id_interceptor()], failing)
    with pytest.raises(ErrorX) as excinfo:
        call(incoming, None)
    assert excinfo.value.code == int(HTTPStatus.INTERNAL_SERVER_ERROR)
    assert excinfo.value.message == "boom"
    assert excinfo.value.metadata["x-request-id"] == "req-9"


def test_request_id_attached_to_errorx_keeps_reason():
    def failing(ctx, req):
        raise ERR_POST_NOT_FOUND

    incoming = contextx.with_metadata(contextx.Context(), {"x-request-id": "req-3"})
    call = chain_interceptors([request_id_interceptor()], failing)
    with pytest.raises(ErrorX) as excinfo:
        call(incoming, None)
    assert excinfo.value.reason == "NotFound.PostNotFound"
    assert excinfo.value.metadata["x-request-id"] == "req-3"
    assert "x-request-id" not in ERR_POST_NOT_FOUND.metadata


class _Validator:
    def __init__(self, error=None):
        self.error = error
        self.seen = []

    def validate(self, ctx, rq):
        self.seen.append(rq)
        if self.error is not None:
            raise self.error


def test_validator_rejects_before_handler():
    calls = []

    def handler(ctx, req):
        calls.append(req)

    validator = _Validator(ValueError("invalid"))
    call = chain_interceptors([validator_interceptor(validator)], handler)
    with pytest.raises(ValueError, match="invalid"):
        call(contextx.Context(), "rq")
    assert calls == []
    assert validator.seen == ["rq"]


def test_validator_accepts_and_calls_handler():
    validator = _Validator()
    call = chain_interceptors([validator_interceptor(validator)], lambda ctx, req: req * 2)
    assert call(contextx.Context(), 21) == 42
    assert validator.seen == [21]