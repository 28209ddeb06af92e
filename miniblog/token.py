"""Signing and verification of JWT access tokens."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Mapping

import jwt

from miniblog import contextx
from miniblog.errno import ErrorX

_BEARER = "Bearer"
_HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]


@dataclass
class _Config:
    key: str = "secret"
    identity_key: str = "identityKey"
    expiration: timedelta = timedelta(hours=2)


_config = _Config()
_init_lock = threading.Lock()
_initialized = False


def init(key: str, identity_key: str, expiration: timedelta) -> None:
    """Configure signing; only the first call has any effect, empty values are ignored."""
    global _initialized
    with _init_lock:
        if _initialized:
            return
        _initialized = True
        if key:
            _config.key = key
        if identity_key:
            _config.identity_key = identity_key
        if expiration:
            _config.expiration = expiration


def parse(token_string: str, key: str) -> str:
    """Verify ``token_string`` with ``key`` and return the identity it carries."""
    claims = jwt.decode(
        token_string,
        key,
        algorithms=_HMAC_ALGORITHMS,
        options={"verify_aud": False},
    )
    identity = claims.get(_config.identity_key)
    if not isinstance(identity, str) or not identity:
        raise jwt.InvalidSignatureError("signature is invalid")
    return identity


def _scan_bearer(header: str) -> str:
    if not header.startswith(_BEARER):
        return ""
    words = header[len(_BEARER):].split()
    return words[0] if words else ""


def _unauthenticated() -> ErrorX:
    return ErrorX(int(HTTPStatus.UNAUTHORIZED), "Unauthenticated", "invalid auth token")


def _token_from_metadata(ctx: contextx.Context) -> str:
    md = contextx.metadata(ctx) or {}
    values = md.get("authorization", [])
    value = values[0] if values else ""
    scheme, separator, token_string = value.partition(" ")
    if not separator or scheme.lower() != _BEARER.lower():
        raise _unauthenticated()
    return token_string


def parse_request(headers: Mapping[str, str] | contextx.Context) -> str:
    """Extract the bearer token of a request and return the identity it carries.

    ``headers`` is either a mapping of HTTP headers or a context holding
    incoming RPC metadata.
    """
    if isinstance(headers, contextx.Context):
        token_string = _token_from_metadata(headers)
    else:
        header = next(
            (value for name, value in headers.items() if name.lower() == "authorization"),
            "",
        )
        if not header:
            raise ValueError("the length of the `Authorization` header is zero")
        token_string = _scan_bearer(header)
    return parse(token_string, _config.key)


def sign(identity_key: str) -> tuple[str, datetime]:
    """Issue a token for ``identity_key``; return it with its expiry time."""
    now = datetime.now(timezone.utc)
    expire_at = now + _config.expiration
    issued = int(now.timestamp())
    claims = {
        _config.identity_key: identity_key,
        "nbf": issued,
        "iat": issued,
        "exp": int(expire_at.timestamp()),
    }
    return jwt.encode(claims, _config.key, algorithm="HS256"), expire_at