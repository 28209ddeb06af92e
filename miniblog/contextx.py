"""Immutable request contexts and well-known header and role names."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

# Custom header keys are lower case so they work the same over HTTP/1.x and HTTP/2.
X_REQUEST_ID = "x-request-id"
X_USER_ID = "x-user-id"
X_USERNAME = "x-username"

ADMIN_USERNAME = "root"
MAX_ERR_GROUP_CONCURRENCY = 1000

ROLE_USER = "role::user"
ROLE_ADMIN = "role::admin"


class _Key:
    """A private context key that cannot collide with keys of other modules."""

    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return f"<context key {self._name}>"


_USERNAME_KEY = _Key("username")
_USER_ID_KEY = _Key("user_id")
_ACCESS_TOKEN_KEY = _Key("token")
_REQUEST_ID_KEY = _Key("request_id")
_METADATA_KEY = _Key("metadata")


class Context:
    """An immutable bag of request-scoped values.

    ``with_value`` never changes the context it is called on; it returns a new
    one that carries the extra value.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[Any, Any] | None = None) -> None:
        self._values: dict[Any, Any] = dict(values or {})

    def value(self, key: Any) -> Any:
        """Return the value stored under ``key``, or None."""
        return self._values.get(key)

    def with_value(self, key: Any, value: Any) -> Context:
        """Return a new context that also maps ``key`` to ``value``."""
        values = dict(self._values)
        values[key] = value
        return Context(values)

    def __repr__(self) -> str:
        return f"Context({self._values!r})"


def _string(ctx: Context, key: _Key) -> str:
    value = ctx.value(key)
    return value if isinstance(value, str) else ""


def with_user_id(ctx: Context, user_id: str) -> Context:
    """Store the user ID in the context."""
    return ctx.with_value(_USER_ID_KEY, user_id)


def user_id(ctx: Context) -> str:
    """Return the user ID stored in the context, or an empty string."""
    return _string(ctx, _USER_ID_KEY)


def with_username(ctx: Context, username: str) -> Context:
    """Store the username in the context."""
    return ctx.with_value(_USERNAME_KEY, username)


def username(ctx: Context) -> str:
    """Return the username stored in the context, or an empty string."""
    return _string(ctx, _USERNAME_KEY)


def with_access_token(ctx: Context, access_token: str) -> Context:
    """Store the access token in the context."""
    return ctx.with_value(_ACCESS_TOKEN_KEY, access_token)


def access_token(ctx: Context) -> str:
    """Return the access token stored in the context, or an empty string."""
    return _string(ctx, _ACCESS_TOKEN_KEY)


def with_request_id(ctx: Context, request_id: str) -> Context:
    """Store the request ID in the context."""
    return ctx.with_value(_REQUEST_ID_KEY, request_id)


def request_id(ctx: Context) -> str:
    """Return the request ID stored in the context, or an empty string."""
    return _string(ctx, _REQUEST_ID_KEY)


def _normalize_metadata(md: Mapping[str, str | Iterable[str]]) -> dict[str, list[str]]:
    normalized: dict[str, list[str]] = {}
    for key, values in md.items():
        items = [values] if isinstance(values, str) else list(values)
        normalized.setdefault(key.lower(), []).extend(items)
    return normalized


def with_metadata(ctx: Context, md: Mapping[str, str | Iterable[str]]) -> Context:
    """Store incoming request metadata; keys are lower-cased, values are lists."""
    return ctx.with_value(_METADATA_KEY, _normalize_metadata(md))


def metadata(ctx: Context) -> dict[str, list[str]] | None:
    """Return a copy of the incoming metadata, or None when there is none."""
    md = ctx.value(_METADATA_KEY)
    if md is None:
        return None
    return {key: list(values) for key, values in md.items()}