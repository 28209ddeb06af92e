"""API request and response messages that know how to fill in their defaults."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, Mapping

DEFAULT_NICKNAME = "你好世界"

_NO_DEFAULTS: Mapping[str, Any] = MappingProxyType({})


def _fill_missing(message: object, defaults: Mapping[str, Any]) -> None:
    """Set every field named in ``defaults`` that is still unset (None)."""
    state = vars(message)
    for name, value in defaults.items():
        if state.get(name) is None:
            state[name] = value


@dataclass
class CreateUserRequest:
    """Request to create a user."""

    DEFAULTS: ClassVar[Mapping[str, Any]] = MappingProxyType({"nickname": DEFAULT_NICKNAME})

    username: str = ""
    password: str = ""
    nickname: str | None = None
    email: str = ""
    phone: str = ""

    def default(self) -> None:
        """Fill in the nickname when none was given."""
        _fill_missing(self, self.DEFAULTS)


@dataclass
class CreatePostRequest:
    """Request to create a blog post."""

    DEFAULTS: ClassVar[Mapping[str, Any]] = _NO_DEFAULTS

    title: str = ""
    content: str = ""

    def default(self) -> None:
        """Fill in unset fields; every field of this message is required, so none change."""
        _fill_missing(self, self.DEFAULTS)


@dataclass
class HealthzResponse:
    """Answer of a health check."""

    DEFAULTS: ClassVar[Mapping[str, Any]] = _NO_DEFAULTS

    status: int = 0
    timestamp: str = ""
    message: str = ""

    def default(self) -> None:
        """Fill in unset fields; this message declares no defaults."""
        _fill_missing(self, self.DEFAULTS)