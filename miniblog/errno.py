"""Structured API errors carrying an HTTP code, a reason and a message."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Mapping

from miniblog.contextx import X_REQUEST_ID


class ErrorX(Exception):
    """An error with an HTTP status code, a machine-readable reason and metadata."""

    def __init__(
        self,
        code: int = int(HTTPStatus.INTERNAL_SERVER_ERROR),
        reason: str = "",
        message: str = "",
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.reason = reason
        self.message = message
        self.metadata: dict[str, Any] = dict(metadata or {})

    def __str__(self) -> str:
        return (
            f"error: code = {self.code} reason = {self.reason} "
            f"message = {self.message} metadata = {self.metadata}"
        )

    def __repr__(self) -> str:
        return (
            f"ErrorX(code={self.code!r}, reason={self.reason!r}, "
            f"message={self.message!r}, metadata={self.metadata!r})"
        )

    def with_message(self, fmt: str, *args: Any) -> ErrorX:
        """Return a copy whose message is ``fmt`` formatted with ``args``.

        ``%v`` placeholders are accepted and treated like ``%s``.
        """
        message = fmt.replace("%v", "%s") % args if args else fmt
        return ErrorX(self.code, self.reason, message, self.metadata)

    def with_request_id(self, request_id: str) -> ErrorX:
        """Return a copy whose metadata records the request ID."""
        metadata = dict(self.metadata)
        metadata[X_REQUEST_ID] = request_id
        return ErrorX(self.code, self.reason, self.message, metadata)


def from_error(err: BaseException | None) -> ErrorX | None:
    """Turn any exception into an ErrorX; unknown errors become internal errors."""
    if err is None:
        return None
    if isinstance(err, ErrorX):
        return err
    return ErrorX(int(HTTPStatus.INTERNAL_SERVER_ERROR), "", str(err))


ERR_POST_NOT_FOUND = ErrorX(
    code=int(HTTPStatus.NOT_FOUND),
    reason="NotFound.PostNotFound",
    message="Post not found.",
)