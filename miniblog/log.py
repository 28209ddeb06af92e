"""Structured key-value logging with console and JSON output."""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from types import FrameType
from typing import Any, Iterable, TextIO

from miniblog import contextx

_STD_STREAMS = ("stdout", "stderr")
_FORMATS = ("console", "json")


def _normalized(path: str) -> str:
    return os.path.normcase(os.path.abspath(path))


_INTERNAL_FILES = frozenset({_normalized(__file__), _normalized(logging.__file__)})


class Level(IntEnum):
    """Log levels, from least to most severe."""

    DEBUG = -1
    INFO = 0
    WARN = 1
    ERROR = 2
    DPANIC = 3
    PANIC = 4
    FATAL = 5

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, text: str) -> Level:
        """Parse a level name; an empty name means info."""
        name = text.strip().lower()
        if name == "":
            return cls.INFO
        for level in cls:
            if str(level) == name:
                return level
        raise ValueError(f"unrecognized level: {text!r}")


class LogPanic(RuntimeError):
    """Raised after a panic-level entry has been written."""


@dataclass
class Options:
    """Logger configuration."""

    disable_caller: bool = False
    disable_stacktrace: bool = False
    level: str = str(Level.INFO)
    format: str = "console"
    output_paths: list[str] = field(default_factory=lambda: ["stdout"])


def new_options() -> Options:
    """Return options with the default values."""
    return Options()


class _Sink:
    def __init__(self, path: str) -> None:
        self._path = path
        self._file: TextIO | None = None
        if path not in _STD_STREAMS:
            self._file = open(path, "a", encoding="utf-8")

    def _stream(self) -> TextIO:
        if self._file is not None:
            return self._file
        return sys.stdout if self._path == "stdout" else sys.stderr

    def write(self, text: str) -> None:
        self._stream().write(text)

    def flush(self) -> None:
        try:
            self._stream().flush()
        except (OSError, ValueError):
            pass


@dataclass
class _Core:
    level: Level
    encoding: str
    sinks: list[_Sink]
    disable_caller: bool
    disable_stacktrace: bool
    lock: threading.Lock = field(default_factory=threading.Lock)


def _outside_frame() -> FrameType | None:
    frame = sys._getframe(1)
    while frame is not None and _normalized(frame.f_code.co_filename) in _INTERNAL_FILES:
        frame = frame.f_back
    return frame


def _short_caller(frame: FrameType) -> str:
    path = frame.f_code.co_filename
    parts = path.replace(os.sep, "/").split("/")
    return f"{'/'.join(parts[-2:])}:{frame.f_lineno}"


def _json_default(value: Any) -> Any:
    if isinstance(value, timedelta):
        return value / timedelta(milliseconds=1)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _fields_from(kvs: Iterable[Any]) -> list[tuple[str, Any]]:
    items = list(kvs)
    fields: list[tuple[str, Any]] = []
    invalid: list[list[Any]] = []
    for key, value in zip(items[::2], items[1::2]):
        if isinstance(key, str):
            fields.append((key, value))
        else:
            invalid.append([key, value])
    if invalid:
        fields.append(("invalid", invalid))
    if len(items) % 2:
        fields.append(("ignored", items[-1]))
    return fields


def _dumps(value: Any) -> str:
    return json.dumps(value, default=_json_default, ensure_ascii=False)


class Logger:
    """A structured logger writing key-value entries to its outputs."""

    def __init__(self, core: _Core, fields: tuple[tuple[str, Any], ...] = ()) -> None:
        self._core = core
        self._fields = fields

    def _log(self, level: Level, msg: str, kvs: Iterable[Any]) -> None:
        core = self._core
        if level < core.level:
            return
        frame = _outside_frame()
        caller = None if core.disable_caller or frame is None else _short_caller(frame)
        stack = None
        if level >= Level.PANIC and not core.disable_stacktrace and frame is not None:
            stack = "".join(traceback.format_stack(frame)).rstrip("\n")
        fields = dict(self._fields)
        fields.update(_fields_from(kvs))
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        line = self._encode(level, timestamp, caller, msg, fields, stack)
        with core.lock:
            for sink in core.sinks:
                sink.write(line)

    def _encode(
        self,
        level: Level,
        timestamp: str,
        caller: str | None,
        msg: str,
        fields: dict[str, Any],
        stack: str | None,
    ) -> str:
        if self._core.encoding == "json":
            entry: dict[str, Any] = {"level": str(level), "timestamp": timestamp}
            if caller is not None:
                entry["caller"] = caller
            entry["message"] = msg
            entry.update(fields)
            if stack is not None:
                entry["stacktrace"] = stack
            return _dumps(entry) + "\n"
        columns = [timestamp, str(level)]
        if caller is not None:
            columns.append(caller)
        columns.append(msg)
        if fields:
            columns.append(_dumps(fields))
        line = "\t".join(columns) + "\n"
        if stack is not None:
            line += stack + "\n"
        return line

    def debugw(self, msg: str, *args: Any) -> None:
        """Log at debug level with key-value pairs."""
        self._log(Level.DEBUG, msg, args)

    def infow(self, msg: str, *args: Any) -> None:
        """Log at info level with key-value pairs."""
        self._log(Level.INFO, msg, args)

    def warnw(self, msg: str, *args: Any) -> None:
        """Log at warn level with key-value pairs."""
        self._log(Level.WARN, msg, args)

    def errorw(self, msg: str, *args: Any) -> None:
        """Log at error level with key-value pairs."""
        self._log(Level.ERROR, msg, args)

    def panicw(self, msg: str, *args: Any) -> None:
        """Log at panic level, then raise LogPanic."""
        self._log(Level.PANIC, msg, args)
        raise LogPanic(msg)

    def fatalw(self, msg: str, *args: Any) -> None:
        """Log at fatal level, flush, then exit with status 1."""
        self._log(Level.FATAL, msg, args)
        self.sync()
        raise SystemExit(1)

    def sync(self) -> None:
        """Flush every output."""
        for sink in self._core.sinks:
            sink.flush()

    def w(self, ctx: contextx.Context) -> Logger:
        """Return a logger that also records the request and user IDs of ``ctx``."""
        extractors = {
            contextx.X_REQUEST_ID: contextx.request_id,
            contextx.X_USER_ID: contextx.user_id,
        }
        extra = tuple(
            (name, value)
            for name, extract in extractors.items()
            if (value := extract(ctx))
        )
        return Logger(self._core, self._fields + extra)


class _StdlibBridge(logging.Handler):
    """Routes records of the standard logging module to the latest logger."""

    target: Logger | None = None

    def emit(self, record: logging.LogRecord) -> None:
        target = self.target
        if target is not None:
            target._log(Level.INFO, record.getMessage(), ())


_bridge = _StdlibBridge()
logging.getLogger().addHandler(_bridge)


def new(opts: Options | None = None) -> Logger:
    """Build a logger from ``opts``; an unknown level falls back to info."""
    if opts is None:
        opts = new_options()
    try:
        level = Level.parse(opts.level)
    except ValueError:
        level = Level.INFO
    if opts.format not in _FORMATS:
        raise ValueError(f"no encoder registered for name {opts.format!r}")
    sinks = [_Sink(path) for path in opts.output_paths]
    logger = Logger(
        _Core(
            level=level,
            encoding=opts.format,
            sinks=sinks,
            disable_caller=opts.disable_caller,
            disable_stacktrace=opts.disable_stacktrace,
        )
    )
    _bridge.target = logger
    return logger


_lock = threading.Lock()
_std = new(new_options())


def init(opts: Options | None) -> None:
    """Replace the global logger with one built from ``opts``."""
    global _std
    with _lock:
        _std = new(opts)


def debugw(msg: str, *args: Any) -> None:
    """Log at debug level on the global logger."""
    _std.debugw(msg, *args)


def infow(msg: str, *args: Any) -> None:
    """Log at info level on the global logger."""
    _std.infow(msg, *args)


def warnw(msg: str, *args: Any) -> None:
    """Log at warn level on the global logger."""
    _std.warnw(msg, *args)


def errorw(msg: str, *args: Any) -> None:
    """Log at error level on the global logger."""
    _std.errorw(msg, *args)


def panicw(msg: str, *args: Any) -> None:
    """Log at panic level on the global logger, then raise LogPanic."""
    _std.panicw(msg, *args)


def fatalw(msg: str, *args: Any) -> None:
    """Log at fatal level on the global logger, then exit."""
    _std.fatalw(msg, *args)


def sync() -> None:
    """Flush the global logger."""
    _std.sync()


def w(ctx: contextx.Context) -> Logger:
    """Return the global logger enriched with values from ``ctx``."""
    return _std.w(ctx)