"""Build and runtime version information, and the ``--version`` command-line flag."""

from __future__ import annotations

import argparse
import json
import platform
import sys
from dataclasses import dataclass
from enum import IntEnum

# These are normally replaced at build time.
_GIT_VERSION = "v0.0.0-master+$Format:%h$"
_BUILD_DATE = "1970-01-01T00:00:00Z"
_GIT_COMMIT = "$Format:%H$"
_GIT_TREE_STATE = ""

_MAX_COL_WIDTH = 80
_RAW = "raw"
_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _fit(text: str, width: int, right: bool) -> str:
    if len(text) > width:
        text = text[: max(width - 3, 0)] + "..."
    return text.rjust(width) if right else text.ljust(width)


@dataclass(frozen=True)
class Info:
    """Which code and which runtime a build came from."""

    git_version: str
    git_commit: str
    git_tree_state: str
    build_date: str
    python_version: str
    compiler: str
    platform: str

    def _rows(self) -> list[tuple[str, str]]:
        return [
            ("gitVersion", self.git_version),
            ("gitCommit", self.git_commit),
            ("gitTreeState", self.git_tree_state),
            ("buildDate", self.build_date),
            ("pythonVersion", self.python_version),
            ("compiler", self.compiler),
            ("platform", self.platform),
        ]

    def __str__(self) -> str:
        return self.git_version

    def to_json(self) -> str:
        """Return the version information as compact JSON."""
        return json.dumps(dict(self._rows()), separators=(",", ":"), ensure_ascii=False)

    def text(self) -> str:
        """Return the version information as a two-column table."""
        rows = [(f"{name}:", value) for name, value in self._rows()]
        label_width, value_width = (
            min(max(map(len, column)), _MAX_COL_WIDTH) for column in zip(*rows)
        )
        return "\n".join(
            f"{_fit(label, label_width, True)} {_fit(value, value_width, False)}"
            for label, value in rows
        )


def get() -> Info:
    """Return the version information of the running build."""
    machine = platform.machine().lower() or "unknown"
    return Info(
        git_version=_GIT_VERSION,
        git_commit=_GIT_COMMIT,
        git_tree_state=_GIT_TREE_STATE,
        build_date=_BUILD_DATE,
        python_version=platform.python_version(),
        compiler=platform.python_implementation(),
        platform=f"{sys.platform}/{machine}",
    )


class VersionValue(IntEnum):
    """State of the ``--version`` flag."""

    NOT_SET = 0
    ENABLED = 1
    RAW = 2

    def __str__(self) -> str:
        if self is VersionValue.RAW:
            return _RAW
        return "true" if self is VersionValue.ENABLED else "false"


def parse_version_value(s: str) -> VersionValue:
    """Parse a flag value: ``raw`` or a boolean word."""
    if s == _RAW:
        return VersionValue.RAW
    if s in _TRUE_WORDS:
        return VersionValue.ENABLED
    if s in _FALSE_WORDS:
        return VersionValue.NOT_SET
    raise ValueError(f"invalid version flag value: {s!r}")


def _version_flag_type(s: str) -> VersionValue:
    try:
        return parse_version_value(s)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def add_flags(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Register ``--version`` on ``parser``; a bare ``--version`` means true."""
    parser.add_argument(
        "--version",
        nargs="?",
        const=VersionValue.ENABLED,
        default=VersionValue.NOT_SET,
        type=_version_flag_type,
        metavar="true|false|raw",
        help="Print version information and quit.",
    )
    return parser


def print_and_exit_if_requested(value: VersionValue) -> None:
    """Print version information and exit with status 0 if ``value`` asks for it."""
    if value == VersionValue.RAW:
        print(get().text())
        raise SystemExit(0)
    if value == VersionValue.ENABLED:
        print(str(get()))
        raise SystemExit(0)