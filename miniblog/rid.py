"""Resource identifiers: a type prefix followed by a short obfuscated code."""

from __future__ import annotations

import hashlib
import os
import socket
from enum import Enum
from math import gcd
from pathlib import Path

DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyz1234567890"
CODE_LENGTH = 6

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = (1 << 64) - 1
_MIX_MULTIPLIER = 0x9E3779B97F4A7C15
_MACHINE_ID_FILES = (Path("/etc/machine-id"), Path("/sys/class/dmi/id/product_uuid"))


def _coprime_multiplier(space: int) -> int:
    multiplier = max(_MIX_MULTIPLIER % space, 1)
    while gcd(multiplier, space) != 1:
        multiplier += 1
    return multiplier


def new_code(counter: int, chars: str, length: int, salt: int) -> str:
    """Encode ``counter`` as ``length`` characters of ``chars``.

    Different counters below ``len(chars) ** length`` always give different codes.
    """
    if counter < 0:
        raise ValueError("counter must not be negative")
    if length <= 0:
        raise ValueError("code length must be positive")
    alphabet = list(chars)
    if not alphabet or len(set(alphabet)) != len(alphabet):
        raise ValueError("code characters must be non-empty and unique")

    base = len(alphabet)
    space = base**length
    value = ((counter + salt) * _coprime_multiplier(space) + (salt >> 32)) % space

    code = []
    accumulator = salt % base
    for _ in range(length):
        value, digit = divmod(value, base)
        accumulator = (accumulator + digit) % base
        code.append(alphabet[accumulator])
    return "".join(code)


def _read_platform_machine_id() -> bytes:
    for path in _MACHINE_ID_FILES:
        try:
            data = path.read_bytes()
        except OSError:
            continue
        if data:
            return data
    return b""


def read_machine_id() -> bytes:
    """Return three bytes identifying this machine, or random ones if none can be found."""
    machine_id = _read_platform_machine_id()
    if not machine_id:
        try:
            machine_id = socket.gethostname().encode("utf-8")
        except OSError:
            machine_id = b""
    if machine_id:
        return hashlib.sha256(machine_id).digest()[:3]
    return os.urandom(3)


def salt() -> int:
    """Return the 64-bit FNV-1a hash of the machine ID."""
    value = _FNV64_OFFSET
    for byte in read_machine_id():
        value ^= byte
        value = (value * _FNV64_PRIME) & _MASK64
    return value


class ResourceID(str, Enum):
    """Kinds of resources that get identifiers."""

    USER = "user"
    POST = "post"

    def __str__(self) -> str:
        return self.value

    def new(self, counter: int) -> str:
        """Return a unique identifier such as ``user-xxxxxx`` for ``counter``."""
        code = new_code(counter, DEFAULT_ALPHABET, CODE_LENGTH, salt())
        return f"{self.value}-{code}"