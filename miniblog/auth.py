"""Password hashing and access-control policy enforcement."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass

import bcrypt

DEFAULT_COST = 10
_MAX_PASSWORD_BYTES = 72
_MAX_HIERARCHY_LEVEL = 10
_DENY = "deny"


class PasswordMismatchError(ValueError):
    """The hash does not belong to the given password."""


def encrypt(source: str) -> str:
    """Hash ``source`` with bcrypt at the default cost."""
    data = source.encode("utf-8")
    if len(data) > _MAX_PASSWORD_BYTES:
        raise ValueError("bcrypt: password length exceeds 72 bytes")
    return bcrypt.hashpw(data, bcrypt.gensalt(rounds=DEFAULT_COST)).decode("ascii")


def compare(hashed_password: str, password: str) -> None:
    """Raise PasswordMismatchError unless ``hashed_password`` is the hash of ``password``."""
    data = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
    try:
        matched = bcrypt.checkpw(data, hashed_password.encode("utf-8"))
    except ValueError as exc:
        raise ValueError(f"bcrypt: invalid hash: {exc}") from exc
    if not matched:
        raise PasswordMismatchError(
            "bcrypt: hashedPassword is not the hash of the given password"
        )


def key_match(key1: str, key2: str) -> bool:
    """Tell whether path ``key1`` matches pattern ``key2``, where ``*`` matches any tail."""
    star = key2.find("*")
    if star == -1:
        return key1 == key2
    if len(key1) > star:
        return key1[:star] == key2[:star]
    return key1 == key2[:star]


@dataclass(frozen=True)
class _Policy:
    sub: str
    obj: str
    act: str
    eft: str


class Authz:
    """A thread-safe authorizer that allows a request unless a matching policy denies it.

    A policy matches a request when the request's subject is the policy's subject
    or inherits it through grouping rules, the object matches the policy's object
    pattern (see ``key_match``) and the actions are equal.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._policies: dict[_Policy, None] = {}
        self._roles: dict[str, dict[str, None]] = {}

    def add_policy(self, sub: str, obj: str, act: str, eft: str = "allow") -> bool:
        """Add a policy; return False when it is already present."""
        policy = _Policy(sub, obj, act, eft)
        with self._lock:
            if policy in self._policies:
                return False
            self._policies[policy] = None
            return True

    def add_grouping_policy(self, user: str, role: str) -> bool:
        """Make ``user`` inherit ``role``; return False when it already does directly."""
        with self._lock:
            roles = self._roles.setdefault(user, {})
            if role in roles:
                return False
            roles[role] = None
            return True

    def _has_link(self, name: str, role: str) -> bool:
        if name == role:
            return True
        seen = {name}
        queue = deque([(name, 0)])
        while queue:
            current, depth = queue.popleft()
            if depth >= _MAX_HIERARCHY_LEVEL:
                continue
            for parent in self._roles.get(current, ()):
                if parent == role:
                    return True
                if parent not in seen:
                    seen.add(parent)
                    queue.append((parent, depth + 1))
        return False

    def authorize(self, sub: str, obj: str, act: str) -> bool:
        """Return whether ``sub`` may perform ``act`` on ``obj``."""
        with self._lock:
            return not any(
                policy.eft == _DENY
                and policy.act == act
                and key_match(obj, policy.obj)
                and self._has_link(sub, policy.sub)
                for policy in self._policies
            )