from __future__ import annotations

import dataclasses
import logging
import threading
from pathlib import Path
from typing import Union

from .errors import IdentityNotConfigured
from .git import get_config_value

log = logging.getLogger(__name__)

ME_TOKEN = "me"


@dataclasses.dataclass(frozen=True)
class GitIdentity:
    name: str | None = None
    email: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.name and not self.email


@dataclasses.dataclass(frozen=True)
class AllAuthors:
    pass


@dataclasses.dataclass(frozen=True)
class MineFilter:
    name: str | None
    email: str | None


@dataclasses.dataclass(frozen=True)
class LiteralFilter:
    text: str


ResolvedAuthorFilter = Union[AllAuthors, MineFilter, LiteralFilter]


class IdentityResolver:
    """
    Looks up the local git identity once and caches it.

    Each of user.name / user.email prefers the global-scope value and falls back
    to the repository/local-scope value seen from `cwd`.
    """

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd
        self._cached: GitIdentity | None = None
        self._lock = threading.Lock()

    def _lookup(self, key: str) -> str | None:
        cwd = self.cwd or Path.cwd()
        value = get_config_value(key, cwd, global_scope=True)
        if not value:
            value = get_config_value(key, cwd, global_scope=False)
        return value or None

    def current_user(self) -> GitIdentity:
        with self._lock:
            if self._cached is None:
                self._cached = GitIdentity(name=self._lookup("user.name"), email=self._lookup("user.email"))
                log.debug("resolved git identity: %r", self._cached)
            return self._cached

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None


_default_resolver = IdentityResolver()


def resolve_current_user() -> GitIdentity:
    return _default_resolver.current_user()


def invalidate_current_user() -> None:
    _default_resolver.invalidate()


def resolve_author_filter(token: str | None, resolver: IdentityResolver | None = None) -> ResolvedAuthorFilter:
    t = (token or "").strip()
    if not t:
        return AllAuthors()
    if t == ME_TOKEN:
        identity = (resolver or _default_resolver).current_user()
        if identity.is_empty:
            raise IdentityNotConfigured()
        return MineFilter(name=identity.name, email=identity.email)
    return LiteralFilter(text=t)


def matches_author(author: str, flt: ResolvedAuthorFilter) -> bool:
    if isinstance(flt, AllAuthors):
        return True
    if isinstance(flt, MineFilter):
        # Identity strings are exact, so this one is case-sensitive.
        if flt.name and flt.name in author:
            return True
        if flt.email and flt.email in author:
            return True
        return False
    return flt.text.casefold() in author.casefold()


def describe_author_filter(flt: ResolvedAuthorFilter) -> str:
    if isinstance(flt, AllAuthors):
        return "All authors"
    if isinstance(flt, MineFilter):
        return f"{flt.name or flt.email or 'current user'} (me)"
    return flt.text
