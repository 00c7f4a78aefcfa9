"""In-memory cache in front of a repository discoverer."""

from __future__ import annotations

import threading
from typing import Protocol

from wtui.discovery import ServiceNotFoundError
from wtui.domain import Context, Repo


class _RepoResolver(Protocol):
    def resolve(self, token: str, ctx: Context | None = None) -> str: ...

    def find_all(self, ctx: Context | None = None) -> list[Repo]: ...


def _check(ctx: Context | None) -> None:
    if ctx is not None:
        ctx.raise_if_cancelled()


class CachedDiscoverer:
    """Scans once, then answers from memory until refresh() is called."""

    def __init__(self, wrapped: _RepoResolver) -> None:
        self._wrapped = wrapped
        self._lock = threading.Lock()
        self._loaded = False
        self._repos: list[Repo] = []

    def resolve(self, token: str, ctx: Context | None = None) -> str:
        """Resolve from the cache when loaded, otherwise delegate."""
        with self._lock:
            loaded = self._loaded
            repos = self._repos
        if not loaded:
            return self._wrapped.resolve(token, ctx)
        for repo in repos:
            if repo.name == token:
                return repo.path
        raise ServiceNotFoundError(token)

    def find_all(self, ctx: Context | None = None) -> list[Repo]:
        """Return the cached repositories, scanning on first use."""
        with self._lock:
            _check(ctx)
            if self._loaded:
                return list(self._repos)
            return self._scan_and_store(ctx)

    def refresh(self, ctx: Context | None = None) -> list[Repo]:
        """Rescan unconditionally and replace the cache."""
        with self._lock:
            _check(ctx)
            return self._scan_and_store(ctx)

    def _scan_and_store(self, ctx: Context | None) -> list[Repo]:
        _check(ctx)
        repos = list(self._wrapped.find_all(ctx))
        _check(ctx)
        self._loaded = True
        self._repos = list(repos)
        return list(repos)