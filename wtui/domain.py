"""Core value types shared across the application."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass
class Service:
    """One repository's worktree inside a task."""

    name: str = ""
    repo_path: str = ""
    worktree_path: str = ""
    branch: str = ""
    base_branch: str = ""
    is_dirty: bool = False
    ahead: int = 0
    behind: int = 0
    stale: bool = False


@dataclass
class Task:
    """A task directory grouping several service worktrees."""

    id: str = ""
    dir: str = ""
    services: list[Service] = field(default_factory=list)
    stale: bool = False


@dataclass(frozen=True)
class Repo:
    """A discovered git repository."""

    name: str
    path: str


class Cancelled(Exception):
    """Raised when work is attempted on a cancelled context."""


class Context:
    """A thread-safe cancellation token passed to long-running operations."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Mark the context as cancelled."""
        self._event.set()

    def cancelled(self) -> bool:
        """Return True once cancel() has been called."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise Cancelled if the context has been cancelled."""
        if self._event.is_set():
            raise Cancelled("context canceled")