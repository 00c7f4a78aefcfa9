"""Locating git repositories below the configured root directory."""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterator
from typing import Protocol

from wtui.config import Config
from wtui.domain import Context, Repo
from wtui.execerr import ExecError


class ServiceNotFoundError(LookupError):
    """No repository matching the requested name was found."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"service not found: {token}")


class DiscoveryError(Exception):
    """The repository tree could not be walked, or a match failed validation."""


class _RepoValidator(Protocol):
    def is_valid_repo(self, repo_path: str) -> None: ...


def _sorted_entries(path: str) -> list[os.DirEntry[str]]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda entry: entry.name)


def _is_dir(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


class Discoverer:
    """Finds repositories by looking for `.git` directories up to a depth limit."""

    def __init__(
        self,
        cfg: Config,
        git_client: _RepoValidator,
        logger: logging.Logger | None = None,
    ) -> None:
        self._cfg = cfg
        self._git = git_client
        self._logger = logger or logging.getLogger(__name__)

    def _walk_repos(self) -> Iterator[tuple[str, int]]:
        """Yield (repo_path, depth of its .git directory) in lexical order."""
        root = self._cfg.root_dir
        try:
            info = os.lstat(root)
        except OSError as exc:
            raise DiscoveryError(f"discovery: walk {root}: {exc}") from exc
        if not stat.S_ISDIR(info.st_mode):
            return
        try:
            entries = _sorted_entries(root)
        except OSError as exc:
            raise DiscoveryError(f"discovery: walk {root}: {exc}") from exc
        yield from self._walk_children(entries, 1)

    def _walk_children(
        self, entries: list[os.DirEntry[str]], depth: int
    ) -> Iterator[tuple[str, int]]:
        max_depth = self._cfg.discovery_depth
        if depth > max_depth:
            return
        for entry in entries:
            if not _is_dir(entry):
                continue
            if entry.name == ".git":
                if depth >= 2:
                    yield os.path.dirname(entry.path), depth
                continue
            if depth >= max_depth:
                continue
            try:
                children = _sorted_entries(entry.path)
            except OSError:
                continue
            yield from self._walk_children(children, depth + 1)

    def resolve(self, token: str, ctx: Context | None = None) -> str:
        """Return the path of the repository named token.

        A repository directly below the root wins; otherwise the first match
        found while walking the tree is used. The match must pass validation.
        """
        root = self._cfg.root_dir
        self._logger.debug(
            "discovery: resolving token %s", token, extra={"token": token, "root": root}
        )

        direct_path = os.path.normpath(os.path.join(root, token))
        if os.path.isdir(os.path.join(direct_path, ".git")):
            self._logger.debug(
                "discovery: found direct .git, validating", extra={"path": direct_path}
            )
            try:
                self._git.is_valid_repo(direct_path)
            except ExecError as exc:
                raise DiscoveryError(
                    f"discovery: direct repo at {direct_path} failed validation: {exc}"
                ) from exc
            return direct_path

        for repo_path, depth in self._walk_repos():
            if os.path.basename(repo_path) != token:
                continue
            self._logger.debug(
                "discovery: found .git match, validating",
                extra={"parent": repo_path, "depth": depth},
            )
            try:
                self._git.is_valid_repo(repo_path)
            except ExecError as exc:
                raise DiscoveryError(
                    f"discovery: repo at {repo_path} failed validation: {exc}"
                ) from exc
            return repo_path

        raise ServiceNotFoundError(token)

    def find_all(self, ctx: Context | None = None) -> list[Repo]:
        """Return every repository within the depth limit, sorted by name."""
        self._logger.debug(
            "discovery: FindAll",
            extra={"root": self._cfg.root_dir, "depth": self._cfg.discovery_depth},
        )
        repos = [
            Repo(name=os.path.basename(path), path=path)
            for path, _ in self._walk_repos()
        ]
        repos.sort(key=lambda repo: repo.name)
        return repos