"""Generation of a .NET solution file covering a task's service worktrees."""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterable, Iterator
from typing import Protocol

from wtui.domain import Service
from wtui.execerr import ExecError


class _Dotnet(Protocol):
    def is_available(self) -> bool: ...

    def new_sln(self, work_dir: str, name: str) -> None: ...

    def sln_add(self, work_dir: str, sln_path: str, proj_path: str) -> None: ...


def _walk_csproj(path: str) -> Iterator[str]:
    try:
        with os.scandir(path) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError:
        return
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        if is_dir:
            yield from _walk_csproj(entry.path)
        elif entry.name.endswith(".csproj"):
            yield os.path.abspath(entry.path)


def find_csproj_files(root: str) -> list[str]:
    """Return absolute paths of all .csproj files below root; unreadable parts are skipped."""
    try:
        info = os.lstat(root)
    except OSError:
        return []
    if not stat.S_ISDIR(info.st_mode):
        return [os.path.abspath(root)] if os.path.basename(root).endswith(".csproj") else []
    return list(_walk_csproj(root))


class SolutionManager:
    """Builds `<task_id>.sln` in a task directory; every step is best effort."""

    def __init__(self, dotnet: _Dotnet, logger: logging.Logger | None = None) -> None:
        self._dotnet = dotnet
        self._logger = logger or logging.getLogger(__name__)

    def generate(self, task_dir: str, task_id: str, services: Iterable[Service] | None) -> None:
        """Recreate the solution and add every service's projects to it."""
        if not self._dotnet.is_available():
            self._logger.warning("dotnet CLI not found. Skipping .sln generation.")
            return

        sln_file_name = f"{task_id}.sln"
        sln_path = os.path.join(task_dir, sln_file_name)
        try:
            os.remove(sln_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._logger.warning(
                "failed to remove existing .sln file %s: %s",
                sln_path,
                exc,
                extra={"path": sln_path, "error": str(exc)},
            )

        try:
            self._dotnet.new_sln(task_dir, task_id)
        except ExecError as exc:
            self._logger.error(
                "failed to create .sln file: %s", exc, extra={"error": str(exc)}
            )
            return

        for svc in services or ():
            projects = find_csproj_files(svc.worktree_path)
            if not projects:
                self._logger.warning(
                    "no .csproj files found for service %s",
                    svc.name,
                    extra={"service": svc.name, "worktree": svc.worktree_path},
                )
                continue

            for project in projects:
                try:
                    self._dotnet.sln_add(task_dir, sln_file_name, project)
                except ExecError as exc:
                    self._logger.warning(
                        "failed to add .csproj to solution: service %s, project %s: %s",
                        svc.name,
                        project,
                        exc,
                        extra={"service": svc.name, "project": project, "error": str(exc)},
                    )