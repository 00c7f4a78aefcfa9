"""Thin wrapper around the dotnet command line tool."""

from __future__ import annotations

import logging
import shutil
import subprocess

from wtui.execerr import ExecError

IS_AVAILABLE_TIMEOUT = 10.0
SUBPROCESS_TIMEOUT = 30.0


class DotnetClient:
    """Runs dotnet subprocesses; failed commands raise ExecError."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def is_available(self) -> bool:
        """Return True if `dotnet --version` can be run successfully."""
        found = shutil.which("dotnet")
        if found is None:
            self._logger.debug(
                "dotnet not found in PATH", extra={"reason": "executable not found"}
            )
            return False

        argv = ["dotnet", "--version"]
        self._logger.info("exec dotnet", extra={"argv": argv})
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=IS_AVAILABLE_TIMEOUT,
                check=False,
            )
        except (subprocess.TimeoutExpired, OSError):
            return False
        return result.returncode == 0

    def new_sln(self, work_dir: str, name: str) -> None:
        """Create an empty solution called name in work_dir."""
        self._run(work_dir, "new", "sln", "-n", name)

    def sln_add(self, work_dir: str, sln_path: str, proj_path: str) -> None:
        """Add a project to a solution."""
        self._run(work_dir, "sln", sln_path, "add", proj_path)

    def _run(self, work_dir: str, *args: str) -> None:
        argv = ["dotnet", *args]
        self._logger.info("exec dotnet", extra={"argv": argv})
        try:
            result = subprocess.run(
                argv,
                cwd=work_dir,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=SUBPROCESS_TIMEOUT,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = (exc.stderr or b"").decode("utf-8", errors="replace")
            raise ExecError(argv, -1, stderr) from exc
        except OSError as exc:
            raise ExecError(argv, 1, "") from exc

        if result.returncode != 0:
            code = result.returncode if result.returncode >= 0 else -1
            raise ExecError(argv, code, result.stderr.decode("utf-8", errors="replace"))