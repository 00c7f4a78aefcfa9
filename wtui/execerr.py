"""Error raised when an external command exits unsuccessfully."""

from __future__ import annotations

from collections.abc import Iterable


class ExecError(Exception):
    """A subprocess (git, dotnet, ...) failed.

    Carries the full argument vector, the exit code and whatever the
    command wrote to stderr.
    """

    def __init__(self, argv: Iterable[str], exit_code: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(self.argv, exit_code, stderr)

    def __str__(self) -> str:
        command = " ".join(self.argv)
        stderr = self.stderr.strip()
        if stderr:
            return f"{command}: exit {self.exit_code}: {stderr}"
        return f"{command}: exit {self.exit_code}"

    def __repr__(self) -> str:
        return (
            f"ExecError(argv={self.argv!r}, exit_code={self.exit_code!r}, "
            f"stderr={self.stderr!r})"
        )