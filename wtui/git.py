"""Git operations carried out by running the git command line tool."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections.abc import Callable

from wtui.execerr import ExecError
from wtui.worktree import WorktreeEntry, parse_worktree_list_porcelain

SUBPROCESS_TIMEOUT = 30.0

_REMOTE_HEAD_PREFIX = "refs/remotes/origin/"
_VERSION_PREFIX = "git version "


class GitVersionError(Exception):
    """The output of `git --version` could not be understood."""


def _exit_code(returncode: int) -> int:
    # A process killed by a signal reports -1, as a timed-out command does.
    return returncode if returncode >= 0 else -1


def _scan_line(raw: bytes) -> str:
    line = raw.decode("utf-8", errors="replace")
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


class CommandClient:
    """Runs git subprocesses; every failed command raises ExecError."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def _git(self, *args: str) -> str:
        argv = ["git", *args]
        self._logger.info("exec git", extra={"argv": argv})
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                timeout=SUBPROCESS_TIMEOUT,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = (exc.stderr or b"").decode("utf-8", errors="replace")
            raise ExecError(argv, -1, stderr) from exc
        except OSError as exc:
            raise ExecError(argv, 1, "") from exc

        if result.returncode != 0:
            raise ExecError(
                argv,
                _exit_code(result.returncode),
                result.stderr.decode("utf-8", errors="replace"),
            )
        return result.stdout.decode("utf-8", errors="replace").rstrip("\n")

    def is_valid_repo(self, repo_path: str) -> None:
        """Raise ExecError unless repo_path is inside a git work tree."""
        self._git("-C", repo_path, "rev-parse", "--is-inside-work-tree")

    def base_branch(self, repo_path: str) -> str:
        """Return origin's default branch, or the current branch if origin has none."""
        try:
            self._git(
                "-C", repo_path, "show-ref", "--verify", "--quiet",
                "refs/remotes/origin/HEAD",
            )
        except ExecError:
            return self._git("-C", repo_path, "rev-parse", "--abbrev-ref", "HEAD")

        out = self._git("-C", repo_path, "symbolic-ref", "refs/remotes/origin/HEAD")
        if out.startswith(_REMOTE_HEAD_PREFIX):
            return out[len(_REMOTE_HEAD_PREFIX):]
        return out

    def branch_exists(self, repo_path: str, branch: str) -> bool:
        """Return True if the local branch exists."""
        try:
            self._git(
                "-C", repo_path, "show-ref", "--verify", "--quiet",
                f"refs/heads/{branch}",
            )
        except ExecError:
            return False
        return True

    def remote_branch_exists(self, repo_path: str, branch: str) -> bool:
        """Ask origin whether the branch exists; exit code 2 means it does not."""
        try:
            self._git(
                "-C", repo_path, "ls-remote", "--exit-code", "--heads", "origin", branch
            )
        except ExecError as exc:
            if exc.exit_code == 2:
                return False
            raise
        return True

    def list_worktrees(self, repo_path: str) -> list[WorktreeEntry]:
        """Return the worktrees attached to the repository."""
        out = self._git("-C", repo_path, "worktree", "list", "--porcelain")
        return parse_worktree_list_porcelain(out)

    def add_worktree(
        self, repo_path: str, dest: str, branch: str, new_branch: bool, base: str
    ) -> None:
        """Add a worktree at dest, creating branch from base if new_branch."""
        if new_branch:
            args = ["-C", repo_path, "worktree", "add", "-b", branch, dest, base]
        else:
            args = ["-C", repo_path, "worktree", "add", dest, branch]
        self._git(*args)

    def add_worktree_with_tracking(
        self, repo_path: str, dest: str, local_branch: str, remote_branch: str
    ) -> None:
        """Add a worktree whose new local branch starts at origin/remote_branch."""
        self._git(
            "-C", repo_path, "worktree", "add", "-b", local_branch, dest,
            f"origin/{remote_branch}",
        )

    def common_dir(self, worktree_path: str) -> str:
        """Return the shared git directory of a worktree as a usable path."""
        out = self._git("-C", worktree_path, "rev-parse", "--git-common-dir")
        if not os.path.isabs(out):
            out = os.path.normpath(os.path.join(worktree_path, out))
        return out

    def get_worktree_branch(self, worktree_path: str) -> str:
        """Return the checked-out branch, or '' when HEAD is detached."""
        return self._git("-C", worktree_path, "branch", "--show-current")

    def remove_worktree(self, common_dir: str, worktree_path: str, force: bool) -> None:
        """Remove a worktree using the repository's common git directory."""
        args = [f"--git-dir={common_dir}", "worktree", "remove"]
        if force:
            args.append("--force")
        args.append(worktree_path)
        self._git(*args)

    def is_dirty(self, worktree_path: str) -> bool:
        """Return True if the worktree has uncommitted or untracked changes."""
        out = self._git("-C", worktree_path, "status", "--porcelain")
        return out.strip() != ""

    def version(self) -> tuple[int, int]:
        """Return git's (major, minor) version."""
        out = self._git("--version")
        if not out.startswith(_VERSION_PREFIX):
            raise GitVersionError(f"unexpected git version output: {out!r}")

        words = out[len(_VERSION_PREFIX):].split()
        if not words:
            raise GitVersionError(f"cannot parse git version from {out!r}")
        parts = words[0].split(".", 2)
        if len(parts) < 2:
            raise GitVersionError(f"cannot parse git version from {out!r}")

        try:
            major = int(parts[0])
        except ValueError as exc:
            raise GitVersionError(f"cannot parse major version from {out!r}") from exc
        try:
            minor = int(parts[1])
        except ValueError as exc:
            raise GitVersionError(f"cannot parse minor version from {out!r}") from exc
        return major, minor

    def rev_list_count(self, worktree_path: str, tip: str, base: str) -> int:
        """Count commits in tip...base; 0 if git cannot compute it."""
        try:
            out = self._git("-C", worktree_path, "rev-list", "--count", f"{tip}...{base}")
        except ExecError:
            return 0
        try:
            return int(out.strip())
        except ValueError as exc:
            raise ValueError(f"rev-list count: unexpected output {out!r}") from exc

    def rev_list_ahead_behind(self, worktree_path: str, origin_branch: str) -> tuple[int, int]:
        """Return (ahead, behind) of HEAD relative to origin_branch; (0, 0) if unknown."""
        try:
            out = self._git(
                "-C", worktree_path, "rev-list", "--count", "--left-right",
                f"HEAD...{origin_branch}",
            )
        except ExecError:
            return 0, 0

        parts = out.strip().split("\t", 1)
        if len(parts) != 2:
            raise ValueError(f"rev-list ahead/behind: unexpected output {out!r}")
        try:
            ahead = int(parts[0])
        except ValueError as exc:
            raise ValueError(f"rev-list ahead/behind: parse ahead {parts[0]!r}") from exc
        try:
            behind = int(parts[1])
        except ValueError as exc:
            raise ValueError(f"rev-list ahead/behind: parse behind {parts[1]!r}") from exc
        return ahead, behind

    def fetch(self, worktree_path: str) -> None:
        """Fetch from origin."""
        self._git("-C", worktree_path, "fetch", "origin")

    def merge(self, worktree_path: str, branch: str) -> None:
        """Merge branch into the worktree's current branch."""
        self._git("-C", worktree_path, "merge", branch)

    def rebase(self, worktree_path: str, upstream: str) -> None:
        """Rebase the worktree's current branch onto upstream."""
        self._git("-C", worktree_path, "rebase", upstream)

    def push(
        self, worktree_path: str, on_line: Callable[[str], None] | None = None
    ) -> None:
        """Push HEAD to origin with upstream tracking.

        Each line git writes to stderr is passed to on_line as it arrives;
        stdout lines follow once the command has finished.
        """
        args = ["-C", worktree_path, "push", "-u", "origin", "HEAD"]
        argv = ["git", *args]
        self._logger.info("exec git", extra={"argv": argv})

        try:
            proc = subprocess.Popen(
                argv, stdout=subprocess.PIPE, stderr=subprocess.PIPE
            )
        except OSError as exc:
            raise ExecError(argv, 1, "") from exc

        stdout_chunks: list[bytes] = []

        def _drain_stdout() -> None:
            assert proc.stdout is not None
            stdout_chunks.append(proc.stdout.read())

        reader = threading.Thread(target=_drain_stdout, daemon=True)
        reader.start()
        timer = threading.Timer(SUBPROCESS_TIMEOUT, proc.kill)
        timer.start()
        try:
            assert proc.stderr is not None
            for raw in proc.stderr:
                if on_line is not None:
                    on_line(_scan_line(raw))
            returncode = proc.wait()
            reader.join()
        finally:
            timer.cancel()
            if proc.stdout is not None:
                proc.stdout.close()
            if proc.stderr is not None:
                proc.stderr.close()

        out = b"".join(stdout_chunks).decode("utf-8", errors="replace").strip()
        if out and on_line is not None:
            for line in out.split("\n"):
                on_line(line)

        if returncode != 0:
            raise ExecError(argv, _exit_code(returncode), "")

    def stash(self, worktree_path: str, pop: bool, include_untracked: bool) -> None:
        """Stash changes, or pop the latest stash when pop is True."""
        args = ["-C", worktree_path, "stash"]
        if pop:
            args.append("pop")
        elif include_untracked:
            args.append("--include-untracked")
        self._git(*args)

    def delete_branch(self, repo_path: str, branch: str) -> None:
        """Delete a fully merged local branch."""
        self._git("-C", repo_path, "branch", "-d", branch)