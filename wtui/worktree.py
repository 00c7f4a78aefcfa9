"""Parsing of `git worktree list --porcelain` output."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorktreeEntry:
    """One worktree as reported by git."""

    path: str = ""
    head: str = ""
    branch: str = ""


def parse_worktree_list_porcelain(output: str) -> list[WorktreeEntry]:
    """Parse porcelain output into entries; blocks without a path are dropped."""
    entries = []
    output = output.replace("\r\n", "\n")

    for block in output.split("\n\n"):
        block = block.strip()
        if not block:
            continue

        path = head = branch = ""
        for line in block.split("\n"):
            if line.startswith("worktree "):
                path = line[len("worktree "):]
            elif line.startswith("HEAD "):
                head = line[len("HEAD "):]
            elif line == "detached":
                branch = "(detached)"
            elif line.startswith("branch "):
                branch = line[len("branch "):]

        if path:
            entries.append(WorktreeEntry(path=path, head=head, branch=branch))

    return entries