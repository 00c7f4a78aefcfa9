"""Git worktree, repository discovery and .NET solution helpers for multi-repository tasks."""

__version__ = "0.1.0"