# wtui

Building blocks for working on one task across many service repositories
at once. `wtui` finds the git repositories under a root directory, runs
the `git` commands needed to create, inspect and remove worktrees, and can
put every `.csproj` of a task's worktrees into a single .NET solution file.

It is a library: it has no command-line program and no screen of its own.

## Installation

```
pip install .
pip install ".[test]"   # with pytest, to run the tests
```

## Configuration

`wtui.config.load(path)` reads a YAML file. With an empty path, the first
of these that exists is used:

1. `$XDG_CONFIG_HOME/wtui/config.yaml`
2. `~/.config/wtui/config.yaml`
3. `config.yaml` in the directory of the running script (`sys.argv[0]`)

When none exists, an empty `Config` is returned.

```yaml
root_dir: /home/me/src        # where repositories are searched
tasks_root: /home/me/src/.tasks
branch_prefix: "feature/"
base_branch: develop
editor: code
discovery_depth: 4            # raised to at least 2
output_panel_lines: 12        # kept between 3 and 40
log_level: INFO               # DEBUG, INFO, WARN/WARNING, ERROR
```

Unknown keys are ignored. `Config.effective()` fills in the rest in place
and returns the same object. The environment overrides the file:
`WTUI_ROOT` sets the root directory, `TASKFLOW_ROOT` the tasks root,
`EDITOR` the editor and `WTUI_BASE_BRANCH` the base branch. Missing values
fall back to defaults: the current directory as root, `<root>/.tasks` for
tasks, `feature/`, `develop`, `code`, depth 4, 12 output lines and `INFO`.

```python
from wtui.config import load

cfg = load("").effective()
print(cfg.root_dir, cfg.discovery_depth)
```

A path given to `load` that does not exist raises `ConfigError`, as does a
file that cannot be read, is not valid YAML, or gives a field a value of
the wrong kind.

## Modules

- `wtui.domain` — the `Task`, `Service` and `Repo` records, and a small
  thread-safe `Context` with `cancel()`, `cancelled()` and
  `raise_if_cancelled()`, which raises `Cancelled`.
- `wtui.git` — `CommandClient`, which runs the `git` command: checking a
  repository (`is_valid_repo`), finding the base branch (`base_branch`),
  testing local and remote branches (`branch_exists`,
  `remote_branch_exists`), adding, listing and removing worktrees
  (`add_worktree`, `add_worktree_with_tracking`, `list_worktrees`,
  `remove_worktree`, `common_dir`, `get_worktree_branch`), `is_dirty`,
  `version`, `rev_list_count`, `rev_list_ahead_behind`, `fetch`, `merge`,
  `rebase`, `push`, `stash` and `delete_branch`. `push` passes each line
  git writes to a callback as it arrives. Commands time out after 30
  seconds. Unparseable `git --version` output raises `GitVersionError`.
- `wtui.worktree` — `WorktreeEntry` and `parse_worktree_list_porcelain`
  for the output of `git worktree list --porcelain`.
- `wtui.discovery` — `Discoverer`, which walks the root directory down to
  the configured depth and finds repositories by their `.git` directory.
  `resolve(name)` prefers a repository directly below the root, and
  validates the match with the git client; `find_all()` returns every
  repository sorted by name. Unknown names raise `ServiceNotFoundError`;
  walk and validation failures raise `DiscoveryError`.
- `wtui.cache` — `CachedDiscoverer`, which wraps a discoverer, scans once
  and answers `find_all` and `resolve` from memory until `refresh` is
  called. A cancelled `Context` stops a scan without changing the cache.
- `wtui.dotnet` — `DotnetClient`, with `is_available`, `new_sln` and
  `sln_add`.
- `wtui.sln` — `SolutionManager.generate`, which rebuilds `<task-id>.sln`
  in a task directory from every `.csproj` found in the task's service
  worktrees, and `find_csproj_files`. Generation is best effort: a missing
  `dotnet`, a failing step or a service without projects is logged and
  skipped.
- `wtui.logutil` — `parse_log_level`, `xdg_state_dir`, and `init_logger`,
  which writes JSON lines to `$XDG_STATE_HOME/<app>/<app>.log` (or
  `~/.local/state/<app>/<app>.log`) and tags records with the task id set
  by the `with_task_id` context manager. If the file cannot be opened, a
  warning-level logger on standard error is returned instead.

```python
from wtui.config import load
from wtui.git import CommandClient
from wtui.discovery import Discoverer
from wtui.cache import CachedDiscoverer

cfg = load("").effective()
git = CommandClient()
repos = CachedDiscoverer(Discoverer(cfg, git))
for repo in repos.find_all():
    print(repo.name, git.base_branch(repo.path))
```

## Parsing worktree listings

```python
from wtui.worktree import parse_worktree_list_porcelain

entries = parse_worktree_list_porcelain(
    "worktree /path/to/main\n"
    "HEAD aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa\n"
    "branch refs/heads/main\n"
)
print(entries[0].path, entries[0].branch)
```

A detached worktree reports its branch as `(detached)`.

## Errors

Every failed external command raises `wtui.execerr.ExecError`, carrying
`argv`, `exit_code` and `stderr`. Its message reads
`git status: exit 1: <stderr>`, or `git status: exit 1` when nothing was
written to standard error.

## What this package does not do

There is no interactive terminal interface and no command to run: the
package provides the pieces, not an application. Nothing here creates,
syncs or removes whole tasks; `Task` and `Service` are plain records, and
combining discovery, worktrees and solution generation into task
operations is left to the caller.