"""Loading and defaulting of the YAML configuration file."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

_INT_FIELDS = frozenset({"discovery_depth", "output_panel_lines"})


class ConfigError(Exception):
    """The configuration could not be located, read or parsed."""


@dataclass
class Config:
    """Application settings; empty values are filled in by effective()."""

    root_dir: str = ""
    tasks_root: str = ""
    branch_prefix: str = ""
    base_branch: str = ""
    editor: str = ""
    discovery_depth: int = 0
    output_panel_lines: int = 0
    log_level: str = ""

    def effective(self) -> Config:
        """Apply environment overrides, defaults and limits in place; return self."""
        for env, attr in (
            ("WTUI_ROOT", "root_dir"),
            ("TASKFLOW_ROOT", "tasks_root"),
            ("EDITOR", "editor"),
            ("WTUI_BASE_BRANCH", "base_branch"),
        ):
            value = os.environ.get(env)
            if value:
                setattr(self, attr, value)

        if not self.root_dir:
            try:
                self.root_dir = os.getcwd()
            except OSError:
                pass

        if not self.tasks_root:
            self.tasks_root = os.path.join(self.root_dir, ".tasks")
        if not self.branch_prefix:
            self.branch_prefix = "feature/"
        if not self.base_branch:
            self.base_branch = "develop"
        if not self.editor:
            self.editor = "code"

        if self.discovery_depth == 0:
            self.discovery_depth = 4
        self.discovery_depth = max(self.discovery_depth, 2)

        if self.output_panel_lines == 0:
            self.output_panel_lines = 12
        self.output_panel_lines = min(max(self.output_panel_lines, 3), 40)

        if not self.log_level:
            self.log_level = "INFO"

        return self


def load(flag_path: str = "") -> Config:
    """Load the configuration from flag_path or the first standard location found.

    Returns an empty Config when no file exists.
    """
    path = _resolve_path(flag_path)
    cfg = Config()
    if path is None:
        return cfg

    try:
        data = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"config: read {path}: {exc}") from exc

    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigError(f"config: parse {path}: {exc}") from exc

    _apply(cfg, document, path)
    return cfg


def _apply(cfg: Config, document: object, path: str) -> None:
    if document is None:
        return
    if not isinstance(document, dict):
        raise ConfigError(f"config: parse {path}: top level is not a mapping")

    for f in fields(cfg):
        if f.name not in document:
            continue
        value = document[f.name]
        if value is None:
            continue
        if f.name in _INT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(
                    f"config: parse {path}: {f.name}: expected an integer, got {value!r}"
                )
            setattr(cfg, f.name, value)
        else:
            if isinstance(value, (dict, list)):
                raise ConfigError(
                    f"config: parse {path}: {f.name}: expected a string, got {value!r}"
                )
            if isinstance(value, bool):
                value = "true" if value else "false"
            setattr(cfg, f.name, str(value))


def _resolve_path(flag_path: str) -> str | None:
    if flag_path:
        if not os.path.exists(flag_path):
            raise ConfigError(f"config: --config path not found: {flag_path}")
        return flag_path

    candidates = _xdg_candidates()
    if sys.argv and sys.argv[0]:
        exe_dir = os.path.dirname(os.path.abspath(sys.argv[0]))
        candidates.append(os.path.join(exe_dir, "config.yaml"))

    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate
    return None


def _xdg_candidates() -> list[str]:
    candidates = []
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_home:
        candidates.append(os.path.join(xdg_home, "wtui", "config.yaml"))
    try:
        home = str(Path.home())
    except RuntimeError:
        home = ""
    if home:
        candidates.append(os.path.join(home, ".config", "wtui", "config.yaml"))
    return candidates