import os

import pytest

from wtui.config import Config, ConfigError, load


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("WTUI_ROOT", "TASKFLOW_ROOT", "EDITOR", "WTUI_BASE_BRANCH"):
        monkeypatch.delenv(key, raising=False)


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_load_flag_path_file_exists(tmp_path):
    path = _write(
        tmp_path / "wtui-config.yaml",
        """
root_dir: /tmp/root
tasks_root: /tmp/tasks
branch_prefix: "fix/"
editor: vim
discovery_depth: 3
output_panel_lines: 10
log_level: DEBUG
""",
    )
    cfg = load(path)
    assert cfg.root_dir == "/tmp/root"
    assert cfg.tasks_root == "/tmp/tasks"
    assert cfg.branch_prefix == "fix/"
    assert cfg.editor == "vim"
    assert cfg.discovery_depth == 3
    assert cfg.output_panel_lines == 10
    assert cfg.log_level == "DEBUG"


def test_load_flag_path_missing_raises():
    with pytest.raises(ConfigError, match="--config path not found"):
        load("/nonexistent/path/config.yaml")


def test_load_no_file_returns_empty_config(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "nonexistent"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    cfg = load("")
    assert cfg.root_dir == ""
    assert cfg.editor == ""
    assert cfg.log_level == ""


def test_load_xdg_config_home_used_when_set(tmp_path, monkeypatch):
    _write(tmp_path / "wtui" / "config.yaml", "log_level: WARN\n")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert load("").log_level == "WARN"


def test_load_unknown_keys_ignored(tmp_path):
    path = _write(
        tmp_path / "c.yaml",
        """
log_level: DEBUG
completely_unknown_field: some_value
another_unknown: 42
""",
    )
    assert load(path).log_level == "DEBUG"


def test_load_invalid_yaml_raises(tmp_path):
    path = _write(tmp_path / "c.yaml", "\nlog_level: [unclosed bracket\n")
    with pytest.raises(ConfigError, match="parse"):
        load(path)


def test_load_wrong_type_for_integer_raises(tmp_path):
    path = _write(tmp_path / "c.yaml", "discovery_depth: deep\n")
    with pytest.raises(ConfigError):
        load(path)


def test_effective_all_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = Config()
    cfg.effective()
    cwd = os.getcwd()
    assert cfg.root_dir == cwd
    assert cfg.tasks_root == os.path.join(cwd, ".tasks")
    assert cfg.branch_prefix == "feature/"
    assert cfg.editor == "code"
    assert cfg.discovery_depth == 4
    assert cfg.output_panel_lines == 12
    assert cfg.log_level == "INFO"


def test_effective_explicit_values_not_overridden():
    cfg = Config(
        root_dir="/explicit/root",
        tasks_root="/explicit/tasks",
        branch_prefix="bugfix/",
        editor="nvim",
        discovery_depth=5,
        output_panel_lines=12,
        log_level="WARN",
    )
    cfg.effective()
    assert cfg.root_dir == "/explicit/root"
    assert cfg.tasks_root == "/explicit/tasks"
    assert cfg.branch_prefix == "bugfix/"
    assert cfg.editor == "nvim"
    assert cfg.discovery_depth == 5
    assert cfg.output_panel_lines == 12
    assert cfg.log_level == "WARN"


def test_effective_wtui_root_overrides_root_dir(monkeypatch):
    monkeypatch.setenv("WTUI_ROOT", "/env/root")
    cfg = Config(root_dir="/file/root").effective()
    assert cfg.root_dir == "/env/root"


def test_effective_taskflow_root_overrides_tasks_root(monkeypatch):
    monkeypatch.setenv("TASKFLOW_ROOT", "/env/tasks")
    cfg = Config(tasks_root="/file/tasks").effective()
    assert cfg.tasks_root == "/env/tasks"


def test_effective_editor_env_overrides_editor(monkeypatch):
    monkeypatch.setenv("EDITOR", "emacs")
    assert Config(editor="code").effective().editor == "emacs"


def test_effective_editor_env_applied_when_empty(monkeypatch):
    monkeypatch.setenv("EDITOR", "nano")
    assert Config().effective().editor == "nano"


def test_effective_tasks_root_derived_from_root_dir():
    cfg = Config(root_dir="/projects").effective()
    assert cfg.tasks_root == "/projects/.tasks"


@pytest.mark.parametrize("value,want", [(0, 4), (1, 2), (2, 2), (5, 5), (10, 10)])
def test_effective_discovery_depth(value, want):
    cfg = Config(root_dir="/r", tasks_root="/r/.tasks", discovery_depth=value)
    assert cfg.effective().discovery_depth == want


@pytest.mark.parametrize(
    "value,want",
    [(0, 12), (1, 3), (2, 3), (3, 3), (6, 6), (20, 20), (40, 40), (41, 40), (100, 40)],
)
def test_effective_output_panel_lines(value, want):
    cfg = Config(root_dir="/r", tasks_root="/r/.tasks", output_panel_lines=value)
    assert cfg.effective().output_panel_lines == want


def test_load_flag_path_takes_priority_over_xdg(tmp_path, monkeypatch):
    _write(tmp_path / "xdg" / "wtui" / "config.yaml", "log_level: WARN\n")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    flag_cfg = _write(tmp_path / "flag" / "config.yaml", "log_level: ERROR\n")
    assert load(flag_cfg).log_level == "ERROR"


def test_load_xdg_takes_priority_over_home(tmp_path, monkeypatch):
    _write(tmp_path / "xdg" / "wtui" / "config.yaml", "log_level: DEBUG\n")
    _write(tmp_path / "home" / ".config" / "wtui" / "config.yaml", "log_level: WARN\n")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    assert load("").log_level == "DEBUG"


def test_load_home_used_without_xdg(tmp_path, monkeypatch):
    _write(tmp_path / "home" / ".config" / "wtui" / "config.yaml", "log_level: WARN\n")
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    assert load("").log_level == "WARN"


def test_effective_returns_receiver():
    cfg = Config()
    assert cfg.effective() is cfg


def test_effective_base_branch_default():
    assert Config().effective().base_branch == "develop"


def test_effective_base_branch_from_yaml():
    assert Config(base_branch="develop").effective().base_branch == "develop"


def test_effective_base_branch_from_env(monkeypatch):
    monkeypatch.setenv("WTUI_BASE_BRANCH", "release/1.0")
    assert Config(base_branch="develop").effective().base_branch == "release/1.0"