"""Tests for filewatcher.config: models and YAML loader."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from filewatcher.config.loader import DEFAULT_CONFIG_TEMPLATE, _expand_env_vars, load_config
from filewatcher.config.models import (
    CommandsConfig,
    FileWatcherConfig,
    ProcessConfig,
    TimingConfig,
    WatchConfig,
)
from filewatcher.runner import DEFAULT_SHELL


# ── FileWatcherConfig defaults ──────────────────────────────────────


class TestFileWatcherConfigDefaults:
    def test_default_log_level(self, sample_config):
        assert sample_config.log_level == "info"

    def test_no_commands_by_default(self, sample_config):
        assert sample_config.commands.run_cmd is None
        assert sample_config.commands.prep_cmd is None
        assert sample_config.commands.init_cmd is None

    def test_default_extensions(self, sample_config):
        assert sample_config.watch.extensions == [".go", ".mod"]

    def test_default_paths_empty(self, sample_config):
        assert sample_config.watch.paths == []

    def test_default_timing(self, sample_config):
        assert sample_config.timing.debounce_seconds == 0.5
        assert sample_config.timing.interrupt_wait_seconds == 0.5
        assert sample_config.timing.queue_size == 1024

    def test_default_shell(self, sample_config):
        assert sample_config.process.shell == list(DEFAULT_SHELL)


# ── Individual config model validations ─────────────────────────────


class TestTimingConfig:
    @pytest.mark.parametrize(
        "field", ["debounce_seconds", "interrupt_wait_seconds", "queue_size"]
    )
    def test_non_positive_rejected(self, field):
        with pytest.raises(ValidationError):
            TimingConfig(**{field: 0})


class TestWatchConfig:
    def test_extensions_stripped(self):
        cfg = WatchConfig(extensions=[" .go", "", ".mod "])
        assert cfg.extensions == [".go", ".mod"]

    def test_empty_extensions_allowed(self):
        assert WatchConfig(extensions=[]).extensions == []


class TestProcessConfig:
    def test_empty_shell_rejected(self):
        with pytest.raises(ValidationError):
            ProcessConfig(shell=[])

    def test_environ_inherits_when_unset(self):
        assert ProcessConfig().environ() is None

    def test_environ_overlays(self):
        with patch.dict(os.environ, {"BASE": "1"}):
            env = ProcessConfig(env={"APP_ENV": "dev"}).environ()
        assert env["APP_ENV"] == "dev"
        assert env["BASE"] == "1"


class TestCommandsConfig:
    def test_custom_values(self):
        cfg = CommandsConfig(prep_cmd="go build", run_cmd="./server")
        assert cfg.prep_cmd == "go build"
        assert cfg.run_cmd == "./server"


# ── _expand_env_vars ────────────────────────────────────────────────


class TestExpandEnvVars:
    def test_expands_in_nested_structures(self):
        with patch.dict(os.environ, {"PORT": "8080"}):
            result = _expand_env_vars({"a": ["serve --port ${PORT}"], "b": 3})
        assert result == {"a": ["serve --port 8080"], "b": 3}

    def test_missing_var_becomes_empty(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("x${NOPE}y") == "xy"

    def test_fallback_used_when_unset_or_empty(self):
        with patch.dict(os.environ, {"EMPTY": ""}, clear=True):
            assert _expand_env_vars("${ADDR:-:8080}") == ":8080"
            assert _expand_env_vars("${EMPTY:-dev}") == "dev"
        with patch.dict(os.environ, {"ADDR": ":9000"}):
            assert _expand_env_vars("${ADDR:-:8080}") == ":9000"


# ── load_config ─────────────────────────────────────────────────────


class TestLoadConfig:
    def test_returns_defaults_when_no_file_exists(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        config = load_config()
        assert config == FileWatcherConfig()

    def test_loads_valid_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "filewatcher.yaml").write_text(
            "commands:\n  run_cmd: ./server\nwatch:\n  extensions: ['.py']\nlog_level: debug\n"
        )
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        config = load_config()
        assert config.commands.run_cmd == "./server"
        assert config.watch.extensions == [".py"]
        assert config.log_level == "debug"

    def test_raises_on_invalid_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "filewatcher.yaml").write_text("  bad:\nyaml: [unterminated")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config()

    def test_raises_on_invalid_config_values(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "filewatcher.yaml").write_text("timing:\n  debounce_seconds: -1\n")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config()

    def test_raises_on_non_mapping(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "filewatcher.yaml").write_text("- just\n- a list\n")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config()

    def test_cli_path_takes_priority(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "filewatcher.yaml").write_text("commands:\n  run_cmd: local\n")
        cli_file = tmp_path / "custom.yaml"
        cli_file.write_text("commands:\n  run_cmd: custom\n")

        config = load_config(cli_path=str(cli_file))
        assert config.commands.run_cmd == "custom"

    def test_user_global_config_used_as_fallback(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        fake_home = tmp_path / "fakehome"
        (fake_home / ".filewatcher").mkdir(parents=True)
        (fake_home / ".filewatcher" / "config.yaml").write_text("log_level: warn\n")
        monkeypatch.setattr("pathlib.Path.home", lambda: fake_home)

        assert load_config().log_level == "warn"

    def test_env_vars_expanded_in_loaded_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SERVER_BIN", "./bin/api")
        (tmp_path / "filewatcher.yaml").write_text("commands:\n  run_cmd: ${SERVER_BIN}\n")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")

        assert load_config().commands.run_cmd == "./bin/api"

    def test_empty_yaml_file_returns_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "filewatcher.yaml").write_text("")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        assert load_config() == FileWatcherConfig()

    def test_default_template_is_valid(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "filewatcher.yaml").write_text(DEFAULT_CONFIG_TEMPLATE)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        config = load_config()
        assert config.commands.run_cmd == "./bin/server"
        assert config.watch.extensions == [".go", ".mod"]
