"""YAML config discovery and loading."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import FileWatcherConfig

CONFIG_FILENAME = "filewatcher.yaml"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _candidate_paths(cli_path: str | None) -> list[Path]:
    candidates = [Path(cli_path)] if cli_path else []
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / ".filewatcher" / "config.yaml")
    return candidates


def load_config(cli_path: str | None = None) -> FileWatcherConfig:
    """Return the first non-empty config among --config, ./filewatcher.yaml
    and ~/.filewatcher/config.yaml, or the defaults when there is none.

    Raises ValueError naming the file when it is not valid YAML or does not
    describe a valid configuration.
    """
    for path in _candidate_paths(cli_path):
        if not path.is_file():
            continue
        config = _read_config(path)
        if config is not None:
            return config
    return FileWatcherConfig()


def _read_config(path: Path) -> FileWatcherConfig | None:
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}")

    try:
        return FileWatcherConfig.model_validate(_expand_env_vars(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Substitute ${VAR} and ${VAR:-fallback} in every string value."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


# Default YAML template for `filewatcher config init`
DEFAULT_CONFIG_TEMPLATE = """\
# filewatcher.yaml

# Commands
commands:
  # init_cmd: "go mod download"   # once, before watching starts
  prep_cmd: "go build -o ./bin/server ."
  run_cmd: "./bin/server"        # required

# What to watch
watch:
  paths: []                      # defaults to the current directory
  extensions: [".go", ".mod"]    # empty list watches every file

# Timing
timing:
  debounce_seconds: 0.5
  interrupt_wait_seconds: 0.5    # grace period before SIGKILL
  queue_size: 1024

# Process
process:
  shell: ["sh", "-c"]
  # env:
  #   APP_ENV: "development"

# Logging
log_level: "info"                # debug | info | warn | error
"""
