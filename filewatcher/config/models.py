import os
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from filewatcher.runner.command import DEFAULT_SHELL


class CommandsConfig(BaseModel):
    init_cmd: str | None = None
    prep_cmd: str | None = None
    run_cmd: str | None = None


class WatchConfig(BaseModel):
    paths: list[str] = Field(default_factory=list)
    extensions: list[str] = Field(default_factory=lambda: [".go", ".mod"])

    @field_validator("extensions")
    @classmethod
    def strip_extensions(cls, v: list[str]) -> list[str]:
        return [ext.strip() for ext in v if ext.strip()]


class TimingConfig(BaseModel):
    debounce_seconds: float = Field(default=0.5, gt=0)
    interrupt_wait_seconds: float = Field(default=0.5, gt=0)
    queue_size: int = Field(default=1024, gt=0)


class ProcessConfig(BaseModel):
    shell: list[str] = Field(default_factory=lambda: list(DEFAULT_SHELL), min_length=1)
    env: dict[str, str] = Field(default_factory=dict)

    def environ(self) -> dict[str, str] | None:
        """Environment for spawned commands, or None to inherit ours unchanged."""
        if not self.env:
            return None
        return {**os.environ, **self.env}


class FileWatcherConfig(BaseModel):
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
