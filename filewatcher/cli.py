"""CLI entry point for filewatcher."""

from __future__ import annotations

import logging
import os
import signal
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax

from filewatcher.cancel import CancelToken
from filewatcher.config import DEFAULT_CONFIG_TEMPLATE, FileWatcherConfig, load_config
from filewatcher.config.loader import CONFIG_FILENAME
from filewatcher.errors import ConfigError, FileWatcherError
from filewatcher.runner import run_command
from filewatcher.watcher import Watcher

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="filewatcher",
    help="Watch files and rebuild/restart a command on changes.",
)

config_app = typer.Typer(help="Manage filewatcher configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: FileWatcherConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def _get_config() -> FileWatcherConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to filewatcher.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_extensions(raw: str) -> list[str]:
    """Split a comma-separated extension list. An empty string allows all."""
    return [ext.strip() for ext in raw.split(",") if ext.strip()]


def _merge_options(
    cfg: FileWatcherConfig,
    *,
    init_cmd: str | None,
    prep_cmd: str | None,
    run_cmd: str | None,
    file_extensions: str | None,
    paths: list[Path] | None,
) -> FileWatcherConfig:
    """Overlay command-line flags on top of the loaded config."""
    flags = {"init_cmd": init_cmd, "prep_cmd": prep_cmd, "run_cmd": run_cmd}
    commands = cfg.commands.model_copy(
        update={k: v for k, v in flags.items() if v is not None}
    )
    watch_update: dict[str, list[str]] = {}
    if file_extensions is not None:
        watch_update["extensions"] = _parse_extensions(file_extensions)
    if paths:
        watch_update["paths"] = [str(p) for p in paths]
    watch = cfg.watch.model_copy(update=watch_update)
    return cfg.model_copy(update={"commands": commands, "watch": watch})


def _install_signal_handlers(token: CancelToken) -> dict[int, object]:
    """Cancel *token* on SIGINT/SIGTERM. Returns the handlers they replaced."""

    def _handler(signum, frame):
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        token.cancel()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, _handler)
    return previous


def _restore_signal_handlers(previous: dict[int, object]) -> None:
    for sig, handler in previous.items():
        if handler is not None:
            signal.signal(sig, handler)


def _wait_for_shutdown(token: CancelToken) -> None:
    # Short waits keep the main thread responsive to signals
    while not token.wait(timeout=1.0):
        pass


def _run_startup_commands(cfg: FileWatcherConfig, token: CancelToken) -> None:
    env = cfg.process.environ()
    for command in (cfg.commands.init_cmd, cfg.commands.prep_cmd):
        if command:
            run_command(command, wait=True, token=token, shell=cfg.process.shell, env=env)


@app.command()
def watch(
    paths: Annotated[
        list[Path] | None,
        typer.Argument(help="Directories to watch (default: current directory)"),
    ] = None,
    init_cmd: Annotated[
        str | None,
        typer.Option("--init-cmd", help="The command to execute on initial start (pre-compilation)"),
    ] = None,
    prep_cmd: Annotated[
        str | None,
        typer.Option("--prep-cmd", help="The command to execute on changes (compilation)"),
    ] = None,
    run_cmd: Annotated[
        str | None,
        typer.Option("--run-cmd", help="The command to execute to run the program (run)"),
    ] = None,
    file_extensions: Annotated[
        str | None,
        typer.Option("--file-extensions", help="The file extensions to watch (comma separated)"),
    ] = None,
) -> None:
    """Watch files and re-run the prep and run commands on changes.

    Example: filewatcher watch --prep-cmd="go build -o server ." --run-cmd="./server" src
    """
    cfg = _merge_options(
        _get_config(),
        init_cmd=init_cmd,
        prep_cmd=prep_cmd,
        run_cmd=run_cmd,
        file_extensions=file_extensions,
        paths=paths,
    )
    _configure_logging(cfg.log_level)

    if not cfg.commands.run_cmd:
        rprint("[red]Error:[/red] --run-cmd is required")
        raise typer.Exit(1)

    token = CancelToken()
    try:
        watcher = Watcher.from_config(cfg, token=token)
    except (ConfigError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    previous = _install_signal_handlers(token)
    try:
        try:
            for path in cfg.watch.paths or [os.getcwd()]:
                watcher.add_path(path)
            _run_startup_commands(cfg, token)
        except FileWatcherError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        watcher.start()
        _wait_for_shutdown(token)
    finally:
        watcher.stop()
        _restore_signal_handlers(previous)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default filewatcher.yaml in current directory."""
    target = Path(CONFIG_FILENAME)
    if target.exists() and not force:
        rprint(f"[yellow]{CONFIG_FILENAME} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
