"""Config command group for mx-login CLI.

Commands:
    config path - Print the config file location
    config show - Print the effective configuration
    config init - Write a config file with defaults and given values
"""

from __future__ import annotations

__all__ = ["config"]

import json
from pathlib import Path

import click

from mx_login.config import LoginConfig, get_config_path
from mx_login.exceptions import PersistenceError

from ..helpers import exit_with_failure, load_config_or_exit
from ..styling import style_dim, style_field, style_header, style_success

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file path",
)


@click.group()
def config() -> None:
    """Configuration commands."""
    pass


@config.command("path")
@_config_option
def config_path_cmd(config_path: Path | None) -> None:
    """Show the config file location."""
    path = config_path or get_config_path()
    click.echo(str(path))
    if not path.exists():
        click.echo(style_dim("  (not created yet, defaults apply)"), err=True)


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_config_option
def config_show(as_json: bool, config_path: Path | None) -> None:
    """Show the effective configuration (file values over defaults)."""
    loaded = load_config_or_exit(config_path)

    if as_json:
        click.echo(json.dumps(loaded.model_dump(), indent=2))
        return

    click.echo(style_header("Configuration"))
    click.echo(style_field("Homeserver", loaded.homeserver or style_dim("(prompted)")))
    click.echo(style_field("Data dir", str(loaded.data_path)))
    click.echo(style_field("Session file", str(loaded.session_path)))
    click.echo(style_field("Device name", loaded.device_display_name))
    click.echo(style_field("HTTP timeout", f"{loaded.http_timeout}s"))
    click.echo(style_field("Open browser", "yes" if loaded.open_browser else "no"))
    click.echo(style_field("Log level", loaded.log_level))
    click.echo(style_field("System log", str(loaded.system_log_path)))


@config.command("init")
@click.option("--homeserver", "-s", help="Server name or homeserver URL")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Local data directory")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@_config_option
def config_init(
    homeserver: str | None,
    data_dir: str | None,
    force: bool,
    config_path: Path | None,
) -> None:
    """Write a config file with defaults and the given values."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")

    overrides: dict[str, object] = {}
    if homeserver:
        overrides["homeserver"] = homeserver.strip()
    if data_dir:
        overrides["data_dir"] = data_dir
    new_config = LoginConfig(**overrides)

    try:
        new_config.save_to_file(path)
    except OSError as e:
        exit_with_failure(
            PersistenceError(f"Cannot write config file {path}: {e}"),
            event="config_write_failed",
            terminal_message=f"Cannot write config file {path}",
        )

    click.echo(style_success(f"Config written to {path}"))
