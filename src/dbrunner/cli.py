import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core import DBRunner
from .errors import DBRunnerError
from .services.config_loader import SettingsLoader

console = Console()


def _resolve_option(cli_value, settings, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in settings:
        return settings[key]
    return default


def _report(result):
    if not result.success:
        raise click.ClickException(result.message)
    console.print(f"[green]{result.message}[/green]")


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.group()
@click.option(
    "--settings",
    required=False,
    type=click.Path(),
    help="Path to a YAML settings file. Defaults to .dbrunner.yml if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.pass_context
def main(ctx, settings, verbose, log_file):
    """Run local development databases in Docker containers."""
    logger = logging.getLogger("dbrunner")

    try:
        resolved_settings = settings
        if resolved_settings is None:
            default_settings_path = os.path.join(os.getcwd(), SettingsLoader.DEFAULT_FILE_NAME)
            if os.path.exists(default_settings_path):
                resolved_settings = default_settings_path

        settings_values = SettingsLoader().load(resolved_settings)
    except DBRunnerError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, settings_values, "verbose", default=False))
    log_file = _resolve_option(log_file, settings_values, "log_file")
    engine_timeout = _resolve_option(None, settings_values, "engine_timeout")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    ctx.obj = {
        "runner": DBRunner(
            config_dir=_resolve_option(None, settings_values, "config_dir"),
            compose_dir=_resolve_option(None, settings_values, "compose_dir"),
            legacy_template_dir=_resolve_option(
                None, settings_values, "legacy_template_dir", default="docker-templates"
            ),
            engine=_resolve_option(None, settings_values, "engine", default="docker"),
            engine_timeout=engine_timeout,
        ),
        "tail_lines": _resolve_option(None, settings_values, "tail_lines", default=100),
    }


@main.command("list")
@click.option("--status", "include_status", is_flag=True, help="Query the engine for live status.")
@click.pass_obj
def list_command(obj, include_status):
    """List supported databases and their effective images."""
    table = Table(title="Databases")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Port", justify="right")
    table.add_column("Image")
    table.add_column("Volume")

    for info in obj["runner"].list_databases(include_status=include_status):
        color = "green" if info.status == "running" else "dim"
        table.add_row(
            info.name,
            f"[{color}]{info.status}[/{color}]",
            str(info.port),
            info.image,
            info.volume_path or "(named volume)",
        )
    console.print(table)


@main.command()
@click.argument("name")
@click.pass_obj
def start(obj, name):
    """Start a database container."""
    _report(obj["runner"].start_database(name))


@main.command()
@click.argument("name")
@click.pass_obj
def stop(obj, name):
    """Stop a database container."""
    _report(obj["runner"].stop_database(name))


@main.command()
@click.argument("name")
@click.pass_obj
def status(obj, name):
    """Show whether a database container is running."""
    value = obj["runner"].get_database_status(name)
    console.print(value)
    if value in ("error", "unknown"):
        raise SystemExit(1)


@main.command()
@click.argument("name")
@click.option("--tail", "tail_lines", type=int, default=None, help="Number of lines to show.")
@click.pass_obj
def logs(obj, name, tail_lines):
    """Print recent container logs."""
    lines = tail_lines if tail_lines is not None else obj["tail_lines"]
    result = obj["runner"].get_container_logs(name, tail_lines=lines)
    if not result.success:
        raise click.ClickException(result.message)
    click.echo(result.data)


@main.command("set-volume")
@click.argument("name")
@click.argument("path")
@click.pass_obj
def set_volume(obj, name, path):
    """Bind-mount PATH as the data directory for a database."""
    _report(obj["runner"].set_volume_path(name, path))


@main.command("get-volume")
@click.argument("name")
@click.pass_obj
def get_volume(obj, name):
    """Show the configured data directory for a database."""
    path = obj["runner"].get_volume_path(name)
    if path:
        console.print(path, markup=False)
    else:
        console.print("[dim]default (named volume)[/dim]")


@main.command("set-tag")
@click.argument("name")
@click.argument("tag")
@click.pass_obj
def set_tag(obj, name, tag):
    """Override the image tag; an empty TAG restores the default."""
    _report(obj["runner"].set_image_tag(name, tag))


@main.command("get-tag")
@click.argument("name")
@click.pass_obj
def get_tag(obj, name):
    """Show the image tag override for a database."""
    tag = obj["runner"].get_image_tag(name)
    console.print(tag or "[dim]default[/dim]")


@main.command()
@click.argument("name")
@click.option("--port", type=int, default=None, help="Host port (defaults to the standard port).")
@click.pass_obj
def connect(obj, name, port):
    """Print connection strings for a database."""
    result = obj["runner"].generate_connection_strings(name, port)
    if not result.success:
        raise click.ClickException(result.message)

    table = Table(title=f"{name} connection")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key in ("standard_uri", "jdbc", "host", "port", "user", "password", "database"):
        table.add_row(key, result.data[key])
    console.print(table)


if __name__ == "__main__":
    main()
