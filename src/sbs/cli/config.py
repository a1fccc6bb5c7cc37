"""
Config commands: init, show, path.
"""

from typing import Annotated

import typer
from rich import print as rprint

from ._shared import config_app


@config_app.callback(invoke_without_command=True)
def config_default(ctx: typer.Context):
    """Show current configuration (default when no subcommand given)."""
    if ctx.invoked_subcommand is None:
        _config_show()


@config_app.command("init")
def config_init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing config file")
    ] = False,
):
    """Create a config file with documented defaults.

    Creates ~/.config/sbs/config.yaml with all options commented out.
    Use --force to overwrite an existing config file.
    """
    from .. import config as config_module

    path = config_module.CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists() and not force:
        rprint(f"[yellow]Config file already exists:[/yellow] {path}")
        rprint("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    path.write_text(config_module.CONFIG_TEMPLATE)
    rprint(f"[green]✓[/green] Created config file: [bold]{path}[/bold]")
    rprint("[dim]Edit to customize your settings[/dim]")


@config_app.command("show")
def config_show():
    """Show current configuration."""
    _config_show()


def _config_show():
    """Internal function to display the effective config."""
    from .. import config as config_module

    path = config_module.CONFIG_PATH
    if path.exists():
        rprint(f"[bold]Configuration[/bold] ({path}):\n")
    else:
        rprint(f"[dim]No config file found at {path}, using defaults[/dim]")
        rprint("[dim]Run 'sbs config init' to create one[/dim]\n")

    settings = config_module.SbsConfig.load()
    for key, value in settings.to_dict().items():
        rprint(f"  {key}: {value}")
    rprint(f"\n  [dim]effective log refresh interval: {settings.log_refresh_interval}s[/dim]")


@config_app.command("path")
def config_path():
    """Show the config file path."""
    from .. import config as config_module
    print(config_module.CONFIG_PATH)
