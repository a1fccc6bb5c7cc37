"""
Shared CLI state: Typer apps, console, options, and utilities.
"""

from typing import Annotated

import typer
from rich import print as rprint
from rich.console import Console

from ..context import AppContext, find_repository_root
from ..logging_config import setup_cli_logging
from ..session_store import SessionRecord

# Main app
app = typer.Typer(
    name="sbs",
    help="Manage work sessions (git worktree + tmux session + sandbox)",
    no_args_is_help=False,
    invoke_without_command=True,
    rich_markup_mode="rich",
)

# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage configuration",
    no_args_is_help=False,
    invoke_without_command=True,
)
app.add_typer(config_app, name="config")

# Console for rich output
console = Console()

SessionIdArgument = Annotated[
    str,
    typer.Argument(help="Namespaced session ID (e.g. repo-42)"),
]


def build_context() -> AppContext:
    """Build the production context for a CLI command."""
    setup_cli_logging()
    return AppContext.create(repository_root=find_repository_root())


def require_session(ctx: AppContext, session_id: str) -> SessionRecord:
    """Look up a session or exit with an error."""
    try:
        record = ctx.store.get_session(session_id)
    except ValueError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    if record is None:
        rprint(f"[red]Error: session '{session_id}' not found[/red]")
        raise typer.Exit(code=1)
    return record


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context):
    """Launch the sessions TUI when no command is given."""
    if ctx.invoked_subcommand is None:
        from ..tui import run_tui

        run_tui()
