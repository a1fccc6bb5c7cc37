"""
Session commands: list, log, stop, attach, clean, version.
"""

from typing import Annotated

import typer
from rich import print as rprint
from rich.table import Table
from rich.text import Text

from . import _shared
from ._shared import app, console, SessionIdArgument, require_session
from ..cleanup import CleanupError, CleanupOptions, ViewScope
from ..protocols import CommandError, ProbeError
from ..session_store import filter_for_repository
from ..status_constants import get_status_symbol


@app.command("list")
def list_sessions(
    global_view: Annotated[
        bool, typer.Option("--global", "-g", help="Show sessions from all repositories")
    ] = False,
):
    """List sessions with their reconciled status.

    Inside a git repository only that repository's sessions are shown,
    unless --global is given.
    """
    ctx = _shared.build_context()
    try:
        records = ctx.store.load_all_sessions()
    except ValueError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if not global_view and ctx.repository_root:
        records = filter_for_repository(records, ctx.repository_root)

    if not records:
        rprint("[dim]No sessions found[/dim]")
        return

    statuses = ctx.detector.detect_many(records)

    table = Table(show_edge=False)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Title")
    table.add_column("Branch", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Last Activity", justify="right", no_wrap=True)
    if global_view:
        table.add_column("Repository", no_wrap=True)

    for record in records:
        status = statuses[record.namespaced_id]
        symbol, color = get_status_symbol(status.status)
        row = [
            record.namespaced_id,
            record.issue_title,
            record.branch,
            Text(f"{symbol} {status.status}", style=color),
            status.time_delta,
        ]
        if global_view:
            row.append(record.repository_name)
        table.add_row(*row)
    console.print(table)


@app.command()
def log(session_id: SessionIdArgument):
    """Run the session's .hooks/log script once and print its output.

    The script runs in the session's worktree with a timeout
    (status_timeout_seconds). Partial output is printed even on failure.
    """
    ctx = _shared.build_context()
    record = require_session(ctx, session_id)

    output, error = ctx.log_executor.execute(
        record, timeout_seconds=ctx.config.log_script_timeout
    )
    if output:
        console.print(
            output, markup=False, highlight=False, soft_wrap=True,
            end="" if output.endswith("\n") else "\n",
        )
    if error is not None:
        rprint(f"[red]Error executing log script:[/red] {error}")
        raise typer.Exit(code=1)


@app.command()
def stop(
    session_id: SessionIdArgument,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Don't ask for confirmation")
    ] = False,
):
    """Stop a session: kill its tmux session and delete its sandbox.

    The worktree and the session record are kept so work can resume.
    """
    ctx = _shared.build_context()
    record = require_session(ctx, session_id)

    if not yes and not typer.confirm(f"Stop {record.display_id}?"):
        rprint("[dim]Cancelled[/dim]")
        return

    try:
        actions = ctx.cleanup.stop_session(record)
    except CleanupError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    for action in actions:
        rprint(f"  {action}")
    rprint(f"[green]✓[/green] Stopped {record.display_id}")


@app.command()
def attach(session_id: SessionIdArgument):
    """Attach to a session's tmux session (Ctrl-b d to detach)."""
    ctx = _shared.build_context()
    record = require_session(ctx, session_id)

    if not record.tmux_session:
        rprint(f"[red]Error: {record.display_id} has no tmux session[/red]")
        raise typer.Exit(code=1)
    try:
        exists = ctx.tmux.has_session(record.tmux_session)
    except ProbeError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    if not exists:
        rprint(f"[red]Error: tmux session '{record.tmux_session}' is not running[/red]")
        rprint("[dim]Run 'sbs clean' to remove stale sessions[/dim]")
        raise typer.Exit(code=1)

    rprint(f"[dim]Attaching to '{record.tmux_session}'...[/dim]")
    try:
        ctx.tmux.attach(record.tmux_session)
    except CommandError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    ctx.store.touch_session(record.namespaced_id)


@app.command()
def clean(
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-n", help="Show what would be cleaned")
    ] = False,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Don't ask for confirmation")
    ] = False,
    worktrees: Annotated[
        bool, typer.Option("--worktrees", help="Also delete the worktree directories")
    ] = False,
):
    """Clean up stale sessions across all repositories.

    A session is stale when neither its tmux session nor its sandbox is
    running. Cleaning deletes leftovers and removes the session record.
    """
    ctx = _shared.build_context()
    try:
        records = ctx.store.load_all_sessions()
    except ValueError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    candidates = ctx.cleanup.identify_stale_sessions(records, ViewScope.GLOBAL)
    if not candidates:
        rprint("[dim]No stale sessions to clean[/dim]")
        return

    options = CleanupOptions.for_cli(dry_run=dry_run, worktrees=worktrees)
    if dry_run:
        result = ctx.cleanup.cleanup_sessions(candidates, options)
        rprint(f"[bold]Dry run:[/bold] would clean {result.would_clean} stale session(s)")
        for detail in result.details:
            rprint(f"  {detail}")
        return

    rprint(f"[bold]Found {len(candidates)} stale session(s):[/bold]")
    for record in candidates:
        rprint(f"  {record.display_id}: {record.issue_title}")
    if not force and not typer.confirm("Clean these sessions?"):
        rprint("[dim]Cancelled[/dim]")
        return

    result = ctx.cleanup.cleanup_sessions(candidates, options)
    for detail in result.details:
        rprint(f"  [dim]{detail}[/dim]")
    for error in result.errors:
        rprint(f"[red]Error: {error}[/red]")
    rprint(f"[green]✓[/green] {result.summary()}")
    if result.errors:
        raise typer.Exit(code=1)


@app.command("version")
def version():
    """Show version information."""
    from .. import __version__

    rprint(f"[bold]sbs[/bold] (sandbox sessions) v{__version__}")
    rprint("[dim]Work environment manager for GitHub issues[/dim]")
