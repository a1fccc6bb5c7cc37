"""
CLI interface for sbs using Typer.

Running `sbs` with no command launches the TUI.
"""

# Shared app and options first, commands register against them
from ._shared import app, main_callback  # noqa: F401

# Import submodules to register their commands with the Typer apps
from . import sessions  # noqa: F401
from . import config  # noqa: F401


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
