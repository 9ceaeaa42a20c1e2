"""
Re-entry CLI Commands - Modular command structure.

Structure:
    cli_commands/
    ├── __init__.py      # This file - registration
    ├── common.py        # shared options and config loading
    ├── status_cmd.py    # status (init, set, update, show, sync)
    ├── roadmap_cmd.py   # roadmap (init, list, set-milestone, add)
    └── bump_cmd.py      # bump

Usage:
    from reentry.cli_commands import register_all

    @click.group()
    def cli():
        pass

    register_all(cli)
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_all(cli: "click.Group") -> None:
    """Register all command modules with the CLI group.

    Each module has a `register(cli)` function that adds its commands
    to the CLI group using Click decorators.
    """
    from . import status_cmd
    from . import roadmap_cmd
    from . import bump_cmd

    status_cmd.register(cli)
    roadmap_cmd.register(cli)
    bump_cmd.register(cli)
