"""
Re-entry CLI - Where was I, and what's next?

Commands:
- status: init, set, update, show, sync
- roadmap: init, list, set-milestone, add
- bump: branch-aware version bump
"""

import logging

import click

from reentry import __version__
from reentry.cli_commands import register_all


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose: bool):
    """Re-entry status - phase, next step and active milestone.

    Keeps reentry.status.json, REENTRY.md and ROADMAP.md in sync, and
    optionally mirrors them to a GitHub Issue and an Obsidian note.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


register_all(cli)


# ============================================================================
# Entry Point
# ============================================================================

def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
