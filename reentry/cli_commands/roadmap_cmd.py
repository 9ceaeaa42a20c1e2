"""
Roadmap Commands - ROADMAP.md (slow layer).

Commands:
- roadmap init: Create ROADMAP.md or refresh its managed block
- roadmap list: List `- [id] title` items
- roadmap set-milestone: Link the active milestone in the status
- roadmap add: Add an item under a section
- roadmap validate: Report project roadmaps with no matching workspace
"""

import sys
from dataclasses import replace

import click

from reentry.cli_commands.common import config_option, config_root, fail, load_scope, project_option
from reentry.generators.roadmap_md import add_roadmap_item, default_roadmap_path, parse_roadmap_milestones
from reentry.models.status import CURRENT_SCHEMA_VERSION, MilestoneLink
from reentry.status_sync import ReentryStatusManager
from reentry.sync import StatusParseError
from reentry.workspaces import find_stale_project_roadmaps


def register(cli):
    """Register roadmap group commands with CLI."""

    @cli.group("roadmap")
    def roadmap_group():
        """Manage the roadmap (slow layer).

        \b
            roadmap init           - Create ROADMAP.md / refresh managed block
            roadmap list           - List roadmap items
            roadmap set-milestone  - Set the active milestone
            roadmap add            - Add an item under a section
            roadmap validate       - Find stale project roadmaps
        """
        pass

    def _initialized(config_path: str, project: str):
        _, config = load_scope(config_path, project)
        manager = ReentryStatusManager()
        try:
            status = manager.initialize(config)
        except StatusParseError as e:
            fail(str(e))
        return manager, config, status

    @roadmap_group.command("init")
    @click.option("-t", "--title", default=None, help="Project title for the ROADMAP.md template")
    @config_option
    @project_option
    def roadmap_init(title: str, config_path: str, project: str):
        """Create ROADMAP.md if missing and ensure its managed block."""
        manager, config, status = _initialized(config_path, project)
        roadmap_path = status.roadmap_file or default_roadmap_path()

        existed = manager.file_manager.read_file_if_exists(roadmap_path) is not None
        written = manager.ensure_roadmap_exists(status, project_title=title or project)

        if not existed:
            click.echo(f"Created {roadmap_path}")
        elif written:
            click.echo(f"Updated managed block in {roadmap_path}")
        else:
            click.echo(f"{roadmap_path} already initialized")

        manager.file_manager.write_reentry_markdown(config, status)

    @roadmap_group.command("list")
    @config_option
    @project_option
    def roadmap_list(config_path: str, project: str):
        """List roadmap items parsed from ROADMAP.md."""
        manager, _, status = _initialized(config_path, project)
        roadmap_path = status.roadmap_file or default_roadmap_path()

        content = manager.file_manager.read_file_if_exists(roadmap_path)
        if content is None:
            fail(f"{roadmap_path} not found. Run 'reentry roadmap init' first.")

        parsed = parse_roadmap_milestones(content)
        for warning in parsed.warnings:
            click.echo(f"Warning: {warning}", err=True)

        if not parsed.items:
            click.echo("No milestones found")
            return

        for item in parsed.items:
            section = f" [{item.section}]" if item.section else ""
            click.echo(f"- {item.id}: {item.title}{section}")

    @roadmap_group.command("set-milestone")
    @click.option("--id", "milestone_id", required=True, help="Milestone id (a [id] in ROADMAP.md)")
    @click.option("--title", required=True, help="Milestone title")
    @config_option
    @project_option
    def roadmap_set_milestone(milestone_id: str, title: str, config_path: str, project: str):
        """Set the active milestone link in the status."""
        manager, config, status = _initialized(config_path, project)

        linked = replace(
            status,
            schema_version=CURRENT_SCHEMA_VERSION,
            milestone=MilestoneLink(id=milestone_id.strip(), title=title.strip()),
            roadmap_file=status.roadmap_file or default_roadmap_path(),
        )
        updated = manager.update_status(config, lambda _: linked)
        manager.ensure_roadmap_exists(updated)
        click.echo(f"Active milestone set to {title} ({milestone_id})")

    @roadmap_group.command("add")
    @click.option("--section", required=True, help="Section name, e.g. Now, Next, Later")
    @click.option("--item", required=True, help="Item text")
    @click.option("--id", "item_id", default=None, help="Explicit id, e.g. now-02")
    @config_option
    @project_option
    def roadmap_add(section: str, item: str, item_id: str, config_path: str, project: str):
        """Add an item to ROADMAP.md under a section."""
        manager, _, status = _initialized(config_path, project)
        roadmap_path = status.roadmap_file or default_roadmap_path()

        content = manager.file_manager.read_file_if_exists(roadmap_path)
        if content is None:
            fail(f"{roadmap_path} not found. Run 'reentry roadmap init' first.")

        try:
            updated = add_roadmap_item(content, section, item, item_id)
        except ValueError as e:
            fail(str(e))

        manager.file_manager.write_file_if_changed(roadmap_path, updated)
        click.echo(f"Added item under ## {section.strip()}")

    @roadmap_group.command("validate")
    @config_option
    def roadmap_validate(config_path: str):
        """Check that every project roadmap matches a workspace app/package."""
        stale = find_stale_project_roadmaps(config_root(config_path))
        if stale is None:
            click.echo("No project roadmaps found")
            return

        if not stale:
            click.echo("All project roadmaps match a workspace")
            return

        click.echo(f"Stale project roadmaps found (no matching workspace): {', '.join(stale)}", err=True)
        sys.exit(1)
