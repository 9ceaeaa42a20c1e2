"""
Status Commands - Re-entry status (fast layer).

Commands:
- status init: Create the status files
- status set: Set phase / next micro-step
- status update: Fill status from the last commit
- status show: Print a summary
- status sync: Push status to files, GitHub and Obsidian
"""

import sys
from dataclasses import replace

import click

from reentry.cli_commands.common import config_option, fail, load_scope, migrate_option, project_option
from reentry.config import validate_config
from reentry.git_ops import collect_git_context, infer_phase, suggest_next_step
from reentry.models.status import (
    CURRENT_SCHEMA_VERSION,
    PHASES,
    NextStep,
    UpdateContext,
    VersioningInfo,
    now_iso,
)
from reentry.status_sync import ReentryStatusManager
from reentry.sync import StatusParseError, render_json


def register(cli):
    """Register status group commands with CLI."""

    @cli.group("status")
    def status_group():
        """Manage re-entry status (fast layer).

        \b
            status init     - Create status files
            status set      - Set phase / next micro-step
            status update   - Fill status from the last commit
            status show     - Print a summary
            status sync     - Sync files, GitHub and Obsidian
        """
        pass

    @status_group.command("init")
    @config_option
    @project_option
    @migrate_option
    def status_init(config_path: str, project: str, migrate: bool):
        """Initialize re-entry status files."""
        _, config = load_scope(config_path, project)
        try:
            status = ReentryStatusManager().initialize(config, migrate=migrate)
        except StatusParseError as e:
            fail(str(e))
        click.echo(f"Initialized re-entry status (schema {status.schema_version})")

    @status_group.command("set")
    @click.option("--phase", type=click.Choice(PHASES), default=None, help="Set current phase")
    @click.option("--next", "next_step", default=None, help="Set next micro-step (replaces the first next step)")
    @config_option
    @project_option
    @migrate_option
    def status_set(phase: str, next_step: str, config_path: str, project: str, migrate: bool):
        """Update re-entry status fields."""
        _, config = load_scope(config_path, project)
        manager = ReentryStatusManager()
        try:
            current = manager.initialize(config, migrate=migrate)
        except StatusParseError as e:
            fail(str(e))

        text = (next_step or "").strip()
        updated = replace(
            current,
            schema_version=CURRENT_SCHEMA_VERSION,
            current_phase=phase or current.current_phase,
            next_steps=[NextStep(id="next", description=text, priority=1)] if text else current.next_steps,
            last_updated=now_iso(),
        )
        manager.update_status(config, lambda _: updated)
        click.echo("Re-entry status updated")

    @status_group.command("update")
    @click.option("--phase", type=click.Choice(PHASES), default=None, help="Override inferred phase")
    @click.option("--next", "next_step", default=None, help="Override suggested next step")
    @click.option("--version", "version", default=None, help="Current version (defaults to the recorded one)")
    @click.option("--dry-run", is_flag=True, help="Show what would be updated without writing")
    @config_option
    @project_option
    def status_update(phase: str, next_step: str, version: str, dry_run: bool, config_path: str, project: str):
        """Fill re-entry status from the last commit.

        Phase and next step are inferred from the commit message unless
        given explicitly.
        """
        _, config = load_scope(config_path, project)
        manager = ReentryStatusManager()
        try:
            current = manager.initialize(config)
        except StatusParseError as e:
            fail(str(e))

        git = collect_git_context()
        current_version = version or current.versioning.current_version or current.version
        phase = phase or infer_phase(git)
        next_step = next_step or suggest_next_step(git)

        click.echo("")
        click.echo("Re-entry Update Preview (dry-run)" if dry_run else "Re-entry Status Auto-Updated")
        click.echo("=" * 40)
        click.echo(f"  Branch:        {git.branch}")
        click.echo(f"  Commit:        {git.commit} {git.commit_message}")
        click.echo(f"  Version:       {current_version}")
        click.echo(f"  Phase:         {phase}")
        click.echo(f"  Next step:     {next_step}")
        click.echo(
            f"  Files changed: {git.diff_summary.files_changed} "
            f"(+{git.diff_summary.insertions}/-{git.diff_summary.deletions})"
        )

        if dry_run:
            click.echo("")
            click.echo("Use without --dry-run to apply.")
            return

        previous_version = current.versioning.previous_version
        if current.versioning.current_version != current_version:
            previous_version = current.versioning.current_version

        updated = replace(
            current,
            schema_version=CURRENT_SCHEMA_VERSION,
            version=current_version,
            current_phase=phase,
            next_steps=[NextStep(id="next", description=next_step, priority=1)],
            context=UpdateContext(
                trigger="auto",
                command="reentry status update",
                git_info=git.to_git_info(),
                versioning_info=VersioningInfo(new_version=current_version),
            ),
            versioning=replace(
                current.versioning,
                current_version=current_version,
                previous_version=previous_version,
            ),
            last_updated=now_iso(),
            updated_by=git.author or "auto",
        )
        manager.update_status(config, lambda _: updated)

    @status_group.command("show")
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @config_option
    @project_option
    def status_show(as_json: bool, config_path: str, project: str):
        """Show current re-entry status summary."""
        _, config = load_scope(config_path, project)
        try:
            status = ReentryStatusManager().initialize(config)
        except StatusParseError as e:
            fail(str(e))

        if as_json:
            click.echo(render_json(status), nl=False)
            return

        milestone = f"{status.milestone.title} ({status.milestone.id})" if status.milestone else "—"
        git_info = status.context.git_info

        click.echo("Re-entry Status Summary")
        click.echo("=" * 40)
        click.echo(f"  Version:    {status.version}")
        click.echo(f"  Phase:      {status.current_phase}")
        click.echo(f"  Branch:     {git_info.branch or '—'}")
        click.echo(f"  Commit:     {git_info.commit or '—'}")
        click.echo(f"  Milestone:  {milestone}")
        click.echo(f"  Next step:  {status.next_micro_step or '—'}")
        click.echo(f"  Updated:    {status.last_updated[:19]}")
        click.echo(f"  Roadmap:    {status.roadmap_file}")

    @status_group.command("sync")
    @config_option
    @project_option
    @migrate_option
    def status_sync(config_path: str, project: str, migrate: bool):
        """Sync status to files, GitHub and Obsidian (idempotent).

        Remote failures are reported and skipped unless failHard is set.
        """
        _, config = load_scope(config_path, project)

        validation = validate_config(config)
        if not validation.valid:
            for error in validation.errors:
                click.echo(f"Error: {error}", err=True)
            sys.exit(1)

        manager = ReentryStatusManager()
        try:
            manager.initialize(config, migrate=migrate)
            results = manager.sync_all(config)
        except Exception as e:
            fail(f"Sync failed: {e}")

        for result in results:
            if not result.success:
                click.echo(f"  {result.target}: failed ({result.error.message})", err=True)
            elif result.skipped:
                click.echo(f"  {result.target}: skipped ({result.details.get('reason')})")
            elif result.changed:
                click.echo(f"  {result.target}: published")
            else:
                click.echo(f"  {result.target}: ok")
        click.echo("Re-entry sync complete")
