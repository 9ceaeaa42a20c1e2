"""
Bump Command - Branch-aware version bump.

Prints the next version and tag for the current (or given) branch.
With --record the new version is written to the re-entry status through
the postVersion hook.
"""

import logging
import os

import click

from reentry.branch_aware import BranchAwareManager, BranchConfigError, render_tag
from reentry.cli_commands.common import (
    DEFAULT_CONFIG_FILE,
    check_project,
    config_option,
    fail,
    project_option,
    read_root_config,
)
from reentry.config import load_branch_awareness, load_config
from reentry.files import FileManager
from reentry.hooks import ReentryHooks
from reentry.sync import StatusParseError

logger = logging.getLogger(__name__)


def register(cli):
    """Register bump command with CLI."""

    @cli.command("bump")
    @click.argument("release_type", type=click.Choice(["patch", "minor", "major"]))
    @click.option("--branch", default=None, help="Target branch (defaults to the current git branch)")
    @click.option("--build", type=click.IntRange(min=0), default=None, help="Explicit build number")
    @click.option("--current", "current_version", default=None,
                  help="Version to bump from (defaults to the recorded status version)")
    @click.option("--record", is_flag=True, help="Record the new version in the re-entry status")
    @config_option
    @project_option
    def bump(release_type: str, branch: str, build: int, current_version: str, record: bool,
             config_path: str, project: str):
        """Compute the next branch-aware version.

        Examples:
            reentry bump patch
            reentry bump minor --branch develop --build 396
            reentry bump patch --current 1.8.172-dev.395 --branch develop
        """
        if os.path.exists(config_path) or config_path != DEFAULT_CONFIG_FILE:
            root_config = read_root_config(config_path)
        else:
            root_config = {}

        check_project(config_path, project)
        config = load_config(root_config, project)

        if current_version is None:
            try:
                status = FileManager().load_status(config)
            except StatusParseError as e:
                fail(str(e))
            if status is None:
                current_version = "0.0.0"
            else:
                current_version = status.versioning.current_version or status.version

        manager = BranchAwareManager(load_branch_awareness(root_config))
        branch = branch or manager.get_current_branch()
        logger.debug(f"Bumping {current_version} ({release_type}) on {branch}")

        try:
            branch_config = manager.detect_branch_config(branch)
            version = manager.bump_version_branch_aware(
                current_version, release_type, branch_config, branch, build
            )
        except (BranchConfigError, ValueError) as e:
            fail(str(e))

        click.echo(f"Branch:  {branch} ({manager.match_branch_pattern(branch) or 'default'})")
        click.echo(f"Version: {version}")
        click.echo(f"Tag:     {render_tag(branch_config.tag_format, version)}")

        sync_files = manager.get_sync_files(branch_config)
        if sync_files:
            click.echo(f"Sync:    {', '.join(sync_files)}")

        if record:
            options = {"branch": branch}
            if project:
                options["project"] = project
            status = ReentryHooks().post_version(root_config, release_type, version, options)
            if status is None:
                click.echo("Re-entry status not updated (hook disabled or failed)", err=True)
            else:
                click.echo(f"Recorded {version} in re-entry status")
