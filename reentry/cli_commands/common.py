"""
Shared CLI helpers: common options and root config loading.
"""

import os
import sys
from typing import Any, Dict, NoReturn, Optional, Tuple

import click
import yaml

from reentry.config import ReentryConfig, load_config, load_root_config
from reentry.workspaces import UnknownProjectError, validate_project

DEFAULT_CONFIG_FILE = "versioning.config.json"

config_option = click.option(
    "-c", "--config", "config_path",
    default=DEFAULT_CONFIG_FILE, show_default=True,
    help="Root config file (.json or .yaml)",
)
project_option = click.option(
    "-p", "--project", default=None,
    help="Project scope (separate ROADMAP/REENTRY/status per project)",
)
migrate_option = click.option(
    "--migrate", is_flag=True,
    help="Rewrite a schema 1.0 status file as 1.1 (no semantic changes)",
)


def fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def read_root_config(config_path: str) -> Dict[str, Any]:
    try:
        return load_root_config(config_path)
    except FileNotFoundError:
        fail(f"Config file not found: {config_path}")
    except (ValueError, yaml.YAMLError) as e:
        fail(f"Could not read {config_path}: {e}")


def config_root(config_path: str) -> str:
    """Repository root: the directory holding the root config."""
    return os.path.dirname(config_path) or "."


def check_project(config_path: str, project: Optional[str]) -> None:
    """Fail unless project is unset or names an existing workspace."""
    try:
        validate_project(config_root(config_path), project)
    except UnknownProjectError as e:
        fail(str(e))


def load_scope(config_path: str, project: Optional[str]) -> Tuple[Dict[str, Any], ReentryConfig]:
    """Root config and the resolved reentry config for a project scope."""
    root_config = read_root_config(config_path)
    check_project(config_path, project)
    return root_config, load_config(root_config, project)
