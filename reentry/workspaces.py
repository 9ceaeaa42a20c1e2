"""
Workspace project discovery for monorepos.

A project scope is only accepted when it names an existing workspace app or
package: a directory under apps/ (one or two levels deep) or packages/ (one
level), matched by directory name, by package.json name, or by the last
segment of a scoped package.json name.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Set

from reentry.config import canonical_project_key
from reentry.constants import PROJECTS_DIRNAME, REENTRY_STATUS_DIRNAME

logger = logging.getLogger(__name__)

# Directories never treated as workspaces
IGNORED_DIRS = {"node_modules", "dist", ".git", "archive"}

# (base directory, depth) pairs scanned for workspaces
WORKSPACE_GLOBS = [("apps", 1), ("apps", 2), ("packages", 1)]

MAX_SUGGESTIONS = 40


class UnknownProjectError(ValueError):
    """Raised when a project scope matches no workspace app or package."""

    def __init__(self, project: str, suggestions: List[str]):
        self.project = project
        self.suggestions = suggestions
        shown = ", ".join(suggestions[:MAX_SUGGESTIONS])
        if len(suggestions) > MAX_SUGGESTIONS:
            shown += ", …"
        super().__init__(
            f"Unknown project scope: '{project}'. Expected an existing workspace "
            f"app/package (try one of: {shown})"
        )


@dataclass
class WorkspaceProjects:
    """Slugs (canonical keys) and package names found in a repo."""
    slugs: Set[str] = field(default_factory=set)
    names: Set[str] = field(default_factory=set)

    def matches(self, project: str) -> bool:
        canonical = canonical_project_key(project)
        return canonical in self.slugs or project.strip() in self.names


def _subdirs(path: str) -> List[str]:
    try:
        entries = sorted(os.listdir(path))
    except OSError:
        return []
    return [
        os.path.join(path, name)
        for name in entries
        if name not in IGNORED_DIRS and os.path.isdir(os.path.join(path, name))
    ]


def _workspace_dirs(root_dir: str) -> List[str]:
    found = []
    for base, depth in WORKSPACE_GLOBS:
        level = [os.path.join(root_dir, base)]
        for _ in range(depth):
            level = [child for parent in level for child in _subdirs(parent)]
        found.extend(level)
    return found


def _package_name(workspace_dir: str) -> Optional[str]:
    manifest = os.path.join(workspace_dir, "package.json")
    if not os.path.isfile(manifest):
        return None
    try:
        with open(manifest, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug(f"Skipping unreadable {manifest}: {e}")
        return None
    name = data.get("name") if isinstance(data, dict) else None
    if isinstance(name, str) and name.strip():
        return name.strip()
    return None


def discover_workspace_projects(root_dir: str = ".") -> WorkspaceProjects:
    """
    Scan apps/*, apps/*/* and packages/* under root_dir.

    Args:
        root_dir: Repository root (the directory holding the root config)

    Returns:
        WorkspaceProjects with directory slugs, package.json names, and the
        last segment of each package name as an extra slug
    """
    projects = WorkspaceProjects()
    for workspace_dir in _workspace_dirs(root_dir):
        slug = canonical_project_key(os.path.basename(workspace_dir))
        if slug:
            projects.slugs.add(slug)

        name = _package_name(workspace_dir)
        if name:
            projects.names.add(name)
            short = canonical_project_key(name)
            if short:
                projects.slugs.add(short)

    logger.debug(f"Found {len(projects.slugs)} workspace projects under {root_dir}")
    return projects


def validate_project(root_dir: str, project: Optional[str]) -> Optional[str]:
    """
    Resolve a user-supplied project scope against the workspace.

    Returns:
        The canonical project key, or None when no project was given

    Raises:
        UnknownProjectError: If the project matches no workspace
    """
    canonical = canonical_project_key(project)
    if canonical is None:
        return None

    projects = discover_workspace_projects(root_dir)
    if not projects.matches(project):
        raise UnknownProjectError(project.strip(), sorted(projects.slugs))
    return canonical


def find_stale_project_roadmaps(root_dir: str = ".") -> Optional[List[str]]:
    """
    Project scope directories under .versioning/projects with no workspace.

    Returns:
        Sorted stale directory names, or None when no project roadmaps exist
    """
    projects_dir = os.path.join(root_dir, REENTRY_STATUS_DIRNAME, PROJECTS_DIRNAME)
    if not os.path.isdir(projects_dir):
        return None

    slugs = discover_workspace_projects(root_dir).slugs
    return sorted(
        name for name in os.listdir(projects_dir)
        if os.path.isdir(os.path.join(projects_dir, name)) and name not in slugs
    )
