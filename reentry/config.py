"""
Re-entry Status Configuration.

Resolved from the root versioning config object, never persisted on its own.

Config source precedence:
1. extensionConfig["reentry-status"]
2. reentryStatus (legacy top-level key)

Per-project overrides live under `projects.<key>` of the source and are
deep-merged over the base before defaults are applied:
- hooks, files, template: merged key by key
- github, obsidian: replaced wholesale
"""

import json
import logging
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from reentry.branch_aware import BranchAwarenessConfig, create_default_branch_awareness_config
from reentry.constants import (
    EXTENSION_NAME,
    LEGACY_CONFIG_KEY,
    PROJECTS_DIRNAME,
    REENTRY_STATUS_DIRNAME,
    REENTRY_STATUS_JSON_FILENAME,
    REENTRY_STATUS_MD_FILENAME,
    ROADMAP_MD_FILENAME,
)

logger = logging.getLogger(__name__)

# Override sections merged key by key rather than replaced
KEYWISE_MERGE_SECTIONS = ("hooks", "files", "template")


@dataclass
class HooksConfig:
    post_version: bool = True
    post_release: bool = False


@dataclass
class FilesConfig:
    json_path: str
    markdown_path: str


@dataclass
class GitHubIssueConfig:
    title: str = ""
    # Kept as given so validation can report a non-list value
    labels: Any = None
    assignees: Optional[List[str]] = None
    template: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GitHubIssueConfig":
        return cls(
            title=data.get("title", ""),
            labels=data.get("labels"),
            assignees=data.get("assignees"),
            template=data.get("template"),
        )


@dataclass
class GitHubConfig:
    """GitHub Issue sync target."""
    enabled: bool = False
    owner: str = ""
    repo: str = ""
    issue: GitHubIssueConfig = field(default_factory=GitHubIssueConfig)
    token: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GitHubConfig":
        issue = data.get("issue")
        auth = data.get("auth")
        return cls(
            enabled=bool(data.get("enabled", False)),
            owner=data.get("owner", ""),
            repo=data.get("repo", ""),
            issue=GitHubIssueConfig.from_dict(issue) if isinstance(issue, dict) else GitHubIssueConfig(),
            token=auth.get("token", "") if isinstance(auth, dict) else "",
        )


@dataclass
class ObsidianConfig:
    """Obsidian note sync target."""
    enabled: bool = False
    vault_path: str = ""
    note_path: str = ""
    template: Optional[str] = None
    frontmatter: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObsidianConfig":
        frontmatter = data.get("frontmatter")
        return cls(
            enabled=bool(data.get("enabled", False)),
            vault_path=data.get("vaultPath", ""),
            note_path=data.get("notePath", ""),
            template=data.get("template"),
            frontmatter=frontmatter if isinstance(frontmatter, dict) else None,
        )


@dataclass
class TemplateConfig:
    include_sections: List[str] = field(default_factory=list)
    exclude_sections: List[str] = field(default_factory=list)
    custom_sections: Optional[List[Dict[str, Any]]] = None


@dataclass
class ReentryConfig:
    """Resolved re-entry status configuration for one project scope."""
    files: FilesConfig
    enabled: bool = True
    auto_sync: bool = True
    fail_hard: bool = False
    hooks: HooksConfig = field(default_factory=HooksConfig)
    github: Optional[GitHubConfig] = None
    obsidian: Optional[ObsidianConfig] = None
    template: Optional[TemplateConfig] = None

    @property
    def github_enabled(self) -> bool:
        return self.github is not None and self.github.enabled

    @property
    def obsidian_enabled(self) -> bool:
        return self.obsidian is not None and self.obsidian.enabled


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def canonical_project_key(project: Optional[str]) -> Optional[str]:
    """Reduce a project identifier to a stable lowercase slug.

    "@scope/trader", "apps/trader" and "apps\\trader" all become "trader".

    Returns:
        The slug, or None when nothing usable remains
    """
    if project is None:
        return None

    raw = str(project).strip()
    segments = [s for s in re.split(r"[\\/]", raw) if s.strip()]
    if not segments:
        return None

    key = re.sub(r"[^a-z0-9._-]", "-", segments[-1].strip().lower())
    # "." and ".." must not escape the projects directory
    key = key.strip(".")
    return key or None


def resolve_config_source(root_config: Any) -> Dict[str, Any]:
    """Pick the raw reentry config section out of the root config.

    Returns:
        The first dict found in precedence order, or {}
    """
    if not isinstance(root_config, dict):
        return {}

    extension_config = root_config.get("extensionConfig")
    if isinstance(extension_config, dict):
        section = extension_config.get(EXTENSION_NAME)
        if isinstance(section, dict):
            return section

    legacy = root_config.get(LEGACY_CONFIG_KEY)
    if isinstance(legacy, dict):
        return legacy

    return {}


def scope_dir(project_key: Optional[str] = None) -> str:
    """Directory holding the status files for a project scope."""
    if project_key:
        return f"{REENTRY_STATUS_DIRNAME}/{PROJECTS_DIRNAME}/{project_key}"
    return REENTRY_STATUS_DIRNAME


def roadmap_path(config: "ReentryConfig") -> str:
    """ROADMAP.md beside the status JSON of a scope."""
    parent = posixpath.dirname(config.files.json_path.replace("\\", "/"))
    return posixpath.join(parent, ROADMAP_MD_FILENAME) if parent else ROADMAP_MD_FILENAME


def default_files_config(project_key: Optional[str] = None) -> FilesConfig:
    base = scope_dir(project_key)
    return FilesConfig(
        json_path=f"{base}/{REENTRY_STATUS_JSON_FILENAME}",
        markdown_path=f"{base}/{REENTRY_STATUS_MD_FILENAME}",
    )


def _find_project_override(source: Dict[str, Any], project_key: str) -> Optional[Dict[str, Any]]:
    projects = source.get("projects")
    if not isinstance(projects, dict):
        return None

    override = projects.get(project_key)
    if isinstance(override, dict):
        return override

    # Keys may be written as package names or paths
    for name, candidate in projects.items():
        if isinstance(candidate, dict) and canonical_project_key(name) == project_key:
            return candidate
    return None


def _merge_override(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if key in KEYWISE_MERGE_SECTIONS and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def load_config(root_config: Any, project: Optional[str] = None) -> ReentryConfig:
    """Resolve the config for a project scope (or the unscoped default).

    Args:
        root_config: Parsed root versioning config
        project: Project identifier, canonicalized before lookup

    Returns:
        Fully defaulted ReentryConfig
    """
    source = resolve_config_source(root_config)
    project_key = canonical_project_key(project)

    partial = {k: v for k, v in source.items() if k != "projects"}
    if project_key:
        override = _find_project_override(source, project_key)
        if override is not None:
            logger.debug(f"Applying project override for '{project_key}'")
            partial = _merge_override(partial, override)

    return merge_with_defaults(partial, project_key)


def merge_with_defaults(partial: Dict[str, Any], project_key: Optional[str] = None) -> ReentryConfig:
    """Fill every missing field of a raw config section with its default."""
    hooks = partial.get("hooks") if isinstance(partial.get("hooks"), dict) else {}
    files = partial.get("files") if isinstance(partial.get("files"), dict) else {}
    github = partial.get("github")
    obsidian = partial.get("obsidian")
    template = partial.get("template")

    defaults = default_files_config(project_key)

    return ReentryConfig(
        enabled=partial.get("enabled", True),
        auto_sync=partial.get("autoSync", True),
        fail_hard=partial.get("failHard", False),
        hooks=HooksConfig(
            post_version=hooks.get("postVersion", True),
            post_release=hooks.get("postRelease", False),
        ),
        files=FilesConfig(
            json_path=files.get("jsonPath", defaults.json_path),
            markdown_path=files.get("markdownPath", defaults.markdown_path),
        ),
        github=GitHubConfig.from_dict(github) if isinstance(github, dict) else None,
        obsidian=ObsidianConfig.from_dict(obsidian) if isinstance(obsidian, dict) else None,
        template=(
            TemplateConfig(
                include_sections=template.get("includeSections", []),
                exclude_sections=template.get("excludeSections", []),
                custom_sections=template.get("customSections"),
            )
            if isinstance(template, dict) else None
        ),
    )


def validate_config(config: ReentryConfig) -> ValidationResult:
    """Check required fields of every enabled target.

    Never raises; callers decide what to do with the errors.
    """
    errors: List[str] = []

    if not _is_non_empty_str(config.files.json_path) or not _is_non_empty_str(config.files.markdown_path):
        errors.append("files.jsonPath and files.markdownPath must be non-empty strings")

    if config.github_enabled:
        github = config.github
        if not _is_non_empty_str(github.owner):
            errors.append("github.owner is required when github.enabled is true")
        if not _is_non_empty_str(github.repo):
            errors.append("github.repo is required when github.enabled is true")
        if not _is_non_empty_str(github.issue.title):
            errors.append("github.issue.title is required when github.enabled is true")
        if not isinstance(github.issue.labels, list):
            errors.append("github.issue.labels must be an array when github.enabled is true")
        if not _is_non_empty_str(github.token):
            errors.append("github.auth.token is required when github.enabled is true")

    if config.obsidian_enabled:
        obsidian = config.obsidian
        if not _is_non_empty_str(obsidian.vault_path):
            errors.append("obsidian.vaultPath is required when obsidian.enabled is true")
        if not _is_non_empty_str(obsidian.note_path):
            errors.append("obsidian.notePath is required when obsidian.enabled is true")

    return ValidationResult(valid=not errors, errors=errors)


def get_sync_targets(config: ReentryConfig) -> List[str]:
    """Enabled sync targets, files first. Empty when the extension is off."""
    if not config.enabled:
        return []

    targets = ["files"]
    if config.github_enabled:
        targets.append("github")
    if config.obsidian_enabled:
        targets.append("obsidian")
    return targets


def load_root_config(path: str) -> Dict[str, Any]:
    """Read the root versioning config file (.json, .yaml or .yml).

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file does not hold a mapping
    """
    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_file, encoding="utf-8") as f:
        if config_file.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def load_branch_awareness(root_config: Any) -> BranchAwarenessConfig:
    """Branch awareness settings from root_config["branchAwareness"], or defaults."""
    raw = root_config.get("branchAwareness") if isinstance(root_config, dict) else None
    if not isinstance(raw, dict):
        return create_default_branch_awareness_config()
    return BranchAwarenessConfig.from_dict(raw)
