"""
Branch-aware versioning.

Maps a git branch to a version policy:
- main        -> 1.8.172              (semantic bump)
- develop     -> 1.8.172-dev.395      (build number only)
- feature/*   -> 1.8.172-feature/x.3  (build number only)
- hotfix/*    -> 1.8.172-hotfix/y.1   (build number only)

Non-production bumps never move the base version. Build numbers either
come from the caller or from a BuildCounters map owned by the manager.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Optional

from reentry import git_ops

logger = logging.getLogger(__name__)

VersionFormat = Literal["semantic", "dev", "feature", "hotfix"]
BumpStrategy = Literal["semantic", "dev-build", "feature-branch", "hotfix"]

RELEASE_TYPES = ("patch", "minor", "major")

SEMVER_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z./_-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


class BranchConfigError(Exception):
    """Raised when no branch config applies, not even the default branch's."""

    def __init__(self, message: str, branch: str = ""):
        self.message = message
        self.branch = branch
        super().__init__(message)


@dataclass
class BranchConfig:
    version_format: VersionFormat = "semantic"
    tag_format: str = "v{version}"
    sync_files: List[str] = field(default_factory=list)
    environment: str = "production"
    bump_strategy: BumpStrategy = "semantic"

    def to_dict(self) -> dict:
        return {
            "versionFormat": self.version_format,
            "tagFormat": self.tag_format,
            "syncFiles": list(self.sync_files),
            "environment": self.environment,
            "bumpStrategy": self.bump_strategy,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BranchConfig":
        return cls(
            version_format=data.get("versionFormat", "semantic"),
            tag_format=data.get("tagFormat", "v{version}"),
            sync_files=list(data.get("syncFiles", [])),
            environment=data.get("environment", "production"),
            bump_strategy=data.get("bumpStrategy", "semantic"),
        )


@dataclass
class BranchAwarenessConfig:
    enabled: bool = False
    default_branch: str = "main"
    # Insertion order matters: first matching wildcard wins
    branches: Dict[str, BranchConfig] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "defaultBranch": self.default_branch,
            "branches": {name: bc.to_dict() for name, bc in self.branches.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BranchAwarenessConfig":
        branches = data.get("branches")
        if isinstance(branches, dict):
            parsed = {
                name: BranchConfig.from_dict(bc)
                for name, bc in branches.items()
                if isinstance(bc, dict)
            }
        else:
            parsed = create_default_branch_awareness_config().branches
        return cls(
            enabled=bool(data.get("enabled", False)),
            default_branch=data.get("defaultBranch", "main"),
            branches=parsed,
        )


def create_default_branch_awareness_config() -> BranchAwarenessConfig:
    """Default policy: main, develop, feature/* and hotfix/*."""
    return BranchAwarenessConfig(
        enabled=False,
        default_branch="main",
        branches={
            "main": BranchConfig(
                version_format="semantic",
                tag_format="v{version}",
                sync_files=["package.json", "version.production.json"],
                environment="production",
                bump_strategy="semantic",
            ),
            "develop": BranchConfig(
                version_format="dev",
                tag_format="v{version}",
                sync_files=["version.development.json"],
                environment="development",
                bump_strategy="dev-build",
            ),
            "feature/*": BranchConfig(
                version_format="feature",
                tag_format="v{version}",
                sync_files=["version.development.json"],
                environment="development",
                bump_strategy="feature-branch",
            ),
            "hotfix/*": BranchConfig(
                version_format="hotfix",
                tag_format="v{version}",
                sync_files=["version.development.json"],
                environment="development",
                bump_strategy="hotfix",
            ),
        },
    )


class BuildCounters:
    """Per-key build counters for one session.

    Counters start at 1 and advance after each use.
    """

    def __init__(self, initial: Optional[Dict[str, int]] = None):
        self._counters: Dict[str, int] = dict(initial or {})

    def next(self, key: str) -> int:
        value = self._counters.get(key, 1)
        self._counters[key] = value + 1
        return value

    def peek(self, key: str) -> int:
        return self._counters.get(key, 1)

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._counters.clear()
        else:
            self._counters.pop(key, None)

    def to_dict(self) -> Dict[str, int]:
        return dict(self._counters)


def extract_base_version(version: str) -> str:
    """Strip prerelease and build metadata: 1.8.172-dev.395 -> 1.8.172.

    Unparseable input is returned unchanged.
    """
    match = SEMVER_RE.match(version.strip())
    if not match:
        return version
    return f"{match.group('major')}.{match.group('minor')}.{match.group('patch')}"


def bump_semver(version: str, release_type: str) -> str:
    """Standard semver increment of a clean major.minor.patch version.

    Raises:
        ValueError: On an unknown release type or an unparseable version
    """
    if release_type not in RELEASE_TYPES:
        raise ValueError(f"Invalid release type: {release_type}. Must be one of {RELEASE_TYPES}")

    match = SEMVER_RE.match(version.strip())
    if not match:
        raise ValueError(f"Invalid semantic version: {version}")

    major, minor, patch = int(match.group("major")), int(match.group("minor")), int(match.group("patch"))
    if release_type == "major":
        return f"{major + 1}.0.0"
    if release_type == "minor":
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"


def render_tag(tag_format: str, version: str) -> str:
    """Substitute {version} into a tag format. Formats without it are literal."""
    if "{version}" not in tag_format:
        return tag_format
    return tag_format.replace("{version}", version)


def _pattern_to_regex(pattern: str) -> "re.Pattern[str]":
    parts = [re.escape(part) for part in pattern.split("*")]
    return re.compile("^" + ".*".join(parts) + "$")


def _check_build_number(build_number: Optional[int]) -> None:
    if build_number is None:
        return
    if isinstance(build_number, bool) or not isinstance(build_number, int) or build_number < 0:
        raise ValueError(f"Build number must be a non-negative integer, got {build_number!r}")


class BranchAwareManager:
    """Resolves branch policies and formats/bumps versions under them.

    Args:
        config: Branch awareness settings
        counters: Build counters; a fresh map per manager when omitted
        branch_resolver: Returns the current branch; defaults to git
    """

    def __init__(
        self,
        config: BranchAwarenessConfig,
        counters: Optional[BuildCounters] = None,
        branch_resolver: Optional[Callable[[], str]] = None,
    ):
        self.config = config
        self.counters = counters if counters is not None else BuildCounters()
        self._branch_resolver = branch_resolver or git_ops.get_current_branch

    def get_current_branch(self) -> str:
        branch = self._branch_resolver()
        return branch or "main"

    def match_branch_pattern(self, branch: str) -> Optional[str]:
        """Key of the branch config that applies to branch, if any.

        Exact keys win over wildcard keys; among wildcards the first in
        config order wins.
        """
        if branch in self.config.branches:
            return branch

        for pattern in self.config.branches:
            if "*" in pattern and _pattern_to_regex(pattern).match(branch):
                return pattern
        return None

    def detect_branch_config(self, target_branch: Optional[str] = None) -> BranchConfig:
        """Branch config for target_branch (or the current branch).

        Raises:
            BranchConfigError: If nothing matches and the default branch has no config
        """
        branch = target_branch or self.get_current_branch()

        key = self.match_branch_pattern(branch)
        if key is not None:
            logger.debug(f"Branch '{branch}' matched config '{key}'")
            return self.config.branches[key]

        default = self.config.branches.get(self.config.default_branch)
        if default is None:
            raise BranchConfigError(
                f"Default branch config not found for: {self.config.default_branch}",
                branch=branch,
            )
        logger.debug(f"Branch '{branch}' using default branch config '{self.config.default_branch}'")
        return default

    def format_version(
        self,
        base_version: str,
        branch_config: BranchConfig,
        branch: Optional[str] = None,
        build_number: Optional[int] = None,
    ) -> str:
        """Apply the branch's version format to a base version.

        Raises:
            ValueError: If build_number is negative or not an integer
        """
        _check_build_number(build_number)
        version_format = branch_config.version_format

        if version_format == "dev":
            build = build_number if build_number is not None else self.counters.next("dev")
            return f"{base_version}-dev.{build}"

        if version_format in ("feature", "hotfix"):
            branch = branch or self.get_current_branch()
            build = build_number if build_number is not None else self.counters.next(branch)
            return f"{base_version}-{branch}.{build}"

        return base_version

    def bump_version_branch_aware(
        self,
        current_version: str,
        release_type: str,
        branch_config: BranchConfig,
        branch: Optional[str] = None,
        build_number: Optional[int] = None,
    ) -> str:
        """Bump current_version under the branch's strategy.

        Only the semantic strategy moves major.minor.patch; the others keep
        the base and advance the build suffix.

        Raises:
            ValueError: On an invalid release type, version or build number
        """
        if release_type not in RELEASE_TYPES:
            raise ValueError(f"Invalid release type: {release_type}. Must be one of {RELEASE_TYPES}")
        _check_build_number(build_number)

        clean = extract_base_version(current_version)

        if branch_config.bump_strategy in ("dev-build", "feature-branch", "hotfix"):
            new_base = clean
        else:
            new_base = bump_semver(clean, release_type)

        return self.format_version(new_base, branch_config, branch, build_number)

    def is_enabled(self) -> bool:
        return self.config.enabled

    def get_sync_files(self, branch_config: BranchConfig) -> List[str]:
        return list(branch_config.sync_files)
