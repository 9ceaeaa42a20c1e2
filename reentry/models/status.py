"""
Status model - the canonical re-entry record.

reentry.status.json is the source of truth.
REENTRY.md is a generated mirror for humans.

Status tracks:
- Current phase and next micro-step
- Active roadmap milestone
- Milestones, blockers, risks, dependencies
- Versioning and sync bookkeeping

Serialization uses the camelCase keys of the on-disk format. Optional fields
set to None are omitted from the serialized dict.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional


SchemaVersion = Literal["1.0", "1.1"]
ProjectPhase = Literal["planning", "development", "testing", "staging", "production", "maintenance"]
Trigger = Literal["manual", "postVersion", "postRelease", "auto"]

CURRENT_SCHEMA_VERSION = "1.1"
LEGACY_SCHEMA_VERSION = "1.0"

PHASES = ("planning", "development", "testing", "staging", "production", "maintenance")
TRIGGERS = ("manual", "postVersion", "postRelease", "auto")
VERSION_TYPES = ("patch", "minor", "major")

EPOCH_ISO = "1970-01-01T00:00:00.000Z"


def now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _non_empty_str(value: Any, fallback: str) -> str:
    return value if isinstance(value, str) and value.strip() else fallback


def _list_of(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass
class GitInfo:
    """Git HEAD info captured with an update."""
    branch: str = ""
    commit: str = ""
    author: str = ""
    timestamp: str = EPOCH_ISO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch": self.branch,
            "commit": self.commit,
            "author": self.author,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GitInfo":
        return cls(
            branch=data.get("branch", ""),
            commit=data.get("commit", ""),
            author=data.get("author", ""),
            timestamp=data.get("timestamp", EPOCH_ISO),
        )


@dataclass
class VersioningInfo:
    """Version change that triggered an update, if any."""
    version_type: Optional[str] = None
    old_version: Optional[str] = None
    new_version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "versionType": self.version_type,
            "oldVersion": self.old_version,
            "newVersion": self.new_version,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersioningInfo":
        return cls(
            version_type=data.get("versionType"),
            old_version=data.get("oldVersion"),
            new_version=data.get("newVersion"),
        )


@dataclass
class UpdateContext:
    """Why and by what the status was last updated."""
    trigger: Trigger = "manual"
    command: Optional[str] = None
    options: Optional[Dict[str, Any]] = None
    git_info: GitInfo = field(default_factory=GitInfo)
    versioning_info: VersioningInfo = field(default_factory=VersioningInfo)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "trigger": self.trigger,
            "command": self.command,
            "options": self.options,
            "gitInfo": self.git_info.to_dict(),
            "versioningInfo": self.versioning_info.to_dict(),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateContext":
        git_info = data.get("gitInfo")
        versioning_info = data.get("versioningInfo")
        return cls(
            trigger=data.get("trigger", "manual"),
            command=data.get("command"),
            options=data.get("options"),
            git_info=GitInfo.from_dict(git_info) if isinstance(git_info, dict) else GitInfo(),
            versioning_info=(
                VersioningInfo.from_dict(versioning_info)
                if isinstance(versioning_info, dict) else VersioningInfo()
            ),
        )


@dataclass
class MilestoneLink:
    """Pointer to the active milestone in ROADMAP.md."""
    id: str
    title: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["MilestoneLink"]:
        """Build a link, or None when data has no string id."""
        if not isinstance(data, dict) or not isinstance(data.get("id"), str):
            return None
        milestone_id = data["id"]
        return cls(id=milestone_id, title=_non_empty_str(data.get("title"), milestone_id))


@dataclass
class Milestone:
    id: str
    title: str
    description: str = ""
    status: str = "pending"  # pending, in-progress, completed, blocked
    due_date: Optional[str] = None
    completed_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "dueDate": self.due_date,
            "completedDate": self.completed_date,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Milestone":
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=data.get("status", "pending"),
            due_date=data.get("dueDate"),
            completed_date=data.get("completedDate"),
        )


@dataclass
class Blocker:
    id: str
    description: str
    severity: str = "medium"  # low, medium, high, critical
    created: str = EPOCH_ISO
    assigned_to: Optional[str] = None
    resolved: Optional[bool] = None
    resolution_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "description": self.description,
            "severity": self.severity,
            "created": self.created,
            "assignedTo": self.assigned_to,
            "resolved": self.resolved,
            "resolutionDate": self.resolution_date,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Blocker":
        return cls(
            id=data.get("id", ""),
            description=data.get("description", ""),
            severity=data.get("severity", "medium"),
            created=data.get("created", EPOCH_ISO),
            assigned_to=data.get("assignedTo"),
            resolved=data.get("resolved"),
            resolution_date=data.get("resolutionDate"),
        )


@dataclass
class NextStep:
    id: str
    description: str
    priority: int = 1
    estimated_effort: Optional[str] = None
    dependencies: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "description": self.description,
            "priority": self.priority,
            "estimatedEffort": self.estimated_effort,
            "dependencies": self.dependencies,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NextStep":
        return cls(
            id=data.get("id", ""),
            description=data.get("description", ""),
            priority=data.get("priority", 1),
            estimated_effort=data.get("estimatedEffort"),
            dependencies=data.get("dependencies"),
        )


@dataclass
class Risk:
    id: str
    description: str
    probability: str = "low"  # low, medium, high
    impact: str = "low"  # low, medium, high
    mitigation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "probability": self.probability,
            "impact": self.impact,
            "mitigation": self.mitigation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Risk":
        return cls(
            id=data.get("id", ""),
            description=data.get("description", ""),
            probability=data.get("probability", "low"),
            impact=data.get("impact", "low"),
            mitigation=data.get("mitigation", ""),
        )


@dataclass
class Dependency:
    id: str
    name: str
    type: str = "internal"  # internal, external, service
    status: str = "healthy"  # healthy, degraded, down
    version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "version": self.version,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dependency":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            type=data.get("type", "internal"),
            status=data.get("status", "healthy"),
            version=data.get("version"),
        )


@dataclass
class Versioning:
    current_version: str = "0.0.0"
    previous_version: str = "0.0.0"
    version_type: str = "patch"
    release_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "currentVersion": self.current_version,
            "previousVersion": self.previous_version,
            "versionType": self.version_type,
            "releaseDate": self.release_date,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Versioning":
        return cls(
            current_version=data.get("currentVersion", ""),
            previous_version=data.get("previousVersion", ""),
            version_type=data.get("versionType", "patch"),
            release_date=data.get("releaseDate"),
        )


@dataclass
class PublishedHashes:
    """Hashes of the last bodies published to each remote target."""
    github_issue_body_sha256: Optional[str] = None
    obsidian_note_body_sha256: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "githubIssueBodySha256": self.github_issue_body_sha256,
            "obsidianNoteBodySha256": self.obsidian_note_body_sha256,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PublishedHashes":
        return cls(
            github_issue_body_sha256=data.get("githubIssueBodySha256"),
            obsidian_note_body_sha256=data.get("obsidianNoteBodySha256"),
        )


@dataclass
class SyncMetadata:
    last_sync_attempt: str = EPOCH_ISO
    last_successful_sync: str = EPOCH_ISO
    github_issue_id: Optional[int] = None
    github_issue_url: Optional[str] = None
    obsidian_note_path: Optional[str] = None
    published: Optional[PublishedHashes] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "lastSyncAttempt": self.last_sync_attempt,
            "lastSuccessfulSync": self.last_successful_sync,
            "githubIssueId": self.github_issue_id,
            "githubIssueUrl": self.github_issue_url,
            "obsidianNotePath": self.obsidian_note_path,
            "published": self.published.to_dict() if self.published is not None else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncMetadata":
        published = data.get("published")
        return cls(
            last_sync_attempt=data.get("lastSyncAttempt", EPOCH_ISO),
            last_successful_sync=data.get("lastSuccessfulSync", EPOCH_ISO),
            github_issue_id=data.get("githubIssueId"),
            github_issue_url=data.get("githubIssueUrl"),
            obsidian_note_path=data.get("obsidianNotePath"),
            published=PublishedHashes.from_dict(published) if isinstance(published, dict) else None,
        )


@dataclass
class Status:
    """Canonical re-entry status for one project scope.

    Schema 1.1 added the milestone link and roadmap_file. Schema 1.0 records
    load with milestone=None and a computed roadmap_file.
    """
    schema_version: SchemaVersion = CURRENT_SCHEMA_VERSION
    version: str = "0.0.0"
    last_updated: str = EPOCH_ISO
    updated_by: str = "unknown"
    context: UpdateContext = field(default_factory=UpdateContext)

    # Roadmap linkage
    milestone: Optional[MilestoneLink] = None
    roadmap_file: str = ""

    current_phase: ProjectPhase = "planning"
    milestones: List[Milestone] = field(default_factory=list)
    blockers: List[Blocker] = field(default_factory=list)
    next_steps: List[NextStep] = field(default_factory=list)
    risks: List[Risk] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)

    versioning: Versioning = field(default_factory=Versioning)
    sync_metadata: SyncMetadata = field(default_factory=SyncMetadata)

    @property
    def next_micro_step(self) -> Optional[str]:
        """Description of the first next step, if any."""
        if not self.next_steps:
            return None
        return self.next_steps[0].description

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "version": self.version,
            "lastUpdated": self.last_updated,
            "updatedBy": self.updated_by,
            "context": self.context.to_dict(),
            "milestone": self.milestone.to_dict() if self.milestone else None,
            "roadmapFile": self.roadmap_file,
            "currentPhase": self.current_phase,
            "milestones": [m.to_dict() for m in self.milestones],
            "blockers": [b.to_dict() for b in self.blockers],
            "nextSteps": [s.to_dict() for s in self.next_steps],
            "risks": [r.to_dict() for r in self.risks],
            "dependencies": [d.to_dict() for d in self.dependencies],
            "versioning": self.versioning.to_dict(),
            "syncMetadata": self.sync_metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_roadmap_file: str = "") -> "Status":
        """Tolerant load; missing structures become safe defaults.

        Does not migrate: a 1.0 record stays schema 1.0 in memory.
        """
        context = data.get("context")
        versioning = data.get("versioning")
        sync_metadata = data.get("syncMetadata")

        return cls(
            schema_version=(
                CURRENT_SCHEMA_VERSION
                if data.get("schemaVersion") == CURRENT_SCHEMA_VERSION
                else LEGACY_SCHEMA_VERSION
            ),
            version=_non_empty_str(data.get("version"), "0.0.0"),
            last_updated=_non_empty_str(data.get("lastUpdated"), EPOCH_ISO),
            updated_by=_non_empty_str(data.get("updatedBy"), "unknown"),
            context=UpdateContext.from_dict(context) if isinstance(context, dict) else UpdateContext(),
            milestone=MilestoneLink.from_dict(data.get("milestone")),
            roadmap_file=_non_empty_str(data.get("roadmapFile"), default_roadmap_file),
            current_phase=data.get("currentPhase") or "planning",
            milestones=[Milestone.from_dict(m) for m in _list_of(data, "milestones")],
            blockers=[Blocker.from_dict(b) for b in _list_of(data, "blockers")],
            next_steps=[NextStep.from_dict(s) for s in _list_of(data, "nextSteps")],
            risks=[Risk.from_dict(r) for r in _list_of(data, "risks")],
            dependencies=[Dependency.from_dict(d) for d in _list_of(data, "dependencies")],
            versioning=(
                Versioning.from_dict(versioning)
                if isinstance(versioning, dict) else Versioning(current_version="", previous_version="")
            ),
            sync_metadata=(
                SyncMetadata.from_dict(sync_metadata)
                if isinstance(sync_metadata, dict) else SyncMetadata()
            ),
        )
