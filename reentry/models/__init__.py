"""
Re-entry models - data structures for status tracking.

This module provides dataclasses for:
- The canonical Status record and its nested records
- Sync results reported per target
"""

from reentry.models.status import (
    CURRENT_SCHEMA_VERSION,
    EPOCH_ISO,
    LEGACY_SCHEMA_VERSION,
    PHASES,
    TRIGGERS,
    VERSION_TYPES,
    Blocker,
    Dependency,
    GitInfo,
    Milestone,
    MilestoneLink,
    NextStep,
    PublishedHashes,
    Risk,
    Status,
    SyncMetadata,
    UpdateContext,
    Versioning,
    VersioningInfo,
    now_iso,
)
from reentry.models.sync_result import SYNC_TARGETS, SyncError, SyncResult

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "EPOCH_ISO",
    "LEGACY_SCHEMA_VERSION",
    "PHASES",
    "TRIGGERS",
    "VERSION_TYPES",
    "Blocker",
    "Dependency",
    "GitInfo",
    "Milestone",
    "MilestoneLink",
    "NextStep",
    "PublishedHashes",
    "Risk",
    "Status",
    "SyncMetadata",
    "UpdateContext",
    "Versioning",
    "VersioningInfo",
    "now_iso",
    "SYNC_TARGETS",
    "SyncError",
    "SyncResult",
]
