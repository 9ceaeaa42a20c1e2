"""
SyncResult - outcome of one sync target attempt.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional


SyncTarget = Literal["files", "github", "obsidian"]

SYNC_TARGETS = ("files", "github", "obsidian")


@dataclass
class SyncError:
    """Structured failure attached to a SyncResult."""
    message: str
    recoverable: bool
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"message": self.message, "recoverable": self.recoverable}
        if self.code is not None:
            data["code"] = self.code
        return data


@dataclass
class SyncResult:
    """Result of syncing a single target.

    Attributes:
        target: "files", "github" or "obsidian"
        success: Whether the target is now up to date
        timestamp: ISO time the attempt finished
        duration: Milliseconds spent
        details: Target-specific details (skipped/created/updated, ids, hashes)
        error: Set when success is False
    """
    target: SyncTarget
    success: bool
    timestamp: str
    duration: int = 0
    details: Dict[str, Any] = field(default_factory=dict)
    error: Optional[SyncError] = None

    @property
    def skipped(self) -> bool:
        return bool(self.details.get("skipped"))

    @property
    def changed(self) -> bool:
        """True when the remote resource was created or updated."""
        return bool(self.details.get("created") or self.details.get("updated"))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "target": self.target,
            "success": self.success,
            "timestamp": self.timestamp,
            "duration": self.duration,
        }
        if self.details:
            data["details"] = self.details
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data
