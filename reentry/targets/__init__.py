"""
Sync targets - publish the re-entry status outside the repository.

Each target renders its own body from the Status and REENTRY.md markdown,
hashes it, and skips remote calls when nothing changed since the last
publish. Targets report ids and hashes back; they never write Status.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reentry.models.status import Status
    from reentry.models.sync_result import SyncResult


class StatusSyncer(ABC):
    """Interface implemented by every remote sync target."""

    @abstractmethod
    def render_body(self, status: "Status", markdown: str) -> str:
        """Target-specific body published for status."""
        ...

    @abstractmethod
    def sync(self, status: "Status", markdown: str) -> "SyncResult":
        """Publish the rendered body if it changed."""
        ...
