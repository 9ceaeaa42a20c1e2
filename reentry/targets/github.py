"""
GitHub Issue sync target.

The status is published as the body of one living issue, found by its
exact title among open issues.

Checks, cheapest first:
1. Rendered body hash equals the last published hash -> skip, no API calls
2. Existing issue body equals the rendered body -> skip
3. Update the existing issue, or create it
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from reentry.config import GitHubConfig
from reentry.dirty import bodies_equal, sha256
from reentry.models.status import Status, now_iso
from reentry.models.sync_result import SyncResult
from reentry.targets import StatusSyncer

logger = logging.getLogger(__name__)

ISSUE_HEADER = "# Re-entry Status (living)\n\n"


@dataclass
class GitHubIssue:
    id: int  # issue number
    url: str
    title: str
    body: str


class GitHubClient(ABC):
    """Transport used by GitHubSyncAdapter. Non-2xx responses must raise."""

    @abstractmethod
    def find_issue_by_title(self, owner: str, repo: str, title: str) -> Optional[GitHubIssue]:
        ...

    @abstractmethod
    def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        labels: List[str],
        assignees: Optional[List[str]] = None,
    ) -> GitHubIssue:
        ...

    @abstractmethod
    def update_issue(
        self,
        owner: str,
        repo: str,
        issue_id: int,
        body: str,
        title: Optional[str] = None,
        labels: Optional[List[str]] = None,
        assignees: Optional[List[str]] = None,
    ) -> GitHubIssue:
        ...


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class GitHubSyncAdapter(StatusSyncer):
    """Publishes the status to a GitHub Issue through a GitHubClient."""

    def __init__(self, config: GitHubConfig, client: GitHubClient):
        self.config = config
        self.client = client

    def render_body(self, status: Status, markdown: str) -> str:
        # No timestamps: the body must only change when the status does
        return ISSUE_HEADER + markdown

    def _result(self, started: float, timestamp: str, **details) -> SyncResult:
        return SyncResult(
            target="github",
            success=True,
            timestamp=timestamp,
            duration=_elapsed_ms(started),
            details=details,
        )

    def sync(self, status: Status, markdown: str) -> SyncResult:
        started = time.monotonic()
        timestamp = now_iso()

        body = self.render_body(status, markdown)
        body_hash = sha256(body)

        published = status.sync_metadata.published
        if published is not None and published.github_issue_body_sha256 == body_hash:
            logger.debug("GitHub issue unchanged (hash), skipping")
            return self._result(started, timestamp, skipped=True, reason="unchanged (hash)")

        issue_config = self.config.issue
        labels = issue_config.labels if isinstance(issue_config.labels, list) else []

        existing = self.client.find_issue_by_title(self.config.owner, self.config.repo, issue_config.title)

        if existing is not None:
            if bodies_equal(existing.body, body):
                logger.debug(f"GitHub issue #{existing.id} unchanged (body), skipping")
                return self._result(started, timestamp, skipped=True, reason="unchanged (body)")

            self.client.update_issue(
                self.config.owner,
                self.config.repo,
                existing.id,
                body,
                labels=labels,
                assignees=issue_config.assignees,
            )
            logger.info(f"Updated GitHub issue #{existing.id}")
            return self._result(
                started, timestamp,
                updated=True, issue_id=existing.id, url=existing.url, body_hash=body_hash,
            )

        created = self.client.create_issue(
            self.config.owner,
            self.config.repo,
            issue_config.title,
            body,
            labels,
            assignees=issue_config.assignees,
        )
        logger.info(f"Created GitHub issue #{created.id}")
        return self._result(
            started, timestamp,
            created=True, issue_id=created.id, url=created.url, body_hash=body_hash,
        )
