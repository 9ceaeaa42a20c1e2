"""
Re-entry status orchestration.

ReentryStatusManager is the only writer of Status:
- load_or_init / update_status / apply_context mutate and persist it
- sync_all pushes it to files, then GitHub, then Obsidian

Failure policy in sync_all:
- files: always fatal, local persistence errors are never swallowed
- github / obsidian: recorded as a failed SyncResult; re-raised only
  when config.fail_hard is set

After a remote target creates or updates its resource, the returned id and
hash are folded into sync_metadata and persisted right away, before the
next target runs. An interrupted run re-syncs only what was not recorded.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from reentry.config import GitHubConfig, ObsidianConfig, ReentryConfig, get_sync_targets, roadmap_path
from reentry.files import FileManager
from reentry.generators.roadmap_md import default_roadmap_path, render_template, upsert_managed_block
from reentry.models.status import (
    CURRENT_SCHEMA_VERSION,
    EPOCH_ISO,
    PublishedHashes,
    Status,
    UpdateContext,
    Versioning,
    now_iso,
)
from reentry.models.sync_result import SyncError, SyncResult
from reentry.sync.json_to_md import render_markdown
from reentry.targets import StatusSyncer
from reentry.targets.github import GitHubSyncAdapter
from reentry.targets.github_client import GitHubRestClient
from reentry.targets.obsidian import ObsidianSyncAdapter
from reentry.targets.obsidian_client import ObsidianCliClient, ObsidianCliError

logger = logging.getLogger(__name__)

GitHubSyncerFactory = Callable[[GitHubConfig], StatusSyncer]
ObsidianSyncerFactory = Callable[[ObsidianConfig], StatusSyncer]

# Remote targets in the order they always run
REMOTE_TARGETS = ("github", "obsidian")


def default_github_syncer(config: GitHubConfig) -> StatusSyncer:
    return GitHubSyncAdapter(config, GitHubRestClient(config.token))


def default_obsidian_syncer(config: ObsidianConfig) -> StatusSyncer:
    return ObsidianSyncAdapter(config, ObsidianCliClient())


def create_initial_status(roadmap_file: Optional[str] = None) -> Status:
    """Zero-value status: schema 1.1, planning phase, epoch timestamps."""
    return Status(
        schema_version=CURRENT_SCHEMA_VERSION,
        version="0.0.0",
        last_updated=EPOCH_ISO,
        updated_by="unknown",
        context=UpdateContext(),
        milestone=None,
        roadmap_file=roadmap_file or default_roadmap_path(),
        current_phase="planning",
        versioning=Versioning(current_version="0.0.0", previous_version="0.0.0", version_type="patch"),
    )


class ReentryStatusManager:
    """Loads, mutates, persists and syncs the re-entry status.

    Args:
        file_manager: Persistence layer (local disk by default)
        github_syncer_factory: Builds the GitHub target from its config
        obsidian_syncer_factory: Builds the Obsidian target from its config
        obsidian_available: Availability check run before the Obsidian target
    """

    def __init__(
        self,
        file_manager: Optional[FileManager] = None,
        github_syncer_factory: Optional[GitHubSyncerFactory] = None,
        obsidian_syncer_factory: Optional[ObsidianSyncerFactory] = None,
        obsidian_available: Optional[Callable[[], bool]] = None,
    ):
        self.file_manager = file_manager or FileManager()
        self.github_syncer_factory = github_syncer_factory or default_github_syncer
        self.obsidian_syncer_factory = obsidian_syncer_factory or default_obsidian_syncer
        self.obsidian_available = obsidian_available or ObsidianCliClient.is_available

    # ------------------------------------------------------------------
    # Status lifecycle
    # ------------------------------------------------------------------

    def create_initial_status(self, roadmap_file: Optional[str] = None) -> Status:
        return create_initial_status(roadmap_file)

    def load_or_init(self, config: ReentryConfig) -> Status:
        """Persisted status, or a freshly written initial one."""
        existing = self.file_manager.load_status(config)
        if existing is not None:
            return existing

        initial = self.create_initial_status(roadmap_path(config))
        self.file_manager.write_status_files(config, initial)
        logger.info(f"Initialized re-entry status at {config.files.json_path}")
        return initial

    def initialize(self, config: ReentryConfig, migrate: bool = False) -> Status:
        """Make sure the status exists and return it normalized to schema 1.1.

        Schema 1.0 files are only rewritten when migrate is set.
        """
        existing = self.file_manager.load_status(config)
        if existing is None:
            return self.load_or_init(config)

        default_roadmap = roadmap_path(config)
        if migrate and existing.schema_version != CURRENT_SCHEMA_VERSION:
            migrated = replace(existing, schema_version=CURRENT_SCHEMA_VERSION, roadmap_file=default_roadmap)
            self.file_manager.write_status_files(config, migrated)
            logger.info(f"Migrated {config.files.json_path} to schema {CURRENT_SCHEMA_VERSION}")
            return migrated

        return replace(
            existing,
            schema_version=CURRENT_SCHEMA_VERSION,
            roadmap_file=existing.roadmap_file or default_roadmap,
        )

    def update_status(self, config: ReentryConfig, updater: Callable[[Status], Status]) -> Status:
        """Load-or-init, apply updater, persist. The single mutation entry point."""
        current = self.load_or_init(config)
        updated = updater(current)
        self.file_manager.write_status_files(config, updated)
        return updated

    def apply_context(self, config: ReentryConfig, context: UpdateContext) -> Status:
        """Stamp context and lastUpdated."""
        return self.update_status(
            config,
            lambda current: replace(
                current,
                schema_version=CURRENT_SCHEMA_VERSION,
                context=context,
                last_updated=now_iso(),
            ),
        )

    def ensure_roadmap_exists(self, status: Status, project_title: Optional[str] = None) -> bool:
        """Create ROADMAP.md from the template, or refresh its managed block.

        Returns:
            True if the roadmap file was written
        """
        path = status.roadmap_file or default_roadmap_path()
        linked = replace(status, roadmap_file=path)

        existing = self.file_manager.read_file_if_exists(path)
        if not existing:
            written = self.file_manager.write_file_if_changed(path, render_template(project_title, linked))
            if written:
                logger.info(f"Created {path}")
            return written

        upserted = upsert_managed_block(existing, linked)
        if not upserted.changed:
            return False
        return self.file_manager.write_file_if_changed(path, upserted.content)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync_all(self, config: ReentryConfig, targets: Optional[Sequence[str]] = None) -> List[SyncResult]:
        """Sync the status to every requested target.

        Args:
            config: Resolved config for the project scope
            targets: Targets to run; defaults to get_sync_targets(config).
                Order is always files, github, obsidian.

        Returns:
            One SyncResult per attempted target

        Raises:
            OSError: Local persistence failure (always)
            Exception: A remote target failure when config.fail_hard is set
        """
        requested = get_sync_targets(config) if targets is None else list(targets)
        status = self.load_or_init(config)
        results: List[SyncResult] = []

        if "files" in requested:
            started = time.monotonic()
            try:
                self.file_manager.write_status_files(config, status)
                self.ensure_roadmap_exists(status)
            except Exception as e:
                results.append(self._failure("files", started, e, recoverable=False))
                logger.error(f"Local status sync failed: {e}")
                raise
            results.append(SyncResult(
                target="files",
                success=True,
                timestamp=now_iso(),
                duration=_elapsed_ms(started),
            ))

        markdown = render_markdown(status)

        for target in REMOTE_TARGETS:
            if target not in requested or not self._target_enabled(config, target):
                continue
            status = self._sync_remote(config, target, status, markdown, results)

        return results

    def _target_enabled(self, config: ReentryConfig, target: str) -> bool:
        if target == "github":
            return config.github_enabled
        return config.obsidian_enabled

    def _build_syncer(self, config: ReentryConfig, target: str) -> StatusSyncer:
        if target == "github":
            return self.github_syncer_factory(config.github)

        if not self.obsidian_available():
            raise ObsidianCliError(
                "obsidian CLI not available (enable it in Obsidian Settings > General > Command line interface)"
            )
        return self.obsidian_syncer_factory(config.obsidian)

    def _sync_remote(
        self,
        config: ReentryConfig,
        target: str,
        status: Status,
        markdown: str,
        results: List[SyncResult],
    ) -> Status:
        """Run one remote target and persist what it reports.

        Returns:
            The status to hand to the next target
        """
        started = time.monotonic()
        try:
            result = self._build_syncer(config, target).sync(status, markdown)
        except Exception as e:
            results.append(self._failure(target, started, e, recoverable=not config.fail_hard))
            if config.fail_hard:
                logger.error(f"{target} sync failed: {e}")
                raise
            logger.warning(f"{target} sync skipped: {e}")
            return status

        results.append(result)
        if not (result.success and result.changed):
            return status

        status = self._record_publish(config, target, status, result)
        self.file_manager.write_status_files(config, status)
        return status

    def _record_publish(self, config: ReentryConfig, target: str, status: Status, result: SyncResult) -> Status:
        metadata = status.sync_metadata
        published = metadata.published or PublishedHashes()
        details = result.details
        stamp = now_iso()

        if target == "github":
            metadata = replace(
                metadata,
                github_issue_id=details.get("issue_id", metadata.github_issue_id),
                github_issue_url=details.get("url", metadata.github_issue_url),
                published=replace(published, github_issue_body_sha256=details.get("body_hash")),
            )
        else:
            metadata = replace(
                metadata,
                obsidian_note_path=details.get("note_path", config.obsidian.note_path),
                published=replace(published, obsidian_note_body_sha256=details.get("content_hash")),
            )

        metadata = replace(metadata, last_sync_attempt=stamp, last_successful_sync=stamp)
        return replace(status, schema_version=CURRENT_SCHEMA_VERSION, sync_metadata=metadata)

    @staticmethod
    def _failure(target: str, started: float, error: Exception, recoverable: bool) -> SyncResult:
        code = getattr(error, "code", None)
        return SyncResult(
            target=target,
            success=False,
            timestamp=now_iso(),
            duration=_elapsed_ms(started),
            error=SyncError(
                message=str(error),
                recoverable=recoverable,
                code=str(code) if code is not None else type(error).__name__,
            ),
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
