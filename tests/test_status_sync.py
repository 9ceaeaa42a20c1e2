"""
Tests for ReentryStatusManager: lifecycle, roadmap upkeep and sync_all.
"""

import json

import pytest

from reentry.config import load_config
from reentry.constants import ROADMAP_MANAGED_START
from reentry.files import FileManager
from reentry.models.status import CURRENT_SCHEMA_VERSION, EPOCH_ISO, MilestoneLink, UpdateContext
from reentry.models.sync_result import SyncResult
from reentry.status_sync import ReentryStatusManager
from reentry.targets import StatusSyncer
from reentry.targets.github_client import GitHubApiError

JSON_PATH = ".versioning/reentry.status.json"
MD_PATH = ".versioning/REENTRY.md"
ROADMAP_PATH = ".versioning/ROADMAP.md"


class RecordingSyncer(StatusSyncer):
    """Returns canned details, or raises, and records the status it saw."""

    def __init__(self, target, log, details=None, error=None):
        self.target = target
        self.log = log
        self.details = details or {}
        self.error = error
        self.seen = []

    def render_body(self, status, markdown):
        return markdown

    def sync(self, status, markdown):
        self.log.append(self.target)
        self.seen.append(status)
        if self.error is not None:
            raise self.error
        return SyncResult(target=self.target, success=True, timestamp=EPOCH_ISO, details=dict(self.details))


def remote_config(fail_hard=False):
    return load_config({
        "reentryStatus": {
            "failHard": fail_hard,
            "github": {
                "enabled": True,
                "owner": "acme",
                "repo": "trader",
                "issue": {"title": "Re-entry status", "labels": []},
                "auth": {"token": "t0k"},
            },
            "obsidian": {"enabled": True, "vaultPath": "/vault", "notePath": "Trader.md"},
        }
    })


def make_manager(memory_fs, github=None, obsidian=None, obsidian_available=True):
    return ReentryStatusManager(
        file_manager=FileManager(memory_fs),
        github_syncer_factory=lambda cfg: github,
        obsidian_syncer_factory=lambda cfg: obsidian,
        obsidian_available=lambda: obsidian_available,
    )


class TestLifecycle:

    def test_load_or_init_writes_initial_status(self, memory_fs, config):
        manager = make_manager(memory_fs)
        status = manager.load_or_init(config)

        assert status.schema_version == CURRENT_SCHEMA_VERSION
        assert status.current_phase == "planning"
        assert status.last_updated == EPOCH_ISO
        assert status.roadmap_file == ROADMAP_PATH
        assert JSON_PATH in memory_fs.files

    def test_project_scope_initial_roadmap(self, memory_fs):
        config = load_config({}, project="trading")
        status = make_manager(memory_fs).load_or_init(config)

        assert status.roadmap_file == ".versioning/projects/trading/ROADMAP.md"
        assert ".versioning/projects/trading/reentry.status.json" in memory_fs.files

    def test_initialize_normalizes_legacy_in_memory(self, memory_fs, config):
        legacy = json.dumps({"schemaVersion": "1.0", "version": "0.3.0"})
        memory_fs.files[JSON_PATH] = legacy

        status = make_manager(memory_fs).initialize(config)

        assert status.schema_version == CURRENT_SCHEMA_VERSION
        assert status.roadmap_file == ROADMAP_PATH
        assert memory_fs.files[JSON_PATH] == legacy

    def test_initialize_migrate_rewrites_json_and_markdown(self, memory_fs, config):
        memory_fs.files[JSON_PATH] = json.dumps({"schemaVersion": "1.0", "version": "0.3.0"})
        memory_fs.files[MD_PATH] = "# REENTRY\n\nSchema: 1.0\n"

        make_manager(memory_fs).initialize(config, migrate=True)

        data = json.loads(memory_fs.files[JSON_PATH])
        assert data["schemaVersion"] == "1.1"
        assert data["roadmapFile"] == ROADMAP_PATH
        assert data["version"] == "0.3.0"
        assert "Schema: 1.1" in memory_fs.files[MD_PATH]
        assert "Version: 0.3.0" in memory_fs.files[MD_PATH]

    def test_update_status_persists(self, memory_fs, config, make_status):
        manager = make_manager(memory_fs)
        manager.update_status(config, lambda current: make_status(version="3.0.0"))

        assert json.loads(memory_fs.files[JSON_PATH])["version"] == "3.0.0"
        assert "Version: 3.0.0" in memory_fs.files[".versioning/REENTRY.md"]

    def test_apply_context_stamps_time(self, memory_fs, config):
        manager = make_manager(memory_fs)
        status = manager.apply_context(config, UpdateContext(trigger="postRelease", command="reentry release"))

        assert status.context.trigger == "postRelease"
        assert status.last_updated != EPOCH_ISO


class TestEnsureRoadmapExists:

    def test_creates_from_template(self, memory_fs, make_status):
        manager = make_manager(memory_fs)

        assert manager.ensure_roadmap_exists(make_status(), project_title="Trader")
        assert memory_fs.files[ROADMAP_PATH].startswith("# Project Roadmap – Trader")

    def test_refreshes_block_and_keeps_user_text(self, memory_fs, make_status):
        manager = make_manager(memory_fs)
        manager.ensure_roadmap_exists(make_status())
        memory_fs.files[ROADMAP_PATH] += "USER CUSTOM LINE\n"

        changed = manager.ensure_roadmap_exists(make_status(milestone=MilestoneLink(id="m2", title="Two")))

        assert changed
        content = memory_fs.files[ROADMAP_PATH]
        assert "> Active milestone: Two (id: m2)" in content
        assert content.endswith("USER CUSTOM LINE\n")

    def test_noop_when_current(self, memory_fs, make_status):
        manager = make_manager(memory_fs)
        manager.ensure_roadmap_exists(make_status())
        writes = len(memory_fs.writes)

        assert not manager.ensure_roadmap_exists(make_status())
        assert len(memory_fs.writes) == writes

    def test_adds_block_to_user_roadmap(self, memory_fs, make_status):
        memory_fs.files[ROADMAP_PATH] = "# Mine\n\nUSER CUSTOM LINE\n"

        assert make_manager(memory_fs).ensure_roadmap_exists(make_status())
        assert ROADMAP_MANAGED_START in memory_fs.files[ROADMAP_PATH]


class TestSyncAll:

    def test_files_only(self, memory_fs, config):
        results = make_manager(memory_fs).sync_all(config)

        assert [r.target for r in results] == ["files"]
        assert results[0].success
        assert ROADMAP_PATH in memory_fs.files

    def test_order_is_files_github_obsidian(self, memory_fs):
        log = []
        github = RecordingSyncer("github", log)
        obsidian = RecordingSyncer("obsidian", log)

        results = make_manager(memory_fs, github, obsidian).sync_all(remote_config(), targets=["obsidian", "github", "files"])

        assert [r.target for r in results] == ["files", "github", "obsidian"]
        assert log == ["github", "obsidian"]

    def test_publish_recorded_and_threaded(self, memory_fs):
        log = []
        github = RecordingSyncer("github", log, {"created": True, "issue_id": 12, "url": "u12", "body_hash": "gh"})
        obsidian = RecordingSyncer("obsidian", log, {"updated": True, "note_path": "Trader.md", "content_hash": "ob"})
        manager = make_manager(memory_fs, github, obsidian)

        manager.sync_all(remote_config())

        # Obsidian sees the github id recorded moments before
        assert obsidian.seen[0].sync_metadata.github_issue_id == 12

        metadata = json.loads(memory_fs.files[JSON_PATH])["syncMetadata"]
        assert metadata["githubIssueId"] == 12
        assert metadata["githubIssueUrl"] == "u12"
        assert metadata["obsidianNotePath"] == "Trader.md"
        assert metadata["published"] == {"githubIssueBodySha256": "gh", "obsidianNoteBodySha256": "ob"}
        assert metadata["lastSuccessfulSync"] != EPOCH_ISO

    def test_skipped_target_does_not_touch_metadata(self, memory_fs):
        log = []
        github = RecordingSyncer("github", log, {"skipped": True, "reason": "unchanged (hash)"})
        obsidian = RecordingSyncer("obsidian", log, {"skipped": True, "reason": "unchanged (hash)"})

        make_manager(memory_fs, github, obsidian).sync_all(remote_config())

        metadata = json.loads(memory_fs.files[JSON_PATH])["syncMetadata"]
        assert "published" not in metadata
        assert metadata["lastSyncAttempt"] == EPOCH_ISO

    def test_remote_failure_is_recorded_not_raised(self, memory_fs):
        log = []
        github = RecordingSyncer("github", log, error=GitHubApiError(500, "boom"))
        obsidian = RecordingSyncer("obsidian", log, {"updated": True, "note_path": "Trader.md", "content_hash": "ob"})

        results = make_manager(memory_fs, github, obsidian).sync_all(remote_config(fail_hard=False))

        failed = results[1]
        assert not failed.success
        assert failed.error.code == "HTTP_500"
        assert failed.error.recoverable is True
        assert results[2].success
        assert log == ["github", "obsidian"]

    def test_remote_failure_raises_with_fail_hard(self, memory_fs):
        log = []
        github = RecordingSyncer("github", log, error=GitHubApiError(500, "boom"))
        obsidian = RecordingSyncer("obsidian", log)

        with pytest.raises(GitHubApiError):
            make_manager(memory_fs, github, obsidian).sync_all(remote_config(fail_hard=True))

        assert log == ["github"]

    def test_obsidian_unavailable(self, memory_fs):
        log = []
        github = RecordingSyncer("github", log)
        obsidian = RecordingSyncer("obsidian", log)

        results = make_manager(memory_fs, github, obsidian, obsidian_available=False).sync_all(remote_config())

        assert results[-1].target == "obsidian"
        assert results[-1].error.code == "OBSIDIAN_CLI"
        assert log == ["github"]

    def test_files_failure_always_raises(self, memory_fs, config):
        manager = make_manager(memory_fs)
        manager.load_or_init(config)
        memory_fs.fail_move_to = ROADMAP_PATH

        with pytest.raises(OSError):
            manager.sync_all(config)

    def test_disabled_targets_skipped(self, memory_fs, config):
        log = []
        github = RecordingSyncer("github", log)

        results = make_manager(memory_fs, github).sync_all(config, targets=["files", "github"])

        assert [r.target for r in results] == ["files"]
        assert log == []
