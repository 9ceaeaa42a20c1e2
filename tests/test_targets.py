"""
Tests for GitHub and Obsidian sync targets.

Remote calls are counted through fake clients; the REST transport is
exercised with requests patched out.
"""

from unittest.mock import MagicMock, patch

import pytest
import yaml

from reentry.config import GitHubConfig, ObsidianConfig
from reentry.dirty import sha256
from reentry.models.status import PublishedHashes, SyncMetadata
from reentry.sync import render_markdown
from reentry.targets.github import ISSUE_HEADER, GitHubClient, GitHubIssue, GitHubSyncAdapter
from reentry.targets.github_client import GitHubApiError, GitHubRestClient
from reentry.targets.obsidian import ObsidianClient, ObsidianNote, ObsidianSyncAdapter, render_frontmatter
from reentry.targets.obsidian_client import ObsidianCliClient, ObsidianCliError, escape_cli_value


class FakeGitHubClient(GitHubClient):

    def __init__(self, existing=None):
        self.existing = existing
        self.calls = []

    def find_issue_by_title(self, owner, repo, title):
        self.calls.append(("find", owner, repo, title))
        return self.existing

    def create_issue(self, owner, repo, title, body, labels, assignees=None):
        self.calls.append(("create", title, body, labels))
        return GitHubIssue(id=12, url="https://github.com/acme/trader/issues/12", title=title, body=body)

    def update_issue(self, owner, repo, issue_id, body, title=None, labels=None, assignees=None):
        self.calls.append(("update", issue_id, body, labels))
        return GitHubIssue(id=issue_id, url=self.existing.url, title=self.existing.title, body=body)


class FakeObsidianClient(ObsidianClient):

    def __init__(self, existing=None):
        self.existing = existing
        self.calls = []

    def get_note(self, vault_path, note_path):
        self.calls.append(("get", vault_path, note_path))
        return self.existing

    def upsert_note(self, vault_path, note_path, content):
        self.calls.append(("upsert", vault_path, note_path, content))
        return ObsidianNote(path=note_path, content=content)


def github_config():
    return GitHubConfig.from_dict({
        "enabled": True,
        "owner": "acme",
        "repo": "trader",
        "issue": {"title": "Re-entry status", "labels": ["status"]},
        "auth": {"token": "t0k"},
    })


class TestGitHubSyncAdapter:

    def test_creates_issue_when_missing(self, make_status):
        status = make_status()
        markdown = render_markdown(status)
        client = FakeGitHubClient()

        result = GitHubSyncAdapter(github_config(), client).sync(status, markdown)

        assert result.success and result.changed
        assert result.details["created"] is True
        assert result.details["issue_id"] == 12
        assert result.details["body_hash"] == sha256(ISSUE_HEADER + markdown)
        assert [c[0] for c in client.calls] == ["find", "create"]
        assert client.calls[1][3] == ["status"]

    def test_updates_existing_issue(self, make_status):
        status = make_status()
        existing = GitHubIssue(id=5, url="u", title="Re-entry status", body="old body")
        client = FakeGitHubClient(existing)

        result = GitHubSyncAdapter(github_config(), client).sync(status, render_markdown(status))

        assert result.details["updated"] is True
        assert result.details["issue_id"] == 5
        assert [c[0] for c in client.calls] == ["find", "update"]

    def test_hash_match_makes_no_calls(self, make_status):
        markdown = render_markdown(make_status())
        published = PublishedHashes(github_issue_body_sha256=sha256(ISSUE_HEADER + markdown))
        status = make_status(sync_metadata=SyncMetadata(published=published))
        client = FakeGitHubClient()

        result = GitHubSyncAdapter(github_config(), client).sync(status, markdown)

        assert result.skipped
        assert result.details["reason"] == "unchanged (hash)"
        assert client.calls == []

    def test_equal_remote_body_skips_update(self, make_status):
        status = make_status()
        markdown = render_markdown(status)
        body = (ISSUE_HEADER + markdown).replace("\n", "\r\n")
        client = FakeGitHubClient(GitHubIssue(id=5, url="u", title="Re-entry status", body=body))

        result = GitHubSyncAdapter(github_config(), client).sync(status, markdown)

        assert result.details == {"skipped": True, "reason": "unchanged (body)"}
        assert [c[0] for c in client.calls] == ["find"]

    def test_client_error_propagates(self, make_status):
        client = FakeGitHubClient()
        client.find_issue_by_title = MagicMock(side_effect=GitHubApiError(502, "bad gateway"))
        status = make_status()

        with pytest.raises(GitHubApiError):
            GitHubSyncAdapter(github_config(), client).sync(status, render_markdown(status))


class TestGitHubRestClient:

    def _response(self, status_code=200, payload=None, text=""):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = payload
        response.text = text
        response.reason = "Unauthorized" if status_code == 401 else "OK"
        return response

    @patch("reentry.targets.github_client.requests.request")
    def test_find_issue_skips_pull_requests(self, mock_request):
        mock_request.return_value = self._response(payload=[
            {"number": 1, "title": "Re-entry status", "body": "pr", "pull_request": {}},
            {"number": 2, "title": "Re-entry status", "body": "issue", "html_url": "https://x/2"},
        ])

        issue = GitHubRestClient("t0k").find_issue_by_title("acme", "trader", "Re-entry status")

        assert issue == GitHubIssue(id=2, url="https://x/2", title="Re-entry status", body="issue")
        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://api.github.com/repos/acme/trader/issues")
        assert kwargs["params"] == {"state": "open", "per_page": 100}
        assert kwargs["headers"]["Authorization"] == "Bearer t0k"

    @patch("reentry.targets.github_client.requests.request")
    def test_find_issue_none(self, mock_request):
        mock_request.return_value = self._response(payload=[])
        assert GitHubRestClient("t0k").find_issue_by_title("acme", "trader", "missing") is None

    @patch("reentry.targets.github_client.requests.request")
    def test_create_issue_payload(self, mock_request):
        mock_request.return_value = self._response(
            status_code=201,
            payload={"number": 9, "html_url": "https://x/9", "title": "T", "body": "B"},
        )

        issue = GitHubRestClient("t0k").create_issue("acme", "trader", "T", "B", ["status"])

        assert issue.id == 9
        args, kwargs = mock_request.call_args
        assert args[0] == "POST"
        assert kwargs["json"] == {"title": "T", "body": "B", "labels": ["status"]}

    @patch("reentry.targets.github_client.requests.request")
    def test_update_issue_uses_patch(self, mock_request):
        mock_request.return_value = self._response(payload={"number": 9, "title": "T", "body": "B2"})

        GitHubRestClient("t0k").update_issue("acme", "trader", 9, "B2", labels=["status"])

        args, kwargs = mock_request.call_args
        assert args == ("PATCH", "https://api.github.com/repos/acme/trader/issues/9")
        assert kwargs["json"] == {"body": "B2", "labels": ["status"]}

    @patch("reentry.targets.github_client.requests.request")
    def test_non_2xx_raises(self, mock_request):
        mock_request.return_value = self._response(status_code=401, text="Bad credentials")

        with pytest.raises(GitHubApiError) as exc:
            GitHubRestClient("bad").find_issue_by_title("acme", "trader", "T")

        assert exc.value.status_code == 401
        assert exc.value.code == "HTTP_401"
        assert "Bad credentials" in str(exc.value)


class TestRenderFrontmatter:

    def test_empty(self):
        assert render_frontmatter(None) == ""
        assert render_frontmatter({}) == ""

    def test_sorted_and_yaml_parseable(self):
        text = render_frontmatter({"tags": ["status", "reentry"], "project": "trader", "pinned": True})

        assert text.startswith("---\npinned: true\nproject: trader\ntags:\n")
        assert text.endswith("---\n")
        assert yaml.safe_load(text.strip("-\n")) == {
            "pinned": True,
            "project": "trader",
            "tags": ["status", "reentry"],
        }

    def test_values_keep_their_yaml_types(self):
        """Strings YAML would retype or misparse are quoted."""
        fm = {
            "title": "Re-entry: trader",
            "status": "yes",
            "code": "007",
            "flag": True,
            "n": 3,
            "note": "line one\nline two",
            "aliases": ["no", "# not a comment", 1.5],
        }
        text = render_frontmatter(fm)

        assert text.startswith("---\n") and text.endswith("\n---\n")
        assert yaml.safe_load(text[len("---\n"):-len("---\n")]) == fm

    def test_none_values_skipped(self):
        assert "alias" not in render_frontmatter({"alias": None, "a": 1})

    def test_deterministic(self):
        fm = {"b": 2, "a": {"x": 1}}
        assert render_frontmatter(fm) == render_frontmatter(dict(reversed(list(fm.items()))))


class TestObsidianSyncAdapter:

    def config(self, frontmatter=None):
        return ObsidianConfig(enabled=True, vault_path="/vault", note_path="Projects/Trader.md", frontmatter=frontmatter)

    def test_writes_note_with_frontmatter(self, make_status):
        status = make_status()
        markdown = render_markdown(status)
        client = FakeObsidianClient()

        result = ObsidianSyncAdapter(self.config({"project": "trader"}), client).sync(status, markdown)

        assert result.details["updated"] is True
        assert result.details["note_path"] == "Projects/Trader.md"
        content = client.calls[1][3]
        assert content == "---\nproject: trader\n---\n" + markdown
        assert result.details["content_hash"] == sha256(content)

    def test_hash_match_makes_no_calls(self, make_status):
        markdown = render_markdown(make_status())
        published = PublishedHashes(obsidian_note_body_sha256=sha256(markdown))
        status = make_status(sync_metadata=SyncMetadata(published=published))
        client = FakeObsidianClient()

        result = ObsidianSyncAdapter(self.config(), client).sync(status, markdown)

        assert result.details["reason"] == "unchanged (hash)"
        assert client.calls == []

    def test_same_content_skips_write(self, make_status):
        status = make_status()
        markdown = render_markdown(status)
        client = FakeObsidianClient(ObsidianNote(path="Projects/Trader.md", content=markdown.rstrip("\n")))

        result = ObsidianSyncAdapter(self.config(), client).sync(status, markdown)

        assert result.details["reason"] == "unchanged (content)"
        assert [c[0] for c in client.calls] == ["get"]


class TestObsidianCliClient:

    def test_escape_newlines(self):
        assert escape_cli_value("a\r\nb\nc") == "a\\nb\\nc"

    @patch("reentry.targets.obsidian_client.subprocess.run")
    def test_upsert_runs_create(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        ObsidianCliClient().upsert_note("/vault", "N.md", "line1\nline2\n")

        args, kwargs = mock_run.call_args
        assert args[0] == ["obsidian", "create", "path=N.md", "content=line1\\nline2\\n", "overwrite", "silent"]
        assert kwargs["cwd"] == "/vault"

    @patch("reentry.targets.obsidian_client.subprocess.run")
    def test_upsert_failure_raises(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="vault locked")

        with pytest.raises(ObsidianCliError) as exc:
            ObsidianCliClient().upsert_note("/vault", "N.md", "x")
        assert exc.value.returncode == 1
        assert exc.value.code == "OBSIDIAN_CLI"

    @patch("reentry.targets.obsidian_client.subprocess.run")
    def test_get_missing_note_is_none(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="not found")
        assert ObsidianCliClient().get_note("/vault", "N.md") is None

    @patch("reentry.targets.obsidian_client.subprocess.run", side_effect=FileNotFoundError("obsidian"))
    def test_unavailable_binary(self, mock_run):
        assert ObsidianCliClient.is_available() is False
