"""
GitHub REST transport for the issue sync target.

Uses the plain REST API with a bearer token. Any non-2xx response raises
GitHubApiError; retries are left to the caller.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from reentry.targets.github import GitHubClient, GitHubIssue

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
REQUEST_TIMEOUT = 30


class GitHubApiError(Exception):
    """Non-2xx response from the GitHub API."""

    def __init__(self, status_code: int, body: str, reason: str = ""):
        self.status_code = status_code
        self.body = body
        self.reason = reason
        self.code = f"HTTP_{status_code}"
        label = f"{status_code} {reason}" if reason else str(status_code)
        super().__init__(f"GitHub API error {label}: {body}")


def _to_issue(data: Dict[str, Any]) -> GitHubIssue:
    return GitHubIssue(
        id=int(data["number"]),
        url=str(data.get("html_url") or ""),
        title=str(data.get("title") or ""),
        body=str(data.get("body") or ""),
    )


class GitHubRestClient(GitHubClient):
    """GitHubClient backed by requests."""

    def __init__(self, token: str, base_url: str = GITHUB_API_URL):
        self.token = token
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"GitHub {method} {url}")

        response = requests.request(
            method,
            url,
            headers=self._headers(),
            json=payload,
            params=params,
            timeout=REQUEST_TIMEOUT,
        )
        if not 200 <= response.status_code < 300:
            raise GitHubApiError(response.status_code, response.text, response.reason or "")
        return response.json()

    def find_issue_by_title(self, owner: str, repo: str, title: str) -> Optional[GitHubIssue]:
        """First open issue whose title matches exactly.

        Only the first page (100 issues) is searched. Pull requests are
        ignored even though the issues endpoint lists them.
        """
        issues = self._request(
            "GET",
            f"/repos/{owner}/{repo}/issues",
            params={"state": "open", "per_page": 100},
        )
        for issue in issues or []:
            if not isinstance(issue, dict) or "pull_request" in issue:
                continue
            if issue.get("title") == title:
                return _to_issue(issue)
        return None

    def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        labels: List[str],
        assignees: Optional[List[str]] = None,
    ) -> GitHubIssue:
        payload: Dict[str, Any] = {"title": title, "body": body, "labels": labels}
        if assignees is not None:
            payload["assignees"] = assignees
        return _to_issue(self._request("POST", f"/repos/{owner}/{repo}/issues", payload))

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
        payload: Dict[str, Any] = {"body": body}
        if title is not None:
            payload["title"] = title
        if labels is not None:
            payload["labels"] = labels
        if assignees is not None:
            payload["assignees"] = assignees
        return _to_issue(self._request("PATCH", f"/repos/{owner}/{repo}/issues/{issue_id}", payload))
