"""
Git operations for re-entry status.

Provides:
- run_git: thin subprocess wrapper
- collect_git_context: HEAD info used to stamp status updates
- infer_phase / suggest_next_step: commit-message heuristics
"""

import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from reentry.models.status import GitInfo, now_iso

logger = logging.getLogger(__name__)

SHORTSTAT_RE = {
    "files_changed": re.compile(r"(\d+) files? changed"),
    "insertions": re.compile(r"(\d+) insertions?\(\+\)"),
    "deletions": re.compile(r"(\d+) deletions?\(-\)"),
}

FEAT_PREFIX_RE = re.compile(r"^feat:\s*", re.IGNORECASE)
FIX_PREFIX_RE = re.compile(r"^fix:\s*", re.IGNORECASE)

# Unit separator, never present in commit subjects
FIELD_SEP = "\x1f"


def run_git(args: List[str], cwd: Optional[Path] = None) -> Tuple[int, str, str]:
    """Run a git command.

    Returns:
        Tuple of (return_code, stdout, stderr). A missing git binary is
        reported as return code 127.
    """
    cmd = ["git"] + args
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd or Path.cwd(),
            capture_output=True,
            text=True,
        )
    except OSError as e:
        return 127, "", str(e)
    return result.returncode, result.stdout, result.stderr


def get_current_branch(cwd: Optional[Path] = None) -> str:
    """Get current branch name, "main" when it cannot be determined."""
    code, out, _ = run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd)
    branch = out.strip()
    if code != 0 or not branch or branch == "HEAD":
        return "main"
    return branch


@dataclass
class DiffSummary:
    insertions: int = 0
    deletions: int = 0
    files_changed: int = 0


@dataclass
class GitContext:
    """Snapshot of the repository HEAD."""
    branch: str = ""
    commit: str = ""
    commit_message: str = ""
    author: str = ""
    timestamp: str = field(default_factory=now_iso)
    changed_files: List[str] = field(default_factory=list)
    diff_summary: DiffSummary = field(default_factory=DiffSummary)

    def to_git_info(self) -> GitInfo:
        return GitInfo(
            branch=self.branch,
            commit=self.commit,
            author=self.author,
            timestamp=self.timestamp,
        )


def _parse_shortstat(text: str) -> DiffSummary:
    counts: Dict[str, int] = {}
    for name, pattern in SHORTSTAT_RE.items():
        match = pattern.search(text)
        counts[name] = int(match.group(1)) if match else 0
    return DiffSummary(**counts)


def collect_git_context(cwd: Optional[Path] = None) -> GitContext:
    """Collect HEAD info from the working directory.

    Returns an empty context (timestamp = now) when git is unavailable or
    the directory has no commits.
    """
    code, out, err = run_git(
        ["log", "-1", f"--format=%H{FIELD_SEP}%s{FIELD_SEP}%an{FIELD_SEP}%aI"], cwd
    )
    if code != 0 or not out.strip():
        logger.debug(f"git log failed: {err.strip()}")
        return GitContext()

    full_hash, message, author, date = (out.strip().split(FIELD_SEP) + ["", "", "", ""])[:4]

    _, branch_out, _ = run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd)

    changed_files = []
    status_code, status_out, _ = run_git(["status", "--porcelain"], cwd)
    if status_code == 0:
        changed_files = [line[3:] for line in status_out.splitlines() if len(line) > 3]

    diff_summary = DiffSummary()
    diff_code, diff_out, _ = run_git(["diff", "--shortstat", "HEAD~1", "HEAD"], cwd)
    if diff_code == 0:
        diff_summary = _parse_shortstat(diff_out)

    return GitContext(
        branch=branch_out.strip(),
        commit=full_hash[:7],
        commit_message=message,
        author=author,
        timestamp=date or now_iso(),
        changed_files=changed_files,
        diff_summary=diff_summary,
    )


def infer_phase(context: GitContext) -> str:
    """Guess the project phase from the last commit message."""
    msg = context.commit_message.lower()

    if msg.startswith("fix:") or msg.startswith("hotfix:") or "bugfix" in msg:
        return "maintenance"
    if "test" in msg:
        return "testing"
    if msg.startswith("feat:") or msg.startswith("feature:"):
        return "development"
    if msg.startswith("chore: release") or "deploy" in msg or "staging" in msg:
        return "staging"
    if msg.startswith("docs:") or msg.startswith("chore:"):
        return "maintenance"

    return "development"


def suggest_next_step(context: GitContext) -> str:
    """Suggest a next micro-step from the last commit message."""
    message = context.commit_message
    msg = message.lower()

    if msg.startswith("feat:"):
        subject = FEAT_PREFIX_RE.sub("", message)
        return f"Write tests for: {subject[:60]}"
    if msg.startswith("fix:"):
        subject = FIX_PREFIX_RE.sub("", message)
        return f"Verify fix and add regression test for: {subject[:50]}"
    if msg.startswith("test:"):
        return "Review test coverage and consider edge cases"
    if msg.startswith("chore: release"):
        return "Verify deployment and update documentation"
    if msg.startswith("docs:"):
        return "Continue with next feature or bugfix"

    return f"Review changes from: {message[:60]}"
