"""
Obsidian note sync target.

The note is REENTRY.md preceded by an optional YAML frontmatter block taken
from config. The frontmatter is serialized deterministically (sorted keys,
no timestamps) so the note hash only changes when the status does.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

from reentry.config import ObsidianConfig
from reentry.dirty import bodies_equal, sha256
from reentry.models.status import Status, now_iso
from reentry.models.sync_result import SyncResult
from reentry.targets import StatusSyncer

logger = logging.getLogger(__name__)


@dataclass
class ObsidianNote:
    path: str
    content: str


class ObsidianClient(ABC):
    """Transport used by ObsidianSyncAdapter."""

    @abstractmethod
    def get_note(self, vault_path: str, note_path: str) -> Optional[ObsidianNote]:
        """The note, or None when it does not exist."""
        ...

    @abstractmethod
    def upsert_note(self, vault_path: str, note_path: str, content: str) -> ObsidianNote:
        ...


def _scalar(value: Any) -> str:
    """One YAML flow scalar. Strings are quoted whenever YAML would retype them."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

    style = '"' if isinstance(value, str) and "\n" in value else None
    text = yaml.safe_dump(
        value,
        default_flow_style=True,
        default_style=style,
        allow_unicode=True,
        width=float("inf"),
    )
    if text.endswith("\n...\n"):
        text = text[: -len("\n...\n")]
    return text.rstrip("\n")


def render_frontmatter(frontmatter: Optional[Dict[str, Any]]) -> str:
    """Render a `---` delimited frontmatter block, or "" when empty.

    Lists become `  - item` entries; nested objects are inline JSON.
    """
    if not frontmatter:
        return ""

    lines: List[str] = ["---"]
    for key in sorted(frontmatter, key=str):
        value = frontmatter[key]
        if value is None:
            continue

        name = _scalar(str(key))
        if isinstance(value, list):
            lines.append(f"{name}:")
            lines.extend(f"  - {_scalar(item)}" for item in value)
        else:
            lines.append(f"{name}: {_scalar(value)}")
    lines.extend(["---", ""])
    return "\n".join(lines)


class ObsidianSyncAdapter(StatusSyncer):
    """Publishes the status to an Obsidian note through an ObsidianClient."""

    def __init__(self, config: ObsidianConfig, client: ObsidianClient):
        self.config = config
        self.client = client

    def render_body(self, status: Status, markdown: str) -> str:
        return render_frontmatter(self.config.frontmatter) + markdown

    def sync(self, status: Status, markdown: str) -> SyncResult:
        started = time.monotonic()
        timestamp = now_iso()

        content = self.render_body(status, markdown)
        content_hash = sha256(content)

        def result(**details) -> SyncResult:
            return SyncResult(
                target="obsidian",
                success=True,
                timestamp=timestamp,
                duration=int((time.monotonic() - started) * 1000),
                details=details,
            )

        published = status.sync_metadata.published
        if published is not None and published.obsidian_note_body_sha256 == content_hash:
            logger.debug("Obsidian note unchanged (hash), skipping")
            return result(skipped=True, reason="unchanged (hash)")

        existing = self.client.get_note(self.config.vault_path, self.config.note_path)
        if existing is not None and bodies_equal(existing.content, content):
            logger.debug(f"Obsidian note {self.config.note_path} unchanged (content), skipping")
            return result(skipped=True, reason="unchanged (content)")

        self.client.upsert_note(self.config.vault_path, self.config.note_path, content)
        logger.info(f"Updated Obsidian note {self.config.note_path}")
        return result(updated=True, note_path=self.config.note_path, content_hash=content_hash)
