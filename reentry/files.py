"""
File persistence for re-entry status.

All writes go temp-file-then-move so readers never see a half-written file,
and skip I/O entirely when the content is unchanged (EOL-insensitive).

write_status_files keeps the JSON+Markdown pair consistent: both temp files
are staged, JSON moves first, then Markdown. If the Markdown move fails the
JSON file is restored to its previous content (or removed) and the original
error is re-raised.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from reentry.config import ReentryConfig, roadmap_path
from reentry.models.status import Status
from reentry.sync.json_to_md import render_json, render_markdown
from reentry.sync.md_to_json import parse_json

logger = logging.getLogger(__name__)


class FileSystem(ABC):
    """Filesystem operations used by FileManager."""

    @abstractmethod
    def path_exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def ensure_dir(self, path: str) -> None:
        ...

    @abstractmethod
    def read_text(self, path: str) -> str:
        ...

    @abstractmethod
    def write_text(self, path: str, content: str) -> None:
        ...

    @abstractmethod
    def move(self, src: str, dest: str) -> None:
        """Move src onto dest, overwriting dest."""
        ...

    @abstractmethod
    def remove(self, path: str) -> None:
        ...


class LocalFileSystem(FileSystem):
    """The real disk. Moves are os.replace, atomic on one filesystem."""

    def path_exists(self, path: str) -> bool:
        return os.path.exists(path)

    def ensure_dir(self, path: str) -> None:
        os.makedirs(path, exist_ok=True)

    def read_text(self, path: str) -> str:
        # newline="" keeps CRLF visible to callers
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()

    def write_text(self, path: str, content: str) -> None:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)

    def move(self, src: str, dest: str) -> None:
        os.replace(src, dest)

    def remove(self, path: str) -> None:
        os.remove(path)


@dataclass
class WriteResult:
    changed: bool


def _same_text(prev: Optional[str], nxt: str) -> bool:
    return prev is not None and prev.replace("\r\n", "\n") == nxt.replace("\r\n", "\n")


class FileManager:
    """Reads and writes status files through a FileSystem.

    Never mutates a Status; only persists what it is given.
    """

    def __init__(self, fs: Optional[FileSystem] = None):
        self.fs = fs or LocalFileSystem()

    def ensure_dir_for_file(self, path: str) -> None:
        parent = os.path.dirname(path)
        if parent:
            self.fs.ensure_dir(parent)

    def read_file_if_exists(self, path: str) -> Optional[str]:
        if not self.fs.path_exists(path):
            return None
        return self.fs.read_text(path)

    def write_file_if_changed(self, path: str, content: str) -> bool:
        """Write content to path unless it already holds the same text.

        Returns:
            True if the file was written
        """
        if _same_text(self.read_file_if_exists(path), content):
            return False

        self.ensure_dir_for_file(path)

        tmp_path = f"{path}.tmp"
        self.fs.write_text(tmp_path, content)
        try:
            self.fs.move(tmp_path, path)
        except OSError:
            self._discard(tmp_path)
            raise
        logger.debug(f"Wrote {path}")
        return True

    def _discard(self, path: str) -> None:
        try:
            if self.fs.path_exists(path):
                self.fs.remove(path)
        except OSError as e:
            logger.warning(f"Could not remove temp file {path}: {e}")

    def _rollback_json(self, json_path: str, prev_json: Optional[str]) -> None:
        try:
            if prev_json is None:
                self.fs.remove(json_path)
            else:
                rollback_tmp = f"{json_path}.rollback.tmp"
                self.fs.write_text(rollback_tmp, prev_json)
                self.fs.move(rollback_tmp, json_path)
            logger.debug(f"Rolled back {json_path}")
        except OSError as e:
            logger.error(f"Rollback of {json_path} failed: {e}")

    def write_status_files(self, config: ReentryConfig, status: Status) -> WriteResult:
        """Persist status as the JSON+Markdown pair.

        Raises:
            OSError: Any local write failure, after rollback
        """
        json_path = config.files.json_path
        markdown_path = config.files.markdown_path

        next_json = render_json(status)
        next_markdown = render_markdown(status)

        prev_json = self.read_file_if_exists(json_path)
        prev_markdown = self.read_file_if_exists(markdown_path)

        if _same_text(prev_json, next_json) and _same_text(prev_markdown, next_markdown):
            return WriteResult(changed=False)

        self.ensure_dir_for_file(json_path)
        self.ensure_dir_for_file(markdown_path)

        json_tmp = f"{json_path}.tmp"
        markdown_tmp = f"{markdown_path}.tmp"

        json_moved = False
        try:
            # Stage both before touching the real files
            self.fs.write_text(json_tmp, next_json)
            self.fs.write_text(markdown_tmp, next_markdown)

            self.fs.move(json_tmp, json_path)
            json_moved = True

            self.fs.move(markdown_tmp, markdown_path)
        except Exception:
            self._discard(json_tmp)
            self._discard(markdown_tmp)
            if json_moved:
                self._rollback_json(json_path, prev_json)
            raise

        logger.debug(f"Wrote status files {json_path} and {markdown_path}")
        return WriteResult(changed=True)

    def load_status(self, config: ReentryConfig) -> Optional[Status]:
        """Load the persisted status, or None if there is none yet.

        Raises:
            StatusParseError: If the JSON file is corrupt
        """
        content = self.read_file_if_exists(config.files.json_path)
        if not content:
            return None
        return parse_json(content, default_roadmap_file=roadmap_path(config))

    def write_reentry_markdown(self, config: ReentryConfig, status: Status) -> bool:
        return self.write_file_if_changed(config.files.markdown_path, render_markdown(status))
