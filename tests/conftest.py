"""
Shared fixtures: an in-memory FileSystem and a status factory.
"""

from typing import Dict, List, Optional

import pytest

from reentry.config import load_config
from reentry.files import FileManager, FileSystem
from reentry.models.status import (
    CURRENT_SCHEMA_VERSION,
    MilestoneLink,
    NextStep,
    Status,
    Versioning,
)


class MemoryFileSystem(FileSystem):
    """FileSystem kept in a dict. Moves onto fail_move_to raise OSError."""

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = dict(files or {})
        self.dirs: List[str] = []
        self.writes: List[str] = []
        self.moves: List[tuple] = []
        self.fail_move_to: Optional[str] = None

    def path_exists(self, path: str) -> bool:
        return path in self.files

    def ensure_dir(self, path: str) -> None:
        self.dirs.append(path)

    def read_text(self, path: str) -> str:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def write_text(self, path: str, content: str) -> None:
        self.writes.append(path)
        self.files[path] = content

    def move(self, src: str, dest: str) -> None:
        if dest == self.fail_move_to:
            raise OSError(f"simulated move failure: {dest}")
        self.moves.append((src, dest))
        self.files[dest] = self.files.pop(src)

    def remove(self, path: str) -> None:
        if path not in self.files:
            raise FileNotFoundError(path)
        del self.files[path]


@pytest.fixture
def memory_fs():
    return MemoryFileSystem()


@pytest.fixture
def file_manager(memory_fs):
    return FileManager(memory_fs)


@pytest.fixture
def config():
    return load_config({})


@pytest.fixture
def make_status():
    def _make(**overrides) -> Status:
        fields = dict(
            schema_version=CURRENT_SCHEMA_VERSION,
            version="1.2.3",
            last_updated="2024-01-01T00:00:00.000Z",
            updated_by="tester",
            milestone=MilestoneLink(id="now-01", title="Ship X"),
            roadmap_file=".versioning/ROADMAP.md",
            current_phase="development",
            next_steps=[NextStep(id="next", description="Write tests", priority=1)],
            versioning=Versioning(current_version="1.2.3", previous_version="1.2.2", version_type="patch"),
        )
        fields.update(overrides)
        return Status(**fields)

    return _make
