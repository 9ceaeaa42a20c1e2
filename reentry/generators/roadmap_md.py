"""
ROADMAP.md generator and managed-block maintenance.

ROADMAP.md is owned by the user, except for one delimited block that this
module rewrites:

    <!-- roadmap:managed:start -->
    > ...
    <!-- roadmap:managed:end -->

Everything outside the markers is left byte-for-byte as it was.
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from reentry.constants import (
    EMPTY_MARK,
    REENTRY_STATUS_DIRNAME,
    ROADMAP_MANAGED_END,
    ROADMAP_MANAGED_START,
    ROADMAP_MD_FILENAME,
)

if TYPE_CHECKING:
    from reentry.models.status import Status


ROADMAP_ITEM_RE = re.compile(r"^\s*-\s*\[(.+?)\]\s*(.+)$")
H1_RE = re.compile(r"^#\s+")
H2_RE = re.compile(r"^##\s+(.+?)\s*$")


@dataclass
class UpsertResult:
    content: str
    changed: bool


@dataclass
class RoadmapItem:
    """A `- [id] title` bullet found in ROADMAP.md."""
    id: str
    title: str
    line: int  # 1-based
    section: Optional[str] = None


@dataclass
class ParseRoadmapResult:
    items: List[RoadmapItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def default_roadmap_path(base_dir: str = REENTRY_STATUS_DIRNAME) -> str:
    return f"{base_dir}/{ROADMAP_MD_FILENAME}"


def format_milestone(status: Optional["Status"]) -> str:
    """`title (id: id)` for the active milestone, or the empty mark."""
    if status is None or status.milestone is None:
        return EMPTY_MARK
    return f"{status.milestone.title} (id: {status.milestone.id})"


def render_managed_block(status: Optional["Status"] = None) -> str:
    """Render the managed block. Stable: no timestamps."""
    roadmap_file = status.roadmap_file if status is not None and status.roadmap_file else default_roadmap_path()

    return "\n".join([
        ROADMAP_MANAGED_START,
        "> Managed by `reentry`.",
        f"> Canonical roadmap file: {roadmap_file}",
        f"> Active milestone: {format_milestone(status)}",
        "> ",
        "> Everything outside this block is user-editable.",
        ROADMAP_MANAGED_END,
        "",
    ])


def render_template(project_title: Optional[str] = None, status: Optional["Status"] = None) -> str:
    """Render a new ROADMAP.md scaffold with the managed block after the H1."""
    title = project_title.strip() if project_title and project_title.strip() else "Untitled"

    return "\n".join([
        f"# Project Roadmap – {title}",
        "",
        render_managed_block(status),
        "## North Star",
        "",
        "- Describe the long-term outcome this project is aiming for.",
        "",
        "## Now (1–2 weeks)",
        "",
        "- [now-01] Example: Ship X",
        "",
        "## Next (4–8 weeks)",
        "",
        "- [next-01] Example: Improve Y",
        "",
        "## Later",
        "",
        "- [later-01] Example: Explore Z",
        "",
    ])


def upsert_managed_block(existing: str, status: Optional["Status"] = None) -> UpsertResult:
    """Insert or replace the managed block without touching user content.

    With markers present only the region between them is replaced. Without
    markers the block goes after the first H1, separated by one blank line on
    each side, or is prepended when there is no H1. Existing lines, blank
    ones included, are kept as they were.
    """
    managed = render_managed_block(status)
    text = existing.replace("\r\n", "\n")

    start = text.find(ROADMAP_MANAGED_START)
    end = text.find(ROADMAP_MANAGED_END)

    if start != -1 and end != -1 and end > start:
        before = text[:start]
        after = text[end + len(ROADMAP_MANAGED_END):]
        # managed already ends with its own newline
        if managed.endswith("\n") and after.startswith("\n"):
            after = after[1:]
        content = before + managed + after
        return UpsertResult(content=content, changed=content != text)

    lines = text.split("\n")
    h1_index = next((i for i, line in enumerate(lines) if H1_RE.match(line)), -1)

    if h1_index != -1:
        head = lines[:h1_index + 1]
        rest = lines[h1_index + 1:]
        block = managed.rstrip("\n").split("\n")
        new_lines = head + [""] + block
        # a blank line the user already had after the H1 separates the block
        if rest and rest[0] != "":
            new_lines.append("")
        new_lines += rest
        content = "\n".join(new_lines)
        if not content.endswith("\n"):
            content += "\n"
        return UpsertResult(content=content, changed=True)

    content = managed + text
    return UpsertResult(content=content, changed=content != text)


def parse_roadmap_milestones(markdown: str) -> ParseRoadmapResult:
    """Collect `- [id] title` items with their H2 section."""
    result = ParseRoadmapResult()
    section: Optional[str] = None

    for number, line in enumerate(markdown.replace("\r\n", "\n").split("\n"), 1):
        h2 = H2_RE.match(line)
        if h2:
            section = h2.group(1)
            continue

        match = ROADMAP_ITEM_RE.match(line)
        if not match:
            continue

        item_id = match.group(1).strip()
        title = match.group(2).strip()
        if not item_id or not title:
            result.warnings.append(f"Invalid roadmap item at line {number}")
            continue

        result.items.append(RoadmapItem(id=item_id, title=title, line=number, section=section))

    return result


def add_roadmap_item(markdown: str, section: str, text: str, item_id: Optional[str] = None) -> str:
    """Insert a bullet at the top of `## <section>`.

    The section matches either exactly or with a parenthesized suffix, so
    "Now" finds "## Now (1–2 weeks)".

    Raises:
        ValueError: If the section header is not found
    """
    lines = markdown.replace("\r\n", "\n").split("\n")
    header = f"## {section.strip()}"

    header_index = -1
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped == header or stripped.startswith(header + " ("):
            header_index = i
            break

    if header_index == -1:
        raise ValueError(f"Section not found: {header}")

    item_text = text.strip()
    bullet = f"- [{item_id.strip()}] {item_text}" if item_id else f"- {item_text}"

    insert_at = header_index + 1
    if insert_at < len(lines) and lines[insert_at] == "":
        insert_at += 1
    lines.insert(insert_at, bullet)

    content = "\n".join(lines)
    return content if content.endswith("\n") else content + "\n"
