"""
Parse persisted forms back into Status data.

parse_json is the tolerant loader for reentry.status.json (including
schema 1.0 files). parse_markdown recovers the fields REENTRY.md prints.
"""

import json
import re
from typing import Any, Dict, Optional

from reentry.constants import EMPTY_MARK
from reentry.generators.roadmap_md import default_roadmap_path
from reentry.models.status import MilestoneLink, NextStep, Status


MILESTONE_ID_MARKERS = (" (id: ", "(id: ")


class StatusParseError(ValueError):
    """Raised when reentry.status.json does not hold a JSON object."""

    def __init__(self, message: str, source: str = ""):
        self.message = message
        self.source = source
        super().__init__(message)


def parse_json(text: str, default_roadmap_file: Optional[str] = None) -> Status:
    """Parse reentry.status.json content into a Status.

    Missing structures get safe defaults; a missing roadmapFile becomes
    default_roadmap_file, or the unscoped default roadmap path.

    Raises:
        StatusParseError: If text is not valid JSON or not an object
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise StatusParseError(f"Invalid status JSON: {e}", source=text) from e

    if not isinstance(raw, dict):
        raise StatusParseError("Status JSON must be an object", source=text)

    return Status.from_dict(raw, default_roadmap_file=default_roadmap_file or default_roadmap_path())


def _field(markdown: str, label: str) -> Optional[str]:
    match = re.search(rf"^{re.escape(label)}:[ \t]*([^\n\r]*)$", markdown, re.MULTILINE)
    return match.group(1).strip() if match else None


def _parse_milestone(text: str) -> Optional[MilestoneLink]:
    """Split `title (id: id)` on the last id marker."""
    marker = next((m for m in MILESTONE_ID_MARKERS if m in text), None)
    if marker is None or not text.endswith(")"):
        return None

    index = text.rfind(marker)
    title = text[:index].strip()
    milestone_id = text[index + len(marker):-1].strip()
    return MilestoneLink(id=milestone_id, title=title)


def parse_markdown(markdown: str) -> Dict[str, Any]:
    """Extract the fields REENTRY.md prints.

    Returns a dict of Status field names, so the result can be applied with
    dataclasses.replace(). Fields absent from the markdown are absent from
    the dict. A blank or placeholder milestone yields milestone=None.
    """
    markdown = markdown.replace("\r\n", "\n")
    out: Dict[str, Any] = {}

    schema = _field(markdown, "Schema")
    if schema is not None:
        out["schema_version"] = schema

    version = _field(markdown, "Version")
    if version is not None:
        out["version"] = version

    phase = _field(markdown, "Phase")
    if phase is not None:
        out["current_phase"] = phase

    next_step = _field(markdown, "Next micro-step")
    if next_step and next_step != EMPTY_MARK:
        out["next_steps"] = [NextStep(id="next", description=next_step, priority=1)]

    roadmap = _field(markdown, "Roadmap")
    if roadmap is not None:
        out["roadmap_file"] = roadmap

    milestone = _field(markdown, "Milestone")
    if milestone is not None:
        if not milestone or milestone == EMPTY_MARK:
            out["milestone"] = None
        else:
            link = _parse_milestone(milestone)
            if link is not None:
                out["milestone"] = link

    return out
