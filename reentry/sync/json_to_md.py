"""
Render a Status to its persisted forms.

reentry.status.json is deep key-sorted for stable diffs.
REENTRY.md uses a fixed field layout with no timestamps, so the same
Status always renders to byte-identical text.
"""

import json

from reentry.constants import EMPTY_MARK
from reentry.generators.roadmap_md import default_roadmap_path, format_milestone
from reentry.models.status import Status


def render_json(status: Status) -> str:
    """Serialize status as sorted, 2-space indented JSON with a trailing newline."""
    return json.dumps(status.to_dict(), indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def render_markdown(status: Status) -> str:
    """Render the REENTRY.md mirror of status."""
    next_micro_step = status.next_micro_step
    if next_micro_step is None:
        next_micro_step = EMPTY_MARK

    return "\n".join([
        "# Re-entry Status",
        "",
        f"Schema: {status.schema_version}",
        f"Version: {status.version}",
        f"Phase: {status.current_phase}",
        "",
        f"Next micro-step: {next_micro_step}",
        "",
        f"Milestone: {format_milestone(status)}",
        f"Roadmap: {status.roadmap_file or default_roadmap_path()}",
        "",
        "## Notes",
        "",
        "- This file is generated for stable diffs. Edit ROADMAP.md for long-term planning.",
        "",
    ])
