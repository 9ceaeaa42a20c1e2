"""
Generators for user-facing markdown files.
"""

from reentry.generators.roadmap_md import (
    ParseRoadmapResult,
    RoadmapItem,
    UpsertResult,
    add_roadmap_item,
    default_roadmap_path,
    parse_roadmap_milestones,
    render_managed_block,
    render_template,
    upsert_managed_block,
)

__all__ = [
    "ParseRoadmapResult",
    "RoadmapItem",
    "UpsertResult",
    "add_roadmap_item",
    "default_roadmap_path",
    "parse_roadmap_milestones",
    "render_managed_block",
    "render_template",
    "upsert_managed_block",
]
