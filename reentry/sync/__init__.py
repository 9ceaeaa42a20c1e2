"""
Re-entry Sync - Status JSON↔MD rendering.

reentry.status.json is the source of truth.
REENTRY.md is regenerated from it on every write.

Usage:
    from reentry.sync import render_json, render_markdown, parse_json

    text = render_json(status)         # For reentry.status.json
    status = parse_json(text)          # Tolerant load, schema 1.0 included
    md = render_markdown(status)       # For REENTRY.md
"""

from reentry.sync.json_to_md import (
    render_json,
    render_markdown,
)
from reentry.sync.md_to_json import (
    StatusParseError,
    parse_json,
    parse_markdown,
)

__all__ = [
    # JSON/MD rendering
    "render_json",
    "render_markdown",
    # Parsing
    "StatusParseError",
    "parse_json",
    "parse_markdown",
]
