"""
Shared names for re-entry status files and config keys.
"""

EXTENSION_NAME = "reentry-status"
LEGACY_CONFIG_KEY = "reentryStatus"

REENTRY_STATUS_DIRNAME = ".versioning"
PROJECTS_DIRNAME = "projects"

REENTRY_STATUS_JSON_FILENAME = "reentry.status.json"
REENTRY_STATUS_MD_FILENAME = "REENTRY.md"
ROADMAP_MD_FILENAME = "ROADMAP.md"

ROADMAP_MANAGED_START = "<!-- roadmap:managed:start -->"
ROADMAP_MANAGED_END = "<!-- roadmap:managed:end -->"

# Placeholder used in rendered markdown for "no value"
EMPTY_MARK = "—"
