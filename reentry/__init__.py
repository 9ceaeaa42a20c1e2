"""
Re-entry Status - resume a project after time away.

A lean tool for:
- Tracking phase, next micro-step and active milestone per project
- Persisting status as reentry.status.json + REENTRY.md, atomically
- Keeping a managed block inside a free-form ROADMAP.md
- Mirroring status to a GitHub Issue and an Obsidian note
- Branch-aware version bumps (main / develop / feature/* / hotfix/*)
"""

__version__ = "0.1.0"
