"""
Lifecycle hooks fired after a version bump or a release.

Hooks are best-effort: a failure is logged as a warning and never
interrupts the bump or release that triggered it.

Both hooks honour, in order:
- enabled / autoSync
- hooks.postVersion (default on) / hooks.postRelease (default off)
"""

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from reentry.config import load_config
from reentry.git_ops import GitContext, collect_git_context, infer_phase, suggest_next_step
from reentry.models.status import (
    CURRENT_SCHEMA_VERSION,
    NextStep,
    Status,
    UpdateContext,
    VersioningInfo,
    now_iso,
)
from reentry.status_sync import ReentryStatusManager

logger = logging.getLogger(__name__)


class ReentryHooks:
    """postVersion / postRelease handlers.

    Args:
        manager: Status manager to update and sync through
        git_context_provider: Returns the HEAD context; defaults to git
    """

    def __init__(
        self,
        manager: Optional[ReentryStatusManager] = None,
        git_context_provider: Optional[Callable[[], GitContext]] = None,
    ):
        self.manager = manager or ReentryStatusManager()
        self.git_context_provider = git_context_provider or collect_git_context

    def post_version(
        self,
        root_config: Dict[str, Any],
        release_type: str,
        version: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Status]:
        """Record a version bump: context, phase, next step, versioning, then sync.

        Returns:
            The updated status, or None if the hook was skipped or failed
        """
        options = options or {}
        try:
            config = load_config(root_config, options.get("project"))
            if not config.enabled or not config.auto_sync or not config.hooks.post_version:
                logger.debug("postVersion hook disabled, skipping")
                return None

            git = self.git_context_provider()
            phase = infer_phase(git)
            next_step = suggest_next_step(git)

            def roll_forward(current: Status) -> Status:
                return replace(
                    current,
                    schema_version=CURRENT_SCHEMA_VERSION,
                    version=version,
                    current_phase=phase,
                    next_steps=[NextStep(id="next", description=next_step, priority=1)],
                    context=UpdateContext(
                        trigger="postVersion",
                        command="reentry bump",
                        options=options or None,
                        git_info=git.to_git_info(),
                        versioning_info=VersioningInfo(
                            version_type=release_type,
                            old_version=current.versioning.current_version or None,
                            new_version=version,
                        ),
                    ),
                    versioning=replace(
                        current.versioning,
                        current_version=version,
                        previous_version=current.versioning.current_version,
                        version_type=release_type,
                    ),
                    last_updated=now_iso(),
                )

            status = self.manager.update_status(config, roll_forward)
            self.manager.sync_all(config)
            logger.info(f"Re-entry auto-updated: phase={phase}, next=\"{next_step}\"")
            return status

        except Exception as e:
            logger.warning(f"reentry-status postVersion hook failed: {e}")
            return None

    def post_release(
        self,
        root_config: Dict[str, Any],
        version: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Status]:
        """Record a release in the status context, then sync.

        Returns:
            The updated status, or None if the hook was skipped or failed
        """
        options = options or {}
        try:
            config = load_config(root_config, options.get("project"))
            if not config.enabled or not config.auto_sync or not config.hooks.post_release:
                logger.debug("postRelease hook disabled, skipping")
                return None

            git = self.git_context_provider()
            status = self.manager.apply_context(config, UpdateContext(
                trigger="postRelease",
                command="reentry release",
                options=options or None,
                git_info=git.to_git_info(),
                versioning_info=VersioningInfo(new_version=version),
            ))
            self.manager.sync_all(config)
            return status

        except Exception as e:
            logger.warning(f"reentry-status postRelease hook failed: {e}")
            return None
