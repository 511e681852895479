"""Pending selection — the local half of the create-then-confirm flow.

// [LAW:one-source-of-truth] The draft identity of an in-flight create lives here only.

set_pending() records intent when the user submits a new rule; the engine
consumes it when the registry confirms with a matching RuleAdded event.
clear() is the cancellation path for a failed create request.
"""

from __future__ import annotations

import logging

from rule_panes.app.rules import RuleIdentity

logger = logging.getLogger(__name__)


class PendingSelectionTracker:
    """Tracks at most one rule that should be auto-selected once it appears."""

    def __init__(self) -> None:
        self._pending: RuleIdentity | None = None

    @property
    def pending(self) -> RuleIdentity | None:
        return self._pending

    def set_pending(self, draft_identity: RuleIdentity) -> None:
        if self._pending is not None and self._pending != draft_identity:
            logger.debug("Pending selection %s replaced by %s", self._pending.key, draft_identity.key)
        self._pending = draft_identity

    def consume_if_matches(self, identity: RuleIdentity) -> bool:
        """Clear and return True iff identity is the pending one."""
        if self._pending is None or self._pending != identity:
            return False
        self._pending = None
        return True

    def clear(self) -> None:
        self._pending = None
