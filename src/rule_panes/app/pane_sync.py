"""Pane sync engine — keeps the pane roster in step with registry events.

// [LAW:one-source-of-truth] Roster and selection live here; the UI only mirrors them.
// [LAW:single-enforcer] All four transition rules (added/removed/changed/reloaded) are applied here.
// [LAW:one-way-deps] No widget imports. Observers are duck-typed.

The engine is single-threaded by construction: every method must be called
from the dispatcher's drain thread. Events naming an identity that is not in
the roster are logged and ignored so out-of-order delivery never corrupts
indices.

Observer callbacks (all optional, looked up by name):
    on_inserted(index, item)
    on_removed(index, item)
    on_replaced(index, item)
    on_reset(items)
    on_selection_changed(item)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from rule_panes.app.pending_selection import PendingSelectionTracker
from rule_panes.app.rules import Rule, RuleIdentity, RuleKind

logger = logging.getLogger(__name__)


class _General:
    """Selection sentinel for the General pane."""

    _instance: _General | None = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "GENERAL"


GENERAL = _General()

SelectionKey = RuleIdentity | _General


@dataclass(frozen=True)
class PaneItem:
    """UI projection of one rule, or the General pane when rule is None."""

    rule: Rule | None = None

    @property
    def identity(self) -> RuleIdentity | None:
        return self.rule.identity if self.rule is not None else None

    @property
    def key(self) -> SelectionKey:
        return self.rule.identity if self.rule is not None else GENERAL

    @property
    def is_general(self) -> bool:
        return self.rule is None

    @property
    def title(self) -> str:
        return "General" if self.rule is None else self.rule.display_name

    @property
    def removable(self) -> bool:
        return self.rule is not None and self.rule.kind in (RuleKind.PROCESS, RuleKind.CLASS)


GENERAL_PANE = PaneItem()


class RosterObserver(Protocol):
    def on_inserted(self, index: int, item: PaneItem) -> None: ...
    def on_removed(self, index: int, item: PaneItem) -> None: ...
    def on_replaced(self, index: int, item: PaneItem) -> None: ...
    def on_reset(self, items: tuple[PaneItem, ...]) -> None: ...
    def on_selection_changed(self, item: PaneItem) -> None: ...


class PaneSyncEngine:
    """Ordered roster of panes plus an identity-based selection.

    Index 0 is always the General pane. Everything after it is in
    append order.
    """

    def __init__(
        self,
        pending: PendingSelectionTracker | None = None,
        observer: RosterObserver | None = None,
    ) -> None:
        self._pending = pending if pending is not None else PendingSelectionTracker()
        self._observer = observer
        self._items: list[PaneItem] = [GENERAL_PANE]
        self._selected: SelectionKey = GENERAL
        self._disposed = False

    # ─── Read API ─────────────────────────────────────────────────────

    @property
    def general(self) -> PaneItem:
        return GENERAL_PANE

    @property
    def pending(self) -> PendingSelectionTracker:
        return self._pending

    @property
    def roster(self) -> tuple[PaneItem, ...]:
        return tuple(self._items)

    @property
    def selected_identity(self) -> SelectionKey:
        return self._selected

    @property
    def selected_item(self) -> PaneItem:
        index = self.index_of(self._selected)
        # Selection invariant: a non-General key always resolves.
        return self._items[index] if index is not None else GENERAL_PANE

    @property
    def disposed(self) -> bool:
        return self._disposed

    def index_of(self, key: SelectionKey) -> int | None:
        if key is GENERAL:
            return 0
        for index, item in enumerate(self._items):
            if item.identity == key:
                return index
        return None

    def set_observer(self, observer: RosterObserver | None) -> None:
        self._observer = observer

    # ─── Transitions ──────────────────────────────────────────────────

    def initialize(self, snapshot: Iterable[Rule]) -> tuple[PaneItem, ...]:
        """Build General + one pane per snapshot rule; select General."""
        if self._refuse("initialize"):
            return self.roster
        self._rebuild(snapshot)
        self._set_selection(GENERAL, force=True)
        return self.roster

    def on_rule_added(self, rule: Rule) -> None:
        if self._refuse("rule added"):
            return
        existing = self.index_of(rule.identity)
        if existing is not None:
            # [LAW:one-source-of-truth] At most one pane per identity.
            logger.warning("Rule %s added twice; updating in place", rule.identity.key)
            self._replace_at(existing, rule)
        else:
            item = PaneItem(rule)
            self._items.append(item)
            self._notify("on_inserted", len(self._items) - 1, item)

        if self._pending.consume_if_matches(rule.identity):
            self._set_selection(rule.identity)

    def on_rule_removed(self, rule: Rule) -> None:
        if self._refuse("rule removed"):
            return
        index = self.index_of(rule.identity)
        if index is None:
            logger.warning("Ignoring removal of unknown rule %s", rule.identity.key)
            return
        item = self._items.pop(index)
        self._notify("on_removed", index, item)
        if self._selected == rule.identity:
            self._set_selection(GENERAL)

    def on_rule_changed(self, rule: Rule) -> None:
        if self._refuse("rule changed"):
            return
        index = self.index_of(rule.identity)
        if index is None:
            logger.warning("Ignoring change of unknown rule %s", rule.identity.key)
            return
        self._replace_at(index, rule)

    def on_config_reloaded(self, snapshot: Iterable[Rule]) -> None:
        """Rebuild from snapshot, restoring selection by identity if possible."""
        if self._refuse("config reloaded"):
            return
        previous = self._selected
        self._rebuild(snapshot)
        restored = previous if self.index_of(previous) is not None else GENERAL
        if restored is not previous:
            logger.info("Selected rule %s vanished on reload; selecting General", previous.key)
        self._set_selection(restored, force=True)

    def select(self, key: SelectionKey) -> bool:
        """User click. Returns False when the key is not in the roster."""
        if self._refuse("select"):
            return False
        if self.index_of(key) is None:
            logger.warning("Ignoring selection of unknown rule %s", getattr(key, "key", key))
            return False
        self._set_selection(key)
        return True

    def dispose(self) -> None:
        self._disposed = True
        self._observer = None

    # ─── Internals ────────────────────────────────────────────────────

    def _refuse(self, what: str) -> bool:
        if self._disposed:
            logger.debug("Engine disposed; dropping %s", what)
        return self._disposed

    def _rebuild(self, snapshot: Iterable[Rule]) -> None:
        items = [GENERAL_PANE]
        seen: set[RuleIdentity] = set()
        for rule in snapshot:
            if rule.identity in seen:
                logger.warning("Duplicate rule %s in snapshot; keeping first", rule.identity.key)
                continue
            seen.add(rule.identity)
            items.append(PaneItem(rule))
        self._items = items
        self._notify("on_reset", tuple(items))

    def _replace_at(self, index: int, rule: Rule) -> None:
        item = PaneItem(rule)
        self._items[index] = item
        self._notify("on_replaced", index, item)
        if self._selected == rule.identity:
            # Re-affirm on the replacement instance.
            self._notify("on_selection_changed", item)

    def _set_selection(self, key: SelectionKey, force: bool = False) -> None:
        if key == self._selected and not force:
            return
        self._selected = key
        self._notify("on_selection_changed", self.selected_item)

    def _notify(self, method: str, *args) -> None:
        observer = self._observer
        if observer is None:
            return
        callback = getattr(observer, method, None)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Roster observer %s failed", method)
