"""Settings controller — view-model behind the settings window.

// [LAW:single-enforcer] Registry events reach the engine only through the dispatcher.
// [LAW:locality-or-seam] Commands (add/remove) never touch the roster; the confirming event does.

Lifecycle:
    controller = SettingsController(registry, store, dispatcher, observer=...)
    controller.initialize(window)   # restore placement, build roster
    ...                             # events + commands
    controller.close()              # save placement, unsubscribe, dispose

The registry subscription is taken in __init__ and released in close();
close() is idempotent and must be called by the owner on every exit path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as dist_version
from typing import Protocol

from rule_panes.app.dispatch import SerialDispatcher
from rule_panes.app.pane_sync import GENERAL, PaneItem, PaneSyncEngine, RosterObserver, SelectionKey
from rule_panes.app.pending_selection import PendingSelectionTracker
from rule_panes.app.rules import Capabilities, Rule, build_option_lists, class_rule, process_rule
from rule_panes.io.placement_codec import DecodeFailure, Placement, load_placement, save_placement

logger = logging.getLogger(__name__)

DIST_NAME = "rule-panes"


@dataclass(frozen=True)
class CommandOutcome:
    """Result of a user command that round-trips through the registry."""

    ok: bool
    error: str = ""
    rule: Rule | None = None


class WindowHost(Protocol):
    def get_placement(self) -> Placement | None: ...
    def apply_placement(self, placement: Placement) -> None: ...


def _installed_version() -> str:
    try:
        return dist_version(DIST_NAME)
    except PackageNotFoundError:
        return "<unknown>"


class SettingsController:
    def __init__(
        self,
        registry,
        settings_store,
        dispatcher: SerialDispatcher,
        *,
        observer: RosterObserver | None = None,
        capabilities: Capabilities | None = None,
    ) -> None:
        self._registry = registry
        self._store = settings_store
        self._dispatcher = dispatcher
        self._pending = PendingSelectionTracker()
        self._engine = PaneSyncEngine(self._pending, observer)
        self._window: WindowHost | None = None
        self._closed = False
        self.capabilities = capabilities or Capabilities()
        self.options = build_option_lists(self.capabilities)
        self.version = _installed_version()
        self._unsubscribe = registry.subscribe(self)

    # ─── State ────────────────────────────────────────────────────────

    @property
    def engine(self) -> PaneSyncEngine:
        return self._engine

    @property
    def pending(self) -> PendingSelectionTracker:
        return self._pending

    @property
    def roster(self) -> tuple[PaneItem, ...]:
        return self._engine.roster

    @property
    def selected_item(self) -> PaneItem:
        return self._engine.selected_item

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def can_remove_rule(self) -> bool:
        return not self._closed and self._engine.selected_item.removable

    def set_observer(self, observer: RosterObserver | None) -> None:
        self._engine.set_observer(observer)

    # ─── Lifecycle ────────────────────────────────────────────────────

    def initialize(self, window: WindowHost | None = None) -> tuple[PaneItem, ...]:
        self._window = window
        if window is not None:
            placement = load_placement(self._store)
            if isinstance(placement, DecodeFailure):
                logger.debug("No usable window placement (%s); using default", placement.reason)
            else:
                window.apply_placement(placement)
        return self._engine.initialize(self._registry.rules)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        window, self._window = self._window, None
        if window is not None:
            self._save_placement(window)
        self._unsubscribe()
        self._engine.dispose()
        self._pending.clear()
        logger.debug("Settings controller closed")

    def _save_placement(self, window: WindowHost) -> None:
        try:
            placement = window.get_placement()
            if placement is None:
                return
            save_placement(self._store, placement)
        except (OSError, ValueError):
            logger.exception("Failed to save window placement")

    # ─── Registry listener (any thread) ───────────────────────────────

    def on_rule_added(self, rule: Rule) -> None:
        self._dispatcher.post(self._apply, "on_rule_added", rule)

    def on_rule_removed(self, rule: Rule) -> None:
        self._dispatcher.post(self._apply, "on_rule_removed", rule)

    def on_rule_changed(self, rule: Rule) -> None:
        self._dispatcher.post(self._apply, "on_rule_changed", rule)

    def on_config_reloaded(self) -> None:
        # Snapshot now so the rebuild is ordered with the events around it.
        self._dispatcher.post(self._apply, "on_config_reloaded", self._registry.rules)

    def _apply(self, method: str, arg) -> None:
        if self._closed:
            logger.debug("Dropping %s after close", method)
            return
        getattr(self._engine, method)(arg)

    # ─── Commands (UI thread) ─────────────────────────────────────────

    def select(self, key: SelectionKey) -> bool:
        if self._closed:
            return False
        return self._engine.select(key)

    async def add_process_rule(self, process_name: str) -> CommandOutcome:
        return await self._add_rule(process_rule(str(process_name or "")))

    async def add_class_rule(self, class_name: str) -> CommandOutcome:
        return await self._add_rule(class_rule(str(class_name or "")))

    async def _add_rule(self, rule: Rule) -> CommandOutcome:
        if self._closed:
            return CommandOutcome(False, "settings window is closed")
        if not rule.pattern:
            return CommandOutcome(False, "name must not be empty")

        self._pending.set_pending(rule.identity)
        try:
            await self._registry.add_rule(rule)
        except Exception as e:
            logger.warning("Creating rule %s failed: %s", rule.identity.key, e)
            # Only cancel our own intent; a newer submit may have replaced it.
            if self._pending.pending == rule.identity:
                self._pending.clear()
            return CommandOutcome(False, str(e) or type(e).__name__, rule)
        return CommandOutcome(True, rule=rule)

    async def remove_selected_rule(self) -> CommandOutcome:
        item = self._engine.selected_item
        if self._closed or not item.removable:
            return CommandOutcome(False, "selected pane cannot be removed")

        rule = item.rule
        self._engine.select(GENERAL)
        try:
            await self._registry.remove_rule(rule)
        except Exception as e:
            logger.warning("Removing rule %s failed: %s", rule.identity.key, e)
            return CommandOutcome(False, str(e) or type(e).__name__, rule)
        return CommandOutcome(True, rule=rule)

    async def update_selected_rule(self, **settings) -> CommandOutcome:
        """Push changed settings for the selected rule; the roster updates on RuleChanged."""
        rule = self._engine.selected_item.rule
        if self._closed or rule is None:
            return CommandOutcome(False, "no rule selected")
        updated = rule.with_settings(**settings)
        try:
            await self._registry.update_rule(updated)
        except Exception as e:
            logger.warning("Updating rule %s failed: %s", rule.identity.key, e)
            return CommandOutcome(False, str(e) or type(e).__name__, rule)
        return CommandOutcome(True, rule=updated)
