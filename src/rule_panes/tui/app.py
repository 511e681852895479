"""Settings window — Textual app around SettingsController.

// [LAW:single-enforcer] The dispatcher is drained only from this app's message pump.
// [LAW:one-way-deps] The app reads roster state from the controller; widgets never hold rule state.

Registry events arrive on worker threads. The controller posts them onto the
SerialDispatcher, whose wake-up callback posts a _DrainRequest message; the
handler drains on the UI thread, so the roster is only ever mutated there.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Footer, Header, OptionList

from rule_panes.app.dispatch import SerialDispatcher
from rule_panes.app.pane_sync import GENERAL, SelectionKey
from rule_panes.app.rules import RuleIdentity
from rule_panes.app.settings_controller import CommandOutcome, SettingsController
from rule_panes.tui.add_rule_dialog import class_rule_dialog, process_rule_dialog
from rule_panes.tui.detail_panel import DetailPanel
from rule_panes.tui.pane_list import GENERAL_OPTION_ID, PaneList
from rule_panes.tui.roster_bridge import RosterBridge
from rule_panes.tui.window_host import TerminalWindowHost

logger = logging.getLogger(__name__)


class _DrainRequest(Message, bubble=False):
    """Thread-safe bridge: any thread → app message pump → dispatcher.drain()."""


def key_for_option(option_id: str | None) -> SelectionKey:
    if not option_id or option_id == GENERAL_OPTION_ID:
        return GENERAL
    return RuleIdentity.parse(option_id)


class SettingsApp(App):
    TITLE = "Rule settings"

    BINDINGS = [
        ("p", "add_process_rule", "Add process rule"),
        ("c", "add_class_rule", "Add class rule"),
        ("b", "cycle_backdrop", "Cycle backdrop"),
        ("d", "remove_rule", "Remove rule"),
        ("q", "close", "Close"),
    ]

    def __init__(
        self,
        controller: SettingsController,
        registry,
        dispatcher: SerialDispatcher,
        *,
        watch: bool = True,
    ) -> None:
        super().__init__()
        self.controller = controller
        self.rule_registry = registry
        self._rule_dispatcher = dispatcher
        self._watch_rules = watch
        self._stop_rules_watch: asyncio.Event | None = None
        self.window_host = TerminalWindowHost(self)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal():
            yield PaneList(id="pane-list")
            yield DetailPanel(id="pane-detail")
        yield Footer()

    def on_mount(self) -> None:
        self._rule_dispatcher.bind(lambda: self.post_message(_DrainRequest()))
        self.controller.set_observer(RosterBridge(self))
        self.controller.initialize(self.window_host)
        # Events that arrived before the bind are still queued.
        self._rule_dispatcher.drain()

        if self._watch_rules:
            self._stop_rules_watch = asyncio.Event()
            self.run_worker(self.rule_registry.watch(self._stop_rules_watch), exclusive=False)

        self.query_one(PaneList).focus()

    def on_unmount(self) -> None:
        self._close_settings()

    def _close_settings(self) -> None:
        if self._stop_rules_watch is not None:
            self._stop_rules_watch.set()
        self._rule_dispatcher.bind(None)
        # [LAW:single-enforcer] Deterministic unsubscribe on every exit path.
        self.controller.close()

    def on__drain_request(self, message: _DrainRequest) -> None:
        self._rule_dispatcher.drain()

    # ─── Selection ────────────────────────────────────────────────────

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        try:
            key = key_for_option(event.option.id)
        except ValueError:
            logger.warning("Unrecognized pane id %r", event.option.id)
            return
        self.controller.select(key)

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        if action == "remove_rule":
            return self.controller.can_remove_rule
        if action == "cycle_backdrop":
            return self.controller.selected_item.rule is not None
        return True

    # ─── Commands ─────────────────────────────────────────────────────

    def action_add_process_rule(self) -> None:
        self.push_screen(process_rule_dialog(), callback=self._submit_process_rule)

    def action_add_class_rule(self) -> None:
        self.push_screen(class_rule_dialog(), callback=self._submit_class_rule)

    def _submit_process_rule(self, name: str | None) -> None:
        if name is not None:
            self._start_command(self.controller.add_process_rule(name))

    def _submit_class_rule(self, name: str | None) -> None:
        if name is not None:
            self._start_command(self.controller.add_class_rule(name))

    def action_remove_rule(self) -> None:
        self._start_command(self.controller.remove_selected_rule())

    def action_cycle_backdrop(self) -> None:
        rule = self.controller.selected_item.rule
        if rule is None:
            return
        choices = self.controller.options.backdrop_types
        index = choices.index(rule.backdrop) if rule.backdrop in choices else -1
        next_backdrop = choices[(index + 1) % len(choices)]
        self._start_command(self.controller.update_selected_rule(backdrop=next_backdrop))

    def action_close(self) -> None:
        self._close_settings()
        self.exit()

    def _start_command(self, command: Awaitable[CommandOutcome]) -> None:
        self.run_worker(self._await_command(command), exclusive=False)

    async def _await_command(self, command: Awaitable[CommandOutcome]) -> CommandOutcome:
        outcome = await command
        if not outcome.ok:
            self.notify(outcome.error, title="Rule request failed", severity="error")
        return outcome
