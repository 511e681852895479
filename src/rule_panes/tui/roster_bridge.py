"""Roster → widget bridge. The engine's observer for the settings window.

// [LAW:one-way-deps] Depends on the engine (data) and widget modules (push targets).
// [LAW:locality-or-seam] Coupling between roster and widgets isolated here.
// [LAW:single-enforcer] Each callback is the single path from engine → widget.
"""

from __future__ import annotations

from textual.css.query import NoMatches

from rule_panes.app.pane_sync import PaneItem
from rule_panes.tui.detail_panel import DetailPanel
from rule_panes.tui.pane_list import PaneList


class RosterBridge:
    """Implements the roster observer protocol by pushing into mounted widgets.

    Calls arriving before compose or after unmount find no widgets and are
    dropped; the next reset repaints everything.
    """

    def __init__(self, app) -> None:
        self._app = app

    def _pane_list(self) -> PaneList | None:
        try:
            return self._app.query_one(PaneList)
        except NoMatches:
            return None

    def _detail(self) -> DetailPanel | None:
        try:
            return self._app.query_one(DetailPanel)
        except NoMatches:
            return None

    def _roster(self) -> tuple[PaneItem, ...]:
        return self._app.controller.roster

    def _sync_highlight(self, pane_list: PaneList) -> None:
        engine = self._app.controller.engine
        pane_list.highlight_pane(engine.index_of(engine.selected_identity))

    def _refresh_general(self) -> None:
        # Rule count on the General pane follows the roster.
        controller = self._app.controller
        item = controller.selected_item
        detail = self._detail()
        if detail is not None and item.is_general:
            detail.show_pane(item, controller)

    def on_inserted(self, index: int, item: PaneItem) -> None:
        pane_list = self._pane_list()
        if pane_list is not None:
            pane_list.insert_pane(index, item, self._roster())
            self._sync_highlight(pane_list)
        self._refresh_general()

    def on_removed(self, index: int, item: PaneItem) -> None:
        pane_list = self._pane_list()
        if pane_list is not None:
            pane_list.remove_pane_at(index)
            self._sync_highlight(pane_list)
        self._refresh_general()

    def on_replaced(self, index: int, item: PaneItem) -> None:
        pane_list = self._pane_list()
        if pane_list is not None:
            pane_list.replace_pane_at(index, item)
            self._sync_highlight(pane_list)

    def on_reset(self, items: tuple[PaneItem, ...]) -> None:
        pane_list = self._pane_list()
        if pane_list is not None:
            pane_list.reset_panes(items)
            self._sync_highlight(pane_list)
        self._refresh_general()

    def on_selection_changed(self, item: PaneItem) -> None:
        controller = self._app.controller
        pane_list = self._pane_list()
        if pane_list is not None:
            self._sync_highlight(pane_list)
        detail = self._detail()
        if detail is not None:
            detail.show_pane(item, controller)
        self._app.refresh_bindings()
