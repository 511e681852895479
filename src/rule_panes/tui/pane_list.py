"""Sidebar mirror of the pane roster.

The widget holds no state of its own: option ids are rule identity keys
("general" for the General pane) and every mutation comes from
roster_bridge in roster order.
"""

from __future__ import annotations

from textual.widgets import OptionList
from textual.widgets.option_list import Option

from rule_panes.app.pane_sync import PaneItem

GENERAL_OPTION_ID = "general"


def option_id(item: PaneItem) -> str:
    return GENERAL_OPTION_ID if item.is_general else item.identity.key


def _option(item: PaneItem) -> Option:
    return Option(item.title, id=option_id(item))


class PaneList(OptionList):
    DEFAULT_CSS = """
    PaneList {
        width: 32;
        height: 1fr;
        border-right: solid $primary-muted;
        background: $panel;
    }
    """

    def reset_panes(self, items: tuple[PaneItem, ...]) -> None:
        self.clear_options()
        self.add_options([_option(item) for item in items])

    def insert_pane(self, index: int, item: PaneItem, roster: tuple[PaneItem, ...]) -> None:
        if index != self.option_count:
            # OptionList only appends; anything else is rebuilt from the roster.
            self.reset_panes(roster)
            return
        self.add_option(_option(item))

    def remove_pane_at(self, index: int) -> None:
        self.remove_option_at_index(index)

    def replace_pane_at(self, index: int, item: PaneItem) -> None:
        self.replace_option_prompt_at_index(index, item.title)

    def highlight_pane(self, index: int | None) -> None:
        if self.highlighted != index:
            self.highlighted = index
