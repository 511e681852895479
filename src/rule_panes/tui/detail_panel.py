"""Shows the selected pane.

The General pane shows app information; rule panes show the rule's
settings. Editing is done through app actions, not in this widget.
"""

from __future__ import annotations

from rich.table import Table
from rich.text import Text
from textual.widgets import Static

from rule_panes.app.pane_sync import PaneItem


def _general_table(controller) -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Version", controller.version)
    table.add_row("Rules", str(len(controller.roster) - 1))
    table.add_row(
        "Backdrops",
        ", ".join(b.value for b in controller.options.backdrop_types),
    )
    table.add_row(
        "Titlebar modes",
        ", ".join(m.value for m in controller.options.titlebar_color_modes),
    )
    table.add_row(
        "Corners",
        ", ".join(c.value for c in controller.options.corner_preferences),
    )
    return table


def _rule_table(item: PaneItem) -> Table:
    rule = item.rule
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Kind", rule.kind.value)
    if rule.pattern:
        table.add_row("Match", rule.pattern)
    table.add_row("Backdrop", rule.backdrop.value)
    table.add_row("Titlebar", rule.titlebar_color.value)
    table.add_row("Corners", rule.corner_preference.value)
    table.add_row("Extend frame", "on" if rule.extend_frame_into_client_area else "off")
    table.add_row("Blur behind", "on" if rule.enable_blur_behind else "off")
    return table


class DetailPanel(Static):
    DEFAULT_CSS = """
    DetailPanel {
        width: 1fr;
        height: 1fr;
        padding: 1 2;
    }
    """

    shown_rule_count: int | None = None

    def show_pane(self, item: PaneItem, controller) -> None:
        self.border_title = item.title
        self.shown_rule_count = len(controller.roster) - 1 if item.is_general else None
        body = _general_table(controller) if item.is_general else _rule_table(item)
        hint = Text(
            "p add process rule  c add class rule  b cycle backdrop  d remove  q close",
            style="dim",
        )
        grid = Table.grid()
        grid.add_row(body)
        grid.add_row(Text(""))
        grid.add_row(hint)
        self.update(grid)
