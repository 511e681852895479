"""Modal prompt for a process or window-class name.

Dismisses with the entered text, or None on Escape. Validation of the
name is the registry's job.
"""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, Static


class AddRuleDialog(ModalScreen[str | None]):
    DEFAULT_CSS = """
    AddRuleDialog {
        align: center middle;
    }
    AddRuleDialog > Vertical {
        width: 50;
        height: auto;
        border: round $primary;
        background: $panel;
        padding: 1 2;
    }
    AddRuleDialog .dialog-title {
        text-style: bold;
        margin-bottom: 1;
    }
    AddRuleDialog .dialog-footer {
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, title: str, placeholder: str) -> None:
        super().__init__()
        self._prompt_title = title
        self._name_placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self._prompt_title, classes="dialog-title")
            yield Input(placeholder=self._name_placeholder, id="rule-name")
            yield Static("Enter add  Esc cancel", classes="dialog-footer")

    def on_mount(self) -> None:
        self.query_one("#rule-name", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value.strip())

    def action_cancel(self) -> None:
        self.dismiss(None)


def process_rule_dialog() -> AddRuleDialog:
    return AddRuleDialog("Add process rule", "process name, e.g. explorer")


def class_rule_dialog() -> AddRuleDialog:
    return AddRuleDialog("Add class rule", "window class name, e.g. CabinetWClass")
