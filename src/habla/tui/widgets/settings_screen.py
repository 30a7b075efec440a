"""SettingsScreen - modal dialog for entering the API key."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static


class SettingsScreen(ModalScreen[str | None]):
    """Asks for the API key. Dismisses with the key, or None when closed."""

    DEFAULT_CSS = """
    SettingsScreen {
        align: center middle;
    }
    #settings-dialog {
        width: 64;
        height: auto;
        padding: 1 2;
        border: round $accent;
        background: $surface;
    }
    #settings-title {
        text-style: bold;
        padding-bottom: 1;
    }
    #settings-error {
        color: $error;
        height: auto;
    }
    #settings-buttons {
        height: auto;
        margin-top: 1;
        align-horizontal: right;
    }
    """

    BINDINGS = [Binding("escape", "close", "Close", show=False)]

    def __init__(self, key_name: str, current: str | None = None) -> None:
        super().__init__()
        self._key_name = key_name
        self._current = current or ""

    def compose(self) -> ComposeResult:
        with Container(id="settings-dialog"):
            yield Static(f"Settings - {self._key_name}", id="settings-title")
            yield Input(
                value=self._current,
                placeholder="sk-...",
                password=True,
                id="api-key",
            )
            yield Static("", id="settings-error")
            with Horizontal(id="settings-buttons"):
                yield Button("Cancel", id="close-settings")
                yield Button("Save", variant="primary", id="save-settings")

    def on_mount(self) -> None:
        self.query_one("#api-key", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-settings":
            self._save()
        elif event.button.id == "close-settings":
            self.action_close()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "api-key":
            self._save()

    def _save(self) -> None:
        value = self.query_one("#api-key", Input).value.strip()
        if not value:
            self.query_one("#settings-error", Static).update("Please enter an API key")
            return
        self.dismiss(value)

    def action_close(self) -> None:
        self.dismiss(None)
