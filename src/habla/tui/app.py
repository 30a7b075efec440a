"""Habla TUI application - tutoring chat with live corrections."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.logging import TextualHandler
from textual.widgets import Footer, Header

from ..chat.credentials import CredentialStore, DotenvCredentialStore
from ..chat.orchestrator import ProviderFactory
from ..chat.providers import create_provider
from ..config import Settings
from .widgets.chat_panel import ChatPanel
from .widgets.settings_screen import SettingsScreen

logger = logging.getLogger(__name__)


class HablaApp(App):
    """Habla TUI - conversation practice with grammar corrections."""

    TITLE = "Habla"

    BINDINGS = [
        Binding("escape", "cancel_turn", "Stop", show=True),
        Binding("ctrl+s", "settings", "Settings", show=True),
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialStore,
        provider_factory: ProviderFactory = create_provider,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._credentials = credentials
        self._provider_factory = provider_factory
        self._settings_open = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield ChatPanel(
            self._settings,
            self._credentials,
            self._provider_factory,
            id="chat-panel",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = f"{self._settings.language} - {self._settings.model}"
        if not self._credentials.get():
            self.action_settings()

    @property
    def _chat_panel(self) -> ChatPanel:
        return self.query_one("#chat-panel", ChatPanel)

    def on_chat_panel_configuration_requested(self, _message: ChatPanel.ConfigurationRequested) -> None:
        self.action_settings()

    def action_settings(self) -> None:
        if self._settings_open:
            return
        self._settings_open = True
        self.push_screen(
            SettingsScreen(self._settings.api_key_name, self._credentials.get()),
            self._on_settings_closed,
        )

    def _on_settings_closed(self, api_key: str | None) -> None:
        self._settings_open = False
        if api_key:
            self._credentials.set(api_key)
            logger.info("API key updated")
            self.notify("API key saved")

    def action_cancel_turn(self) -> None:
        if self._chat_panel.cancel_turn():
            logger.info("Turn cancelled by user")


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("HABLA_LOG_LEVEL", "INFO").upper(),
        handlers=[TextualHandler()],
    )
    settings = Settings.from_env()
    credentials = DotenvCredentialStore(settings.env_file, settings.api_key_name)
    HablaApp(settings, credentials).run()
