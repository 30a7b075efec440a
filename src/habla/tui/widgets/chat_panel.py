"""ChatPanel widget - tutoring chat with streaming replies and corrections."""

from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Input, Static
from textual.worker import Worker

from ...chat.corrections import CorrectionResult
from ...chat.credentials import CredentialStore
from ...chat.errors import ConfigurationError
from ...chat.history import ConversationHistory
from ...chat.orchestrator import ProviderFactory, TurnOrchestrator
from ...chat.system_prompt import build_persona_prompt
from ...chat.transcript import TranscriptBase, TurnHandle
from ...config import Settings
from ..commands import COMMANDS, parse_command
from .correction_panel import CorrectionPanel


class UserTurn(Vertical):
    """A user message; corrections are mounted below it when they arrive."""

    DEFAULT_CSS = """
    UserTurn {
        height: auto;
        margin: 1 0 0 0;
    }
    UserTurn .chat-user {
        color: $accent;
    }
    """

    def __init__(self, text: str) -> None:
        super().__init__()
        self._text = text

    def compose(self) -> ComposeResult:
        yield Static(f"> {self._text}", classes="chat-user", markup=False)


class StreamingReply:
    """Assistant placeholder that grows as deltas arrive."""

    def __init__(self, widget: Static, container: VerticalScroll) -> None:
        self._widget = widget
        self._container = container
        self._text = ""

    def append_delta(self, text: str) -> None:
        self._text += text
        self._widget.update(self._text)
        self._container.scroll_end(animate=False)

    def finish(self) -> None:
        pass

    def fail(self) -> None:
        if not self._text:
            self._widget.remove()


class TranscriptView(TranscriptBase):
    """Transcript rendered into a VerticalScroll of Textual widgets."""

    def __init__(self, container: VerticalScroll) -> None:
        super().__init__()
        self._container = container
        self._turns: dict[TurnHandle, UserTurn] = {}

    def _mount(self, widget: Widget) -> None:
        self._container.mount(widget)
        self._container.scroll_end(animate=False)

    def _show_user_turn(self, handle: TurnHandle, text: str) -> None:
        widget = UserTurn(text)
        self._turns[handle] = widget
        self._mount(widget)

    def _show_assistant_placeholder(self) -> StreamingReply:
        widget = Static("", classes="chat-assistant", markup=False)
        self._mount(widget)
        return StreamingReply(widget, self._container)

    def _show_corrections(self, handle: TurnHandle, result: CorrectionResult) -> None:
        self._turns[handle].mount(CorrectionPanel(result))

    def _show_error(self, text: str) -> None:
        self._mount(Static(text, classes="chat-error", markup=False))

    def _show_info(self, text: str) -> None:
        self._mount(Static(text, classes="chat-info", markup=False))

    def _show_cleared(self) -> None:
        self._turns.clear()
        self._container.remove_children()


class ChatPanel(Widget):
    """Chat panel with input, transcript, and the turn orchestrator."""

    DEFAULT_CSS = """
    ChatPanel {
        height: 100%;
        width: 100%;
        layout: vertical;
    }
    ChatPanel #chat-messages {
        height: 1fr;
        padding: 0 1;
    }
    ChatPanel .chat-assistant {
        margin: 0 0 0 2;
    }
    ChatPanel .chat-error {
        color: $error;
        margin: 0 0 0 2;
    }
    ChatPanel .chat-info {
        color: $text-muted;
        content-align: center middle;
        margin: 1 0;
    }
    ChatPanel #chat-input {
        dock: bottom;
        margin: 0;
    }
    """

    class ConfigurationRequested(Message):
        """Posted when the API key has to be (re)entered."""

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialStore,
        provider_factory: ProviderFactory,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._settings = settings
        self._credentials = credentials
        self._provider_factory = provider_factory
        self._transcript: TranscriptView | None = None
        self._orchestrator: TurnOrchestrator | None = None
        self._turn_worker: Worker | None = None

    @property
    def orchestrator(self) -> TurnOrchestrator | None:
        return self._orchestrator

    def compose(self) -> ComposeResult:
        yield VerticalScroll(id="chat-messages")
        yield Input(
            placeholder=f"Write in {self._settings.language} or /command...",
            id="chat-input",
        )

    def on_mount(self) -> None:
        container = self.query_one("#chat-messages", VerticalScroll)
        self._transcript = TranscriptView(container)
        self._orchestrator = TurnOrchestrator(
            history=ConversationHistory(
                build_persona_prompt(self._settings.language, self._settings.level)
            ),
            transcript=self._transcript,
            credentials=self._credentials,
            settings=self._settings,
            provider_factory=self._provider_factory,
            on_configuration_required=lambda: self.post_message(self.ConfigurationRequested()),
        )
        self._transcript.render_info(
            f"Practise your {self._settings.language}. Type /help for commands."
        )
        self.query_one("#chat-input", Input).focus()

    async def on_unmount(self) -> None:
        if self._orchestrator:
            await self._orchestrator.aclose()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "chat-input":
            return

        text = event.value.strip()
        if not text:
            return

        cmd = parse_command(text)
        if cmd is not None:
            event.input.value = ""
            self._handle_command(cmd)
            return

        if self._orchestrator is None or self._orchestrator.busy:
            return

        event.input.value = ""
        self._turn_worker = self._run_turn(text)

    def _handle_command(self, cmd) -> None:
        if cmd.name == "help":
            lines = ["Available commands:", ""]
            for name, description in COMMANDS.items():
                lines.append(f"  /{name} - {description}")
            self._transcript.render_info("\n".join(lines))
        elif cmd.name == "clear":
            if self._orchestrator.reset():
                self._transcript.clear()
                self._transcript.render_info("New conversation started")
            else:
                self._transcript.render_error("Wait for the current reply to finish.")
        elif cmd.name == "key":
            if cmd.args:
                self._save_key(cmd.args)
            else:
                self.post_message(self.ConfigurationRequested())
        else:
            self._transcript.render_error(f"Unknown command: /{cmd.name}. Type /help for commands.")

    @work(group="turn")
    async def _run_turn(self, text: str) -> None:
        """Run one turn in an async worker."""
        input_widget = self.query_one("#chat-input", Input)
        input_widget.disabled = True
        try:
            await self._orchestrator.submit_turn(text)
        except ConfigurationError as e:
            self._transcript.render_error(str(e))
        finally:
            input_widget.disabled = False
            input_widget.focus()
            if self._orchestrator.provider_name:
                self.app.sub_title = f"{self._settings.language} - {self._orchestrator.provider_name}"

    def _save_key(self, value: str) -> None:
        try:
            self._credentials.set(value)
        except ValueError as e:
            self._transcript.render_error(str(e))
            return
        self._transcript.render_info("API key saved")

    def cancel_turn(self) -> bool:
        """Cancel the reply in flight, if any."""
        if self._turn_worker is not None and self._turn_worker.is_running:
            self._turn_worker.cancel()
            return True
        return False
