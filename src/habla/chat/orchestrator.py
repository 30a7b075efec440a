"""Turn orchestration - streamed reply plus independent correction analysis.

Each accepted turn starts two asynchronous paths:

* the reply path streams the assistant answer into a placeholder; the user
  message and the full answer are committed to the history together, and
  only once the stream completes;
* the correction path asks for structured corrections of the user message
  and attaches them to the user turn whenever they arrive.

The paths share no mutable state except the user turn handle, which exists
before either starts. ``busy`` is released as soon as the reply path
settles; correction tasks may still be running at that point.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from ..config import Settings
from .credentials import CredentialStore
from .errors import AuthError, ConfigurationError, TransportError, classify_provider_error
from .history import ConversationHistory
from .llm_provider import ChatMessage, LLMProvider
from .transcript import TranscriptRenderer, TurnHandle

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str, Settings], LLMProvider]


class TurnOrchestrator:
    """Runs one tutoring turn at a time against an LLM provider."""

    def __init__(
        self,
        history: ConversationHistory,
        transcript: TranscriptRenderer,
        credentials: CredentialStore,
        settings: Settings,
        provider_factory: ProviderFactory,
        on_configuration_required: Callable[[], None] | None = None,
    ) -> None:
        self._history = history
        self._transcript = transcript
        self._credentials = credentials
        self._settings = settings
        self._provider_factory = provider_factory
        self._on_configuration_required = on_configuration_required

        self._provider: LLMProvider | None = None
        self._provider_key: str | None = None
        self._busy = False
        self._correction_tasks: set[asyncio.Task] = set()
        self._prompt_handle: asyncio.TimerHandle | None = None

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def history(self) -> ConversationHistory:
        return self._history

    @property
    def pending_corrections(self) -> int:
        return len(self._correction_tasks)

    @property
    def provider_name(self) -> str | None:
        return self._provider.name if self._provider else None

    def _gateway(self) -> LLMProvider:
        """Return a provider for the current credential, rebuilding it on change."""
        api_key = self._credentials.get()
        if not api_key:
            raise ConfigurationError(
                f"No API key configured. Set {self._settings.api_key_name} in settings."
            )
        if self._provider is None or api_key != self._provider_key:
            self._provider = self._provider_factory(api_key, self._settings)
            self._provider_key = api_key
        return self._provider

    async def submit_turn(self, user_text: str) -> bool:
        """Run one turn for ``user_text``.

        Returns:
            False if the text is blank or a turn is already in flight,
            True once the reply path has settled (successfully or not).

        Raises:
            ConfigurationError: If no credential is configured. Nothing is
                sent and the history is left unchanged.
        """
        text = user_text.strip()
        if not text or self._busy:
            return False

        try:
            provider = self._gateway()
        except ConfigurationError:
            self._request_configuration()
            raise

        self._busy = True
        try:
            user_message = ChatMessage(role="user", content=text)
            handle = self._transcript.render_user_turn(text)
            self._start_corrections(provider, text, handle)
            await self._run_reply(provider, user_message)
        finally:
            self._busy = False
        return True

    async def _run_reply(self, provider: LLMProvider, user_message: ChatMessage) -> None:
        placeholder = self._transcript.render_assistant_placeholder()
        accumulated: list[str] = []
        context = self._history.snapshot() + [user_message]

        try:
            async for delta in provider.stream_response(context):
                accumulated.append(delta)
                placeholder.append_delta(delta)
        except asyncio.CancelledError:
            logger.info("Reply cancelled after %d chunks", len(accumulated))
            placeholder.fail()
            self._transcript.render_info("Reply interrupted.")
            raise
        except Exception as e:
            error = classify_provider_error(e)
            placeholder.fail()
            logger.error("Reply failed: %s", error, exc_info=not isinstance(e, TransportError))
            self._transcript.render_error(f"Error: {error}")
            if isinstance(error, AuthError):
                self._schedule_configuration_prompt()
            return

        placeholder.finish()
        self._history.commit_turn(
            user_message, ChatMessage(role="assistant", content="".join(accumulated))
        )

    # --- Correction path ---

    def _start_corrections(self, provider: LLMProvider, text: str, handle: TurnHandle) -> None:
        task = asyncio.create_task(self._run_corrections(provider, text, handle))
        self._correction_tasks.add(task)
        task.add_done_callback(self._correction_tasks.discard)

    async def _run_corrections(self, provider: LLMProvider, text: str, handle: TurnHandle) -> None:
        try:
            result = await asyncio.wait_for(
                provider.request_corrections(text),
                timeout=self._settings.correction_timeout or None,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Correction request for turn %d timed out after %.1fs",
                handle.turn_id,
                self._settings.correction_timeout,
            )
            return
        except Exception as e:
            logger.warning("Correction request for turn %d failed: %s", handle.turn_id, e)
            return

        if result is None:
            logger.debug("No corrections for turn %d", handle.turn_id)
            return

        try:
            self._transcript.attach_corrections(handle, result)
        except Exception:
            logger.exception("Could not attach corrections to turn %d", handle.turn_id)

    async def wait_for_corrections(self) -> None:
        """Wait until every pending correction task has finished."""
        while self._correction_tasks:
            await asyncio.gather(*list(self._correction_tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel pending correction tasks and any scheduled prompt."""
        for task in list(self._correction_tasks):
            task.cancel()
        await self.wait_for_corrections()
        if self._prompt_handle is not None:
            self._prompt_handle.cancel()
            self._prompt_handle = None

    # --- Configuration prompt ---

    def _request_configuration(self) -> None:
        if self._on_configuration_required is not None:
            self._on_configuration_required()

    def _schedule_configuration_prompt(self) -> None:
        if self._on_configuration_required is None:
            return
        if self._prompt_handle is not None:
            self._prompt_handle.cancel()
        loop = asyncio.get_running_loop()
        self._prompt_handle = loop.call_later(
            self._settings.auth_prompt_delay, self._fire_configuration_prompt
        )

    def _fire_configuration_prompt(self) -> None:
        self._prompt_handle = None
        self._request_configuration()

    def reset(self) -> bool:
        """Start a fresh conversation. Returns False while a turn is running."""
        if self._busy:
            return False
        for task in list(self._correction_tasks):
            task.cancel()
        self._history.reset()
        return True
