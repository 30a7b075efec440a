import asyncio

import pytest

from habla.chat.errors import AuthError, ConfigurationError, TransportError
from habla.chat.llm_provider import ChatMessage

from tests.fakes import Harness, ScriptedProvider, corrections, settle


@pytest.mark.asyncio
async def test_streamed_reply_renders_in_order_and_commits():
    h = Harness(ScriptedProvider(chunks=["¡", "Hola!", " ¿Cómo", " estás?"]))

    accepted = await h.orchestrator.submit_turn("como estas")

    assert accepted is True
    reply = h.transcript.replies[0]
    assert reply.progress == ["¡", "¡Hola!", "¡Hola! ¿Cómo", "¡Hola! ¿Cómo estás?"]
    assert reply.finished
    assert not reply.failed
    assert h.history.snapshot()[-1] == ChatMessage(role="assistant", content="¡Hola! ¿Cómo estás?")
    await h.orchestrator.wait_for_corrections()


@pytest.mark.asyncio
async def test_history_grows_by_two_per_successful_turn():
    h = Harness(ScriptedProvider(chunks=["Muy ", "bien"]))

    for i in range(3):
        await h.orchestrator.submit_turn(f"mensaje {i}")

    messages = h.history.snapshot()
    assert len(messages) == 1 + 2 * 3
    assert messages[0].role == "system"
    assert [m.role for m in messages[1:]] == ["user", "assistant"] * 3
    assert messages[1].content == "mensaje 0"
    await h.orchestrator.wait_for_corrections()


@pytest.mark.asyncio
async def test_reply_request_gets_persona_history_and_new_message():
    provider = ScriptedProvider(chunks=["Vale"])
    h = Harness(provider)

    await h.orchestrator.submit_turn("primero")
    await h.orchestrator.submit_turn("segundo")

    context = provider.stream_calls[1]
    assert [m.content for m in context] == ["Eres un tutor.", "primero", "Vale", "segundo"]
    await h.orchestrator.wait_for_corrections()


@pytest.mark.asyncio
async def test_failed_reply_appends_nothing_and_renders_error():
    provider = ScriptedProvider(chunks=["Ho"], error=TransportError("connection reset"))
    h = Harness(provider)

    accepted = await h.orchestrator.submit_turn("hola")

    assert accepted is True
    assert len(h.history) == 1
    assert h.transcript.replies[0].text == "Ho"
    assert not h.transcript.replies[0].finished
    assert h.transcript.replies[0].failed
    assert h.transcript.errors == ["Error: connection reset"]
    assert h.orchestrator.busy is False
    await h.orchestrator.wait_for_corrections()
    assert h.prompts == 0


@pytest.mark.asyncio
async def test_unexpected_stream_exception_is_rendered_as_error():
    h = Harness(ScriptedProvider(chunks=[], error=ValueError("bad chunk")))

    await h.orchestrator.submit_turn("hola")

    assert h.transcript.errors == ["Error: bad chunk"]
    assert len(h.history) == 1
    await h.orchestrator.wait_for_corrections()


@pytest.mark.asyncio
async def test_auth_failure_reopens_configuration_after_delay():
    h = Harness(ScriptedProvider(chunks=[], error=AuthError("Error code: 401", status_code=401)))

    await h.orchestrator.submit_turn("hola")

    assert h.transcript.errors == ["Error: Error code: 401"]
    assert h.prompts == 0
    await asyncio.sleep(0.05)
    assert h.prompts == 1
    await h.orchestrator.wait_for_corrections()


@pytest.mark.asyncio
async def test_missing_credential_makes_no_calls():
    provider = ScriptedProvider()
    h = Harness(provider, api_key=None)

    with pytest.raises(ConfigurationError):
        await h.orchestrator.submit_turn("hola")

    assert h.factory_calls == []
    assert provider.stream_calls == []
    assert provider.correction_calls == []
    assert len(h.history) == 1
    assert h.transcript.user_turns == []
    assert h.prompts == 1


@pytest.mark.asyncio
async def test_blank_input_is_ignored():
    provider = ScriptedProvider()
    h = Harness(provider)

    assert await h.orchestrator.submit_turn("   ") is False
    assert provider.stream_calls == []
    assert h.transcript.user_turns == []


@pytest.mark.asyncio
async def test_submit_while_busy_is_rejected():
    gate = asyncio.Event()
    provider = ScriptedProvider(chunks=["uno"], chunk_gate=gate)
    h = Harness(provider)

    first = asyncio.create_task(h.orchestrator.submit_turn("primero"))
    await settle()
    assert h.orchestrator.busy

    assert await h.orchestrator.submit_turn("segundo") is False

    gate.set()
    assert await first is True
    assert len(provider.stream_calls) == 1
    assert [text for _, text in h.transcript.user_turns] == ["primero"]
    await h.orchestrator.wait_for_corrections()


@pytest.mark.asyncio
async def test_user_turn_rendered_before_any_network_result():
    gate = asyncio.Event()
    provider = ScriptedProvider(chunks=["x"], chunk_gate=gate, correction_gate=gate)
    h = Harness(provider)

    task = asyncio.create_task(h.orchestrator.submit_turn("hola"))
    await settle()

    assert [text for _, text in h.transcript.user_turns] == ["hola"]
    assert provider.correction_calls == ["hola"]
    assert len(provider.stream_calls) == 1

    gate.set()
    await task
    await h.orchestrator.wait_for_corrections()


@pytest.mark.asyncio
async def test_busy_released_before_corrections_arrive():
    gate = asyncio.Event()
    result = corrections(("error", "como estas", "¿cómo estás?", "Missing accents."))
    provider = ScriptedProvider(chunks=["Bien"], corrections=result, correction_gate=gate)
    h = Harness(provider)

    await h.orchestrator.submit_turn("como estas")

    assert h.orchestrator.busy is False
    assert h.orchestrator.pending_corrections == 1
    assert h.transcript.badges == {}

    gate.set()
    await h.orchestrator.wait_for_corrections()

    handle, _ = h.transcript.user_turns[0]
    assert h.transcript.badges[handle] == result
    assert h.transcript.attach_calls == [handle]


@pytest.mark.asyncio
async def test_corrections_attach_while_reply_still_streaming():
    stream_gate = asyncio.Event()
    result = corrections(("style", "hola", "¡Hola!", "Spanish uses opening exclamation marks."))
    provider = ScriptedProvider(chunks=["Hola"], corrections=result, chunk_gate=stream_gate)
    h = Harness(provider)

    task = asyncio.create_task(h.orchestrator.submit_turn("hola"))
    await settle()

    handle, _ = h.transcript.user_turns[0]
    assert h.transcript.badges[handle] == result
    assert h.orchestrator.busy

    stream_gate.set()
    await task
    assert len(h.history) == 3


@pytest.mark.asyncio
async def test_clean_corrections_show_no_badge():
    provider = ScriptedProvider(corrections=corrections(has_issues=False))
    h = Harness(provider)

    await h.orchestrator.submit_turn("Hola, ¿qué tal?")
    await h.orchestrator.wait_for_corrections()

    assert len(h.transcript.attach_calls) == 1
    assert h.transcript.badges == {}


@pytest.mark.asyncio
async def test_correction_failure_is_silent():
    provider = ScriptedProvider(chunks=["Bien"], correction_error=TransportError("boom"))
    h = Harness(provider)

    await h.orchestrator.submit_turn("hola")
    await h.orchestrator.wait_for_corrections()

    assert h.transcript.errors == []
    assert h.transcript.attach_calls == []
    assert h.orchestrator.busy is False
    assert len(h.history) == 3


@pytest.mark.asyncio
async def test_correction_timeout_is_silent():
    from habla.config import Settings

    gate = asyncio.Event()
    provider = ScriptedProvider(correction_gate=gate)
    h = Harness(provider, settings=Settings(correction_timeout=0.01))

    await h.orchestrator.submit_turn("hola")
    await h.orchestrator.wait_for_corrections()

    assert h.transcript.attach_calls == []
    assert h.transcript.errors == []


@pytest.mark.asyncio
async def test_cancelled_reply_commits_nothing():
    gate = asyncio.Event()
    provider = ScriptedProvider(chunks=["Ho", "la"], chunk_gate=gate)
    h = Harness(provider)

    task = asyncio.create_task(h.orchestrator.submit_turn("hola"))
    await settle()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(h.history) == 1
    assert h.orchestrator.busy is False
    assert h.transcript.infos == ["Reply interrupted."]
    assert h.transcript.replies[0].failed
    await h.orchestrator.aclose()


@pytest.mark.asyncio
async def test_provider_rebuilt_when_credential_changes():
    h = Harness(ScriptedProvider())

    await h.orchestrator.submit_turn("uno")
    await h.orchestrator.submit_turn("dos")
    h.credentials.set("sk-new")
    await h.orchestrator.submit_turn("tres")

    assert h.factory_calls == ["sk-test", "sk-new"]
    await h.orchestrator.wait_for_corrections()


@pytest.mark.asyncio
async def test_reset_keeps_persona_and_is_refused_while_busy():
    gate = asyncio.Event()
    h = Harness(ScriptedProvider(chunk_gate=gate))

    task = asyncio.create_task(h.orchestrator.submit_turn("hola"))
    await settle()
    assert h.orchestrator.reset() is False

    gate.set()
    await task
    assert h.orchestrator.reset() is True
    assert [m.role for m in h.history.snapshot()] == ["system"]
    await h.orchestrator.aclose()
