from types import SimpleNamespace

import httpx
import openai
import pytest

from habla.chat.corrections import CORRECTION_SCHEMA
from habla.chat.errors import AuthError, ConfigurationError, TransportError
from habla.chat.llm_provider import ChatMessage
from habla.chat.providers.openai_provider import OpenAIProvider

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _chunk(content, with_choice=True):
    if not with_choice:
        return SimpleNamespace(choices=[])
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class Completions:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


def _provider(completions):
    provider = OpenAIProvider(api_key="sk-test", model="gpt-test", correction_model="gpt-check")
    provider._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return provider


async def _stream(*chunks, error=None):
    for chunk in chunks:
        yield chunk
    if error is not None:
        raise error


async def _collect(provider, messages):
    return [token async for token in provider.stream_response(messages)]


def test_missing_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        OpenAIProvider(api_key="")


@pytest.mark.asyncio
async def test_stream_yields_text_deltas_only():
    completions = Completions(
        result=_stream(_chunk(None), _chunk("¡Hola"), _chunk(None, with_choice=False), _chunk("!"))
    )
    provider = _provider(completions)

    tokens = await _collect(provider, [ChatMessage(role="user", content="hola")])

    assert tokens == ["¡Hola", "!"]
    call = completions.calls[0]
    assert call["stream"] is True
    assert call["model"] == "gpt-test"
    assert call["messages"] == [{"role": "user", "content": "hola"}]


@pytest.mark.asyncio
async def test_auth_error_is_mapped():
    response = httpx.Response(401, request=REQUEST)
    completions = Completions(
        error=openai.AuthenticationError("Incorrect API key provided", response=response, body=None)
    )

    with pytest.raises(AuthError):
        await _collect(_provider(completions), [])


@pytest.mark.asyncio
async def test_mid_stream_failure_is_transport_error():
    completions = Completions(
        result=_stream(_chunk("Ho"), error=openai.APIConnectionError(request=REQUEST))
    )
    tokens = []

    with pytest.raises(TransportError) as excinfo:
        async for token in _provider(completions).stream_response([]):
            tokens.append(token)

    assert tokens == ["Ho"]
    assert not isinstance(excinfo.value, AuthError)


@pytest.mark.asyncio
async def test_corrections_request_uses_strict_schema():
    content = '{"hasIssues": true, "corrections": [{"type": "error", "original": "yo es", "suggestion": "yo soy", "explanation": "Conjugation."}]}'
    message = SimpleNamespace(content=content, refusal=None)
    completions = Completions(result=SimpleNamespace(choices=[SimpleNamespace(message=message)]))

    result = await _provider(completions).request_corrections("yo es estudiante")

    assert result.items[0].suggestion == "yo soy"
    call = completions.calls[0]
    assert call["model"] == "gpt-check"
    assert "stream" not in call
    assert call["messages"][-1] == {"role": "user", "content": "yo es estudiante"}
    assert call["response_format"]["type"] == "json_schema"
    assert call["response_format"]["json_schema"]["strict"] is True
    assert call["response_format"]["json_schema"]["schema"] == CORRECTION_SCHEMA


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "not json", '{"hasIssues": false}'])
async def test_unusable_correction_content_is_none(content):
    message = SimpleNamespace(content=content, refusal=None)
    completions = Completions(result=SimpleNamespace(choices=[SimpleNamespace(message=message)]))

    assert await _provider(completions).request_corrections("hola") is None


@pytest.mark.asyncio
async def test_refusal_is_none():
    message = SimpleNamespace(content=None, refusal="I can't help with that.")
    completions = Completions(result=SimpleNamespace(choices=[SimpleNamespace(message=message)]))

    assert await _provider(completions).request_corrections("hola") is None


@pytest.mark.asyncio
async def test_correction_transport_failure_raises():
    completions = Completions(error=openai.APIConnectionError(request=REQUEST))

    with pytest.raises(TransportError):
        await _provider(completions).request_corrections("hola")
