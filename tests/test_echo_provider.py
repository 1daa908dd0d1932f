"""Echo provider characterization tests.

The echo backend is deterministic, so these pin down exactly how each call
setting shapes its result.
"""

from __future__ import annotations

import asyncio
import json

from pydantic import BaseModel
import pytest

from unifai.call import CallSettings
from unifai.cancellation import CancellationToken
from unifai.config import ProviderSettings
from unifai.errors import GenerationCancelledError, NoSuchModelError
from unifai.providers.echo import EchoLanguageModel, EchoProvider
from unifai.providers.models import FinishReason, Message, ObjectGenerationMode
from unifai.response_format import json_format, text
from tests.conftest import user_prompt

pytestmark = pytest.mark.contract


class Echoed(BaseModel):
    echo: str


@pytest.fixture
def model() -> EchoLanguageModel:
    return EchoProvider().language_model("echo-1")


def test_provider_serves_known_models_only() -> None:
    provider = EchoProvider()

    assert provider.name == "echo"
    assert provider.models == ("echo-1",)
    assert provider("echo-1").model_id == "echo-1"
    with pytest.raises(NoSuchModelError) as exc:
        provider.language_model("echo-2")
    assert str(exc.value) == "No model named echo-2 found."
    assert exc.value.hint == "echo serves: echo-1"


def test_provider_name_comes_from_settings() -> None:
    provider = EchoProvider(ProviderSettings(provider="demo"), models=("echo-1", "echo-2"))

    model = provider.language_model("echo-2")

    assert model.provider == "demo"
    assert model.default_object_generation_mode is ObjectGenerationMode.JSON
    assert model.supports_grammar_guided_generation is False


@pytest.mark.asyncio
async def test_echoes_last_user_message(model: EchoLanguageModel) -> None:
    settings = CallSettings(
        prompt=[
            Message(role="system", content="be brief"),
            Message(role="user", content="hello there world"),
        ]
    )

    result = await model.generate(settings)

    assert result.text == "hello there world"
    assert result.finish_reason is FinishReason.STOP
    assert result.tool_calls is None
    assert result.usage.prompt_tokens == 5
    assert result.usage.completion_tokens == 3
    assert result.warnings is None
    assert result.sources is None


@pytest.mark.asyncio
async def test_empty_prompt_is_an_empty_completion(model: EchoLanguageModel) -> None:
    result = await model.generate(CallSettings())

    assert result.text is None
    assert result.tool_calls is None
    assert result.finish_reason is FinishReason.STOP
    assert result.usage.total_tokens == 0


@pytest.mark.asyncio
async def test_stop_sequence_truncates_at_earliest_match(model: EchoLanguageModel) -> None:
    settings = CallSettings(
        prompt=user_prompt("one two END three STOP four"),
        stop_sequences=["STOP", "END"],
    )

    result = await model.generate(settings)

    assert result.text == "one two "
    assert result.finish_reason is FinishReason.STOP


@pytest.mark.asyncio
async def test_max_tokens_reports_length(model: EchoLanguageModel) -> None:
    result = await model.generate(
        CallSettings(prompt=user_prompt("a b c d e"), max_tokens=2)
    )

    assert result.text == "a b"
    assert result.finish_reason is FinishReason.LENGTH
    assert result.usage.completion_tokens == 2


@pytest.mark.asyncio
async def test_json_response_format_wraps_text(model: EchoLanguageModel) -> None:
    result = await model.generate(
        CallSettings(prompt=user_prompt("hi"), response_format=json_format(Echoed))
    )

    assert json.loads(result.text or "") == {"echo": "hi"}
    assert result.parse_structured(Echoed) == Echoed(echo="hi")


@pytest.mark.asyncio
async def test_text_response_format_is_plain(model: EchoLanguageModel) -> None:
    result = await model.generate(
        CallSettings(prompt=user_prompt("hi"), response_format=text())
    )
    assert result.text == "hi"


@pytest.mark.asyncio
async def test_tools_produce_a_tool_call(model: EchoLanguageModel) -> None:
    settings = CallSettings(
        prompt=user_prompt("weather in Oslo"),
        tools=[{"name": "lookup"}, {"name": "ignored"}],
    )

    result = await model.generate(settings)

    assert result.text is None
    assert result.finish_reason is FinishReason.TOOL_CALLS
    assert result.tool_calls is not None
    (call,) = result.tool_calls
    assert call.name == "lookup"
    assert call.parsed_arguments() == {"input": "weather in Oslo"}
    assert result.warnings is not None
    assert [w.type for w in result.warnings] == ["unsupported-tool"]


@pytest.mark.asyncio
async def test_unsupported_settings_become_warnings(model: EchoLanguageModel) -> None:
    settings = CallSettings(
        prompt=user_prompt("hi"),
        temperature=0.5,
        top_p=0.9,
        top_k=40,
        frequency_penalty=0.1,
    )

    result = await model.generate(settings)

    assert result.warnings is not None
    assert [(w.type, w.setting) for w in result.warnings] == [
        ("other", None),
        ("unsupported-setting", "top_k"),
        ("unsupported-setting", "frequency_penalty"),
    ]


@pytest.mark.asyncio
async def test_headers_layer_over_provider_settings() -> None:
    provider = EchoProvider(
        ProviderSettings(provider="echo", headers={"X-Team": "core", "X-Debug": "1"})
    )
    settings = CallSettings(
        prompt=user_prompt("hi"),
        headers={"X-Debug": None, "X-Trace": "abc"},
        seed=7,
    )

    result = await provider.language_model("echo-1").generate(settings)

    assert result.provider_metadata == {
        "echo": {"headers": {"X-Team": "core", "X-Trace": "abc"}, "seed": 7}
    }


@pytest.mark.asyncio
async def test_urls_in_prompt_become_sources(model: EchoLanguageModel) -> None:
    prompt = "see https://a.example/x and http://b.example, again https://a.example/x"

    result = await model.generate(CallSettings(prompt=user_prompt(prompt)))

    assert result.sources is not None
    assert [s.url for s in result.sources] == ["https://a.example/x", "http://b.example"]
    assert [s.id for s in result.sources] == ["source_0", "source_1"]


@pytest.mark.asyncio
async def test_slow_echo_can_be_cancelled_mid_call() -> None:
    model = EchoProvider(delay_s=30).language_model("echo-1")
    token = CancellationToken()
    call = asyncio.create_task(
        model.generate(CallSettings(prompt=user_prompt("hi"), cancellation_token=token))
    )
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    token.cancel("enough")

    with pytest.raises(GenerationCancelledError, match="enough"):
        await asyncio.wait_for(call, timeout=5)
