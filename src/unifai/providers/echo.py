"""Echo provider: a deterministic in-process backend.

Repeats the last user message back, honoring the call settings it can
express without a real model. Useful for wiring checks and tests.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import TYPE_CHECKING

from unifai.config import combine_headers, wire_headers
from unifai.providers.base import LanguageModelDescriptor, LanguageModelV1, Provider
from unifai.providers.models import (
    CallWarning,
    FinishReason,
    GenerationResult,
    ObjectGenerationMode,
    Source,
    ToolCall,
    Usage,
)
from unifai.response_format import JsonFormat

if TYPE_CHECKING:
    from unifai.call import CallSettings
    from unifai.config import ProviderSettings

_URL_RE = re.compile(r"https?://[^\s\"'<>]+")

_UNSUPPORTED_SETTINGS = ("top_k", "presence_penalty", "frequency_penalty")


class EchoLanguageModel(LanguageModelV1):
    """Language model that echoes the prompt back."""

    def __init__(
        self,
        model_id: str,
        *,
        settings: ProviderSettings,
        delay_s: float = 0.0,
    ) -> None:
        super().__init__(
            LanguageModelDescriptor(
                provider=settings.provider,
                model_id=model_id,
                default_object_generation_mode=ObjectGenerationMode.JSON,
                supports_url_input=True,
                supports_grammar_guided_generation=False,
            )
        )
        self._settings = settings
        self._delay_s = delay_s

    async def do_generate(self, settings: CallSettings) -> GenerationResult:
        """Return the last user message, shaped by *settings*."""
        if self._delay_s > 0:
            await asyncio.sleep(self._delay_s)

        prompt = settings.last_user_text()
        text, finish_reason = _truncate(prompt, settings)

        warnings = settings.sampling_warnings()
        for name in _UNSUPPORTED_SETTINGS:
            if getattr(settings, name) is not None:
                warnings.append(
                    CallWarning(type="unsupported-setting", setting=name)
                )

        tool_calls: list[ToolCall] | None = None
        if settings.tools:
            tool = settings.tools[0]
            tool_calls = [
                ToolCall(
                    id="call_0",
                    name=str(tool.get("name", "")),
                    arguments=json.dumps({"input": text}),
                )
            ]
            for extra in settings.tools[1:]:
                warnings.append(
                    CallWarning(
                        type="unsupported-tool",
                        details=f"only the first tool is called; ignored {extra.get('name')!r}",
                    )
                )
            result_text = None
            finish_reason = FinishReason.TOOL_CALLS
        elif not text:
            result_text = None
        elif isinstance(settings.response_format, JsonFormat):
            result_text = json.dumps({"echo": text})
        else:
            result_text = text

        sources = [
            Source(id=f"source_{i}", url=url)
            for i, url in enumerate(
                dict.fromkeys(u.rstrip(".,;:!?)") for u in _URL_RE.findall(prompt))
            )
        ]

        return GenerationResult(
            finish_reason=finish_reason,
            usage=Usage(
                prompt_tokens=sum(len(m.content.split()) for m in settings.prompt),
                completion_tokens=len((result_text or "").split()),
            ),
            text=result_text,
            tool_calls=tool_calls,
            warnings=warnings or None,
            provider_metadata={
                self.provider: {
                    "headers": wire_headers(
                        combine_headers(self._settings.headers, settings.headers)
                    ),
                    "seed": settings.seed,
                }
            },
            sources=sources or None,
        )


def _truncate(text: str, settings: CallSettings) -> tuple[str, FinishReason]:
    """Apply stop sequences, then the token limit, to *text*."""
    finish_reason = FinishReason.STOP
    for stop in settings.stop_sequences or ():
        if stop and stop in text:
            text = text[: text.index(stop)]

    tokens = text.split()
    if settings.max_tokens is not None and len(tokens) > settings.max_tokens:
        text = " ".join(tokens[: max(settings.max_tokens, 0)])
        finish_reason = FinishReason.LENGTH
    return text, finish_reason


class EchoProvider(Provider):
    """Provider serving ``EchoLanguageModel`` instances."""

    name = "echo"
    models = ("echo-1",)

    def __init__(
        self,
        settings: ProviderSettings | None = None,
        *,
        models: tuple[str, ...] | None = None,
        delay_s: float = 0.0,
    ) -> None:
        super().__init__(settings)
        if models is not None:
            self.models = tuple(models)
        self._delay_s = delay_s

    def language_model(self, model_id: str) -> EchoLanguageModel:
        self._require_known(model_id)
        return EchoLanguageModel(model_id, settings=self.settings, delay_s=self._delay_s)
