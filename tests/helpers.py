"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off language model subclasses as coverage expands.
"""

from __future__ import annotations

import asyncio
from typing import Any

from unifai.call import CallSettings
from unifai.providers.models import FinishReason, GenerationResult
from tests.conftest import FakeLanguageModel


class ScriptedLanguageModel(FakeLanguageModel):
    """FakeLanguageModel that returns a scripted sequence of results/exceptions.

    Useful for error-mapping tests without defining bespoke backends.
    """

    def __init__(self, script: list[Any], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.script = list(script)

    async def do_generate(self, settings: CallSettings) -> GenerationResult:
        self.generate_calls += 1
        self.last_settings = settings
        if not self.script:
            return GenerationResult(finish_reason=FinishReason.STOP, text="ok")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class GateLanguageModel(FakeLanguageModel):
    """FakeLanguageModel with an explicit barrier for cancellation tests.

    ``started`` is set once the backend is running; the backend then waits
    for ``release`` before producing its result.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.was_cancelled = False

    async def do_generate(self, settings: CallSettings) -> GenerationResult:
        self.generate_calls += 1
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.was_cancelled = True
            raise
        return GenerationResult(finish_reason=FinishReason.STOP, text="released")
