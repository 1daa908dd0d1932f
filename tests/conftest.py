"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, and shared test
doubles. Fixtures marked autouse apply to every test.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os
from typing import Any

import pytest

from unifai.call import CallSettings
from unifai.providers.base import LanguageModelDescriptor, LanguageModelV1
from unifai.providers.models import FinishReason, GenerationResult, Message, Usage
from unifai.registry import ProviderRegistry

# =============================================================================
# Test Doubles
# =============================================================================


class FakeLanguageModel(LanguageModelV1):
    """Language model test double.

    Captures the settings of each call and returns a configurable result. Use
    to test contract behavior without a real backend.
    """

    def __init__(
        self,
        model_id: str = "fake-1",
        *,
        provider: str = "fake",
        result: Any = None,
        **descriptor: Any,
    ) -> None:
        super().__init__(
            LanguageModelDescriptor(provider=provider, model_id=model_id, **descriptor)
        )
        self.result = result
        self.generate_calls = 0
        self.last_settings: CallSettings | None = None

    async def do_generate(self, settings: CallSettings) -> GenerationResult:
        self.generate_calls += 1
        self.last_settings = settings
        if self.result is not None:
            return self.result
        return GenerationResult(
            finish_reason=FinishReason.STOP,
            usage=Usage(prompt_tokens=1, completion_tokens=1),
            text=f"ok:{settings.last_user_text()}",
        )


def user_prompt(text: str) -> tuple[Message, ...]:
    """Return a one-turn user prompt."""
    return (Message(role="user", content=text),)


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_provider_env(request, monkeypatch):
    """Ensure a clean provider environment for each test.

    Clears *_API_KEY env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.endswith("_API_KEY"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def isolate_default_registry(monkeypatch):
    """Give each test a fresh process-wide registry."""
    monkeypatch.setattr("unifai.registry._registry", ProviderRegistry())


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def registry() -> ProviderRegistry:
    """Return an empty registry."""
    return ProviderRegistry()


@pytest.fixture
def fake_model() -> FakeLanguageModel:
    """Return a fake model with default descriptor values."""
    return FakeLanguageModel()
