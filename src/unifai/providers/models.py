"""Domain models for generation calls and their results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
import json
from typing import Any, Literal

from pydantic import TypeAdapter, ValidationError

from unifai.errors import GenerationError

#: Provider-specific metadata keyed by provider name.
ProviderMetadata = Mapping[str, Mapping[str, Any]]

WarningType = Literal["unsupported-setting", "unsupported-tool", "other"]


class FinishReason(str, Enum):
    """Why a generation stopped."""

    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content-filter"
    TOOL_CALLS = "tool-calls"
    ERROR = "error"
    OTHER = "other"


class ObjectGenerationMode(str, Enum):
    """Default strategy a model uses for structured output."""

    JSON = "json"
    TOOL = "tool"
    NONE = "none"


@dataclass(frozen=True)
class ToolCall:
    """A tool call requested by the model."""

    id: str
    name: str
    #: JSON-encoded arguments exactly as the model produced them.
    arguments: str
    tool_call_type: Literal["function"] = "function"

    def parsed_arguments(self) -> Any:
        """Decode ``arguments`` as JSON."""
        try:
            return json.loads(self.arguments)
        except ValueError as e:
            raise GenerationError(
                f"Tool call {self.name!r} has malformed arguments: {e}",
                hint="The model produced arguments that are not valid JSON.",
            ) from e


@dataclass(frozen=True)
class Message:
    """A standard conversational message turn."""

    role: str
    content: str = ""
    tool_call_id: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None

    def __post_init__(self) -> None:
        if self.tool_calls is not None:
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))


@dataclass(frozen=True)
class CallWarning:
    """A non-fatal note from the backend about how it handled the call."""

    type: WarningType
    setting: str | None = None
    details: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class Source:
    """A document the model used as input for its answer."""

    id: str
    url: str
    title: str | None = None
    provider_metadata: ProviderMetadata | None = None
    source_type: Literal["url"] = "url"


@dataclass(frozen=True)
class Usage:
    """Token counts for one call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    def __post_init__(self) -> None:
        if self.prompt_tokens < 0 or self.completion_tokens < 0:
            raise ValueError(
                "Usage token counts must be >= 0, got "
                f"prompt_tokens={self.prompt_tokens}, "
                f"completion_tokens={self.completion_tokens}"
            )

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class GenerationResult:
    """A standardized, read-only result of one generation call.

    ``text`` and ``tool_calls`` are independent: an empty completion carries
    neither and is still a successful result.
    """

    finish_reason: FinishReason
    usage: Usage = field(default_factory=Usage)
    text: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    warnings: tuple[CallWarning, ...] | None = None
    #: Passed through untouched from the backend.
    provider_metadata: ProviderMetadata | None = None
    sources: tuple[Source, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "finish_reason", FinishReason(self.finish_reason))
        for name in ("tool_calls", "warnings", "sources"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, tuple(value))

    def parse_json(self) -> Any:
        """Decode ``text`` as JSON."""
        if self.text is None:
            raise GenerationError(
                "Generation produced no text to parse",
                hint="Check finish_reason and tool_calls; the model may have called a tool.",
            )
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise GenerationError(
                f"Generated text is not valid JSON: {e}",
                hint="Request a JsonFormat response_format to constrain the output.",
            ) from e

    def parse_structured(self, type_: Any) -> Any:
        """Decode ``text`` as JSON and validate it into *type_* with pydantic."""
        data = self.parse_json()
        try:
            return TypeAdapter(type_).validate_python(data)
        except ValidationError as e:
            raise GenerationError(
                f"Generated JSON does not match {getattr(type_, '__name__', type_)}: "
                f"{e.error_count()} validation error(s)",
                hint="Pass the same type as the JsonFormat schema.",
            ) from e
