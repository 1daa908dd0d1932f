"""Per-call generation settings."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from unifai.providers.models import CallWarning, Message

if TYPE_CHECKING:
    from unifai.cancellation import CancellationToken
    from unifai.config import Headers
    from unifai.response_format import ResponseFormat

_SEQUENCE_FIELDS = ("prompt", "stop_sequences", "tools")


@dataclass(frozen=True)
class CallSettings:
    """Immutable settings for one generation call.

    Construction never fails: values are only normalized (sequences to tuples,
    headers to a read-only mapping), never range-checked. Use ``replace()``
    to derive a changed copy.
    """

    #: Conversation to continue; the last ``user`` turn is the request.
    prompt: Sequence[Message] = ()
    #: Maximum number of tokens to generate.
    max_tokens: int | None = None
    #: Set either ``temperature`` or ``top_p``, not both.
    temperature: float | None = None
    #: Nucleus sampling. Set either ``temperature`` or ``top_p``, not both.
    top_p: float | None = None
    #: Only sample from the top K options for each token. Advanced use only.
    top_k: int | None = None
    #: Generation stops at the first of these. Providers may cap the count.
    stop_sequences: Sequence[str] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    response_format: ResponseFormat | None = None
    #: Deterministic sampling when the model supports it.
    seed: int | None = None
    cancellation_token: CancellationToken | None = None
    #: Extra HTTP headers; a ``None`` value unsets a provider-level header.
    headers: Headers | None = None
    #: Function tool declarations: ``{"name", "description", "parameters"}``.
    tools: Sequence[Mapping[str, Any]] | None = None

    def __post_init__(self) -> None:
        for name in _SEQUENCE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str):
                object.__setattr__(self, name, (value,))
            elif value is not None and not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))
        if self.headers is not None:
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def replace(self, **changes: Any) -> CallSettings:
        """Return a copy with *changes* applied."""
        return replace(self, **changes)

    def last_user_text(self) -> str:
        """Return the content of the last ``user`` message, or ``""``."""
        for message in reversed(self.prompt):
            if message.role == "user":
                return message.content
        return ""

    def sampling_warnings(self) -> list[CallWarning]:
        """Return advisory warnings about conflicting sampling settings."""
        if self.temperature is not None and self.top_p is not None:
            return [
                CallWarning(
                    type="other",
                    message=(
                        "Both temperature and top_p are set; "
                        "setting only one of them is recommended."
                    ),
                )
            ]
        return []
