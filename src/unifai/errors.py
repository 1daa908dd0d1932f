"""Exception hierarchy for unifai."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class UnifaiError(Exception):
    """Base exception for all unifai errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(UnifaiError):
    """Provider settings or a registration were invalid."""


class InternalError(UnifaiError):
    """A backend or factory broke the language model contract."""


class NoSuchModelError(UnifaiError):
    """No registered provider serves the requested model id.

    The rendered message is part of the public contract and never changes
    with the hint.
    """

    def __init__(self, model_id: str, *, hint: str | None = None) -> None:
        super().__init__(f"No model named {model_id} found.", hint=hint)
        self.model_id = model_id


class NoSuchProviderError(NoSuchModelError):
    """A qualified ``provider:model`` id named an unregistered provider."""

    def __init__(
        self, model_id: str, *, provider_name: str, hint: str | None = None
    ) -> None:
        super().__init__(model_id, hint=hint)
        self.provider_name = provider_name


class GenerationError(UnifaiError):
    """A generation call failed.

    Backend faults of every kind collapse into this one category. Whatever
    structure could be recovered travels as attributes.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        provider: str | None = None,
        model_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.provider = provider
        self.model_id = model_id
        self.status_code = status_code


class GenerationCancelledError(GenerationError):
    """The caller cancelled the generation before a result was finalized."""

    def __init__(
        self,
        reason: object | None = None,
        *,
        provider: str | None = None,
        model_id: str | None = None,
    ) -> None:
        message = "Generation cancelled"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message, provider=provider, model_id=model_id)
        self.reason = reason


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
