"""Language model protocol (interface v1) and the provider base class."""

from __future__ import annotations

import abc
import asyncio
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, ClassVar, Literal, Protocol, runtime_checkable

from unifai.config import ProviderSettings
from unifai.errors import (
    GenerationCancelledError,
    GenerationError,
    InternalError,
    NoSuchModelError,
    UnifaiError,
)
from unifai.providers._errors import wrap_generation_error
from unifai.providers.models import GenerationResult, ObjectGenerationMode

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from unifai.call import CallSettings
    from unifai.cancellation import CancellationToken

logger = logging.getLogger(__name__)

SpecificationVersion = Literal["v1"]


@dataclass(frozen=True)
class LanguageModelDescriptor:
    """Static facts about a model backend, readable without making a call."""

    provider: str
    model_id: str
    #: Mode with the best structured-output results for this model.
    default_object_generation_mode: ObjectGenerationMode = ObjectGenerationMode.NONE
    #: When False, callers download URL inputs and pass the data instead.
    supports_url_input: bool = True
    #: True when generated JSON is guaranteed to parse AND match the schema.
    supports_grammar_guided_generation: bool = False
    specification_version: SpecificationVersion = "v1"

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "default_object_generation_mode",
            ObjectGenerationMode(self.default_object_generation_mode),
        )


@runtime_checkable
class LanguageModel(Protocol):
    """Minimal language model protocol: a descriptor plus ``generate``."""

    @property
    def descriptor(self) -> LanguageModelDescriptor:
        """Static backend attributes."""
        ...

    @property
    def specification_version(self) -> str:
        """Interface version the backend implements."""
        ...

    @property
    def provider(self) -> str:
        """Provider name, for logging."""
        ...

    @property
    def model_id(self) -> str:
        """Provider-specific model id, for logging."""
        ...

    @property
    def default_object_generation_mode(self) -> ObjectGenerationMode:
        """Default structured-output strategy."""
        ...

    @property
    def supports_url_input(self) -> bool:
        """Whether URL inputs can be passed through as-is."""
        ...

    @property
    def supports_grammar_guided_generation(self) -> bool:
        """Whether JSON output is guaranteed to follow the schema."""
        ...

    async def generate(self, settings: CallSettings | None = None) -> GenerationResult:
        """Generate one complete result."""
        ...


class LanguageModelV1(abc.ABC):
    """Base class for backends implementing language model interface v1.

    Subclasses implement ``do_generate``. ``generate`` wraps it with the
    shared contract: cooperative cancellation, error mapping into
    ``GenerationError``, and result validation.
    """

    specification_version: ClassVar[SpecificationVersion] = "v1"

    def __init__(self, descriptor: LanguageModelDescriptor) -> None:
        self._descriptor = descriptor

    @property
    def descriptor(self) -> LanguageModelDescriptor:
        return self._descriptor

    @property
    def provider(self) -> str:
        return self._descriptor.provider

    @property
    def model_id(self) -> str:
        return self._descriptor.model_id

    @property
    def default_object_generation_mode(self) -> ObjectGenerationMode:
        return self._descriptor.default_object_generation_mode

    @property
    def supports_url_input(self) -> bool:
        return self._descriptor.supports_url_input

    @property
    def supports_grammar_guided_generation(self) -> bool:
        return self._descriptor.supports_grammar_guided_generation

    async def generate(self, settings: CallSettings | None = None) -> GenerationResult:
        """Generate one complete result for *settings*.

        Raises:
            GenerationCancelledError: The cancellation token fired before the
                backend produced its result.
            GenerationError: The backend failed.
            InternalError: The backend returned something other than a
                ``GenerationResult``.
        """
        if settings is None:
            from unifai.call import CallSettings

            settings = CallSettings()

        token = settings.cancellation_token
        try:
            if token is None:
                result = await self.do_generate(settings)
            else:
                if token.cancelled:
                    raise GenerationCancelledError(token.reason)
                result = await _run_cancellable(self.do_generate(settings), token)
        except GenerationError as exc:
            # Fills in missing provider/model_id only.
            wrap_generation_error(exc, provider=self.provider, model_id=self.model_id)
            raise
        except UnifaiError:
            raise
        except Exception as exc:
            raise wrap_generation_error(
                exc, provider=self.provider, model_id=self.model_id
            ) from exc

        if not isinstance(result, GenerationResult):
            raise InternalError(
                f"{self.provider}/{self.model_id} returned "
                f"{type(result).__name__}, expected GenerationResult",
                hint="do_generate() must return a GenerationResult.",
            )
        return result

    @abc.abstractmethod
    async def do_generate(self, settings: CallSettings) -> GenerationResult:
        """Backend-specific generation."""

    def __repr__(self) -> str:
        """Return a compact identity for logs."""
        return f"{type(self).__name__}(provider={self.provider!r}, model_id={self.model_id!r})"


async def _run_cancellable(
    work: Awaitable[GenerationResult], token: CancellationToken
) -> GenerationResult:
    """Await *work* as a task that is cancelled when *token* fires.

    A result the task already finalized is returned even if the token fires
    afterwards.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(work)

    def _on_cancel() -> None:
        loop.call_soon_threadsafe(task.cancel)

    unregister = token.add_callback(_on_cancel)
    try:
        return await task
    except asyncio.CancelledError:
        # Only a token-initiated cancellation becomes a GenerationError; an
        # outer task cancellation keeps propagating as CancelledError.
        current = asyncio.current_task()
        if token.cancelled and not (current is not None and current.cancelling()):
            raise GenerationCancelledError(token.reason) from None
        raise
    finally:
        unregister()


class Provider(abc.ABC):
    """Base class for providers: a namespace of language models.

    A provider instance is callable with a model id, so it can be passed to
    ``ProviderRegistry.register`` directly as the model factory.
    """

    name: ClassVar[str]
    #: Model ids this provider serves; empty means any id is attempted.
    models: tuple[str, ...] = ()

    def __init__(self, settings: ProviderSettings | None = None) -> None:
        self.settings = settings or ProviderSettings(provider=self.name)

    @abc.abstractmethod
    def language_model(self, model_id: str) -> LanguageModel:
        """Return the language model with the given id.

        Raises:
            NoSuchModelError: The provider does not serve *model_id*.
        """

    def __call__(self, model_id: str) -> LanguageModel:
        return self.language_model(model_id)

    def _require_known(self, model_id: str) -> None:
        if self.models and model_id not in self.models:
            raise NoSuchModelError(
                model_id,
                hint=f"{self.name} serves: {', '.join(self.models)}",
            )
