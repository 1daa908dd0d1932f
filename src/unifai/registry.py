"""Provider registry: resolves model ids to language model instances.

This is the single seam consumers use to obtain a model. Providers register
a factory under a namespace; lookups match model ids exactly, or accept a
qualified ``provider:model`` id.

Registration swaps in a new immutable snapshot under a lock. Each lookup
reads one snapshot, so lookups need no locking and may run while another
thread registers.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from types import MappingProxyType
from typing import TYPE_CHECKING

from unifai.errors import (
    ConfigurationError,
    InternalError,
    NoSuchModelError,
    NoSuchProviderError,
)
from unifai.providers.base import LanguageModel

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    ModelFactory = Callable[[str], LanguageModel]

logger = logging.getLogger(__name__)

_SEPARATOR = ":"


@dataclass(frozen=True)
class _Namespace:
    name: str
    factory: ModelFactory
    #: Empty means the namespace accepts any qualified id.
    models: tuple[str, ...]


@dataclass(frozen=True)
class _Snapshot:
    namespaces: Mapping[str, _Namespace]
    #: Model id to owning namespace name.
    model_index: Mapping[str, str]


_EMPTY = _Snapshot(MappingProxyType({}), MappingProxyType({}))


class ProviderRegistry:
    """Maps model ids to provider factories.

    Example:
        registry = ProviderRegistry()
        registry.register("demo", EchoProvider(ProviderSettings(provider="demo")))
        model = registry.resolve("echo-1")
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = _EMPTY

    def register(
        self,
        provider_name: str,
        factory: ModelFactory,
        *,
        models: Iterable[str] | None = None,
    ) -> None:
        """Register *factory* under the *provider_name* namespace.

        Args:
            provider_name: Namespace name (no ``:``).
            factory: Callable turning a model id into a language model. A
                ``Provider`` instance qualifies.
            models: Model ids served by the namespace. Defaults to the
                factory's ``models`` attribute when it has one.

        Raises:
            ConfigurationError: The name is invalid, already registered, or a
                model id is already served by another namespace.
        """
        if not isinstance(provider_name, str) or not provider_name.strip():
            raise ConfigurationError(
                "provider_name must be a non-empty string",
                hint="Pass a namespace like register('openai', factory).",
            )
        if _SEPARATOR in provider_name:
            raise ConfigurationError(
                f"provider_name must not contain {_SEPARATOR!r}: {provider_name!r}",
                hint="The separator is reserved for qualified 'provider:model' ids.",
            )
        if not callable(factory):
            raise ConfigurationError(
                f"factory for {provider_name!r} is not callable",
                hint="Pass a Provider instance or a function model_id -> LanguageModel.",
            )

        if models is None:
            models = getattr(factory, "models", None) or ()
        if isinstance(models, str):
            models = (models,)
        model_ids = tuple(dict.fromkeys(models))

        with self._lock:
            current = self._snapshot
            if provider_name in current.namespaces:
                raise ConfigurationError(
                    f"Provider {provider_name!r} is already registered",
                    hint="Registered providers cannot be replaced; use a new namespace.",
                )
            index = dict(current.model_index)
            for model_id in model_ids:
                owner = index.get(model_id)
                if owner is not None:
                    raise ConfigurationError(
                        f"Model {model_id!r} is already served by provider {owner!r}",
                        hint=f"Resolve it as '{provider_name}{_SEPARATOR}{model_id}' "
                        "by registering without listing it.",
                    )
                index[model_id] = provider_name

            namespaces = dict(current.namespaces)
            namespaces[provider_name] = _Namespace(provider_name, factory, model_ids)
            self._snapshot = _Snapshot(
                MappingProxyType(namespaces), MappingProxyType(index)
            )

        logger.debug(
            "Registered provider %r with %d model(s)", provider_name, len(model_ids)
        )

    def resolve(self, model_id: str) -> LanguageModel:
        """Return the language model for *model_id*.

        Exact ids are matched first; otherwise ``provider:model`` is split on
        the first separator.

        Raises:
            NoSuchModelError: No namespace serves *model_id*.
            NoSuchProviderError: A qualified id named an unknown namespace.
            InternalError: The factory returned something that is not a
                language model.
        """
        snapshot = self._snapshot
        owner = snapshot.model_index.get(model_id)
        if owner is not None:
            return self._build(snapshot.namespaces[owner], model_id)

        provider_name, sep, local_id = model_id.partition(_SEPARATOR)
        if not sep:
            logger.debug("No model named %r", model_id)
            raise NoSuchModelError(model_id, hint=_known_models_hint(snapshot))

        namespace = snapshot.namespaces.get(provider_name)
        if namespace is None:
            registered = ", ".join(sorted(snapshot.namespaces)) or "none"
            raise NoSuchProviderError(
                model_id,
                provider_name=provider_name,
                hint=f"Registered providers: {registered}",
            )
        if namespace.models and local_id not in namespace.models:
            raise NoSuchModelError(
                model_id,
                hint=f"{provider_name} serves: {', '.join(namespace.models)}",
            )
        try:
            return self._build(namespace, local_id)
        except NoSuchModelError as exc:
            # Misses always name the id the caller asked for.
            raise NoSuchModelError(model_id, hint=exc.hint) from exc

    def providers(self) -> list[str]:
        """Return registered provider names, sorted."""
        return sorted(self._snapshot.namespaces)

    def models(self, provider: str | None = None) -> list[str]:
        """Return model ids with a declared owner, optionally for one provider."""
        snapshot = self._snapshot
        if provider is None:
            return sorted(snapshot.model_index)
        namespace = snapshot.namespaces.get(provider)
        return sorted(namespace.models) if namespace is not None else []

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._snapshot.model_index

    def _build(self, namespace: _Namespace, model_id: str) -> LanguageModel:
        model = namespace.factory(model_id)
        if not isinstance(model, LanguageModel):
            raise InternalError(
                f"Factory for {namespace.name!r} returned {type(model).__name__}, "
                "expected a language model",
                hint="Factories must return a LanguageModelV1 (or LanguageModel) instance.",
            )
        logger.debug("Resolved %r via provider %r", model_id, namespace.name)
        return model


def _known_models_hint(snapshot: _Snapshot) -> str:
    known = sorted(snapshot.model_index)
    if not known:
        return "No models are registered; call register() first."
    return f"Known models: {', '.join(known)}"


# Global registry instance
_registry = ProviderRegistry()


def default_registry() -> ProviderRegistry:
    """Return the process-wide registry."""
    return _registry


def register_provider(
    provider_name: str,
    factory: ModelFactory,
    *,
    models: Iterable[str] | None = None,
) -> None:
    """Register a provider on the process-wide registry.

    Example:
        register_provider("echo", EchoProvider())
    """
    _registry.register(provider_name, factory, models=models)


def resolve_model(model_id: str) -> LanguageModel:
    """Resolve *model_id* on the process-wide registry."""
    return _registry.resolve(model_id)
