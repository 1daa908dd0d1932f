"""unifai: one contract for calling language model backends.

Public API:
    - ProviderRegistry / register_provider(): map model ids to backends
    - resolve_model(): look up a model by id
    - CallSettings: per-call generation settings
    - generate(): resolve and call in one step
"""

from __future__ import annotations

import logging

from unifai.call import CallSettings
from unifai.cancellation import CancellationToken
from unifai.config import ProviderSettings, combine_headers, wire_headers
from unifai.errors import (
    ConfigurationError,
    GenerationCancelledError,
    GenerationError,
    InternalError,
    NoSuchModelError,
    NoSuchProviderError,
    UnifaiError,
)
from unifai.providers import (
    CallWarning,
    EchoProvider,
    FinishReason,
    GenerationResult,
    LanguageModel,
    LanguageModelDescriptor,
    LanguageModelV1,
    Message,
    ObjectGenerationMode,
    Provider,
    Source,
    ToolCall,
    Usage,
)
from unifai.registry import (
    ProviderRegistry,
    default_registry,
    register_provider,
    resolve_model,
)
from unifai.response_format import (
    JsonFormat,
    RawSchema,
    ResponseFormat,
    TextFormat,
    TypedSchema,
    json_format,
    render_schema,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("unifai")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("unifai").addHandler(logging.NullHandler())

logger = logging.getLogger(__name__)


async def generate(
    model_id: str, settings: CallSettings | None = None
) -> GenerationResult:
    """Resolve *model_id* on the default registry and generate once.

    Args:
        model_id: Exact or ``provider:model`` id.
        settings: Per-call settings; defaults to ``CallSettings()``.

    Returns:
        The backend's GenerationResult.

    Example:
        register_provider("echo", EchoProvider())
        result = await generate(
            "echo-1",
            CallSettings(prompt=[Message(role="user", content="hi")]),
        )
        print(result.text)
    """
    model = resolve_model(model_id)
    logger.debug("Generating with %r", model)
    return await model.generate(settings)


__all__ = [
    "CallSettings",
    "CallWarning",
    "CancellationToken",
    "ConfigurationError",
    "EchoProvider",
    "FinishReason",
    "GenerationCancelledError",
    "GenerationError",
    "GenerationResult",
    "InternalError",
    "JsonFormat",
    "LanguageModel",
    "LanguageModelDescriptor",
    "LanguageModelV1",
    "Message",
    "NoSuchModelError",
    "NoSuchProviderError",
    "ObjectGenerationMode",
    "Provider",
    "ProviderRegistry",
    "ProviderSettings",
    "RawSchema",
    "ResponseFormat",
    "Source",
    "TextFormat",
    "ToolCall",
    "TypedSchema",
    "UnifaiError",
    "Usage",
    "combine_headers",
    "default_registry",
    "generate",
    "json_format",
    "register_provider",
    "render_schema",
    "resolve_model",
    "wire_headers",
]
