"""Language model interface and provider implementations."""

from .base import LanguageModel, LanguageModelDescriptor, LanguageModelV1, Provider
from .echo import EchoLanguageModel, EchoProvider
from .models import (
    CallWarning,
    FinishReason,
    GenerationResult,
    Message,
    ObjectGenerationMode,
    ProviderMetadata,
    Source,
    ToolCall,
    Usage,
)

__all__ = [
    "CallWarning",
    "EchoLanguageModel",
    "EchoProvider",
    "FinishReason",
    "GenerationResult",
    "LanguageModel",
    "LanguageModelDescriptor",
    "LanguageModelV1",
    "Message",
    "ObjectGenerationMode",
    "Provider",
    "ProviderMetadata",
    "Source",
    "ToolCall",
    "Usage",
]
