"""Configuration: frozen provider settings and header layering."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
from types import MappingProxyType

from dotenv import load_dotenv

from unifai.errors import ConfigurationError

load_dotenv()

#: Header mapping where ``None`` means "explicitly absent", not "omitted".
Headers = Mapping[str, str | None]


def api_key_env_var(provider: str) -> str:
    """Return the environment variable holding *provider*'s API key.

    Example:
        api_key_env_var("open-router")  # "OPEN_ROUTER_API_KEY"
    """
    normalized = provider.strip().upper().replace("-", "_").replace(".", "_")
    return f"{normalized}_API_KEY"


@dataclass(frozen=True)
class ProviderSettings:
    """Immutable settings for one provider namespace.

    API keys are auto-resolved from ``<PROVIDER>_API_KEY`` when not passed.

    Example:
        settings = ProviderSettings(provider="echo", headers={"X-Trace": "1"})
    """

    provider: str
    #: Auto-resolved from ``<PROVIDER>_API_KEY`` when *None*.
    api_key: str | None = None
    base_url: str | None = None
    headers: Headers = field(default_factory=dict)
    require_api_key: bool = False

    def __post_init__(self) -> None:
        """Resolve the API key and validate settings."""
        if not isinstance(self.provider, str) or not self.provider.strip():
            raise ConfigurationError(
                "provider must be a non-empty string",
                hint="Pass the provider namespace, e.g. ProviderSettings(provider='echo').",
            )

        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

        env_var = api_key_env_var(self.provider)
        if self.api_key is None:
            object.__setattr__(self, "api_key", os.environ.get(env_var))

        if self.require_api_key and not self.api_key:
            raise ConfigurationError(
                f"API key required for {self.provider}",
                hint=f"Set {env_var} environment variable or pass api_key=...",
            )

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"ProviderSettings(provider={self.provider!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"base_url={self.base_url!r})"
        )

    __repr__ = __str__


def combine_headers(*layers: Headers | None) -> dict[str, str | None]:
    """Merge header layers left to right; later layers win.

    ``None`` values are kept so a later layer can explicitly unset a header
    an earlier layer provided.
    """
    merged: dict[str, str | None] = {}
    for layer in layers:
        if layer is None:
            continue
        merged.update(layer)
    return merged


def wire_headers(headers: Headers | None) -> dict[str, str]:
    """Return the headers a backend actually sends (``None`` values dropped)."""
    if headers is None:
        return {}
    return {key: value for key, value in headers.items() if value is not None}
