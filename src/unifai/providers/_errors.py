"""Shared backend-side error helpers.

Backends raise whatever their SDKs raise; the language model base maps those
into ``GenerationError`` so callers see one failure category with whatever
structure could be recovered.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from unifai.config import api_key_env_var
from unifai.errors import GenerationError, _walk_exception_chain

logger = logging.getLogger(__name__)

_AUTH_STATUS_CODES: frozenset[int] = frozenset({401, 403})


def extract_status_code(exc: BaseException) -> int | None:
    """Walk the exception chain to find an HTTP status code."""
    for e in _walk_exception_chain(exc):
        for attr in ("status_code", "status"):
            value = getattr(e, attr, None)
            if isinstance(value, int) and 100 <= value <= 599:
                return value
        response = getattr(e, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def _is_network_error(exc: BaseException) -> bool:
    for e in _walk_exception_chain(exc):
        if isinstance(e, (TimeoutError, httpx.TimeoutException, httpx.RequestError)):
            return True
    return False


def _derive_hint(provider: str, status_code: int | None, exc: BaseException) -> str | None:
    cause_lower = str(exc).lower()
    if status_code in _AUTH_STATUS_CODES or (
        status_code == 400 and ("api key" in cause_lower or "api_key" in cause_lower)
    ):
        return (
            "Check credentials/permissions "
            f"(try setting {api_key_env_var(provider)} or ProviderSettings.api_key)."
        )
    if _is_network_error(exc):
        return "The backend could not be reached; check connectivity and base_url."
    return None


def wrap_generation_error(
    exc: BaseException,
    *,
    provider: str,
    model_id: str,
    message: str | None = None,
) -> GenerationError:
    """Map a backend exception into ``GenerationError``."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    # Already wrapped: fill in missing context only.
    if isinstance(exc, GenerationError):
        if exc.provider is None:
            exc.provider = provider
        if exc.model_id is None:
            exc.model_id = model_id
        return exc

    status_code = extract_status_code(exc)
    logger.debug(
        "Mapping %s from %s/%s (status=%s)",
        type(exc).__name__,
        provider,
        model_id,
        status_code,
    )

    msg = message or f"{provider} generate failed"
    status_note = f" (status={status_code})" if isinstance(status_code, int) else ""
    cause = str(exc)
    return GenerationError(
        f"{msg}{status_note}: {cause}" if cause else f"{msg}{status_note}",
        hint=_derive_hint(provider, status_code, exc),
        provider=provider,
        model_id=model_id,
        status_code=status_code,
    )
