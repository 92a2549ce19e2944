"""Model identifier -> vendor client resolution.

Vendors are matched through an ordered capability table. A model id that no
vendor claims falls through to the fallback chain, which uses the first vendor
with a configured key and that vendor's inexpensive default model.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from statement_forge.clients.llm_client import (
    AnthropicClient,
    GeminiClient,
    LLMClient,
    OpenAIClient,
    XAIClient,
)
from statement_forge.errors import CredentialError
from statement_forge.models.credentials import ApiKeys

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VendorSpec:
    name: str
    display_name: str
    matcher: Callable[[str], bool]
    key_field: str  # attribute on ApiKeys
    env_var: str
    client_cls: type[LLMClient]
    fallback_model: str


def _contains(fragment: str) -> Callable[[str], bool]:
    return lambda model_id: fragment in model_id.lower()


def _is_openai_model(model_id: str) -> bool:
    return model_id.lower().startswith(("gpt-", "chatgpt", "o1", "o3", "o4"))


VENDORS: tuple[VendorSpec, ...] = (
    VendorSpec(
        name="anthropic",
        display_name="Anthropic",
        matcher=_contains("claude"),
        key_field="anthropic_key",
        env_var="ANTHROPIC_API_KEY",
        client_cls=AnthropicClient,
        fallback_model="claude-sonnet-4-20250514",
    ),
    VendorSpec(
        name="google",
        display_name="Google AI",
        matcher=_contains("gemini"),
        key_field="google_key",
        env_var="GOOGLE_GENERATIVE_AI_API_KEY",
        client_cls=GeminiClient,
        fallback_model="gemini-2.0-flash",
    ),
    VendorSpec(
        name="xai",
        display_name="xAI",
        matcher=_contains("grok"),
        key_field="grok_key",
        env_var="XAI_API_KEY",
        client_cls=XAIClient,
        fallback_model="grok-3-mini-fast",
    ),
    VendorSpec(
        name="openai",
        display_name="OpenAI",
        matcher=_is_openai_model,
        key_field="openai_key",
        env_var="OPENAI_API_KEY",
        client_cls=OpenAIClient,
        fallback_model="gpt-4o",
    ),
)

_BY_NAME = {v.name: v for v in VENDORS}

# Tried in order when the model id matches no vendor.
FALLBACK_ORDER: tuple[str, ...] = ("google", "anthropic", "openai", "xai")


def detect_vendor(model_id: str) -> VendorSpec | None:
    for vendor in VENDORS:
        if vendor.matcher(model_id):
            return vendor
    return None


def vendor_display_name(model_id: str) -> str | None:
    vendor = detect_vendor(model_id)
    return vendor.display_name if vendor else None


def resolve_api_key(
    vendor: VendorSpec,
    user_keys: ApiKeys | None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """User key first, then the process-wide key. Blank keys count as missing."""
    environ = os.environ if environ is None else environ
    user_key = getattr(user_keys, vendor.key_field, None) if user_keys else None
    if user_key and user_key.strip():
        return user_key.strip()
    env_key = environ.get(vendor.env_var, "")
    if env_key and env_key.strip():
        return env_key.strip()
    return None


def resolve(
    model_id: str,
    user_keys: ApiKeys | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    timeout: float | None = None,
    max_attempts: int = 1,
) -> LLMClient:
    """Return a client for ``model_id`` or raise CredentialError.

    No network I/O happens here.
    """
    vendor = detect_vendor(model_id)
    if vendor is not None:
        api_key = resolve_api_key(vendor, user_keys, environ)
        if api_key is None:
            raise CredentialError(vendor.display_name)
        return vendor.client_cls(model_id, api_key, timeout=timeout, max_attempts=max_attempts)

    for name in FALLBACK_ORDER:
        fallback = _BY_NAME[name]
        api_key = resolve_api_key(fallback, user_keys, environ)
        if api_key is not None:
            logger.warning(
                "Unrecognized model %r, falling back to %s",
                model_id,
                fallback.fallback_model,
            )
            return fallback.client_cls(
                fallback.fallback_model, api_key, timeout=timeout, max_attempts=max_attempts
            )
    raise CredentialError()
