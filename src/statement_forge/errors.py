"""Error taxonomy and user-facing error messages for LLM calls."""

from __future__ import annotations

import re
from enum import Enum

SETTINGS_HINT = "Settings → API Keys"


class StatementForgeError(Exception):
    """Base exception for statement-forge errors."""

    status_code: int = 500
    error_code: str = "generation_failed"

    def __init__(self, message: str, *, provider: str | None = None):
        super().__init__(message)
        self.message = message
        self.provider = provider

    def to_dict(self) -> dict:
        body: dict = {"error": self.message, "errorCode": self.error_code}
        if self.provider:
            body["provider"] = self.provider
        return body


class CredentialError(StatementForgeError):
    """Raised before any network call when no API key is available."""

    status_code = 400
    error_code = "missing_api_key"

    def __init__(self, provider: str | None = None):
        if provider:
            message = (
                f"No {provider} API key configured. "
                f"Add one in {SETTINGS_HINT} to use {provider} models."
            )
        else:
            message = f"No API keys configured. Add at least one in {SETTINGS_HINT}."
        super().__init__(message, provider=provider)


class SensitiveContentError(StatementForgeError):
    """Input was blocked by the sensitive-content scanner before any model call."""

    status_code = 400
    error_code = "sensitive_content"

    def __init__(self, labels: list[str]):
        self.labels = labels
        super().__init__(
            "Input contains sensitive information that cannot be sent to an AI provider: "
            + ", ".join(labels)
        )

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["matches"] = [{"label": label} for label in self.labels]
        return body


class ProviderErrorKind(str, Enum):
    INVALID_API_KEY = "invalid_api_key"
    PERMISSION_DENIED = "permission_denied"
    RATE_LIMIT = "rate_limit_exceeded"
    QUOTA_EXCEEDED = "quota_exceeded"
    CONTEXT_LENGTH = "context_length_exceeded"
    CONTENT_FILTERED = "content_filtered"
    MODEL_NOT_FOUND = "model_not_found"
    TIMEOUT = "request_timeout"
    UNAVAILABLE = "provider_unavailable"
    OVERLOADED = "provider_overloaded"
    INVALID_REQUEST = "invalid_request"
    GENERATION_FAILED = "generation_failed"


_KIND_STATUS: dict[ProviderErrorKind, int] = {
    ProviderErrorKind.INVALID_API_KEY: 401,
    ProviderErrorKind.PERMISSION_DENIED: 403,
    ProviderErrorKind.RATE_LIMIT: 429,
    ProviderErrorKind.QUOTA_EXCEEDED: 429,
    ProviderErrorKind.CONTEXT_LENGTH: 400,
    ProviderErrorKind.CONTENT_FILTERED: 400,
    ProviderErrorKind.MODEL_NOT_FOUND: 404,
    ProviderErrorKind.TIMEOUT: 504,
    ProviderErrorKind.UNAVAILABLE: 502,
    ProviderErrorKind.OVERLOADED: 529,
    ProviderErrorKind.INVALID_REQUEST: 400,
    ProviderErrorKind.GENERATION_FAILED: 500,
}

TRANSIENT_KINDS = frozenset(
    {ProviderErrorKind.RATE_LIMIT, ProviderErrorKind.UNAVAILABLE, ProviderErrorKind.OVERLOADED}
)


class ProviderError(StatementForgeError):
    """A failed call to an LLM vendor, with a sanitized user-facing message."""

    def __init__(self, kind: ProviderErrorKind, message: str, *, provider: str | None = None):
        super().__init__(message, provider=provider)
        self.kind = kind
        self.status_code = _KIND_STATUS[kind]
        self.error_code = kind.value

    @property
    def transient(self) -> bool:
        return self.kind in TRANSIENT_KINDS


def _contains_any(text: str, needles: list[str]) -> bool:
    lower = text.lower()
    return any(n in lower for n in needles)


def from_status(status: int | None, detail: str, provider: str | None = None) -> ProviderError:
    """Map a vendor HTTP status and error detail to a ProviderError."""
    name = provider or "AI provider"
    detail = detail or ""
    status = status or 500
    kind = ProviderErrorKind
    if status == 401:
        return ProviderError(
            kind.INVALID_API_KEY,
            f"Your {name} API key is invalid or has been revoked. "
            f"Please update it in {SETTINGS_HINT}.",
            provider=provider,
        )
    if status == 403:
        return ProviderError(
            kind.PERMISSION_DENIED,
            f"Your {name} API key does not have permission to use this model. "
            "Please check your API key permissions or try a different model.",
            provider=provider,
        )
    if status == 429:
        if _contains_any(detail, ["quota", "billing", "insufficient", "funds", "credits", "budget"]):
            return ProviderError(
                kind.QUOTA_EXCEEDED,
                f"Your {name} API key has reached its usage quota or billing limit. "
                f"Please check your {name} account billing and usage limits.",
                provider=provider,
            )
        return ProviderError(
            kind.RATE_LIMIT,
            f"{name} rate limit reached. Please wait a moment and try again.",
            provider=provider,
        )
    if status == 400:
        if _contains_any(detail, ["context length", "token limit", "maximum context", "too long", "max_tokens"]):
            return ProviderError(
                kind.CONTEXT_LENGTH,
                "The request was too long for the selected model. Try reducing the input "
                "text or selecting a model with a larger context window.",
                provider=provider,
            )
        if _contains_any(detail, ["content filter", "safety", "blocked", "harmful", "refused"]):
            return ProviderError(
                kind.CONTENT_FILTERED,
                f"{name} blocked the request due to content safety filters. "
                "Please review your input text.",
                provider=provider,
            )
        if _contains_any(detail, ["api key", "api_key", "invalid key", "authentication"]):
            return ProviderError(
                kind.INVALID_API_KEY,
                f"Your {name} API key appears to be invalid. "
                f"Please check and update it in {SETTINGS_HINT}.",
                provider=provider,
            )
        if _contains_any(detail, ["not found", "does not exist", "invalid model", "not available"]):
            return ProviderError(
                kind.MODEL_NOT_FOUND,
                f"The selected model is not available for your {name} API key. "
                "Please try a different model.",
                provider=provider,
            )
        cleaned = sanitize_for_user(detail) or "Invalid request. Please try again with different input."
        return ProviderError(kind.INVALID_REQUEST, f"{name} rejected the request: {cleaned}", provider=provider)
    if status == 404:
        return ProviderError(
            kind.MODEL_NOT_FOUND,
            f"The selected model was not found on {name}. It may have been deprecated "
            "or your API key may not have access. Please try a different model.",
            provider=provider,
        )
    if status == 408:
        return timeout_error(provider)
    if status == 529:
        return ProviderError(
            kind.OVERLOADED,
            f"{name} is currently overloaded with requests. Please wait a moment and try again.",
            provider=provider,
        )
    if status >= 500:
        return ProviderError(
            kind.UNAVAILABLE,
            f"{name} is currently experiencing issues (server error). "
            "Please try again in a few moments or select a different model.",
            provider=provider,
        )
    cleaned = sanitize_for_user(detail) or "Please try again or select a different model."
    return ProviderError(
        kind.GENERATION_FAILED, f"{name} returned an error ({status}): {cleaned}", provider=provider
    )


def timeout_error(provider: str | None = None) -> ProviderError:
    name = provider or "AI provider"
    return ProviderError(
        ProviderErrorKind.TIMEOUT,
        f"The request to {name} timed out. The service may be experiencing high load. "
        "Please try again.",
        provider=provider,
    )


def connection_error(provider: str | None = None) -> ProviderError:
    name = provider or "AI provider"
    return ProviderError(
        ProviderErrorKind.UNAVAILABLE,
        f"Unable to connect to {name}. Please check your internet connection and try again.",
        provider=provider,
    )


def unexpected_error(exc: BaseException, provider: str | None = None) -> ProviderError:
    cleaned = sanitize_for_user(str(exc)) or "An unexpected error occurred. Please try again."
    return ProviderError(
        ProviderErrorKind.GENERATION_FAILED, f"Generation failed: {cleaned}", provider=provider
    )


_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"sk-[A-Za-z0-9_-]{20,}"), "[API_KEY]"),
    (re.compile(r"key-[A-Za-z0-9_-]{20,}"), "[API_KEY]"),
    (re.compile(r"xai-[A-Za-z0-9_-]{20,}"), "[API_KEY]"),
    (re.compile(r"AIza[A-Za-z0-9_-]{30,}"), "[API_KEY]"),
    (re.compile(r"Bearer\s+[A-Za-z0-9._-]+", re.IGNORECASE), "[TOKEN]"),
    (re.compile(r"\b[a-f0-9]{32,}\b", re.IGNORECASE), "[REDACTED]"),
    (re.compile(r"https?://[^\s\"']+"), "[URL]"),
    (re.compile(r"\n\s+at\s+.*"), ""),
    (re.compile(r'\n\s*File ".*'), ""),
]


def sanitize_for_user(message: str, max_length: int = 300) -> str:
    """Strip keys, tokens, URLs and stack frames from a vendor message."""
    if not message:
        return ""
    sanitized = message
    for pattern, replacement in _SECRET_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    if len(sanitized) > max_length:
        sanitized = sanitized[: max_length - 3] + "..."
    return sanitized.strip()
