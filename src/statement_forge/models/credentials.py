"""Decrypted per-user API keys as handed over by the credential store."""

from __future__ import annotations

from pydantic import BaseModel


class ApiKeys(BaseModel):
    openai_key: str | None = None
    anthropic_key: str | None = None
    google_key: str | None = None
    grok_key: str | None = None

    model_config = {"frozen": True}
