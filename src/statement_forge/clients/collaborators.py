"""Interfaces to the surrounding application, with standalone defaults.

Credentials, style settings and content scanning live outside this package.
The HTTP and CLI layers accept any object matching these protocols.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from statement_forge.models.credentials import ApiKeys
from statement_forge.models.style import StyleConfiguration


@dataclass(frozen=True)
class ScanMatch:
    label: str


@dataclass(frozen=True)
class ScanResult:
    blocked: bool = False
    matches: list[ScanMatch] = field(default_factory=list)


class CredentialStore(Protocol):
    def get_credentials(self, user_id: str | None) -> ApiKeys | None: ...


class StyleStore(Protocol):
    def get_style_configuration(self, user_id: str | None) -> StyleConfiguration | None: ...


class SensitiveContentScanner(Protocol):
    def scan(self, text: str) -> ScanResult: ...


class EnvCredentialStore:
    """No per-user keys; the resolver falls back to process environment keys."""

    def get_credentials(self, user_id: str | None) -> ApiKeys | None:
        return None


class StaticCredentialStore:
    """Same keys for every user."""

    def __init__(self, keys: ApiKeys):
        self.keys = keys

    def get_credentials(self, user_id: str | None) -> ApiKeys | None:
        return self.keys


class EmptyStyleStore:
    def get_style_configuration(self, user_id: str | None) -> StyleConfiguration | None:
        return StyleConfiguration()


class PassThroughScanner:
    def scan(self, text: str) -> ScanResult:
        return ScanResult()
