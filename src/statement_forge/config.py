"""Application configuration loaded from config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class LLMConfig:
    feedback_model: str = "gemini-2.0-flash"
    timeout: int = 60
    max_attempts: int = 1


@dataclass(frozen=True)
class GenerationConfig:
    creative_temperature: float = 0.75
    combined_max_tokens: int = 3000
    entry_max_tokens: int = 2000
    revision_temperature: float = 0.6
    conversion_temperature: float = 0.7
    conversion_max_tokens: int = 1500
    surgical_temperature: float = 0.1
    surgical_max_tokens: int = 2000
    min_fallback_line_length: int = 50
    max_example_statements: int = 6
    epb_max_characters: int = 350


@dataclass(frozen=True)
class EditThresholds:
    """Tunable limits for partial matching and LLM change validation.

    These were picked by hand and should be recalibrated against real edits.
    """

    min_partial_length: int = 10
    min_partial_coverage: float = 0.4
    length_tolerance_base: int = 5
    length_tolerance_ratio: float = 0.3
    min_preserved_ratio: float = 0.9


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    edit: EditThresholds = field(default_factory=EditThresholds)
    server: ServerConfig = field(default_factory=ServerConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        generation=GenerationConfig(**raw.get("generation", {})),
        edit=EditThresholds(**raw.get("edit", {})),
        server=ServerConfig(**raw.get("server", {})),
    )
