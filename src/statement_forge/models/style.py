"""Pydantic models for per-user prompt customization."""

from __future__ import annotations

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class RankVerbs(BaseModel):
    primary: list[str]
    secondary: list[str] = []

    model_config = {"frozen": True}


class Abbreviation(BaseModel):
    word: str
    abbreviation: str

    model_config = {"frozen": True}


class ExampleStatement(BaseModel):
    category: str
    statement: str
    is_winner: bool = False  # statement came from a winning package

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}


class StyleConfiguration(BaseModel):
    """User style settings. Read-only here; absent fields use built-in defaults."""

    system_prompt: str | None = None  # template with {{placeholders}}
    rank_verb_progression: dict[str, RankVerbs] = {}
    abbreviations: list[Abbreviation] = []
    style_guidelines: str = ""
    example_statements: list[ExampleStatement] = []

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}
