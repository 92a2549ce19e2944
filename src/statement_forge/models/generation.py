"""Pydantic models for statement generation requests and results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from statement_forge.models.style import StyleConfiguration

CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class GenerationMode(str, Enum):
    ACCOMPLISHMENTS = "accomplishments"
    CUSTOM_CONTEXT = "customContext"
    REVISION = "revision"


AwardLevel = Literal["squadron", "group", "wing", "majcom", "haf"]

StatementKind = Literal["award", "epb"]  # AF Form 1206 or EPB narrative


class Accomplishment(BaseModel):
    id: str
    mpa: str  # MPA key or 1206 category key
    action_verb: str
    details: str
    impact: str
    metrics: str | None = None
    date: str | None = None  # ISO date, e.g. "2025-03-14"

    model_config = {**CAMEL, "frozen": True}


class GenerationRequest(BaseModel):
    """Parameters for one generate call. Built per request, never mutated."""

    model: str
    mode: GenerationMode = GenerationMode.ACCOMPLISHMENTS
    kind: StatementKind = "award"
    sentences_per_statement: Literal[2, 3] = 2
    versions_per_statement: int = Field(default=3, ge=1, le=10)
    statements_per_entry: int = Field(default=1, ge=1, le=5)
    combine_entries: bool = False
    accomplishments: list[Accomplishment] = []
    custom_context: str | None = None
    existing_statement: str | None = None
    revision_intensity: int = Field(default=50, ge=0, le=100)
    nominee_rank: str = ""
    nominee_name: str = ""
    nominee_afsc: str = ""
    award_level: AwardLevel = "squadron"
    award_category: str = ""
    award_period: str = ""
    categories_to_generate: list[str] = []
    style: StyleConfiguration | None = None  # snapshot; the HTTP layer always replaces it

    model_config = {**CAMEL, "frozen": True}

    @model_validator(mode="after")
    def _check_mode_inputs(self) -> GenerationRequest:
        if self.mode is GenerationMode.ACCOMPLISHMENTS and not self.accomplishments:
            raise ValueError("accomplishments mode requires at least one accomplishment")
        if self.mode is GenerationMode.CUSTOM_CONTEXT and not (self.custom_context or "").strip():
            raise ValueError("customContext mode requires non-empty customContext")
        if self.mode is GenerationMode.REVISION and not (self.existing_statement or "").strip():
            raise ValueError("revision mode requires existingStatement")
        return self


class StatementGroup(BaseModel):
    """One requested statement with its alternative phrasings."""

    versions: list[str]
    source_accomplishment_ids: list[str] = []

    model_config = CAMEL


class CategoryStatements(BaseModel):
    category: str
    statement_groups: list[StatementGroup]

    model_config = CAMEL


class GenerationFailure(BaseModel):
    category: str
    accomplishment_ids: list[str] = []
    error: str

    model_config = CAMEL


class GenerationResult(BaseModel):
    statements: list[CategoryStatements] = []
    failures: list[GenerationFailure] = []
    usage: dict[str, Any] = {}

    model_config = CAMEL


class ConvertRequest(BaseModel):
    statement: str = Field(min_length=1)
    target_sentences: int = Field(ge=1, le=5)
    model: str
    nominee_rank: str = ""
    nominee_name: str = ""

    model_config = {**CAMEL, "frozen": True}


class ConvertResult(BaseModel):
    versions: list[str]
    fallback: bool = False  # True when the original statement was returned

    model_config = CAMEL
