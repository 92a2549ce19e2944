"""Data models for the statement generation pipeline."""

from statement_forge.models.credentials import ApiKeys
from statement_forge.models.edit import EditOutcome, EditRequest, EditTier, SuggestionType
from statement_forge.models.generation import (
    Accomplishment,
    CategoryStatements,
    ConvertRequest,
    ConvertResult,
    GenerationFailure,
    GenerationMode,
    GenerationRequest,
    GenerationResult,
    StatementGroup,
)
from statement_forge.models.style import (
    Abbreviation,
    ExampleStatement,
    RankVerbs,
    StyleConfiguration,
)

__all__ = [
    "Abbreviation",
    "Accomplishment",
    "ApiKeys",
    "CategoryStatements",
    "ConvertRequest",
    "ConvertResult",
    "EditOutcome",
    "EditRequest",
    "EditTier",
    "ExampleStatement",
    "GenerationFailure",
    "GenerationMode",
    "GenerationRequest",
    "GenerationResult",
    "RankVerbs",
    "StatementGroup",
    "StyleConfiguration",
    "SuggestionType",
]
