"""Pydantic models for surgical edit requests and outcomes."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator, model_validator
from pydantic.alias_generators import to_camel

CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class SuggestionType(str, Enum):
    DELETE = "delete"
    REPLACE = "replace"


class EditTier(str, Enum):
    EXACT_MATCH = "exactMatch"
    PARTIAL_MATCH = "partialMatch"
    LLM_DELEGATE = "llmDelegate"


class EditRequest(BaseModel):
    current_text: str
    highlighted_text: str
    suggestion_type: SuggestionType
    replacement_text: str | None = None

    model_config = {**CAMEL, "frozen": True}

    @field_validator("highlighted_text")
    @classmethod
    def _highlight_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Missing highlighted text")
        return v

    @property
    def replacement(self) -> str:
        return self.replacement_text or ""


class EditOutcome(BaseModel):
    """Result of one edit attempt.

    Exactly one shape holds: success with text, success + review with text and
    reason, or aborted with reason.
    """

    success: bool
    new_text: str | None = None
    needs_review: bool = False
    review_reason: str | None = None
    aborted: bool = False
    reason: str | None = None
    tier: EditTier | None = None

    model_config = CAMEL

    @model_validator(mode="after")
    def _check_shape(self) -> EditOutcome:
        if self.success:
            if self.aborted or self.new_text is None:
                raise ValueError("successful outcome needs new_text and cannot be aborted")
            if self.needs_review and not self.review_reason:
                raise ValueError("needs_review outcome requires review_reason")
        else:
            if not self.aborted or not self.reason or self.new_text is not None:
                raise ValueError("failed outcome must be aborted with a reason and no text")
            if self.needs_review:
                raise ValueError("aborted outcome cannot need review")
        return self

    @classmethod
    def ok(cls, new_text: str, tier: EditTier) -> EditOutcome:
        return cls(success=True, new_text=new_text, tier=tier)

    @classmethod
    def review(cls, new_text: str, reason: str, tier: EditTier) -> EditOutcome:
        return cls(success=True, new_text=new_text, needs_review=True, review_reason=reason, tier=tier)

    @classmethod
    def abort(cls, reason: str, tier: EditTier | None = None) -> EditOutcome:
        return cls(success=False, aborted=True, reason=reason, tier=tier)

    def to_response(self) -> dict[str, Any]:
        """Wire shape: flags that are off and empty fields are omitted."""
        body: dict[str, Any] = {"success": self.success}
        if self.new_text is not None:
            body["newText"] = self.new_text
        if self.needs_review:
            body["needsReview"] = True
            body["reviewReason"] = self.review_reason
        if self.aborted:
            body["aborted"] = True
            body["reason"] = self.reason
        return body
