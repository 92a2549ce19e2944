"""Surgical edit engine: apply one delete/replace suggestion to a document.

Tiers run in order and each either resolves the edit or escalates:

    EXACT_MATCH -> PARTIAL_MATCH -> LLM_DELEGATE

Only the last tier talks to a model. Its output is checked against the
requested change and flagged for review when it looks like the model touched
more than it was asked to.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from statement_forge.clients.llm_client import LLMClient
from statement_forge.config import EditThresholds
from statement_forge.errors import StatementForgeError
from statement_forge.models.edit import EditOutcome, EditRequest, EditTier, SuggestionType
from statement_forge.pipeline import dispatcher
from statement_forge.pipeline.response_parser import parse_edit_result
from statement_forge.prompts.assembler import build_surgical_prompt
from statement_forge.prompts.defaults import SURGICAL_SYSTEM_PROMPT
from statement_forge.utils.text_cleaning import collapse_spaces, normalize_whitespace

logger = logging.getLogger(__name__)

EMPTY_SECTION_REASON = "Section is empty or not found. Cannot apply suggestion."


@dataclass(frozen=True)
class Escalation:
    """Returned by a tier that cannot resolve the edit itself."""

    target: EditTier
    detail: str


def _splice(text: str, start: int, end: int, insert: str = "") -> str:
    return collapse_spaces(text[:start] + insert + text[end:])


def exact_match(request: EditRequest) -> EditOutcome | Escalation:
    """Case-sensitive literal match of the highlighted text."""
    text = request.current_text
    target = request.highlighted_text
    first = text.find(target)
    if first == -1:
        if request.suggestion_type is SuggestionType.DELETE:
            return Escalation(EditTier.PARTIAL_MATCH, "highlighted text not found")
        return Escalation(EditTier.LLM_DELEGATE, "highlighted text not found")
    if text.rfind(target) != first:
        return Escalation(EditTier.LLM_DELEGATE, "highlighted text occurs more than once")

    new_text = _splice(text, first, first + len(target), request.replacement)
    return EditOutcome.ok(new_text, EditTier.EXACT_MATCH)


@dataclass(frozen=True)
class _Window:
    start: int  # word index
    end: int
    phrase: str

    def rank(self, word_count: int) -> int:
        """Tie-break order: whole phrase, front-trimmed, back-trimmed, interior."""
        if self.start == 0 and self.end == word_count:
            return 0
        if self.end == word_count:
            return 1
        if self.start == 0:
            return 2
        return 3


def find_partial_match(
    highlighted: str,
    text: str,
    thresholds: EditThresholds = EditThresholds(),
) -> tuple[int, int] | None:
    """Locate the surviving part of ``highlighted`` inside ``text``.

    Considers every contiguous word window of the highlighted text that clears
    the length and coverage floors, keeping the longest one found in ``text``
    (case-insensitive). Returns its character span in ``text``, or None when
    nothing qualifies or the best window occurs more than once.
    """
    words = highlighted.split()
    n = len(words)
    floor = max(thresholds.min_partial_length, thresholds.min_partial_coverage * len(highlighted))

    best: _Window | None = None
    best_spans: list[tuple[int, int]] = []
    for start in range(n):
        for end in range(n, start, -1):
            phrase = " ".join(words[start:end])
            if len(phrase) < floor:
                break  # shorter windows from this start only get shorter
            window = _Window(start, end, phrase)
            if best is not None and (
                len(phrase) < len(best.phrase)
                or (len(phrase) == len(best.phrase) and window.rank(n) >= best.rank(n))
            ):
                continue
            spans = [
                m.span()
                for m in re.finditer(re.escape(phrase), text, flags=re.IGNORECASE)
            ]
            if spans:
                best, best_spans = window, spans

    if best is None:
        return None
    if len(best_spans) > 1:
        logger.debug("Partial match %r is ambiguous (%d hits)", best.phrase, len(best_spans))
        return None
    return best_spans[0]


def partial_match(
    request: EditRequest,
    thresholds: EditThresholds = EditThresholds(),
) -> EditOutcome | Escalation:
    """Delete whatever is left of a partly edited highlight, flagged for review."""
    if request.suggestion_type is not SuggestionType.DELETE:
        return Escalation(EditTier.LLM_DELEGATE, "partial matching only applies to deletes")
    span = find_partial_match(request.highlighted_text, request.current_text, thresholds)
    if span is None:
        return Escalation(EditTier.LLM_DELEGATE, "no unique partial match")

    start, end = span
    fragment = request.current_text[start:end]
    new_text = _splice(request.current_text, start, end)
    return EditOutcome.review(
        new_text,
        f'The exact text was not found. Deleted the remaining portion: "{fragment}"',
        EditTier.PARTIAL_MATCH,
    )


def validate_change(
    original: str,
    new_text: str,
    highlighted: str,
    replacement: str,
    suggestion_type: SuggestionType,
    thresholds: EditThresholds = EditThresholds(),
) -> str | None:
    """Return the first failed check as a reason string, or None if the change looks right."""
    if suggestion_type is SuggestionType.DELETE:
        expected = -len(highlighted)
    else:
        expected = len(replacement) - len(highlighted)
    actual = len(new_text) - len(original)
    tolerance = thresholds.length_tolerance_base + len(highlighted) * thresholds.length_tolerance_ratio
    if abs(actual - expected) > tolerance:
        return f"Length change mismatch: expected ~{expected}, got {actual}"

    if suggestion_type is SuggestionType.REPLACE and replacement and replacement not in new_text:
        return "Replacement text not found in result"

    highlight_words = set(highlighted.split())
    to_preserve = [w for w in original.split() if w not in highlight_words]
    if to_preserve:
        new_words = set(new_text.split())
        ratio = sum(1 for w in to_preserve if w in new_words) / len(to_preserve)
        if ratio < thresholds.min_preserved_ratio:
            return f"Only {round(ratio * 100)}% of original text preserved"
    return None


def _not_found_reason(highlighted: str) -> str:
    preview = highlighted[:50] + ("..." if len(highlighted) > 50 else "")
    return (
        f'Could not find "{preview}" in the current text. '
        "It may have already been edited or removed."
    )


class SurgicalEditor:
    """Apply edit suggestions, delegating to an LLM only when string matching fails.

    ``client_factory`` is called lazily, so exact and partial matches work
    without any configured credentials.
    """

    def __init__(
        self,
        client_factory: Callable[[], LLMClient],
        thresholds: EditThresholds = EditThresholds(),
        params: dispatcher.GenerationParams = dispatcher.SURGICAL,
    ):
        self.client_factory = client_factory
        self.thresholds = thresholds
        self.params = params

    async def apply(self, request: EditRequest) -> EditOutcome:
        if not request.current_text.strip():
            return EditOutcome.abort(EMPTY_SECTION_REASON)

        tier = EditTier.EXACT_MATCH
        while True:
            if tier is EditTier.EXACT_MATCH:
                result = exact_match(request)
            elif tier is EditTier.PARTIAL_MATCH:
                result = partial_match(request, self.thresholds)
            else:
                return await self._delegate(request)
            if isinstance(result, EditOutcome):
                logger.debug("Edit resolved by %s", tier.value)
                return result
            logger.debug("Escalating %s -> %s: %s", tier.value, result.target.value, result.detail)
            tier = result.target

    async def _delegate(self, request: EditRequest) -> EditOutcome:
        try:
            client = self.client_factory()
            raw = await dispatcher.generate(
                client,
                SURGICAL_SYSTEM_PROMPT,
                build_surgical_prompt(request),
                self.params,
            )
        except StatementForgeError as exc:
            logger.warning("Surgical edit LLM call failed: %s", exc.message)
            return EditOutcome.abort(exc.message, EditTier.LLM_DELEGATE)

        parsed = parse_edit_result(raw)
        if not parsed.success:
            return EditOutcome.abort(parsed.reason, EditTier.LLM_DELEGATE)

        new_text = parsed.new_text
        if normalize_whitespace(request.current_text) == normalize_whitespace(new_text):
            return EditOutcome.abort(
                _not_found_reason(request.highlighted_text), EditTier.LLM_DELEGATE
            )

        problem = validate_change(
            request.current_text,
            new_text,
            request.highlighted_text,
            request.replacement,
            request.suggestion_type,
            self.thresholds,
        )
        if problem:
            logger.warning("LLM edit flagged for review: %s", problem)
            return EditOutcome.review(new_text, problem, EditTier.LLM_DELEGATE)
        return EditOutcome.ok(new_text, EditTier.LLM_DELEGATE)
