"""Tests for the surgical edit engine."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from statement_forge.clients.llm_client import LLMResponse
from statement_forge.config import EditThresholds
from statement_forge.errors import CredentialError, ProviderErrorKind, from_status
from statement_forge.models.edit import EditRequest, EditTier, SuggestionType
from statement_forge.pipeline.surgical_editor import (
    EMPTY_SECTION_REASON,
    Escalation,
    SurgicalEditor,
    exact_match,
    find_partial_match,
    partial_match,
    validate_change,
)


def _delete(text: str, highlight: str) -> EditRequest:
    return EditRequest(current_text=text, highlighted_text=highlight, suggestion_type=SuggestionType.DELETE)


def _replace(text: str, highlight: str, replacement: str) -> EditRequest:
    return EditRequest(
        current_text=text,
        highlighted_text=highlight,
        suggestion_type=SuggestionType.REPLACE,
        replacement_text=replacement,
    )


def _reply(payload: dict) -> LLMResponse:
    return LLMResponse(text=json.dumps(payload), input_tokens=40, output_tokens=20)


@pytest.fixture
def factory(mock_llm_client):
    return MagicMock(return_value=mock_llm_client)


class TestExactMatch:
    def test_single_occurrence_replace(self):
        """Scenario A: a unique highlight is spliced deterministically."""
        result = exact_match(_replace("Led the 2024 inspection team.", "2024", "2025"))
        assert result.success is True
        assert result.new_text == "Led the 2025 inspection team."
        assert result.needs_review is False
        assert result.tier is EditTier.EXACT_MATCH

    def test_delete_collapses_double_spaces(self):
        result = exact_match(_delete("Led the expertly run team.", "expertly"))
        assert result.new_text == "Led the run team."

    def test_delete_trims_edges(self):
        result = exact_match(_delete("Expertly led the team.", "Expertly"))
        assert result.new_text == "led the team."

    def test_multiple_occurrences_escalate_to_llm(self):
        result = exact_match(_delete("Led team. Led team again.", "Led team"))
        assert isinstance(result, Escalation)
        assert result.target is EditTier.LLM_DELEGATE

    def test_missing_delete_escalates_to_partial(self):
        result = exact_match(_delete("Led the team.", "managed the budget"))
        assert isinstance(result, Escalation)
        assert result.target is EditTier.PARTIAL_MATCH

    def test_missing_replace_escalates_to_llm(self):
        result = exact_match(_replace("Led the team.", "managed", "ran"))
        assert isinstance(result, Escalation)
        assert result.target is EditTier.LLM_DELEGATE

    def test_exact_match_is_case_sensitive(self):
        result = exact_match(_delete("Trained 40 Airmen.", "trained 40 Airmen"))
        assert isinstance(result, Escalation)


class TestPartialMatch:
    def test_case_insensitive_remaining_fragment(self):
        """Scenario B: the surviving part of an edited highlight is deleted and flagged."""
        request = _delete("Trained 40 Airmen across the squadron.", "trained 40 Airmen expertly")
        result = partial_match(request)
        assert result.success is True
        assert result.needs_review is True
        assert result.new_text == "across the squadron."
        assert '"Trained 40 Airmen"' in result.review_reason
        assert result.tier is EditTier.PARTIAL_MATCH

    def test_short_fragment_below_floor(self):
        """Only a 4-character fragment survives, below the 10-character floor."""
        assert find_partial_match("exceeded every goal", "Supported 3 exercises, goal met.") is None
        result = partial_match(_delete("Supported 3 exercises, goal met.", "exceeded every goal"))
        assert isinstance(result, Escalation)
        assert result.target is EditTier.LLM_DELEGATE

    def test_coverage_floor(self):
        """A 10-char surviving word of a 40-char highlight is under 40% coverage."""
        highlight = "maintained forty two aircraft flawlessly"
        assert len(highlight) == 40
        text = "Crew maintained the fleet with care."
        assert find_partial_match(highlight, text) is None
        loose = EditThresholds(min_partial_coverage=0.2)
        assert find_partial_match(highlight, text, loose) is not None

    def test_ambiguous_fragment_is_not_used(self):
        text = "Trained 40 Airmen on Monday, later trained 40 Airmen again."
        assert find_partial_match("trained 40 Airmen expertly", text) is None

    def test_longest_window_wins(self):
        text = "Repaired radar arrays during the storm."
        span = find_partial_match("swiftly repaired radar arrays", text)
        assert text[span[0] : span[1]] == "Repaired radar arrays"

    def test_front_trimmed_window_wins_ties(self):
        text = "Fixed radar on day one, then serviced radar units twice."
        span = find_partial_match("fixed radar units", text)
        assert text[span[0] : span[1]] == "radar units"

    def test_replace_is_never_partially_matched(self):
        result = partial_match(_replace("Trained 40 Airmen.", "trained 40 Airmen well", "x"))
        assert isinstance(result, Escalation)


class TestValidateChange:
    def test_word_preservation_flag(self):
        """Dropping an untouched word alongside the replacement fails preservation."""
        reason = validate_change("A B C D E", "A X D E", "C", "X", SuggestionType.REPLACE)
        assert reason == "Only 75% of original text preserved"

    def test_clean_replace_passes(self):
        assert validate_change("A B C D E", "A B X D E", "C", "X", SuggestionType.REPLACE) is None

    def test_length_mismatch_reported_first(self):
        original = "Led the annual inspection prep for the whole squadron."
        reason = validate_change(original, "Led.", "annual", "", SuggestionType.DELETE)
        assert reason.startswith("Length change mismatch: expected ~-6, got ")

    def test_missing_replacement(self):
        reason = validate_change("Led the team.", "Ran the team.", "Led", "Drove", SuggestionType.REPLACE)
        assert reason == "Replacement text not found in result"

    def test_thresholds_are_overridable(self):
        lenient = EditThresholds(min_preserved_ratio=0.5)
        assert validate_change("A B C D E", "A X D E", "C", "X", SuggestionType.REPLACE, lenient) is None


class TestSurgicalEditor:
    async def test_exact_match_makes_no_llm_call(self, factory, mock_llm_client):
        editor = SurgicalEditor(factory)
        outcome = await editor.apply(_replace("Led the 2024 inspection team.", "2024", "2025"))

        assert outcome.new_text == "Led the 2025 inspection team."
        factory.assert_not_called()
        mock_llm_client.generate.assert_not_awaited()

    async def test_empty_section_aborts(self, factory):
        outcome = await SurgicalEditor(factory).apply(_delete("", "anything"))
        assert outcome.aborted is True
        assert outcome.reason == EMPTY_SECTION_REASON

    def test_blank_highlight_rejected(self):
        with pytest.raises(ValidationError, match="Missing highlighted text"):
            _delete("Some text.", "   ")

    async def test_ambiguous_highlight_reaches_llm(self, factory, mock_llm_client):
        mock_llm_client.generate.return_value = _reply(
            {"success": True, "newText": "Led team. Led again."}
        )
        outcome = await SurgicalEditor(factory).apply(_delete("Led team. Led team again.", "Led team"))
        assert outcome.tier is EditTier.LLM_DELEGATE
        mock_llm_client.generate.assert_awaited_once()
        call = mock_llm_client.generate.await_args
        assert call.kwargs["temperature"] == 0.1
        assert call.kwargs["max_tokens"] == 2000
        assert "SURGICAL" in call.kwargs["system"]

    async def test_partial_floor_escalates_to_llm(self, factory, mock_llm_client):
        mock_llm_client.generate.return_value = _reply(
            {"success": False, "aborted": True, "reason": "Phrase no longer present"}
        )
        outcome = await SurgicalEditor(factory).apply(
            _delete("Supported 3 exercises, goal met.", "exceeded every goal")
        )
        mock_llm_client.generate.assert_awaited_once()
        assert outcome.aborted is True
        assert outcome.reason == "Phrase no longer present"

    async def test_validation_failure_downgrades_to_review(self, factory, mock_llm_client):
        mock_llm_client.generate.return_value = _reply({"success": True, "newText": "A X D E"})
        outcome = await SurgicalEditor(factory).apply(_replace("A B C D E", "c", "X"))

        assert outcome.success is True
        assert outcome.needs_review is True
        assert outcome.new_text == "A X D E"
        assert "preserved" in outcome.review_reason

    async def test_unchanged_llm_output_aborts(self, factory, mock_llm_client):
        text = "Managed a $2M budget across three flights."
        mock_llm_client.generate.return_value = _reply(
            {"success": True, "newText": "Managed a $2M  budget across\nthree flights."}
        )
        outcome = await SurgicalEditor(factory).apply(_replace(text, "4M", "3M"))

        assert outcome.success is False
        assert outcome.aborted is True
        assert outcome.reason.startswith('Could not find "4M" in the current text.')

    async def test_long_highlight_truncated_in_reason(self, factory, mock_llm_client):
        text = "Managed a budget."
        highlight = "x" * 60
        mock_llm_client.generate.return_value = _reply({"success": True, "newText": text})
        outcome = await SurgicalEditor(factory).apply(_replace(text, highlight, "y"))
        assert f'"{"x" * 50}..."' in outcome.reason

    async def test_clean_llm_edit_succeeds(self, factory, mock_llm_client):
        mock_llm_client.generate.return_value = _reply(
            {"success": True, "newText": "Led the 2025 inspection team."}
        )
        # capitalized highlight misses the case-sensitive exact tier
        outcome = await SurgicalEditor(factory).apply(
            _replace("Led the 2024 inspection team.", "the 2024 Inspection", "the 2025 inspection")
        )
        assert outcome.success is True
        assert outcome.needs_review is False
        assert outcome.tier is EditTier.LLM_DELEGATE

    async def test_malformed_llm_output_aborts(self, factory, mock_llm_client):
        mock_llm_client.generate.return_value = LLMResponse(
            text="I could not do that.", input_tokens=1, output_tokens=1
        )
        outcome = await SurgicalEditor(factory).apply(_replace("Led the team.", "Ran", "Drove"))
        assert outcome.aborted is True
        assert outcome.reason == "Could not process the change request"

    async def test_provider_error_becomes_abort(self, factory, mock_llm_client):
        mock_llm_client.generate.side_effect = from_status(429, "rate limited", "Google AI")
        outcome = await SurgicalEditor(factory).apply(_replace("Led the team.", "Ran", "Drove"))

        assert outcome.aborted is True
        assert outcome.reason.startswith("Google AI rate limit reached")

    async def test_missing_credentials_become_abort(self):
        def no_keys():
            raise CredentialError("Google AI")

        outcome = await SurgicalEditor(no_keys).apply(_replace("Led the team.", "Ran", "Drove"))
        assert outcome.aborted is True
        assert "No Google AI API key configured" in outcome.reason

    async def test_response_shape(self, factory):
        request = _delete("Trained 40 Airmen across the squadron.", "trained 40 Airmen expertly")
        outcome = await SurgicalEditor(factory).apply(request)
        assert outcome.to_response() == {
            "success": True,
            "newText": "across the squadron.",
            "needsReview": True,
            "reviewReason": (
                'The exact text was not found. Deleted the remaining portion: "Trained 40 Airmen"'
            ),
        }
        factory.assert_not_called()


def test_provider_error_kind_for_rate_limit():
    assert from_status(429, "slow down").kind is ProviderErrorKind.RATE_LIMIT
