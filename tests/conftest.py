"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from statement_forge.clients.llm_client import LLMClient, LLMResponse
from statement_forge.models.generation import Accomplishment, GenerationRequest
from statement_forge.models.style import (
    Abbreviation,
    ExampleStatement,
    RankVerbs,
    StyleConfiguration,
)


@pytest.fixture
def sample_accomplishments() -> list[Accomplishment]:
    return [
        Accomplishment(
            id="a1",
            mpa="executing_mission",
            action_verb="Led",
            details="12-person team rebuilding the deployment processing line",
            impact="cut preparation time 40% for 150 personnel",
            metrics="40%, 150 personnel",
            date="2025-03-14",
        ),
        Accomplishment(
            id="a2",
            mpa="leading_people",
            action_verb="Trained",
            details="40 Airmen on new hazmat handling procedures",
            impact="zero findings during wing inspection",
            date="2025-05-02",
        ),
        Accomplishment(
            id="a3",
            mpa="improving_unit",
            action_verb="Completed",
            details="CCAF degree in logistics, 18 credit hours",
            impact="raised flight education rate to 85%",
            date="2025-06-20",
        ),
    ]


@pytest.fixture
def sample_style() -> StyleConfiguration:
    return StyleConfiguration(
        rank_verb_progression={
            "SSgt": RankVerbs(primary=["Drove", "Steered"], secondary=["Guided"]),
        },
        abbreviations=[
            Abbreviation(word="squadron", abbreviation="sq"),
            Abbreviation(word="hours", abbreviation="hrs"),
        ],
        style_guidelines="Lead with the biggest number.",
        example_statements=[
            ExampleStatement(category="leadership_job_performance", statement="- Ordinary example one."),
            ExampleStatement(
                category="leadership_job_performance",
                statement="- Winning example one.",
                is_winner=True,
            ),
        ],
    )


@pytest.fixture
def sample_request(sample_accomplishments) -> GenerationRequest:
    return GenerationRequest(
        model="gemini-2.0-flash",
        accomplishments=sample_accomplishments,
        nominee_rank="SSgt",
        nominee_name="Smith",
        nominee_afsc="2T2X1",
        award_level="wing",
        award_category="amn",
        award_period="1 Jan - 31 Dec 2025",
    )


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.model = "gemini-2.0-flash"
    client.provider = "Google AI"
    client.generate = AsyncMock(
        return_value=LLMResponse(text="[]", input_tokens=100, output_tokens=50)
    )
    client.get_token_summary = MagicMock(
        return_value={"input": 100, "output": 50, "calls": [("gemini-2.0-flash", 100, 50)]}
    )
    return client
