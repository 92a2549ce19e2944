"""Statement generation: group entries, fan out LLM calls, collect results."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from statement_forge.clients.llm_client import LLMClient
from statement_forge.config import GenerationConfig
from statement_forge.errors import StatementForgeError
from statement_forge.logging.cost_calculator import calculate_cost
from statement_forge.models.generation import (
    Accomplishment,
    CategoryStatements,
    GenerationFailure,
    GenerationMode,
    GenerationRequest,
    GenerationResult,
    StatementGroup,
)
from statement_forge.pipeline import dispatcher
from statement_forge.pipeline.dispatcher import GenerationParams
from statement_forge.pipeline.response_parser import parse_statement_array
from statement_forge.prompts.assembler import build_system_prompt, build_user_prompt
from statement_forge.prompts.defaults import (
    AWARD_CATEGORIES,
    DEFAULT_CATEGORY,
    EPB_MPAS,
    HLR_MPA,
    MPA_TO_CATEGORY,
)

logger = logging.getLogger(__name__)

NO_STATEMENTS_ERROR = "The model returned no usable statements."


def category_for(mpa: str) -> str:
    return MPA_TO_CATEGORY.get(mpa, DEFAULT_CATEGORY)


def group_by_category(accomplishments: list[Accomplishment]) -> dict[str, list[Accomplishment]]:
    """Bucket entries by 1206 section, keeping input order within each bucket."""
    groups: dict[str, list[Accomplishment]] = {}
    for a in accomplishments:
        groups.setdefault(category_for(a.mpa), []).append(a)
    return groups


@dataclass(frozen=True)
class GenerationJob:
    """One LLM call and the entries it draws on."""

    category: str
    accomplishment_ids: list[str]
    user_prompt: str
    params: GenerationParams
    expected_count: int


class StatementGenerator:
    """Turn a GenerationRequest into grouped candidate statements."""

    def __init__(
        self,
        client: LLMClient,
        config: GenerationConfig = GenerationConfig(),
        timeout: float = dispatcher.DEFAULT_TIMEOUT,
    ):
        self.client = client
        self.config = config
        self.presets = dispatcher.presets_from_config(config, timeout)

    def plan(self, request: GenerationRequest) -> list[GenerationJob]:
        """Build the ordered list of calls needed for ``request``."""
        if request.mode is GenerationMode.CUSTOM_CONTEXT:
            return [
                GenerationJob(
                    category=request.award_category or "custom",
                    accomplishment_ids=[],
                    user_prompt=build_user_prompt(request),
                    params=self.presets["custom_context"],
                    expected_count=request.statements_per_entry,
                )
            ]
        if request.mode is GenerationMode.REVISION:
            return [
                GenerationJob(
                    category=request.award_category or "revision",
                    accomplishment_ids=[],
                    user_prompt=build_user_prompt(request),
                    params=self.presets["revision"],
                    expected_count=1,
                )
            ]

        if request.kind == "epb":
            return self._plan_epb(request)

        by_category = group_by_category(request.accomplishments)
        wanted = set(request.categories_to_generate)
        jobs: list[GenerationJob] = []
        for key, _heading in AWARD_CATEGORIES:
            if wanted and key not in wanted:
                continue
            entries = by_category.get(key, [])
            if not entries:
                continue
            if request.combine_entries:
                jobs.append(
                    GenerationJob(
                        category=key,
                        accomplishment_ids=[a.id for a in entries],
                        user_prompt=build_user_prompt(request, key, entries),
                        params=self.presets["combined"],
                        expected_count=request.statements_per_entry,
                    )
                )
                continue
            for entry in entries:
                jobs.append(
                    GenerationJob(
                        category=key,
                        accomplishment_ids=[entry.id],
                        user_prompt=build_user_prompt(request, key, [entry]),
                        params=self.presets["entry"],
                        expected_count=request.statements_per_entry,
                    )
                )
        return jobs

    def _plan_epb(self, request: GenerationRequest) -> list[GenerationJob]:
        """One call per Major Performance Area, plus the HLR assessment over every entry.

        Entries filed under a 1206 section key only feed the HLR assessment.
        """
        by_mpa: dict[str, list[Accomplishment]] = {}
        for a in request.accomplishments:
            by_mpa.setdefault(a.mpa, []).append(a)
        wanted = set(request.categories_to_generate)
        jobs: list[GenerationJob] = []
        for key, _label in EPB_MPAS:
            if wanted and key not in wanted:
                continue
            entries = list(request.accomplishments) if key == HLR_MPA else by_mpa.get(key, [])
            if not entries:
                continue
            jobs.append(
                GenerationJob(
                    category=key,
                    accomplishment_ids=[a.id for a in entries],
                    user_prompt=build_user_prompt(
                        request,
                        key,
                        entries,
                        max_characters=self.config.epb_max_characters,
                        max_examples=self.config.max_example_statements,
                    ),
                    params=self.presets["combined"],
                    expected_count=request.statements_per_entry,
                )
            )
        return jobs

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        system_prompt = build_system_prompt(
            request.style,
            request.nominee_rank,
            request.kind,
            max_examples=self.config.max_example_statements,
            max_characters=self.config.epb_max_characters,
        )
        jobs = self.plan(request)
        logger.info("Running %d generation call(s) with %s", len(jobs), self.client.model)

        outcomes = await asyncio.gather(*(self._run(job, system_prompt) for job in jobs))

        statements: list[CategoryStatements] = []
        failures: list[GenerationFailure] = []
        by_key: dict[str, CategoryStatements] = {}
        for job, groups, error in outcomes:
            if error is not None:
                failures.append(
                    GenerationFailure(
                        category=job.category,
                        accomplishment_ids=job.accomplishment_ids,
                        error=error,
                    )
                )
                continue
            bucket = by_key.get(job.category)
            if bucket is None:
                bucket = CategoryStatements(category=job.category, statement_groups=[])
                by_key[job.category] = bucket
                statements.append(bucket)
            bucket.statement_groups.extend(
                StatementGroup(versions=versions, source_accomplishment_ids=job.accomplishment_ids)
                for versions in groups
            )

        return GenerationResult(statements=statements, failures=failures, usage=self._usage())

    async def _run(
        self, job: GenerationJob, system_prompt: str
    ) -> tuple[GenerationJob, list[list[str]], str | None]:
        try:
            raw = await dispatcher.generate(self.client, system_prompt, job.user_prompt, job.params)
        except StatementForgeError as exc:
            logger.exception("Generation failed for %s %s", job.category, job.accomplishment_ids)
            return job, [], exc.message
        groups = parse_statement_array(raw, job.expected_count, self.config.min_fallback_line_length)
        if not groups:
            logger.warning("No statements parsed for %s %s", job.category, job.accomplishment_ids)
            return job, [], NO_STATEMENTS_ERROR
        return job, groups, None

    def _usage(self) -> dict:
        summary = self.client.get_token_summary()
        return {
            "inputTokens": summary["input"],
            "outputTokens": summary["output"],
            "calls": len(summary["calls"]),
            "estimatedCostUsd": round(calculate_cost(summary["calls"]), 6),
        }
