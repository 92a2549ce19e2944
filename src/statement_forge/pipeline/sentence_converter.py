"""Sentence-count converter: rewrite a statement to a target number of sentences."""

from __future__ import annotations

import logging

from statement_forge.clients.llm_client import LLMClient
from statement_forge.config import GenerationConfig
from statement_forge.models.generation import ConvertRequest, ConvertResult
from statement_forge.pipeline import dispatcher
from statement_forge.pipeline.response_parser import parse_versions
from statement_forge.prompts.assembler import build_conversion_prompt
from statement_forge.prompts.defaults import CONVERTER_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

NUM_VERSIONS = 3


class SentenceConverter:
    """Generate alternative versions of a statement with a different sentence count."""

    def __init__(
        self,
        llm: LLMClient,
        config: GenerationConfig = GenerationConfig(),
        timeout: float = dispatcher.DEFAULT_TIMEOUT,
    ):
        self.llm = llm
        self.config = config
        self.params = dispatcher.presets_from_config(config, timeout)["conversion"]

    async def convert(self, request: ConvertRequest) -> ConvertResult:
        """Return up to three rewritten versions.

        Provider errors propagate. If the reply holds nothing usable the
        original statement comes back with ``fallback`` set.
        """
        raw = await dispatcher.generate(
            self.llm,
            CONVERTER_SYSTEM_PROMPT,
            build_conversion_prompt(request, NUM_VERSIONS),
            self.params,
        )
        original = request.statement.strip()
        versions = parse_versions(
            raw,
            original,
            limit=NUM_VERSIONS,
            min_line_length=self.config.min_fallback_line_length,
        )
        fallback = versions == [original]
        if fallback:
            logger.warning("Conversion reply had no usable versions, returning original")
        return ConvertResult(versions=versions, fallback=fallback)
