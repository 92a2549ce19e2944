"""Single entry point for sending an assembled prompt to a vendor client."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace

from statement_forge import errors
from statement_forge.clients.llm_client import LLMClient, LLMResponse
from statement_forge.config import GenerationConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class GenerationParams:
    temperature: float
    max_tokens: int
    timeout: float = DEFAULT_TIMEOUT

    def with_timeout(self, timeout: float | None) -> GenerationParams:
        return self if timeout is None else replace(self, timeout=timeout)


SURGICAL = GenerationParams(temperature=0.1, max_tokens=2000)
CREATIVE_COMBINED = GenerationParams(temperature=0.75, max_tokens=3000)
CREATIVE_ENTRY = GenerationParams(temperature=0.75, max_tokens=2000)
CUSTOM_CONTEXT = GenerationParams(temperature=0.75, max_tokens=2000)
REVISION = GenerationParams(temperature=0.6, max_tokens=2000)
CONVERSION = GenerationParams(temperature=0.7, max_tokens=1500)


def presets_from_config(cfg: GenerationConfig, timeout: float = DEFAULT_TIMEOUT) -> dict[str, GenerationParams]:
    """Named presets with temperatures and token caps taken from config."""
    return {
        "surgical": GenerationParams(cfg.surgical_temperature, cfg.surgical_max_tokens, timeout),
        "combined": GenerationParams(cfg.creative_temperature, cfg.combined_max_tokens, timeout),
        "entry": GenerationParams(cfg.creative_temperature, cfg.entry_max_tokens, timeout),
        "custom_context": GenerationParams(cfg.creative_temperature, cfg.entry_max_tokens, timeout),
        "revision": GenerationParams(cfg.revision_temperature, cfg.entry_max_tokens, timeout),
        "conversion": GenerationParams(cfg.conversion_temperature, cfg.conversion_max_tokens, timeout),
    }


async def generate(
    client: LLMClient,
    system_prompt: str,
    user_prompt: str,
    params: GenerationParams,
) -> str:
    """Send one prompt pair and return the raw completion text.

    Raises ProviderError. Vendor failures arrive already classified by the
    client; the wall-clock budget and anything unexpected are classified here.
    """
    response = await generate_with_usage(client, system_prompt, user_prompt, params)
    return response.text


async def generate_with_usage(
    client: LLMClient,
    system_prompt: str,
    user_prompt: str,
    params: GenerationParams,
) -> LLMResponse:
    started = time.perf_counter()
    try:
        response = await asyncio.wait_for(
            client.generate(
                prompt=user_prompt,
                system=system_prompt,
                temperature=params.temperature,
                max_tokens=params.max_tokens,
            ),
            timeout=params.timeout,
        )
    except asyncio.TimeoutError as exc:
        logger.warning(
            "LLM call exceeded %.0fs budget: model=%s", params.timeout, client.model
        )
        raise errors.timeout_error(client.provider) from exc
    except errors.ProviderError:
        raise
    except Exception as exc:
        logger.exception("Unexpected error from %s", client.provider)
        raise errors.unexpected_error(exc, client.provider) from exc

    logger.info(
        "Generated with %s in %.2fs (%d in / %d out tokens)",
        client.model,
        time.perf_counter() - started,
        response.input_tokens,
        response.output_tokens,
    )
    return response
