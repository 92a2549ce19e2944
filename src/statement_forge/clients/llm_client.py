"""Async LLM vendor clients sharing one generate() interface and token accounting."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import anthropic
import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from statement_forge import errors

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from the LLM including usage metadata."""

    text: str
    input_tokens: int
    output_tokens: int


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, errors.ProviderError) and exc.transient


class LLMClient:
    """Base client bound to one vendor and model.

    Subclasses implement ``_call_api`` and translate their SDK exceptions into
    ``ProviderError``. Calls are attempted once unless ``max_attempts`` allows
    retrying rate-limit and unavailable errors.
    """

    provider: str = "AI provider"

    def __init__(self, model: str, max_attempts: int = 1):
        self.model = model
        self.max_attempts = max(1, max_attempts)
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    async def _call_api(
        self,
        prompt: str,
        system: str,
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        raise NotImplementedError

    async def generate(
        self,
        prompt: str,
        system: str = "",
        temperature: float = 0.0,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        """Send a prompt and return the text response with usage."""
        logger.debug("LLM call: provider=%s model=%s", self.provider, self.model)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=1, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._call_api(
                        prompt=prompt,
                        system=system,
                        temperature=temperature,
                        max_tokens=max_tokens,
                    )
        except errors.ProviderError as exc:
            logger.error("LLM call failed: provider=%s kind=%s", self.provider, exc.kind.value)
            raise
        logger.debug(
            "LLM response: %d input, %d output tokens",
            response.input_tokens,
            response.output_tokens,
        )
        self._token_log.append((self.model, response.input_tokens, response.output_tokens))
        return response

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        summary = {
            "input": sum(t[1] for t in self._token_log),
            "output": sum(t[2] for t in self._token_log),
            "calls": list(self._token_log),
        }
        self._token_log.clear()
        return summary


class AnthropicClient(LLMClient):
    provider = "Anthropic"

    def __init__(
        self,
        model: str,
        api_key: str,
        timeout: float | None = None,
        max_attempts: int = 1,
    ):
        super().__init__(model, max_attempts)
        kwargs: dict = {"api_key": api_key, "max_retries": 0}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = anthropic.AsyncAnthropic(**kwargs)

    async def _call_api(self, prompt, system, temperature, max_tokens) -> LLMResponse:
        kwargs: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        try:
            message = await self.client.messages.create(**kwargs)
        except anthropic.APITimeoutError as exc:
            raise errors.timeout_error(self.provider) from exc
        except anthropic.APIConnectionError as exc:
            raise errors.connection_error(self.provider) from exc
        except anthropic.APIStatusError as exc:
            raise errors.from_status(exc.status_code, exc.message, self.provider) from exc
        return LLMResponse(
            text=message.content[0].text if message.content else "",
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
        )


# Reasoning models reject a custom temperature.
_NO_TEMPERATURE_PREFIXES = ("o1", "o3", "o4", "gpt-5")


class OpenAIClient(LLMClient):
    provider = "OpenAI"
    base_url: str | None = None
    max_tokens_param = "max_completion_tokens"

    def __init__(
        self,
        model: str,
        api_key: str,
        timeout: float | None = None,
        max_attempts: int = 1,
    ):
        super().__init__(model, max_attempts)
        kwargs: dict = {"api_key": api_key, "max_retries": 0}
        if self.base_url:
            kwargs["base_url"] = self.base_url
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = openai.AsyncOpenAI(**kwargs)

    def _supports_temperature(self) -> bool:
        return not self.model.lower().startswith(_NO_TEMPERATURE_PREFIXES)

    async def _call_api(self, prompt, system, temperature, max_tokens) -> LLMResponse:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        kwargs: dict = {
            "model": self.model,
            "messages": messages,
            self.max_tokens_param: max_tokens,
        }
        if self._supports_temperature():
            kwargs["temperature"] = temperature
        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as exc:
            raise errors.timeout_error(self.provider) from exc
        except openai.APIConnectionError as exc:
            raise errors.connection_error(self.provider) from exc
        except openai.APIStatusError as exc:
            raise errors.from_status(exc.status_code, exc.message, self.provider) from exc
        usage = completion.usage
        return LLMResponse(
            text=completion.choices[0].message.content or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


class XAIClient(OpenAIClient):
    """Grok models through xAI's OpenAI-compatible endpoint."""

    provider = "xAI"
    base_url = "https://api.x.ai/v1"
    max_tokens_param = "max_tokens"

    def _supports_temperature(self) -> bool:
        return True


class GeminiClient(LLMClient):
    provider = "Google AI"

    def __init__(
        self,
        model: str,
        api_key: str,
        timeout: float | None = None,
        max_attempts: int = 1,
    ):
        super().__init__(model, max_attempts)
        kwargs: dict = {"api_key": api_key}
        if timeout is not None:
            kwargs["http_options"] = genai_types.HttpOptions(timeout=int(timeout * 1000))
        self.client = genai.Client(**kwargs)

    async def _call_api(self, prompt, system, temperature, max_tokens) -> LLMResponse:
        config = genai_types.GenerateContentConfig(
            system_instruction=system or None,
            temperature=temperature,
            max_output_tokens=max_tokens,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise errors.from_status(exc.code, exc.message or str(exc), self.provider) from exc
        usage = response.usage_metadata
        return LLMResponse(
            text=response.text or "",
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
        )
