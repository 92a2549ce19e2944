"""Tests for the vendor LLM clients."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from statement_forge.clients.llm_client import (
    AnthropicClient,
    GeminiClient,
    LLMClient,
    LLMResponse,
    OpenAIClient,
    XAIClient,
)
from statement_forge.errors import ProviderError, ProviderErrorKind


def _make_api_message(text: str, input_tokens: int = 100, output_tokens: int = 50) -> MagicMock:
    """Build a mock anthropic Message-like object."""
    message = MagicMock()
    message.usage.input_tokens = input_tokens
    message.usage.output_tokens = output_tokens
    message.content = [MagicMock(text=text)]
    return message


def _make_completion(text: str, prompt_tokens: int = 30, completion_tokens: int = 12) -> MagicMock:
    """Build a mock openai ChatCompletion-like object."""
    completion = MagicMock()
    completion.choices = [MagicMock(message=MagicMock(content=text))]
    completion.usage.prompt_tokens = prompt_tokens
    completion.usage.completion_tokens = completion_tokens
    return completion


def _response(status: int, url: str = "https://api.example.com/v1") -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("POST", url))


class TestAnthropicClient:
    def test_init_passes_key_and_disables_sdk_retries(self):
        with patch("statement_forge.clients.llm_client.anthropic.AsyncAnthropic") as mock_cls:
            AnthropicClient("claude-sonnet-4-20250514", api_key="test-key")
            mock_cls.assert_called_once_with(api_key="test-key", max_retries=0)

    def test_init_with_timeout(self):
        with patch("statement_forge.clients.llm_client.anthropic.AsyncAnthropic") as mock_cls:
            AnthropicClient("claude-sonnet-4-20250514", api_key="test-key", timeout=30.0)
            mock_cls.assert_called_once_with(api_key="test-key", max_retries=0, timeout=30.0)

    async def test_generate_returns_llm_response(self):
        with patch("statement_forge.clients.llm_client.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = MagicMock()
            mock_client.messages.create = AsyncMock(
                return_value=_make_api_message("hello world", input_tokens=100, output_tokens=50)
            )
            mock_cls.return_value = mock_client

            llm = AnthropicClient("claude-sonnet-4-20250514", api_key="k")
            result = await llm.generate("say hello", system="be brief", temperature=0.1, max_tokens=300)

        assert result == LLMResponse(text="hello world", input_tokens=100, output_tokens=50)
        mock_client.messages.create.assert_awaited_once_with(
            model="claude-sonnet-4-20250514",
            max_tokens=300,
            temperature=0.1,
            messages=[{"role": "user", "content": "say hello"}],
            system="be brief",
        )

    async def test_rate_limit_is_classified(self):
        with patch("statement_forge.clients.llm_client.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = MagicMock()
            mock_client.messages.create = AsyncMock(
                side_effect=anthropic.RateLimitError("rate limited", response=_response(429), body=None)
            )
            mock_cls.return_value = mock_client

            llm = AnthropicClient("claude-sonnet-4-20250514", api_key="k")
            with pytest.raises(ProviderError) as exc_info:
                await llm.generate("hi")

        assert exc_info.value.kind is ProviderErrorKind.RATE_LIMIT
        assert exc_info.value.provider == "Anthropic"
        mock_client.messages.create.assert_awaited_once()

    async def test_timeout_and_connection_errors(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        with patch("statement_forge.clients.llm_client.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = MagicMock()
            mock_client.messages.create = AsyncMock(
                side_effect=[
                    anthropic.APITimeoutError(request=request),
                    anthropic.APIConnectionError(request=request),
                ]
            )
            mock_cls.return_value = mock_client

            llm = AnthropicClient("claude-sonnet-4-20250514", api_key="k")
            with pytest.raises(ProviderError) as first:
                await llm.generate("hi")
            with pytest.raises(ProviderError) as second:
                await llm.generate("hi")

        assert first.value.kind is ProviderErrorKind.TIMEOUT
        assert second.value.kind is ProviderErrorKind.UNAVAILABLE

    async def test_transient_error_retried_when_allowed(self):
        with patch("statement_forge.clients.llm_client.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = MagicMock()
            mock_client.messages.create = AsyncMock(
                side_effect=[
                    anthropic.InternalServerError("boom", response=_response(500), body=None),
                    _make_api_message("recovered"),
                ]
            )
            mock_cls.return_value = mock_client

            llm = AnthropicClient("claude-sonnet-4-20250514", api_key="k", max_attempts=2)
            result = await llm.generate("hi")

        assert result.text == "recovered"
        assert mock_client.messages.create.await_count == 2

    async def test_non_transient_error_not_retried(self):
        with patch("statement_forge.clients.llm_client.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = MagicMock()
            mock_client.messages.create = AsyncMock(
                side_effect=anthropic.AuthenticationError("bad key", response=_response(401), body=None)
            )
            mock_cls.return_value = mock_client

            llm = AnthropicClient("claude-sonnet-4-20250514", api_key="k", max_attempts=3)
            with pytest.raises(ProviderError) as exc_info:
                await llm.generate("hi")

        assert exc_info.value.kind is ProviderErrorKind.INVALID_API_KEY
        mock_client.messages.create.assert_awaited_once()


class TestOpenAIClient:
    async def test_generate_sends_system_message(self):
        with patch("statement_forge.clients.llm_client.openai.AsyncOpenAI") as mock_cls:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=_make_completion("ok"))
            mock_cls.return_value = mock_client

            llm = OpenAIClient("gpt-4o", api_key="k")
            result = await llm.generate("user text", system="sys", temperature=0.7, max_tokens=1500)

        assert result == LLMResponse(text="ok", input_tokens=30, output_tokens=12)
        mock_client.chat.completions.create.assert_awaited_once_with(
            model="gpt-4o",
            messages=[
                {"role": "system", "content": "sys"},
                {"role": "user", "content": "user text"},
            ],
            max_completion_tokens=1500,
            temperature=0.7,
        )

    async def test_reasoning_model_omits_temperature(self):
        with patch("statement_forge.clients.llm_client.openai.AsyncOpenAI") as mock_cls:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=_make_completion("ok"))
            mock_cls.return_value = mock_client

            await OpenAIClient("o3-mini", api_key="k").generate("hi", temperature=0.7)

        assert "temperature" not in mock_client.chat.completions.create.await_args.kwargs

    async def test_quota_error_is_classified(self):
        with patch("statement_forge.clients.llm_client.openai.AsyncOpenAI") as mock_cls:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(
                side_effect=openai.RateLimitError(
                    "You exceeded your current quota", response=_response(429), body=None
                )
            )
            mock_cls.return_value = mock_client

            with pytest.raises(ProviderError) as exc_info:
                await OpenAIClient("gpt-4o", api_key="k").generate("hi")

        assert exc_info.value.kind is ProviderErrorKind.QUOTA_EXCEEDED
        assert exc_info.value.provider == "OpenAI"


class TestXAIClient:
    async def test_uses_xai_endpoint_and_max_tokens(self):
        with patch("statement_forge.clients.llm_client.openai.AsyncOpenAI") as mock_cls:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=_make_completion("ok"))
            mock_cls.return_value = mock_client

            llm = XAIClient("grok-3-mini-fast", api_key="xk", timeout=20)
            await llm.generate("hi", temperature=0.3, max_tokens=100)

        mock_cls.assert_called_once_with(
            api_key="xk", max_retries=0, base_url="https://api.x.ai/v1", timeout=20
        )
        kwargs = mock_client.chat.completions.create.await_args.kwargs
        assert kwargs["max_tokens"] == 100
        assert kwargs["temperature"] == 0.3
        assert llm.provider == "xAI"


class TestGeminiClient:
    def test_init_with_timeout_in_milliseconds(self):
        with patch("statement_forge.clients.llm_client.genai.Client") as mock_cls:
            GeminiClient("gemini-2.0-flash", api_key="gk", timeout=60)
            mock_cls.assert_called_once_with(
                api_key="gk", http_options=genai_types.HttpOptions(timeout=60000)
            )

    async def test_generate(self):
        with patch("statement_forge.clients.llm_client.genai.Client") as mock_cls:
            response = MagicMock()
            response.text = '[["- a"]]'
            response.usage_metadata.prompt_token_count = 70
            response.usage_metadata.candidates_token_count = 20
            mock_client = MagicMock()
            mock_client.aio.models.generate_content = AsyncMock(return_value=response)
            mock_cls.return_value = mock_client

            llm = GeminiClient("gemini-2.0-flash", api_key="gk")
            result = await llm.generate("hi", system="sys", temperature=0.75, max_tokens=3000)

        assert result == LLMResponse(text='[["- a"]]', input_tokens=70, output_tokens=20)
        call = mock_client.aio.models.generate_content.await_args
        assert call.kwargs["model"] == "gemini-2.0-flash"
        assert call.kwargs["contents"] == "hi"
        config = call.kwargs["config"]
        assert config.temperature == 0.75
        assert config.max_output_tokens == 3000

    async def test_api_error_is_classified(self):
        with patch("statement_forge.clients.llm_client.genai.Client") as mock_cls:
            mock_client = MagicMock()
            mock_client.aio.models.generate_content = AsyncMock(
                side_effect=genai_errors.ClientError(
                    403, {"error": {"code": 403, "message": "denied", "status": "PERMISSION_DENIED"}}
                )
            )
            mock_cls.return_value = mock_client

            with pytest.raises(ProviderError) as exc_info:
                await GeminiClient("gemini-2.0-flash", api_key="gk").generate("hi")

        assert exc_info.value.kind is ProviderErrorKind.PERMISSION_DENIED
        assert exc_info.value.provider == "Google AI"


class TestTokenSummary:
    def test_get_token_summary_returns_correct_totals(self):
        llm = LLMClient("gemini-2.0-flash")
        llm._token_log = [("gemini-2.0-flash", 100, 50), ("gemini-2.0-flash", 200, 80)]

        summary = llm.get_token_summary()

        assert summary["input"] == 300
        assert summary["output"] == 130
        assert len(summary["calls"]) == 2

    def test_get_token_summary_clears_log_after_return(self):
        llm = LLMClient("gemini-2.0-flash")
        llm._token_log = [("gemini-2.0-flash", 50, 25)]

        llm.get_token_summary()
        second_summary = llm.get_token_summary()

        assert second_summary == {"input": 0, "output": 0, "calls": []}

    async def test_successful_calls_are_logged(self):
        with patch("statement_forge.clients.llm_client.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = MagicMock()
            mock_client.messages.create = AsyncMock(
                return_value=_make_api_message("resp", input_tokens=20, output_tokens=8)
            )
            mock_cls.return_value = mock_client

            llm = AnthropicClient("claude-haiku-4-5-20251001", api_key="k")
            await llm.generate("one")
            await llm.generate("two")

        assert llm._token_log == [
            ("claude-haiku-4-5-20251001", 20, 8),
            ("claude-haiku-4-5-20251001", 20, 8),
        ]
