"""Tests for the advisory service and the chat-completions client."""

import asyncio
import logging
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from finsight_mcp.advisor import AdvisoryService, build_prompt
from finsight_mcp.errors import (
    ConfigurationError,
    ServiceBusyError,
    ServiceUnavailableError,
    UpstreamError,
)
from finsight_mcp.heuristics import heuristic_advice
from finsight_mcp.llm import ChatCompletionClient, classify_status
from finsight_mcp.models import AdviceRequest, CategorySummary


def completion_response(content: str) -> Mock:
    response = Mock()
    response.status_code = 200
    response.text = ""
    response.json.return_value = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    return response


def error_response(status_code: int, body: str = '{"error": {"message": "nope"}}') -> Mock:
    response = Mock()
    response.status_code = status_code
    response.text = body
    return response


class FakeModel:
    """Completion model returning canned text or raising a canned error."""

    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


class HangingModel:
    """Completion model that never answers until cancelled."""

    def __init__(self):
        self.cancelled = False

    async def complete(self, prompt: str) -> str:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return ""


class TestBuildPrompt:
    """Test prompt construction."""

    def test_contains_figures(self, summary: CategorySummary):
        prompt = build_prompt(summary, AdviceRequest())

        assert "Period: 2024-01-01 to 2024-02-04 (2 months)" in prompt
        assert "- Total: $8400.00" in prompt
        assert "- Average monthly: $4200.00" in prompt
        assert "- rent: $2400.00 (90.9%, 2 transactions)" in prompt
        assert "- groceries: $195.00 (7.4%, 2 transactions)" in prompt
        assert "- utilities: $45.00 (1.7%, 1 transactions)" in prompt
        assert "Total Expenses: $2640.00" in prompt
        assert "Net Savings: $5760.00" in prompt
        assert "Savings Rate: 68.6%" in prompt
        assert "INSIGHTS:" in prompt
        assert "RECOMMENDATIONS:" in prompt
        assert "POSITIVE:" in prompt

    def test_without_category_focus(self, summary: CategorySummary):
        assert "Focus specifically" not in build_prompt(summary, AdviceRequest())

    def test_category_focus(self, summary: CategorySummary):
        prompt = build_prompt(summary, AdviceRequest(context="specific_category", category="groceries"))
        assert "Focus specifically on the 'groceries' category." in prompt

    def test_deterministic(self, summary: CategorySummary):
        assert build_prompt(summary, AdviceRequest()) == build_prompt(summary, AdviceRequest())


class TestHeuristicPath:
    """Test behavior without a configured model."""

    @pytest.mark.asyncio
    async def test_no_model_returns_heuristic(self, summary: CategorySummary):
        service = AdvisoryService()

        with patch("httpx.AsyncClient") as mock_client:
            result = await service.get_financial_advice(summary, AdviceRequest())

        mock_client.assert_not_called()
        advice, insights, recommendations = heuristic_advice(summary)
        assert result.source == "heuristic"
        assert result.advice == advice
        assert result.insights == insights
        assert result.recommendations == recommendations
        assert result.timestamp

    @pytest.mark.asyncio
    async def test_request_defaults_to_general(self, summary: CategorySummary):
        result = await AdvisoryService().get_financial_advice(summary)
        assert result.source == "heuristic"


class TestModelPath:
    """Test successful model responses."""

    @pytest.mark.asyncio
    async def test_parses_model_text(self, summary: CategorySummary, model_text: str):
        model = FakeModel(text=model_text)
        service = AdvisoryService(model)

        result = await service.get_financial_advice(summary, AdviceRequest(category="rent"))

        assert result.source == "model"
        assert result.advice == model_text
        assert result.insights[0] == "Rent takes 90.9% of your spending"
        assert len(result.recommendations) == 3
        assert "Focus specifically on the 'rent' category." in model.prompts[0]

    @pytest.mark.asyncio
    async def test_backfills_missing_sections(self, summary: CategorySummary):
        model = FakeModel(text="RECOMMENDATIONS:\n- Invest the surplus\n")
        result = await AdvisoryService(model).get_financial_advice(summary, AdviceRequest())

        _, insights, _ = heuristic_advice(summary)
        assert result.source == "model"
        assert result.insights == insights
        assert result.recommendations == ["Invest the surplus"]

    @pytest.mark.asyncio
    async def test_unstructured_text_backfills_both(self, summary: CategorySummary):
        model = FakeModel(text="You are doing great, keep saving.")
        result = await AdvisoryService(model).get_financial_advice(summary, AdviceRequest())

        _, insights, recommendations = heuristic_advice(summary)
        assert result.advice == "You are doing great, keep saving."
        assert result.insights == insights
        assert result.recommendations == recommendations

    @pytest.mark.asyncio
    async def test_with_chat_client(self, summary: CategorySummary, model_text: str):
        service = AdvisoryService(ChatCompletionClient(api_key="test-key"))

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=completion_response(model_text))
            mock_client.return_value.__aenter__.return_value.post = post
            result = await service.get_financial_advice(summary, AdviceRequest())

        assert result.source == "model"
        assert result.insights[1] == "You save 68.6% of your income"

        _, kwargs = post.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["json"]["model"] == "gpt-3.5-turbo"
        assert kwargs["json"]["temperature"] == 0.7
        assert kwargs["json"]["max_tokens"] == 600
        assert kwargs["json"]["messages"][0]["role"] == "system"
        assert "Savings Rate: 68.6%" in kwargs["json"]["messages"][1]["content"]
        assert kwargs["timeout"] is None


class TestFailureAbsorption:
    """Test that model failures fall back to heuristic advice."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ServiceBusyError("busy", status_code=429),
            ServiceUnavailableError("down", status_code=503),
            UpstreamError("bad gateway", status_code=502),
        ],
    )
    async def test_errors_fall_back(self, summary: CategorySummary, error, caplog):
        service = AdvisoryService(FakeModel(error=error))

        with caplog.at_level(logging.WARNING, logger="finsight_mcp.advisor"):
            result = await service.get_financial_advice(summary, AdviceRequest())

        assert result.source == "heuristic"
        assert result.insights == heuristic_advice(summary)[1]
        assert type(error).__name__ in caplog.text

    @pytest.mark.asyncio
    async def test_configuration_error_logged_not_surfaced(self, summary: CategorySummary, caplog):
        service = AdvisoryService(FakeModel(error=ConfigurationError("bad key", status_code=401)))

        with caplog.at_level(logging.ERROR, logger="finsight_mcp.advisor"):
            result = await service.get_financial_advice(summary, AdviceRequest())

        assert result.source == "heuristic"
        assert "configuration error" in caplog.text
        assert "bad key" not in result.advice

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 429, 500, 503])
    async def test_http_status_falls_back(self, summary: CategorySummary, status_code: int):
        service = AdvisoryService(ChatCompletionClient(api_key="test-key"))

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=error_response(status_code)
            )
            result = await service.get_financial_advice(summary, AdviceRequest())

        assert result.source == "heuristic"

    @pytest.mark.asyncio
    async def test_transport_error_falls_back(self, summary: CategorySummary):
        service = AdvisoryService(ChatCompletionClient(api_key="test-key"))

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            result = await service.get_financial_advice(summary, AdviceRequest())

        assert result.source == "heuristic"


class TestCancellation:
    """Test that caller cancellation propagates instead of falling back."""

    @pytest.mark.asyncio
    async def test_timeout_propagates(self, summary: CategorySummary):
        model = HangingModel()
        service = AdvisoryService(model)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(service.get_financial_advice(summary, AdviceRequest()), timeout=0.05)

        assert model.cancelled

    @pytest.mark.asyncio
    async def test_cancel_propagates(self, summary: CategorySummary):
        service = AdvisoryService(HangingModel())
        task = asyncio.create_task(service.get_financial_advice(summary, AdviceRequest()))
        await asyncio.sleep(0)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestChatCompletionClient:
    """Test outcome classification of the HTTP client."""

    @pytest.mark.parametrize(
        "status_code,error",
        [
            (429, ServiceBusyError),
            (401, ConfigurationError),
            (403, ConfigurationError),
            (503, ServiceUnavailableError),
            (500, UpstreamError),
            (502, UpstreamError),
            (404, UpstreamError),
        ],
    )
    def test_classify_status(self, status_code: int, error):
        result = classify_status(status_code, "body")
        assert type(result) is error
        assert result.status_code == status_code

    def test_retryable_flags(self):
        assert classify_status(429, "").retryable
        assert classify_status(503, "").retryable
        assert not classify_status(401, "").retryable
        assert not classify_status(500, "").retryable

    @pytest.mark.asyncio
    async def test_returns_content(self):
        client = ChatCompletionClient(api_key="k", api_url="https://llm.example/v1/chat/completions", model="m")

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=completion_response("hello"))
            mock_client.return_value.__aenter__.return_value.post = post
            result = await client.complete("prompt")

        assert result == "hello"
        args, kwargs = post.call_args
        assert args[0] == "https://llm.example/v1/chat/completions"
        assert kwargs["json"]["model"] == "m"

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        client = ChatCompletionClient(api_key="k")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=error_response(429)
            )
            with pytest.raises(ServiceBusyError):
                await client.complete("prompt")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = ChatCompletionClient(api_key="k")
        response = Mock()
        response.status_code = 200
        response.json.side_effect = ValueError("Invalid JSON")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)
            with pytest.raises(UpstreamError, match="Invalid JSON"):
                await client.complete("prompt")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"choices": []},
            {},
            {"error": {"message": "model overloaded", "type": "server_error"}},
            {"choices": [{"message": {"content": "   "}}]},
            ["not", "an", "object"],
        ],
    )
    async def test_malformed_payloads(self, payload):
        client = ChatCompletionClient(api_key="k")
        response = Mock()
        response.status_code = 200
        response.json.return_value = payload

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)
            with pytest.raises(UpstreamError):
                await client.complete("prompt")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        client = ChatCompletionClient(api_key="k")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ReadTimeout("timed out")
            )
            with pytest.raises(UpstreamError, match="HTTP error"):
                await client.complete("prompt")
