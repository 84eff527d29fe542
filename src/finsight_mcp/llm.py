"""Chat-completions client for OpenAI-compatible providers."""

from typing import Any, Protocol

import httpx

from .errors import (
    AdvisoryError,
    ConfigurationError,
    ServiceBusyError,
    ServiceUnavailableError,
    UpstreamError,
)


OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 600

SYSTEM_PROMPT = "You are a professional financial advisor who provides clear, actionable advice."


class CompletionModel(Protocol):
    """Anything that turns a prompt into generated text.

    Implementations report failures as ``AdvisoryError`` subclasses.
    """

    async def complete(self, prompt: str) -> str: ...


def classify_status(status_code: int, body: str) -> AdvisoryError:
    """Map a non-200 provider response to an advisory error."""
    detail = f"status {status_code}: {body[:500]}"
    if status_code == 429:
        return ServiceBusyError(
            f"AI service rate limit exceeded ({detail})", status_code=status_code
        )
    if status_code in (401, 403):
        return ConfigurationError(
            f"AI service configuration error ({detail})", status_code=status_code
        )
    if status_code == 503:
        return ServiceUnavailableError(
            f"AI service is temporarily unavailable ({detail})", status_code=status_code
        )
    return UpstreamError(f"AI service error ({detail})", status_code=status_code)


class ChatCompletionClient:
    """Minimal client for the ``/v1/chat/completions`` request shape."""

    def __init__(
        self,
        api_key: str,
        api_url: str = OPENAI_API_URL,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer token for the provider.
            api_url: Chat completions endpoint.
            model: Model name sent with each request.
            temperature: Sampling temperature.
            max_tokens: Completion length limit.
            timeout: HTTP timeout in seconds. None leaves the call bounded
                only by the caller's cancellation.
        """
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def build_request(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def complete(self, prompt: str) -> str:
        """Send the prompt and return the first choice's text.

        Raises:
            ServiceBusyError: Provider rate limit (429).
            ConfigurationError: Credential rejected (401/403).
            ServiceUnavailableError: Provider down (503).
            UpstreamError: Transport failure, other status, or malformed body.
        """
        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(
                    self.api_url,
                    json=self.build_request(prompt),
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                raise UpstreamError(f"HTTP error calling AI service: {e}") from e

        if response.status_code != 200:
            raise classify_status(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamError("Unexpected response payload")

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise UpstreamError(f"AI service error: {message}")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError("No response from AI service") from e

        if not isinstance(content, str) or not content.strip():
            raise UpstreamError("Empty response from AI service")

        return content
