"""Settings read from environment variables."""

import os
from dataclasses import dataclass

from .llm import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    OPENAI_API_URL,
    ChatCompletionClient,
)


def _env_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    transactions_file: str | None = None
    strict_validation: bool = False
    openai_api_key: str = ""
    openai_api_url: str = OPENAI_API_URL
    openai_model: str = DEFAULT_MODEL
    openai_temperature: float = DEFAULT_TEMPERATURE
    openai_max_tokens: int = DEFAULT_MAX_TOKENS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from the environment.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        return cls(
            transactions_file=env.get("FINSIGHT_TRANSACTIONS_FILE") or None,
            strict_validation=_env_bool(env.get("FINSIGHT_STRICT_VALIDATION")),
            openai_api_key=env.get("OPENAI_API_KEY", "").strip(),
            openai_api_url=env.get("OPENAI_API_URL") or OPENAI_API_URL,
            openai_model=env.get("OPENAI_MODEL") or DEFAULT_MODEL,
            openai_temperature=float(env.get("OPENAI_TEMPERATURE") or DEFAULT_TEMPERATURE),
            openai_max_tokens=int(env.get("OPENAI_MAX_TOKENS") or DEFAULT_MAX_TOKENS),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )

    def build_llm(self) -> ChatCompletionClient | None:
        """Model client for the configured provider, or None without a key."""
        if not self.openai_api_key:
            return None
        return ChatCompletionClient(
            api_key=self.openai_api_key,
            api_url=self.openai_api_url,
            model=self.openai_model,
            temperature=self.openai_temperature,
            max_tokens=self.openai_max_tokens,
        )
