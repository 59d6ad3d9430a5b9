"""LLM completion clients.

Two tiers are used: a fast, cheap model for summarization (OpenAI) and a
stronger model for final draft generation (Anthropic). Each provider backend
turns SDK errors into the errors in ``rfx_engine.core.errors``;
``RetryingCompletionClient`` adds the bounded rate-limit retry on top.
"""

import time
from enum import Enum
from typing import Callable, Mapping, Protocol

import anthropic
import openai

from rfx_engine.core.config import Settings, get_settings
from rfx_engine.core.errors import (
    MissingCredentialsError,
    RateLimitedError,
    RemoteCallFailedError,
    RfxEngineError,
)
from rfx_engine.core.llm_usage import log_llm_usage
from rfx_engine.core.logging import get_logger
from rfx_engine.core.retry import call_with_retry

logger = get_logger(__name__)


class ModelTier(str, Enum):
    """Which model a call should go to."""

    FAST = "fast"
    PRIMARY = "primary"


class CompletionBackend(Protocol):
    """A single provider/model pair."""

    provider: str
    model: str

    def complete(
        self, prompt: str, *, max_tokens: int, temperature: float, label: str | None = None
    ) -> str: ...


class CompletionClient(Protocol):
    """What the summarizer and the generation engine depend on."""

    def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        tier: ModelTier = ModelTier.FAST,
        label: str | None = None,
    ) -> str: ...


def _retry_after(error: Exception) -> float | None:
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    try:
        return float(headers.get("retry-after"))
    except (TypeError, ValueError):
        return None


class OpenAIChatBackend:
    """Fast tier: OpenAI chat completions."""

    provider = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        timeout: float = 120.0,
        client: openai.OpenAI | None = None,
    ):
        if client is None:
            if not api_key:
                raise MissingCredentialsError("OPENAI_API_KEY")
            # Retries are owned by RetryingCompletionClient
            client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._client = client
        self.model = model

    def complete(
        self, prompt: str, *, max_tokens: int, temperature: float, label: str | None = None
    ) -> str:
        t0 = time.monotonic()
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.RateLimitError as e:
            raise RateLimitedError(str(e), provider=self.provider, retry_after=_retry_after(e)) from e
        except openai.APIError as e:
            raise RemoteCallFailedError(
                str(e), provider=self.provider, status_code=getattr(e, "status_code", None)
            ) from e
        elapsed_ms = int((time.monotonic() - t0) * 1000)

        usage = getattr(response, "usage", None)
        log_llm_usage(
            provider=self.provider,
            model=self.model,
            tokens_input=getattr(usage, "prompt_tokens", 0) or 0,
            tokens_output=getattr(usage, "completion_tokens", 0) or 0,
            duration_ms=elapsed_ms,
            chain=label,
        )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AnthropicMessagesBackend:
    """Primary tier: Anthropic messages API."""

    provider = "anthropic"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        timeout: float = 120.0,
        client: anthropic.Anthropic | None = None,
    ):
        if client is None:
            if not api_key:
                raise MissingCredentialsError("ANTHROPIC_API_KEY")
            client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._client = client
        self.model = model

    def complete(
        self, prompt: str, *, max_tokens: int, temperature: float, label: str | None = None
    ) -> str:
        t0 = time.monotonic()
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.RateLimitError as e:
            raise RateLimitedError(str(e), provider=self.provider, retry_after=_retry_after(e)) from e
        except anthropic.APIError as e:
            raise RemoteCallFailedError(
                str(e), provider=self.provider, status_code=getattr(e, "status_code", None)
            ) from e
        elapsed_ms = int((time.monotonic() - t0) * 1000)

        usage = getattr(response, "usage", None)
        log_llm_usage(
            provider=self.provider,
            model=self.model,
            tokens_input=getattr(usage, "input_tokens", 0) or 0,
            tokens_output=getattr(usage, "output_tokens", 0) or 0,
            duration_ms=elapsed_ms,
            chain=label,
        )

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )


class RetryingCompletionClient:
    """Routes calls to a tier's backend, retrying only on rate limiting."""

    def __init__(
        self,
        backends: Mapping[ModelTier, CompletionBackend],
        *,
        max_attempts: int = 3,
        delay_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._backends = dict(backends)
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        tier: ModelTier = ModelTier.FAST,
        label: str | None = None,
    ) -> str:
        """
        Run one completion with bounded retry on rate limiting.

        Raises:
            RetriesExhaustedError: If every attempt was rate limited
            RemoteCallFailedError: On any other provider error (no retry)
        """
        backend = self._backends.get(tier)
        if backend is None:
            raise RfxEngineError(f"No completion backend configured for tier '{tier.value}'")

        call_label = label or f"{backend.provider}:{backend.model}"
        logger.debug(
            f"Calling {backend.model} ({tier.value}) for {call_label}, prompt {len(prompt)} chars"
        )
        return call_with_retry(
            lambda: backend.complete(
                prompt, max_tokens=max_tokens, temperature=temperature, label=call_label
            ),
            max_attempts=self.max_attempts,
            delay_seconds=self.delay_seconds,
            sleep=self._sleep,
            label=call_label,
        )


def build_completion_client(settings: Settings | None = None) -> RetryingCompletionClient:
    """
    Wire both model tiers from settings.

    Raises:
        MissingCredentialsError: If either API key is missing
    """
    settings = settings or get_settings()
    return RetryingCompletionClient(
        {
            ModelTier.FAST: OpenAIChatBackend(
                settings.OPENAI_API_KEY, settings.SUMMARY_MODEL, timeout=settings.LLM_TIMEOUT_SECONDS
            ),
            ModelTier.PRIMARY: AnthropicMessagesBackend(
                settings.ANTHROPIC_API_KEY,
                settings.GENERATION_MODEL,
                timeout=settings.LLM_TIMEOUT_SECONDS,
            ),
        },
        max_attempts=settings.LLM_MAX_ATTEMPTS,
        delay_seconds=settings.LLM_RETRY_DELAY_SECONDS,
    )
