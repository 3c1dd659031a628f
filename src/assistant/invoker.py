"""Async wrapper around a blocking LLM provider with timeout and bounded retry."""

import asyncio

import structlog

from cli.config_models import RetryConfig
from cli.retry import retry_from_config
from llm.base import LLMProvider, LLMRateLimitError
from observability import metrics

from .errors import GenerationFailure
from .prompts import PromptPair

logger = structlog.get_logger()

# Transient failures worth a second attempt; auth and other API errors are not
RETRYABLE = (LLMRateLimitError, TimeoutError)


class ModelInvoker:
    """Issues one provider call per invoke(); no caching of prompts or replies."""

    def __init__(
        self,
        provider: LLMProvider,
        timeout: float = 30.0,
        max_tokens: int = 1200,
        retry: RetryConfig | None = None,
    ):
        self.provider = provider
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._call_with_retry = retry_from_config(retry or RetryConfig(), exceptions=RETRYABLE)(
            self._call_once
        )

    async def _call_once(self, prompt: PromptPair, temperature: float) -> str:
        with metrics.timer("provider.latency"):
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self.provider.generate,
                    prompt.to_messages(),
                    system=prompt.system,
                    max_tokens=self.max_tokens,
                    temperature=temperature,
                ),
                timeout=self.timeout,
            )

    async def invoke(self, prompt: PromptPair, temperature: float) -> str:
        """Call the provider and return its raw text.

        Raises:
            GenerationFailure: provider error, timeout, or retries exhausted
        """
        try:
            raw = await self._call_with_retry(prompt, temperature)
        except TimeoutError as e:
            metrics.counter("generation.failed")
            logger.error("invoker.timeout", provider=self.provider.provider_name, timeout=self.timeout)
            raise GenerationFailure(f"provider timed out after {self.timeout}s") from e
        except Exception as e:
            metrics.counter("generation.failed")
            logger.error("invoker.failed", provider=self.provider.provider_name, error=str(e))
            raise GenerationFailure(f"provider call failed: {e}") from e
        return raw if isinstance(raw, str) else ""
