"""Generation client with bounded retry on the provider's overload signal.

Only the overload status (HTTP 503) is retried. Every other failure is
surfaced on the first attempt.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from student_insights.core.config import GenerationConfig
from student_insights.core.errors import GenerationFailedError, GenerationOverloadedError
from student_insights.core.metrics import (
    insights_generation_attempts_total,
    insights_generation_latency_seconds,
)
from student_insights.llm.provider import GenerationProviderError

logger = structlog.get_logger(__name__)


class GenerationProvider(Protocol):
    async def generate(self, prompt: str) -> str: ...


def is_transient_overload(exc: BaseException) -> bool:
    return isinstance(exc, GenerationProviderError) and exc.is_overloaded


class GenerationClient:
    """Calls the provider, backing off ``base_delay * 2**attempt`` on overload."""

    def __init__(
        self,
        provider: GenerationProvider,
        *,
        max_attempts: int = 3,
        base_delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.provider = provider
        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, provider: GenerationProvider, config: GenerationConfig
    ) -> GenerationClient:
        return cls(
            provider,
            max_attempts=config.max_attempts,
            base_delay_seconds=config.base_delay_seconds,
        )

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Generation service overloaded; retrying with backoff",
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            backoff_seconds=delay,
        )

    async def _attempt(self, prompt: str) -> str:
        try:
            text = await self.provider.generate(prompt)
        except GenerationProviderError as e:
            outcome = "overloaded" if e.is_overloaded else "error"
            insights_generation_attempts_total.labels(outcome=outcome).inc()
            raise
        except Exception:
            insights_generation_attempts_total.labels(outcome="error").inc()
            raise
        insights_generation_attempts_total.labels(outcome="success").inc()
        return text

    async def generate(self, prompt: str) -> str:
        """Return generated text for ``prompt``.

        Raises:
            GenerationOverloadedError: every attempt hit the overload signal.
            GenerationFailedError: any other provider failure.
        """
        started = time.perf_counter()
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay_seconds, exp_base=2),
            retry=retry_if_exception(is_transient_overload),
            before_sleep=self._log_backoff,
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    text = await self._attempt(prompt)
        except GenerationProviderError as e:
            if e.is_overloaded:
                logger.error(
                    "Generation service still overloaded after all attempts",
                    max_attempts=self.max_attempts,
                )
                raise GenerationOverloadedError(
                    "AI service unavailable (overloaded). Please try again.",
                    details={"attempts": self.max_attempts},
                ) from e
            logger.error(
                "Generation service failed with a non-recoverable error",
                status_code=e.status_code,
                error=str(e),
            )
            raise GenerationFailedError("Internal error while generating insight") from e
        except Exception as e:
            logger.exception("Unexpected generation failure", error=str(e))
            raise GenerationFailedError("Internal error while generating insight") from e
        finally:
            insights_generation_latency_seconds.observe(time.perf_counter() - started)

        return text
