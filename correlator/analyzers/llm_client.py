"""
Text-completion provider client.

Wraps the OpenAI / Azure OpenAI chat completions API behind a circuit
breaker. Calls are never retried here: a failed analysis is surfaced to the
caller, which records the ``failed`` state and leaves the retry to the user.
"""

from typing import Optional

from openai import AsyncOpenAI, AsyncAzureOpenAI

from correlator.errors import AnalysisProviderError
from correlator.utils.logging import get_logger
from correlator.utils.metrics import JobMetrics, track_api_call
from correlator.utils.resilience import CircuitBreaker, create_llm_circuit_breaker

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a senior software engineer who explains code changes and meetings "
    "in business terms for a project management system. Always respond with valid JSON only."
)


class LLMClient:
    """Wrapper for OpenAI/Azure OpenAI API client."""

    def __init__(self, settings=None, circuit_breaker: Optional[CircuitBreaker] = None):
        """Initialize LLM client based on configuration."""
        if settings is None:
            from correlator.config import settings as app_settings
            settings = app_settings

        self.circuit_breaker = circuit_breaker or create_llm_circuit_breaker()

        if settings.azure_openai_endpoint and settings.azure_openai_api_key:
            self.client = AsyncAzureOpenAI(
                api_key=settings.azure_openai_api_key,
                api_version="2024-02-15-preview",
                azure_endpoint=settings.azure_openai_endpoint,
            )
            self.deployment = settings.azure_openai_deployment or settings.openai_model
            self.is_azure = True
            logger.info("Initialized Azure OpenAI client")
        else:
            self.client = AsyncOpenAI(api_key=settings.openai_api_key)
            self.deployment = settings.openai_model
            self.is_azure = False
            logger.info("Initialized OpenAI client")

    async def complete(
        self,
        prompt: str,
        max_tokens: int = 1200,
        temperature: float = 0.3,
        metrics: Optional[JobMetrics] = None,
    ) -> str:
        """
        Send one prompt and return the raw text of the first choice.

        Raises:
            AnalysisProviderError: On provider failure, an open circuit, or an empty reply
        """
        async def _call_llm() -> str:
            async with track_api_call(
                metrics,
                "openai",
                logger,
                endpoint="chat.completions",
                method="POST",
            ):
                response = await self.client.chat.completions.create(
                    model=self.deployment,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                )

            content = response.choices[0].message.content if response.choices else None
            if not content or not content.strip():
                raise AnalysisProviderError("Empty response from analysis provider")
            return content.strip()

        try:
            return await self.circuit_breaker.call(_call_llm)
        except AnalysisProviderError:
            raise
        except Exception as e:
            raise AnalysisProviderError(f"Analysis provider call failed: {e}") from e
