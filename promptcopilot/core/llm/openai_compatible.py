"""OpenAI and OpenAI-compatible (Groq) provider implementations."""

import time
from typing import Any, Optional

from openai import AsyncOpenAI

from ..exceptions import UpstreamError
from ..token_pricing import get_pricing_service
from .provider import ExecutionResult, ModelInfo


class OpenAIProvider:
    """Provider for the OpenAI chat completions API."""

    PROVIDER = "openai"
    DISPLAY_NAME = "OpenAI"
    BASE_URL: Optional[str] = None

    # Model context windows
    MAX_TOKENS = {
        "gpt-4o": 128000,
        "gpt-4o-mini": 128000,
        "gpt-4.1": 128000,
        "gpt-4-turbo": 128000,
        "gpt-3.5-turbo": 16385,
    }

    MODEL_NAMES = {
        "gpt-4o": "GPT-4o",
        "gpt-4o-mini": "GPT-4o Mini",
        "gpt-4.1": "GPT-4.1",
        "gpt-4-turbo": "GPT-4 Turbo",
        "gpt-3.5-turbo": "GPT-3.5 Turbo",
    }

    def __init__(self, api_key: str, base_url: Optional[str] = None):
        """Initialize the provider.

        Args:
            api_key: API key for the endpoint
            base_url: Override for the API base URL (defaults to the provider's endpoint)
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url or self.BASE_URL)

    async def execute(
        self, prompt: str, model: str, **kwargs: Any
    ) -> ExecutionResult:
        """Execute a prompt as a single user message.

        Args:
            prompt: The prompt text to execute
            model: The model ID to use
            **kwargs: Additional parameters (temperature, max_tokens)

        Returns:
            ExecutionResult with content and metrics

        Raises:
            UpstreamError: If execution fails
        """
        start_time = time.time()

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except Exception as e:
            raise UpstreamError(
                f"{self.DISPLAY_NAME} execution failed: {e}",
                provider=self.PROVIDER,
                operation="completion",
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        # Usage is optional on some compatible endpoints
        usage = response.usage
        tokens_input = usage.prompt_tokens if usage else 0
        tokens_output = usage.completion_tokens if usage else 0
        tokens_total = usage.total_tokens if usage else tokens_input + tokens_output

        cost = get_pricing_service().calculate_cost(
            provider=self.PROVIDER,
            model=model,
            tokens_in=tokens_input,
            tokens_out=tokens_output,
        )

        return ExecutionResult(
            content=response.choices[0].message.content or "",
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            tokens_total=tokens_total,
            cost_usd=(round(cost, 6) if cost is not None else None),
            latency_ms=latency_ms,
            model=model,
            provider=self.PROVIDER,
        )

    def get_available_models(self) -> list[ModelInfo]:
        pricing_service = get_pricing_service()
        models = []
        for model_id, max_tokens in self.MAX_TOKENS.items():
            pricing = pricing_service.get_pricing(self.PROVIDER, model_id)
            input_cost, output_cost = pricing if pricing else (None, None)
            models.append(
                ModelInfo(
                    id=model_id,
                    name=self.MODEL_NAMES.get(model_id, model_id),
                    provider=self.PROVIDER,
                    input_cost_per_1k=input_cost,
                    output_cost_per_1k=output_cost,
                    max_tokens=max_tokens,
                )
            )
        return models


class GroqProvider(OpenAIProvider):
    """Provider for Groq through its OpenAI-compatible endpoint."""

    PROVIDER = "groq"
    DISPLAY_NAME = "Groq"
    BASE_URL = "https://api.groq.com/openai/v1"

    MAX_TOKENS = {
        "llama-3.3-70b-versatile": 128000,
        "llama-3.1-8b-instant": 128000,
        "mixtral-8x7b-32768": 32768,
        "gemma2-9b-it": 8192,
    }

    MODEL_NAMES = {
        "llama-3.3-70b-versatile": "Llama 3.3 70B Versatile",
        "llama-3.1-8b-instant": "Llama 3.1 8B Instant",
        "mixtral-8x7b-32768": "Mixtral 8x7B",
        "gemma2-9b-it": "Gemma 2 9B",
    }
