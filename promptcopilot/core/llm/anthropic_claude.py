"""Anthropic Claude provider implementation."""

import time
from typing import Any

from anthropic import AsyncAnthropic

from ..exceptions import UpstreamError
from ..token_pricing import get_pricing_service
from .provider import ExecutionResult, ModelInfo

# Anthropic requires an explicit output budget
DEFAULT_MAX_TOKENS = 4096


class AnthropicProvider:
    """Provider for Anthropic's Messages API."""

    MAX_TOKENS = {
        "claude-3-5-sonnet-20241022": 200000,
        "claude-3-5-haiku-20241022": 200000,
        "claude-3-opus-20240229": 200000,
        "claude-3-haiku-20240307": 200000,
    }

    MODEL_NAMES = {
        "claude-3-5-sonnet-20241022": "Claude 3.5 Sonnet",
        "claude-3-5-haiku-20241022": "Claude 3.5 Haiku",
        "claude-3-opus-20240229": "Claude 3 Opus",
        "claude-3-haiku-20240307": "Claude 3 Haiku",
    }

    def __init__(self, api_key: str):
        self.client = AsyncAnthropic(api_key=api_key)

    async def execute(
        self, prompt: str, model: str, **kwargs: Any
    ) -> ExecutionResult:
        """Execute a prompt against Claude.

        Args:
            prompt: The prompt text to execute
            model: The model ID to use
            **kwargs: temperature, max_tokens

        Returns:
            ExecutionResult with content and metrics

        Raises:
            UpstreamError: If execution fails
        """
        create_kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": kwargs.get("max_tokens", DEFAULT_MAX_TOKENS),
            "messages": [{"role": "user", "content": prompt}],
        }
        if "temperature" in kwargs:
            create_kwargs["temperature"] = kwargs["temperature"]

        start_time = time.time()
        try:
            response = await self.client.messages.create(**create_kwargs)
        except Exception as e:
            raise UpstreamError(
                f"Anthropic execution failed: {e}",
                provider="anthropic",
                operation="completion",
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        content = "".join(
            block.text for block in response.content if block.type == "text"
        )

        tokens_input = response.usage.input_tokens if response.usage else 0
        tokens_output = response.usage.output_tokens if response.usage else 0

        cost = get_pricing_service().calculate_cost(
            provider="anthropic",
            model=model,
            tokens_in=tokens_input,
            tokens_out=tokens_output,
        )

        return ExecutionResult(
            content=content,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            tokens_total=tokens_input + tokens_output,
            cost_usd=(round(cost, 6) if cost is not None else None),
            latency_ms=latency_ms,
            model=model,
            provider="anthropic",
        )

    def get_available_models(self) -> list[ModelInfo]:
        pricing_service = get_pricing_service()
        models = []
        for model_id, max_tokens in self.MAX_TOKENS.items():
            pricing = pricing_service.get_pricing("anthropic", model_id)
            input_cost, output_cost = pricing if pricing else (None, None)
            models.append(
                ModelInfo(
                    id=model_id,
                    name=self.MODEL_NAMES.get(model_id, model_id),
                    provider="anthropic",
                    input_cost_per_1k=input_cost,
                    output_cost_per_1k=output_cost,
                    max_tokens=max_tokens,
                )
            )
        return models
