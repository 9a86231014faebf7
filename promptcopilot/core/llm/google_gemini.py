"""Google Gemini provider implementation."""

import time
from typing import Any

import google.generativeai as genai

from ..exceptions import UpstreamError
from ..token_pricing import get_pricing_service
from .provider import ExecutionResult, ModelInfo


class GoogleGeminiProvider:
    """Provider for Google Gemini."""

    # Model context windows
    MAX_TOKENS = {
        "gemini-2.5-pro": 1048576,
        "gemini-2.5-flash": 1048576,
        "gemini-2.0-flash": 1048576,
        "gemini-1.5-pro": 2097152,
        "gemini-1.5-flash": 1048576,
    }

    def __init__(self, api_key: str):
        """Initialize Google Gemini provider.

        Args:
            api_key: Google Gemini API key
        """
        self.api_key = api_key
        genai.configure(api_key=api_key)

    async def execute(
        self, prompt: str, model: str, **kwargs: Any
    ) -> ExecutionResult:
        """Execute a prompt against Google Gemini.

        Args:
            prompt: The prompt text to execute
            model: The model ID to use (required)
            **kwargs: temperature, max_tokens

        Returns:
            ExecutionResult with content and metrics

        Raises:
            UpstreamError: If model is missing or execution fails
        """
        if not model:
            raise UpstreamError(
                "model parameter is required for GoogleGeminiProvider",
                provider="gemini",
                operation="completion",
            )

        generation_config = {}
        if "temperature" in kwargs:
            generation_config["temperature"] = kwargs["temperature"]
        if "max_tokens" in kwargs:
            generation_config["max_output_tokens"] = kwargs["max_tokens"]

        start_time = time.time()
        try:
            gemini_model = genai.GenerativeModel(model)
            response = await gemini_model.generate_content_async(
                prompt,
                generation_config=generation_config if generation_config else None,
            )
            content = response.text or ""
        except Exception as e:
            raise UpstreamError(
                f"Google Gemini execution failed: {e}",
                provider="gemini",
                operation="completion",
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        usage = response.usage_metadata
        if usage:
            tokens_input = usage.prompt_token_count
            tokens_output = usage.candidates_token_count
            tokens_total = usage.total_token_count
        else:
            # Older SDK responses omit usage; estimate ~4 chars per token
            tokens_input = len(prompt) // 4
            tokens_output = len(content) // 4
            tokens_total = tokens_input + tokens_output

        cost = get_pricing_service().calculate_cost(
            provider="gemini",
            model=model,
            tokens_in=tokens_input,
            tokens_out=tokens_output,
        )

        return ExecutionResult(
            content=content,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            tokens_total=tokens_total,
            cost_usd=(round(cost, 6) if cost is not None else None),
            latency_ms=latency_ms,
            model=model,
            provider="gemini",
        )

    def get_available_models(self) -> list[ModelInfo]:
        """Get list of available models, with low-tier pricing for tiered models."""
        models = []
        pricing_service = get_pricing_service()
        for model_id, max_tokens in self.MAX_TOKENS.items():
            pricing = pricing_service.get_pricing("gemini", model_id)
            input_cost, output_cost = pricing if pricing else (None, None)
            models.append(
                ModelInfo(
                    id=model_id,
                    name=self._format_model_name(model_id),
                    provider="gemini",
                    input_cost_per_1k=input_cost,
                    output_cost_per_1k=output_cost,
                    max_tokens=max_tokens,
                )
            )
        return models

    def _format_model_name(self, model_id: str) -> str:
        """Format model ID into display name ("gemini-2.5-pro" -> "Gemini 2.5 Pro")."""
        return " ".join(part.capitalize() for part in model_id.split("-"))
