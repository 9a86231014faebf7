"""LLM provider protocol and data models."""

from dataclasses import dataclass
from typing import Any, Optional, Protocol


@dataclass
class ExecutionResult:
    """Result from executing a prompt against an LLM."""

    content: str
    tokens_input: int
    tokens_output: int
    tokens_total: int
    cost_usd: Optional[float]
    latency_ms: int
    model: str
    provider: str


@dataclass
class ModelInfo:
    """Information about an available LLM model."""

    id: str  # "gpt-4o", "llama-3.3-70b-versatile"
    name: str  # "GPT-4o"
    provider: str  # "openai", "groq"
    input_cost_per_1k: Optional[float]
    output_cost_per_1k: Optional[float]
    max_tokens: int


class LLMProvider(Protocol):
    """Uniform text-completion contract every backend implements."""

    async def execute(
        self, prompt: str, model: str, **kwargs: Any
    ) -> ExecutionResult:
        """Execute a prompt as a single user message.

        Args:
            prompt: The fully assembled prompt text
            model: The model ID to use
            **kwargs: temperature, max_tokens

        Returns:
            ExecutionResult with content and token usage

        Raises:
            UpstreamError: If the provider call fails
        """
        ...

    def get_available_models(self) -> list[ModelInfo]:
        """Get list of models this provider offers."""
        ...
