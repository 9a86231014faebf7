"""Single text-completion call against a configured model."""

from dataclasses import dataclass
from typing import Optional

from ..exceptions import UpstreamError
from ..model import ModelConfig, UsageRecord
from .credentials import Credentials
from .registry import ProviderRegistry, get_provider_registry


@dataclass
class CompletionResult:
    """Generated text plus the usage record of the call."""

    text: str
    usage: UsageRecord


async def run_completion(
    prompt: str,
    model_config: ModelConfig,
    credentials: Credentials,
    registry: Optional[ProviderRegistry] = None,
    operation: str = "completion",
) -> CompletionResult:
    """Run one prompt against the model described by ``model_config``.

    Raises:
        MissingCredentialError: If the provider's key is absent
        UpstreamError: If the provider call fails
    """
    registry = registry or get_provider_registry()
    provider_name = model_config.provider.value
    provider = registry.get_provider(model_config.provider, credentials, operation)

    try:
        result = await provider.execute(
            prompt,
            model=model_config.model,
            temperature=model_config.temperature,
            max_tokens=model_config.max_tokens,
        )
    except UpstreamError as e:
        if e.operation in (None, "completion"):
            e.operation = operation
        raise
    except Exception as e:
        raise UpstreamError(
            f"{provider_name} {operation} failed: {e}",
            provider=provider_name,
            operation=operation,
        ) from e

    usage = UsageRecord(
        provider=provider_name,
        model=model_config.model,
        prompt_tokens=result.tokens_input,
        response_tokens=result.tokens_output,
        total_tokens=result.tokens_total,
        cost=result.cost_usd or 0.0,
        metadata={"operation": operation, "latency_ms": result.latency_ms},
    )
    return CompletionResult(text=result.content, usage=usage)
