"""LLM provider abstractions and implementations."""

from .provider import ExecutionResult, LLMProvider, ModelInfo
from .credentials import Credentials, resolve_credentials
from .openai_compatible import GroqProvider, OpenAIProvider
from .anthropic_claude import AnthropicProvider
from .google_gemini import GoogleGeminiProvider
from .registry import ProviderRegistry, get_provider_registry
from .completion import CompletionResult, run_completion

__all__ = [
    "ExecutionResult",
    "LLMProvider",
    "ModelInfo",
    "Credentials",
    "resolve_credentials",
    "OpenAIProvider",
    "GroqProvider",
    "AnthropicProvider",
    "GoogleGeminiProvider",
    "ProviderRegistry",
    "get_provider_registry",
    "CompletionResult",
    "run_completion",
]
