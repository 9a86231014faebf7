"""Shared fixtures for PromptCopilot tests.

Provider clients are replaced by MockLLMProvider instances so no test makes a
network call. Each test gets its own ProviderRegistry wired to those mocks.
"""

from typing import Callable, Optional

import pytest

from promptcopilot.config import Settings
from promptcopilot.core.catalog import TemplateCatalog
from promptcopilot.core.exceptions import UpstreamError
from promptcopilot.core.llm.credentials import Credentials
from promptcopilot.core.llm.provider import ExecutionResult
from promptcopilot.core.llm.registry import ProviderRegistry
from promptcopilot.core.model import ModelConfig, PromptConfig, Provider

SCORE_JSON = '{"clarity": 25, "specificity": 20, "structure": 30, "total": 75}'


class MockLLMProvider:
    """Mock LLM provider for testing."""

    def __init__(
        self,
        name: str = "groq",
        fail: bool = False,
        fail_when: Optional[str] = None,
        responder: Optional[Callable[[str], str]] = None,
    ):
        self.name = name
        self.fail = fail
        self.fail_when = fail_when
        self.responder = responder
        self.calls: list[dict] = []

    async def execute(self, prompt: str, model: str, **kwargs) -> ExecutionResult:
        """Mock execute that returns canned responses."""
        self.calls.append({"prompt": prompt, "model": model, **kwargs})

        if self.fail or (self.fail_when and self.fail_when in prompt):
            raise UpstreamError(
                f"{self.name} execution failed: simulated outage",
                provider=self.name,
                operation="completion",
            )

        if self.responder is not None:
            content = self.responder(prompt)
        elif "Evaluate the quality" in prompt:
            content = SCORE_JSON
        elif "Create a high-quality, optimized prompt" in prompt:
            content = "You are a helpful assistant.\n1. Read the task.\n2. Answer it."
        elif "Original Prompt:" in prompt:
            content = "```markdown\nRewritten prompt\n- with structure\n```"
        else:
            content = "Model output"

        return ExecutionResult(
            content=content,
            tokens_input=100,
            tokens_output=50,
            tokens_total=150,
            cost_usd=0.001,
            latency_ms=5,
            model=model,
            provider=self.name,
        )

    def get_available_models(self):
        """Mock available models."""
        return []


@pytest.fixture
def catalog() -> TemplateCatalog:
    return TemplateCatalog.from_yaml()


@pytest.fixture
def config(catalog) -> PromptConfig:
    """Default session config: general / zero-shot / medium / plain text on Groq."""
    return catalog.default_config()


@pytest.fixture
def system_config() -> ModelConfig:
    return ModelConfig(provider=Provider.GROQ, model="llama-3.3-70b-versatile", max_tokens=8192)


@pytest.fixture
def providers() -> dict[Provider, MockLLMProvider]:
    return {provider: MockLLMProvider(name=provider.value) for provider in Provider}


@pytest.fixture
def registry(providers) -> ProviderRegistry:
    return ProviderRegistry(
        factories={provider: (lambda api_key, p=provider: providers[p]) for provider in Provider}
    )


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(groq_key="gsk-test", openai_key="sk-test")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        groq_api_key="gsk-server",
        openai_api_key="",
        anthropic_api_key="",
        gemini_api_key="",
        system_provider=Provider.GROQ,
        system_model="llama-3.3-70b-versatile",
        parallel_variants=True,
    )
