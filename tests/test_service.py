"""Tests for the workbench service."""

import asyncio

import pytest

from promptcopilot.core.compiler import compile_prompt
from promptcopilot.core.engine.service import PromptWorkbench
from promptcopilot.core.exceptions import (
    GenerationInProgressError,
    MissingCredentialError,
    UpstreamError,
    ValidationError,
)
from promptcopilot.core.llm.provider import ExecutionResult
from promptcopilot.core.llm.registry import ProviderRegistry
from promptcopilot.core.model import ChainStep, ModelConfig, Provider
from promptcopilot.core.persistence import InMemoryPromptStore, InMemoryUsageSink


@pytest.fixture
def store():
    return InMemoryPromptStore()


@pytest.fixture
def usage_sink():
    return InMemoryUsageSink()


@pytest.fixture
def workbench(registry, settings, store, usage_sink):
    return PromptWorkbench(registry=registry, settings=settings, store=store, usage_sink=usage_sink)


def _with_model(config, provider, model):
    return config.model_copy(update={"llm_config": ModelConfig(provider=provider, model=model)})


class FailingStore(InMemoryPromptStore):
    async def save(self, record):
        raise RuntimeError("database unavailable")


class BlockingProvider:
    """Provider whose calls wait until released."""

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def execute(self, prompt, model, **kwargs):
        self.started.set()
        await self.release.wait()
        return ExecutionResult(
            content="late reply", tokens_input=1, tokens_output=1, tokens_total=2,
            cost_usd=0.0, latency_ms=1, model=model, provider="groq",
        )

    def get_available_models(self):
        return []


@pytest.mark.asyncio
async def test_generate_drafts_scores_and_saves(workbench, store, usage_sink, config, credentials):
    outcome = await workbench.generate(config, credentials)
    await workbench.drain()

    assert outcome.prompt.startswith("You are a helpful assistant.")
    assert outcome.score is not None
    assert outcome.score.total == 75
    assert outcome.score_error is None
    assert not outcome.fallback

    records = await store.list()
    assert len(records) == 1
    assert records[0].final_prompt == outcome.prompt
    assert records[0].record_type == "single"
    assert [u.metadata["operation"] for u in usage_sink.records] == ["prompt generation", "scoring"]
    assert not workbench.busy


@pytest.mark.asyncio
async def test_generate_requires_selected_provider_key(workbench, providers, config, credentials):
    config = _with_model(config, Provider.ANTHROPIC, "claude-3-5-sonnet-20241022")

    with pytest.raises(MissingCredentialError, match="Anthropic API key is required"):
        await workbench.generate(config, credentials)
    assert providers[Provider.GROQ].calls == []
    assert not workbench.busy


@pytest.mark.asyncio
async def test_scoring_failure_keeps_prompt(workbench, providers, config, credentials):
    def responder(prompt):
        if "Evaluate the quality" in prompt:
            return "not json"
        return "Drafted prompt"

    providers[Provider.GROQ].responder = responder

    outcome = await workbench.generate(config, credentials)

    assert outcome.prompt == "Drafted prompt"
    assert outcome.score is None
    assert outcome.score_error.startswith("Failed to score prompt:")


@pytest.mark.asyncio
async def test_non_finite_score_keeps_prompt(workbench, providers, config, credentials):
    def responder(prompt):
        if "Evaluate the quality" in prompt:
            return '{"clarity": 1e999, "specificity": 10, "structure": 10, "total": 30}'
        return "Drafted prompt"

    providers[Provider.GROQ].responder = responder

    outcome = await workbench.generate(config, credentials)

    assert outcome.prompt == "Drafted prompt"
    assert outcome.score is None
    assert "finite" in outcome.score_error
    assert not workbench.busy


@pytest.mark.asyncio
async def test_generate_falls_back_when_system_model_down(workbench, providers, config, credentials):
    providers[Provider.GROQ].fail = True

    outcome = await workbench.generate(config, credentials)

    assert outcome.fallback
    assert outcome.prompt == compile_prompt(config)
    assert outcome.score is None
    assert "simulated outage" in outcome.score_error


@pytest.mark.asyncio
async def test_history_save_failure_is_swallowed(registry, settings, config, credentials):
    workbench = PromptWorkbench(registry=registry, settings=settings, store=FailingStore())

    outcome = await workbench.generate(config, credentials)
    await workbench.drain()

    assert outcome.prompt


@pytest.mark.asyncio
async def test_overlapping_actions_rejected(settings, config, credentials):
    blocking = BlockingProvider()
    registry = ProviderRegistry(factories={Provider.GROQ: lambda key: blocking})
    workbench = PromptWorkbench(registry=registry, settings=settings)

    first = asyncio.create_task(workbench.generate(config, credentials))
    await blocking.started.wait()
    assert workbench.busy

    with pytest.raises(GenerationInProgressError):
        await workbench.generate_variants(config, credentials)

    blocking.release.set()
    outcome = await first
    await workbench.drain()
    assert outcome.prompt == "late reply"
    assert not workbench.busy


@pytest.mark.asyncio
async def test_generate_variants_records_usage(workbench, usage_sink, config, credentials):
    variants = await workbench.generate_variants(config, credentials)
    await workbench.drain()

    assert len(variants) == 3
    assert len(usage_sink.records) == 3


@pytest.mark.asyncio
async def test_generate_variants_requires_selected_provider_key(workbench, config, credentials):
    config = _with_model(config, Provider.GEMINI, "gemini-2.5-flash")
    with pytest.raises(MissingCredentialError, match="Gemini API key is required for APE"):
        await workbench.generate_variants(config, credentials)


@pytest.mark.asyncio
async def test_run_prompt_uses_user_model(workbench, providers, credentials):
    model_config = ModelConfig(provider=Provider.OPENAI, model="gpt-4o-mini", max_tokens=256)

    result = await workbench.run_prompt("Tell me a joke", model_config, credentials)

    assert result.text == "Model output"
    assert providers[Provider.OPENAI].calls[0]["max_tokens"] == 256
    assert providers[Provider.GROQ].calls == []


@pytest.mark.asyncio
async def test_run_test_suite_in_order(workbench, providers, credentials):
    providers[Provider.OPENAI].responder = lambda prompt: prompt.rsplit("Input: ", 1)[1].upper()
    model_config = ModelConfig(provider=Provider.OPENAI, model="gpt-4o")

    outputs = await workbench.run_test_suite("Shout it", ["a", "b", "c"], model_config, credentials)

    assert outputs == ["A", "B", "C"]
    assert providers[Provider.OPENAI].calls[0]["prompt"] == "Shout it\n\nInput: a"


@pytest.mark.asyncio
async def test_run_test_suite_failure_aborts(workbench, providers, credentials):
    providers[Provider.OPENAI].fail_when = "Input: b"
    model_config = ModelConfig(provider=Provider.OPENAI, model="gpt-4o")

    with pytest.raises(UpstreamError):
        await workbench.run_test_suite("p", ["a", "b", "c"], model_config, credentials)
    assert len(providers[Provider.OPENAI].calls) == 2
    assert not workbench.busy


@pytest.mark.asyncio
async def test_run_test_suite_requires_cases(workbench, credentials):
    with pytest.raises(ValidationError):
        await workbench.run_test_suite("p", [], ModelConfig(provider=Provider.OPENAI, model="gpt-4o"), credentials)


def _steps(config, *names):
    return [ChainStep.model_validate({**config.model_dump(), "step_name": name}) for name in names]


@pytest.mark.asyncio
async def test_execute_chain_completed_saves_workflow(workbench, store, config, credentials):
    run = await workbench.execute_chain(_steps(config, "Research", "Write"), credentials)
    await workbench.drain()

    assert run.status == "completed"
    assert run.outputs == ["Model output", "Model output"]
    assert run.failed_step is None

    records = await store.list()
    assert len(records) == 1
    assert records[0].record_type == "workflow"
    assert [s.step_name for s in records[0].chain_steps] == ["Research", "Write"]


@pytest.mark.asyncio
async def test_execute_chain_failure_reported(workbench, store, providers, config, credentials):
    steps = _steps(config, "Research", "Write")
    steps[1] = steps[1].model_copy(update={"llm_config": ModelConfig(provider=Provider.OPENAI, model="gpt-4o")})
    providers[Provider.OPENAI].fail = True

    run = await workbench.execute_chain(steps, credentials)
    await workbench.drain()

    assert run.status == "failed"
    assert run.failed_step == 2
    assert run.outputs == ["Model output"]
    assert "Write" in run.error
    assert await store.list() == []
