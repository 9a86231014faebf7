"""Workbench service: the generation actions of one user session."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Literal, Optional, Sequence

from ...config import Settings, get_settings
from ..exceptions import (
    ChainExecutionError,
    GenerationInProgressError,
    MissingCredentialError,
    PromptCopilotError,
    ValidationError,
)
from ..llm.completion import CompletionResult, run_completion
from ..llm.credentials import Credentials
from ..llm.registry import ProviderRegistry, get_provider_registry
from ..model import (
    APEVariant,
    ChainStep,
    ModelConfig,
    PromptConfig,
    PromptRecord,
    PromptScore,
    UsageRecord,
)
from ..persistence import (
    InMemoryPromptStore,
    InMemoryUsageSink,
    PromptStore,
    SideChannel,
    UsageSink,
)
from .chain import ChainExecutor, StepOutcome
from .generator import PromptGenerator
from .scoring import LLMScorer
from .variants import VariantGenerator

logger = logging.getLogger(__name__)


@dataclass
class GenerateOutcome:
    """Drafted prompt with its usage and the AI score, if scoring succeeded."""

    prompt: str
    usage: UsageRecord
    score: Optional[PromptScore] = None
    score_error: Optional[str] = None
    fallback: bool = False


@dataclass
class ChainRun:
    """Terminal state of a workflow run."""

    status: Literal["completed", "failed"]
    outputs: list[str] = field(default_factory=list)
    failed_step: Optional[int] = None
    """1-based index of the failing step."""

    error: Optional[str] = None
    steps: list[StepOutcome] = field(default_factory=list)


class PromptWorkbench:
    """
    Facade over the engine for one logical user session.

    Only one generation action may be in flight at a time; a second action
    started meanwhile raises GenerationInProgressError instead of racing the
    first for the session's results.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        settings: Optional[Settings] = None,
        store: Optional[PromptStore] = None,
        usage_sink: Optional[UsageSink] = None,
        side_channel: Optional[SideChannel] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or get_provider_registry()
        self.store: PromptStore = store if store is not None else InMemoryPromptStore()
        self.usage_sink: UsageSink = usage_sink if usage_sink is not None else InMemoryUsageSink()
        self.side_channel = side_channel or SideChannel()

        system_config = self.settings.system_model_config()
        self.generator = PromptGenerator(registry=self.registry, system_config=system_config)
        self.variant_generator = VariantGenerator(
            registry=self.registry,
            system_config=system_config,
            parallel=self.settings.parallel_variants,
        )
        self.scorer = LLMScorer(registry=self.registry, system_config=system_config)
        self.chain_executor = ChainExecutor(generator=self.generator, registry=self.registry)

        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @asynccontextmanager
    async def _in_flight(self, action: str) -> AsyncIterator[None]:
        # Checked and set without an await in between, so it is atomic on the loop
        if self._busy:
            raise GenerationInProgressError(
                f"Cannot start {action}: another generation is already in progress"
            )
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    @staticmethod
    def _require_provider_key(
        llm_config: ModelConfig, credentials: Credentials, operation: Optional[str] = None
    ) -> None:
        if not credentials.has(llm_config.provider):
            raise MissingCredentialError(llm_config.provider.value, operation)

    def _emit_usage(self, usage: UsageRecord) -> None:
        self.side_channel.emit("usage save", lambda: self.usage_sink.record(usage))

    def _emit_record(self, record: PromptRecord) -> None:
        self.side_channel.emit("history save", lambda: self.store.save(record))

    async def generate(self, config: PromptConfig, credentials: Credentials) -> GenerateOutcome:
        """
        Draft a prompt for ``config`` and score it with the system model.

        Usage and the history record are saved best-effort. A scoring failure
        keeps the drafted prompt and reports the error in ``score_error``.

        Raises:
            GenerationInProgressError: If another action is in flight
            MissingCredentialError: If the selected or system provider's key is absent
        """
        async with self._in_flight("prompt generation"):
            self._require_provider_key(config.llm_config, credentials)

            generated = await self.generator.generate(config, credentials)
            self._emit_usage(generated.usage)
            self._emit_record(PromptRecord.from_config(config, generated.prompt))

            outcome = GenerateOutcome(
                prompt=generated.prompt,
                usage=generated.usage,
                fallback=generated.is_fallback,
            )
            try:
                score, score_usage = await self.scorer.score(generated.prompt, credentials)
            except PromptCopilotError as e:
                logger.warning("Failed to score prompt: %s", e)
                outcome.score_error = f"Failed to score prompt: {e}"
                return outcome

            self._emit_usage(score_usage)
            outcome.score = score
            return outcome

    async def generate_variants(
        self, config: PromptConfig, credentials: Credentials
    ) -> list[APEVariant]:
        """
        Produce one scored APE variant per rewrite style.

        Raises:
            GenerationInProgressError: If another action is in flight
            MissingCredentialError: If the selected or system provider's key is absent
        """
        async with self._in_flight("APE"):
            self._require_provider_key(config.llm_config, credentials, "APE")

            batch = await self.variant_generator.generate_batch(config, credentials)
            for usage in batch.usage:
                self._emit_usage(usage)
            return batch.variants

    async def run_prompt(
        self, prompt: str, model_config: ModelConfig, credentials: Credentials
    ) -> CompletionResult:
        """
        Execute a prompt once with the user's model.

        Raises:
            GenerationInProgressError: If another action is in flight
            MissingCredentialError: If the model's provider key is absent
            UpstreamError: If the completion call fails
        """
        async with self._in_flight("prompt run"):
            result = await run_completion(
                prompt, model_config, credentials, registry=self.registry, operation="prompt run"
            )
            self._emit_usage(result.usage)
            return result

    async def run_test_suite(
        self,
        prompt: str,
        test_cases: Sequence[str],
        model_config: ModelConfig,
        credentials: Credentials,
    ) -> list[str]:
        """
        Run a prompt once per test input, in order.

        Each case is appended to the prompt as ``Input: <case>``. The first
        failing case aborts the suite.

        Returns:
            One output per test case

        Raises:
            ValidationError: If no test cases are given
            GenerationInProgressError: If another action is in flight
            UpstreamError: If a completion call fails
        """
        if not test_cases:
            raise ValidationError("A test suite needs at least one test case")

        async with self._in_flight("test suite"):
            outputs: list[str] = []
            for case in test_cases:
                result = await run_completion(
                    f"{prompt}\n\nInput: {case}",
                    model_config,
                    credentials,
                    registry=self.registry,
                    operation="test suite",
                )
                self._emit_usage(result.usage)
                outputs.append(result.text)

            logger.info("Test suite completed: %d cases", len(outputs))
            return outputs

    async def execute_chain(
        self, steps: Sequence[ChainStep], credentials: Credentials
    ) -> ChainRun:
        """
        Run a workflow and report its terminal state.

        A failing step does not raise; the returned run is ``failed`` and
        carries the outputs completed before it. A completed run is saved to
        history as a workflow record.

        Raises:
            ValidationError: If no steps are given
            GenerationInProgressError: If another action is in flight
        """
        if not steps:
            raise ValidationError("A chain needs at least one step")

        async with self._in_flight("workflow execution"):
            completed: list[StepOutcome] = []

            def on_step(outcome: StepOutcome) -> None:
                completed.append(outcome)
                for usage in outcome.usage:
                    self._emit_usage(usage)

            try:
                outputs = await self.chain_executor.execute_chain(steps, credentials, on_step=on_step)
            except ChainExecutionError as e:
                return ChainRun(
                    status="failed",
                    outputs=e.outputs,
                    failed_step=e.step_index,
                    error=str(e),
                    steps=completed,
                )

            first = steps[0]
            record = PromptRecord.from_config(
                first,
                final_prompt=completed[-1].prompt,
                name=f"Workflow: {first.step_name or first.use_case.name} ({len(steps)} steps)",
                record_type="workflow",
                chain_steps=list(steps),
            )
            self._emit_record(record)

            return ChainRun(status="completed", outputs=outputs, steps=completed)

    async def drain(self) -> None:
        """Wait for pending best-effort saves."""
        await self.side_channel.drain()
