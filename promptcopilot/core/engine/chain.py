"""Sequential execution of multi-step prompt workflows."""

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Union

from ..exceptions import ChainExecutionError, ValidationError
from ..llm.completion import run_completion
from ..llm.credentials import Credentials
from ..llm.registry import ProviderRegistry
from ..model import ChainStep, UsageRecord
from .generator import PromptGenerator

logger = logging.getLogger(__name__)


def step_output_token(step_number: int) -> str:
    return "{{STEP_%d_OUTPUT}}" % step_number


def substitute_step_outputs(context: str, outputs: Sequence[str]) -> str:
    """
    Replace ``{{STEP_k_OUTPUT}}`` back-references with earlier step outputs.

    Only k = 1..len(outputs) is substituted; references to steps that have not
    run yet stay in the text as written.
    """
    for number, output in enumerate(outputs, start=1):
        context = context.replace(step_output_token(number), output)
    return context


@dataclass
class StepOutcome:
    """Result of one completed chain step."""

    index: int
    """1-based position of the step in the chain."""

    step_name: str
    prompt: str
    output: str
    usage: list[UsageRecord]


StepCallback = Callable[[StepOutcome], Union[None, Awaitable[None]]]


class ChainExecutor:
    """Runs chain steps strictly in order, piping outputs forward."""

    def __init__(
        self,
        generator: Optional[PromptGenerator] = None,
        registry: Optional[ProviderRegistry] = None,
    ):
        """
        Initialize chain executor.

        Args:
            generator: Prompt generator used to draft each step's prompt
            registry: Provider registry used to execute drafted prompts
        """
        self.registry = registry
        self.generator = generator or PromptGenerator(registry=registry)

    async def execute_chain(
        self,
        steps: Sequence[ChainStep],
        credentials: Credentials,
        on_step: Optional[StepCallback] = None,
    ) -> list[str]:
        """
        Execute a workflow and return the output of every step.

        Each step's context has earlier outputs substituted in, is drafted into
        a prompt by the generator, and the prompt is run with the step's own
        model configuration.

        Args:
            steps: Ordered, non-empty chain steps
            credentials: Credential set
            on_step: Optional callback (sync or async) invoked after each step

        Returns:
            Step outputs in step order

        Raises:
            ValidationError: If no steps are given
            ChainExecutionError: If any step fails; the chain stops at that step
        """
        if not steps:
            raise ValidationError("A chain needs at least one step")

        outputs: list[str] = []
        for number, step in enumerate(steps, start=1):
            step_name = step.step_name or f"Step {number}"
            try:
                outcome = await self._run_step(number, step_name, step, outputs, credentials)
            except Exception as e:
                logger.warning("Chain aborted at step %d (%s): %s", number, step_name, e)
                raise ChainExecutionError(number, step_name, outputs, e) from e

            outputs.append(outcome.output)

            if on_step is not None:
                try:
                    result = on_step(outcome)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.warning("Step callback failed at step %d (%s): %s", number, step_name, e)
                    raise ChainExecutionError(number, step_name, outputs, e) from e

        logger.info("Chain completed: %d steps", len(outputs))
        return outputs

    async def _run_step(
        self,
        number: int,
        step_name: str,
        step: ChainStep,
        outputs: Sequence[str],
        credentials: Credentials,
    ) -> StepOutcome:
        context = substitute_step_outputs(step.context, outputs)
        step_config = step.model_copy(update={"context": context})

        drafted = await self.generator.generate(step_config, credentials)
        completion = await run_completion(
            drafted.prompt,
            step.llm_config,
            credentials,
            registry=self.registry,
            operation="chain step execution",
        )

        logger.debug("Chain step %d (%s) produced %d chars", number, step_name, len(completion.text))
        return StepOutcome(
            index=number,
            step_name=step_name,
            prompt=drafted.prompt,
            output=completion.text,
            usage=[drafted.usage, completion.usage],
        )
