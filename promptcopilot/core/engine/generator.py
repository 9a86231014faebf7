"""AI-assisted prompt drafting with a deterministic fallback."""

import logging
from dataclasses import dataclass
from typing import Optional

from ...config import get_settings
from ..compiler import render_examples, compile_prompt
from ..exceptions import MissingCredentialError, PromptCopilotError
from ..llm.completion import run_completion
from ..llm.credentials import Credentials
from ..llm.registry import ProviderRegistry
from ..model import ModelConfig, PromptConfig, UsageRecord

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """A drafted prompt and the usage of the call that produced it."""

    prompt: str
    usage: UsageRecord

    @property
    def is_fallback(self) -> bool:
        return bool(self.usage.metadata.get("fallback"))


def build_meta_prompt(config: PromptConfig) -> str:
    """Instruction asking the system model to write a prompt for ``config``."""
    lines = [
        "You are an expert prompt engineer. Create a high-quality, optimized prompt based on the following inputs:",
        "",
        f"**Use Case**: {config.use_case.name} - {config.use_case.description}",
        f"**Context/Task**: {config.context or 'Not specified'}",
        f"**Persona/Role**: {config.persona or 'Not specified'}",
        f"**Goal**: {config.goal or 'Not specified'}",
        f"**Constraints**: {config.constraints or 'None'}",
        f"**Technique**: {config.technique.name} - {config.technique.description}",
        f"**Length Mode**: {config.length_mode.name}",
        f"**Output Format**: {config.output_format.name}",
    ]
    if config.examples:
        lines.append(f"**Examples**:\n{render_examples(config.examples)}")
    if config.output_schema:
        lines.append(f"**Output Schema**: {config.output_schema}")

    persona_clause = f' as "{config.persona}"' if config.persona else ""
    lines += [
        "",
        f"Generate a {config.length_mode.name.lower()} prompt that:",
        f"1. Incorporates the {config.technique.name} technique",
        f"2. Is optimized for {config.use_case.name}",
        f"3. Clearly defines the role/persona{persona_clause}",
        f"4. Specifies the desired output format ({config.output_format.name})",
        "5. Is well-structured, clear, and specific",
        "",
        "Return ONLY the optimized prompt text, nothing else.",
    ]
    return "\n".join(lines)


class PromptGenerator:
    """Drafts prompts with the system model, falling back to the compiler."""

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        system_config: Optional[ModelConfig] = None,
    ):
        """
        Initialize prompt generator.

        Args:
            registry: Provider registry (defaults to the global registry)
            system_config: System model configuration (defaults to settings)
        """
        self.registry = registry
        self.system_config = system_config or get_settings().system_model_config()

    async def generate(self, config: PromptConfig, credentials: Credentials) -> GenerationResult:
        """
        Draft an optimized prompt for a configuration.

        The system model is always used so drafting quality does not depend on
        the model the user picked for execution. Any completion failure is
        recovered by returning the compiled template prompt.

        Args:
            config: Prompt configuration
            credentials: Credential set

        Returns:
            GenerationResult; ``usage.metadata["fallback"]`` is True on recovery

        Raises:
            MissingCredentialError: If the system provider's key is absent
        """
        system = self.system_config
        if not credentials.has(system.provider):
            raise MissingCredentialError(system.provider.value, "AI generation features")

        try:
            result = await run_completion(
                build_meta_prompt(config),
                system,
                credentials,
                registry=self.registry,
                operation="prompt generation",
            )
        except PromptCopilotError as e:
            logger.warning("AI prompt generation failed, using template prompt: %s", e)
            return self._fallback(config, str(e))
        except Exception as e:
            logger.warning(
                "AI prompt generation failed unexpectedly, using template prompt: %s", e, exc_info=True
            )
            return self._fallback(config, str(e))

        prompt = result.text.strip()
        if not prompt:
            logger.warning("System model returned an empty prompt, using template prompt")
            return self._fallback(config, "Empty response from system model")

        return GenerationResult(prompt=prompt, usage=result.usage)

    def _fallback(self, config: PromptConfig, error: str) -> GenerationResult:
        system = self.system_config
        return GenerationResult(
            prompt=compile_prompt(config),
            usage=UsageRecord(
                provider=system.provider.value,
                model=system.model,
                metadata={"fallback": True, "error": error},
            ),
        )
