"""Automatic prompt engineering: stylistic rewrites of the base prompt."""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from ...config import get_settings
from ..compiler import compile_prompt
from ..exceptions import MissingCredentialError
from ..llm.completion import CompletionResult, run_completion
from ..llm.credentials import Credentials
from ..llm.registry import ProviderRegistry
from ..model import APEVariant, ModelConfig, PromptConfig, UsageRecord, VariantMeta
from ..scorer import score_prompt

logger = logging.getLogger(__name__)

FALLBACK_VARIATION = "Fallback"
FALLBACK_TECHNIQUE = "Error"


@dataclass(frozen=True)
class VariantStyle:
    """A named rewrite instruction."""

    name: str
    instruction: str


DEFAULT_STYLES: tuple[VariantStyle, ...] = (
    VariantStyle(
        name="Mega Prompt (Comprehensive)",
        instruction=(
            "Rewrite this prompt into a massive, comprehensive 'Mega Prompt' (50+ lines). "
            "Include detailed persona, context, constraints, and step-by-step instructions. "
            "Be exhaustive."
        ),
    ),
    VariantStyle(
        name="Chain of Thought (Reasoning)",
        instruction=(
            "Rewrite this prompt to strictly enforce Chain of Thought reasoning. "
            "The model must explain its logic step-by-step before answering."
        ),
    ),
    VariantStyle(
        name="Clear & Structured",
        instruction=(
            "Optimize this prompt for maximum clarity and structure. "
            "Use markdown headers and bullet points to organize instructions."
        ),
    ),
)


def build_rewrite_prompt(style: VariantStyle, base_prompt: str) -> str:
    return f'''You are an expert prompt engineer.

Your task: {style.instruction}

Original Prompt:
"""
{base_prompt}
"""

Return ONLY the rewritten prompt text. Do not include any conversational filler.'''


_FENCE_RE = re.compile(r"^```(?:markdown|md|text)?\s*\n?(.*?)\n?```$", re.DOTALL)


def clean_rewrite(text: str) -> str:
    """Trim the reply and drop a surrounding markdown code fence."""
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        cleaned = match.group(1)
    return cleaned.strip()


@dataclass
class VariantBatch:
    """One APE run: variants in style order plus usage of the successful calls."""

    variants: list[APEVariant]
    usage: list[UsageRecord]


def rank_variants(variants: Sequence[APEVariant]) -> list[APEVariant]:
    """Variants ordered by descending total score; ties keep request order."""
    return sorted(variants, key=lambda v: v.score.total, reverse=True)


class VariantGenerator:
    """Generates one rewritten, scored variant per style."""

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        system_config: Optional[ModelConfig] = None,
        styles: Sequence[VariantStyle] = DEFAULT_STYLES,
        parallel: Optional[bool] = None,
    ):
        """
        Initialize variant generator.

        Args:
            registry: Provider registry (defaults to the global registry)
            system_config: System model configuration (defaults to settings)
            styles: Ordered rewrite styles, one variant each
            parallel: Run styles concurrently (defaults to settings)
        """
        settings = get_settings()
        self.registry = registry
        self.system_config = system_config or settings.system_model_config()
        self.styles = tuple(styles)
        self.parallel = settings.parallel_variants if parallel is None else parallel

    async def generate_variants(
        self, config: PromptConfig, credentials: Credentials
    ) -> list[APEVariant]:
        """Rewrite the compiled prompt in every style; see generate_batch."""
        batch = await self.generate_batch(config, credentials)
        return batch.variants

    async def generate_batch(
        self, config: PromptConfig, credentials: Credentials
    ) -> "VariantBatch":
        """
        Rewrite the compiled prompt in every style and score each rewrite.

        A failed style yields a fallback variant in its slot; the batch always
        has exactly one entry per style, in style order. Scores are computed
        against the original configuration.

        Args:
            config: Prompt configuration the base prompt is compiled from
            credentials: Credential set

        Returns:
            VariantBatch with one variant per style and the usage of each successful call

        Raises:
            MissingCredentialError: If the system provider's key is absent
        """
        if not credentials.has(self.system_config.provider):
            raise MissingCredentialError(self.system_config.provider.value, "APE features")

        base_prompt = compile_prompt(config)

        if self.parallel:
            tasks = [
                self._generate_variant(index, style, base_prompt, config, credentials)
                for index, style in enumerate(self.styles)
            ]
            outcomes = list(await asyncio.gather(*tasks))
        else:
            outcomes = []
            for index, style in enumerate(self.styles):
                outcomes.append(
                    await self._generate_variant(index, style, base_prompt, config, credentials)
                )

        return VariantBatch(
            variants=[variant for variant, _ in outcomes],
            usage=[usage for _, usage in outcomes if usage is not None],
        )

    async def _generate_variant(
        self,
        index: int,
        style: VariantStyle,
        base_prompt: str,
        config: PromptConfig,
        credentials: Credentials,
    ) -> tuple[APEVariant, Optional[UsageRecord]]:
        try:
            result: CompletionResult = await run_completion(
                build_rewrite_prompt(style, base_prompt),
                self.system_config,
                credentials,
                registry=self.registry,
                operation="APE variant generation",
            )
        except Exception as e:
            logger.warning("Failed to generate variant %d (%s): %s", index, style.name, e)
            return _fallback_variant(index, style, base_prompt, config), None

        rewritten = clean_rewrite(result.text)
        if not rewritten:
            # Tokens were still spent, so the usage is kept
            logger.warning("Variant %d (%s) came back empty", index, style.name)
            return _fallback_variant(index, style, base_prompt, config), result.usage

        variant = APEVariant(
            id=f"variant-{index}",
            prompt=rewritten,
            score=score_prompt(rewritten, config),
            meta=VariantMeta(variation=style.name, technique=config.technique.name),
        )
        return variant, result.usage


def _fallback_variant(
    index: int, style: VariantStyle, base_prompt: str, config: PromptConfig
) -> APEVariant:
    return APEVariant(
        id=f"variant-{index}-fallback",
        prompt=f"{base_prompt}\n\n[Failed to generate AI variant: {style.name}]",
        score=score_prompt(base_prompt, config),
        meta=VariantMeta(variation=FALLBACK_VARIATION, technique=FALLBACK_TECHNIQUE),
    )
