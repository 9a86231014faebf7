"""Model-graded prompt scoring."""

import json
import logging
import math
from typing import Any, Optional

from ...config import get_settings
from ..exceptions import MissingCredentialError, ScoreParseError
from ..llm.completion import run_completion
from ..llm.credentials import Credentials
from ..llm.registry import ProviderRegistry
from ..model import ModelConfig, PromptScore, UsageRecord

logger = logging.getLogger(__name__)

SCORE_FIELDS = ("clarity", "specificity", "structure", "total")


def build_scoring_prompt(prompt: str) -> str:
    return f'''You are a professional prompt engineer. Evaluate the quality of the following prompt.

Evaluate on:
- Clarity (0-30): How clear and understandable is the prompt?
- Specificity (0-30): How specific and detailed are the requirements?
- Structure (0-40): How well-structured and organized is the prompt?

Return ONLY JSON using this exact format:
{{
  "clarity": number,
  "specificity": number,
  "structure": number,
  "total": number
}}

Prompt to evaluate:
"""
{prompt}
"""'''


def parse_score(content: str) -> PromptScore:
    """
    Parse the scoring model's reply into a PromptScore.

    The reply's ``total`` is only checked for presence; the stored total is
    recomputed from the clamped axes so it always equals their sum.

    Raises:
        ScoreParseError: If the reply is not a JSON object with numeric score fields
    """
    content = content.strip()
    # Remove markdown code blocks if present
    if content.startswith("```"):
        parts = content.split("```")
        content = parts[1] if len(parts) > 1 else ""
        if content.startswith("json"):
            content = content[4:]
        content = content.strip()

    try:
        data: Any = json.loads(content)
    except json.JSONDecodeError as e:
        raise ScoreParseError(
            f"Failed to parse score from model response: {e}", operation="scoring"
        ) from e

    if not isinstance(data, dict):
        raise ScoreParseError("Score response is not a JSON object", operation="scoring")

    missing = [field for field in SCORE_FIELDS if field not in data]
    if missing:
        raise ScoreParseError(
            f"Score response is missing fields: {', '.join(missing)}", operation="scoring"
        )

    try:
        axes = [float(data[field]) for field in ("clarity", "specificity", "structure")]
    except (TypeError, ValueError) as e:
        raise ScoreParseError(f"Score fields must be numbers: {e}", operation="scoring") from e

    # json.loads accepts Infinity, NaN and overflowing literals like 1e999
    if not all(math.isfinite(value) for value in axes):
        raise ScoreParseError("Score fields must be finite numbers", operation="scoring")

    return PromptScore.from_parts(*axes)


class LLMScorer:
    """Scores prompts with the system model at temperature 0."""

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        system_config: Optional[ModelConfig] = None,
    ):
        """
        Initialize LLM scorer.

        Args:
            registry: Provider registry (defaults to the global registry)
            system_config: System model configuration (defaults to settings)
        """
        self.registry = registry
        base = system_config or get_settings().system_model_config()
        self.system_config = base.with_overrides({"temperature": 0.0})

    async def score(
        self, prompt: str, credentials: Credentials
    ) -> tuple[PromptScore, UsageRecord]:
        """
        Ask the system model to grade a prompt.

        Args:
            prompt: Prompt text to grade
            credentials: Credential set

        Returns:
            Tuple of (score, usage of the scoring call)

        Raises:
            MissingCredentialError: If the system provider's key is absent
            UpstreamError: If the completion call fails
            ScoreParseError: If the reply cannot be parsed into a score
        """
        provider = self.system_config.provider
        if not credentials.has(provider):
            raise MissingCredentialError(provider.value, "scoring")

        result = await run_completion(
            build_scoring_prompt(prompt),
            self.system_config,
            credentials,
            registry=self.registry,
            operation="scoring",
        )

        try:
            score = parse_score(result.text)
        except ScoreParseError as e:
            e.provider = provider.value
            logger.warning("Unparseable score response from %s: %s", self.system_config.model, e)
            raise

        return score, result.usage
