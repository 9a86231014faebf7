"""AI-assisted generation, automatic prompt engineering and chain execution"""

from .chain import ChainExecutor, StepOutcome, substitute_step_outputs
from .generator import GenerationResult, PromptGenerator
from .scoring import LLMScorer
from .service import ChainRun, GenerateOutcome, PromptWorkbench
from .variants import DEFAULT_STYLES, VariantBatch, VariantGenerator, VariantStyle, rank_variants

__all__ = [
    "ChainExecutor",
    "StepOutcome",
    "substitute_step_outputs",
    "GenerationResult",
    "PromptGenerator",
    "LLMScorer",
    "ChainRun",
    "GenerateOutcome",
    "PromptWorkbench",
    "DEFAULT_STYLES",
    "VariantBatch",
    "VariantGenerator",
    "VariantStyle",
    "rank_variants",
]
