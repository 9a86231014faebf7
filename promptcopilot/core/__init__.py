"""Core prompt assembly and evaluation logic"""

from .catalog import TemplateCatalog, get_catalog
from .compiler import compile_prompt
from .scorer import score_prompt
from .model import (
    APEVariant,
    ChainStep,
    Example,
    LengthMode,
    ModelConfig,
    OutputFormat,
    PromptConfig,
    PromptRecord,
    PromptScore,
    Provider,
    Technique,
    UsageRecord,
    UseCase,
)
from .exceptions import (
    CatalogError,
    ChainExecutionError,
    GenerationInProgressError,
    MissingCredentialError,
    PromptCopilotError,
    ScoreParseError,
    UpstreamError,
    ValidationError,
)

__all__ = [
    "TemplateCatalog",
    "get_catalog",
    "compile_prompt",
    "score_prompt",
    "APEVariant",
    "ChainStep",
    "Example",
    "LengthMode",
    "ModelConfig",
    "OutputFormat",
    "PromptConfig",
    "PromptRecord",
    "PromptScore",
    "Provider",
    "Technique",
    "UsageRecord",
    "UseCase",
    "CatalogError",
    "ChainExecutionError",
    "GenerationInProgressError",
    "MissingCredentialError",
    "PromptCopilotError",
    "ScoreParseError",
    "UpstreamError",
    "ValidationError",
]
