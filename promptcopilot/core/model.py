"""Data models for prompt configuration, scoring and usage."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Mapping, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

MAX_EXAMPLES = 5
MAX_CONTEXT_CHARS = 20000


class Provider(str, Enum):
    """Completion backends supported by the engine."""

    OPENAI = "openai"
    GROQ = "groq"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class ModelConfig(BaseModel):
    """Model selection and sampling parameters, validated as a unit."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    model: str = Field(min_length=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    top_k: int = Field(default=40, ge=0)
    max_tokens: int = Field(default=8000, ge=1, le=128000)

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "ModelConfig":
        """Validate raw data, raising the engine's ValidationError on bad bounds."""
        try:
            return cls.model_validate(dict(data))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid model configuration: {e}") from e

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "ModelConfig":
        """Return a copy with recommended parameters applied."""
        if not overrides:
            return self
        data = self.model_dump()
        data.update(overrides)
        return ModelConfig.parse(data)


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------


class CatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    template: str = ""


class UseCase(CatalogEntry):
    pass


class Technique(CatalogEntry):
    category: str = "general"
    supports_examples: bool = False
    supports_schema: bool = False
    recommended_config: Optional[dict[str, Any]] = None


class LengthMode(CatalogEntry):
    """A length modifier; ``template`` holds the modifier text."""

    recommended_tokens: int = 1000
    recommended_config: Optional[dict[str, Any]] = None


class SchemaPreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    body: str


class OutputFormat(CatalogEntry):
    example_schema: Optional[str] = None
    presets: list[SchemaPreset] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Prompt configuration
# ---------------------------------------------------------------------------


class Example(BaseModel):
    """A few-shot input/output pair."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    input: str = ""
    output: str = ""


class PromptConfig(BaseModel):
    """The full structured input to the compiler."""

    model_config = ConfigDict(validate_assignment=True)

    use_case: UseCase
    technique: Technique
    length_mode: LengthMode
    output_format: OutputFormat
    context: str = Field(default="", max_length=MAX_CONTEXT_CHARS)
    constraints: str = ""
    persona: str = ""
    goal: str = ""
    examples: list[Example] = Field(default_factory=list, max_length=MAX_EXAMPLES)
    output_schema: Optional[str] = None
    llm_config: ModelConfig

    def add_example(self, input: str = "", output: str = "") -> Example:
        """Append a few-shot example, enforcing the example cap."""
        if len(self.examples) >= MAX_EXAMPLES:
            raise ValidationError(f"A prompt can hold at most {MAX_EXAMPLES} examples")
        example = Example(input=input, output=output)
        self.examples.append(example)
        return example

    def update_example(
        self,
        example_id: str,
        input: Optional[str] = None,
        output: Optional[str] = None,
    ) -> Example:
        for index, example in enumerate(self.examples):
            if example.id == example_id:
                updated = example.model_copy(
                    update={
                        "input": example.input if input is None else input,
                        "output": example.output if output is None else output,
                    }
                )
                self.examples[index] = updated
                return updated
        raise ValidationError(f"Example '{example_id}' not found")

    def remove_example(self, example_id: str) -> None:
        remaining = [ex for ex in self.examples if ex.id != example_id]
        if len(remaining) == len(self.examples):
            raise ValidationError(f"Example '{example_id}' not found")
        self.examples = remaining


class ChainStep(PromptConfig):
    """A prompt configuration that forms one step of a workflow."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    step_name: str = ""


# ---------------------------------------------------------------------------
# Scores, variants, usage
# ---------------------------------------------------------------------------


class PromptScore(BaseModel):
    """Quality score split across three capped axes."""

    model_config = ConfigDict(frozen=True)

    clarity: int = Field(ge=0, le=30)
    specificity: int = Field(ge=0, le=30)
    structure: int = Field(ge=0, le=40)
    total: int = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _check_total(self) -> "PromptScore":
        expected = min(self.clarity + self.specificity + self.structure, 100)
        if self.total != expected:
            raise ValueError(f"total must equal the clamped sum of the axes ({expected})")
        return self

    @classmethod
    def from_parts(cls, clarity: float, specificity: float, structure: float) -> "PromptScore":
        """Build a score from raw axis values, clamping each into its bounds."""
        c = _clamp(clarity, 30)
        s = _clamp(specificity, 30)
        st = _clamp(structure, 40)
        return cls(clarity=c, specificity=s, structure=st, total=min(c + s + st, 100))


def _clamp(value: float, cap: int) -> int:
    return max(0, min(int(round(value)), cap))


class VariantMeta(BaseModel):
    variation: str
    """Name of the rewrite style, or "Fallback" when the rewrite failed."""

    technique: str
    """Technique name from the originating configuration."""


class APEVariant(BaseModel):
    """A rewritten prompt produced by automatic prompt engineering."""

    id: str
    prompt: str
    score: PromptScore
    meta: VariantMeta


class UsageRecord(BaseModel):
    """Token usage and cost of one completion call."""

    provider: str
    model: str
    prompt_tokens: int = 0
    response_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)


class PromptRecord(BaseModel):
    """History snapshot handed to the persistence collaborator."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    record_type: Literal["single", "workflow"] = "single"
    use_case: UseCase
    technique: Technique
    persona: str = ""
    length_mode: LengthMode
    output_format: OutputFormat
    llm_config: ModelConfig
    context: str = ""
    final_prompt: str
    chain_steps: Optional[list[ChainStep]] = None
    test_cases: Optional[list[str]] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_config(
        cls,
        config: PromptConfig,
        final_prompt: str,
        name: Optional[str] = None,
        **extra: Any,
    ) -> "PromptRecord":
        return cls(
            name=name or f"{config.use_case.name} - {config.technique.name}",
            use_case=config.use_case,
            technique=config.technique,
            persona=config.persona,
            length_mode=config.length_mode,
            output_format=config.output_format,
            llm_config=config.llm_config,
            context=config.context,
            final_prompt=final_prompt,
            **extra,
        )
