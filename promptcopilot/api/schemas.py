"""API request/response schemas"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from ..core.llm.credentials import Credentials
from ..core.model import (
    APEVariant,
    ChainStep,
    ModelConfig,
    PromptConfig,
    PromptScore,
    UsageRecord,
)


class CredentialedRequest(BaseModel):
    api_keys: Optional[Credentials] = Field(default=None, description="Caller-supplied provider keys")
    use_custom_keys: bool = Field(default=False, description="If True, only api_keys are used; server keys are ignored")


class CompileRequest(BaseModel):
    config: PromptConfig


class CompileResponse(BaseModel):
    prompt: str


class ScoreRequest(BaseModel):
    prompt: str
    config: PromptConfig


class GenerateRequest(CredentialedRequest):
    config: PromptConfig


class GenerateResponse(BaseModel):
    prompt: str
    usage: UsageRecord
    score: Optional[PromptScore] = None
    score_error: Optional[str] = None
    fallback: bool = Field(default=False, description="True when the template prompt was returned instead of an AI draft")


class VariantsRequest(CredentialedRequest):
    config: PromptConfig


class VariantsResponse(BaseModel):
    variants: List[APEVariant]
    best_variant_id: Optional[str] = None


class RunRequest(CredentialedRequest):
    prompt: str = Field(min_length=1)
    llm_config: ModelConfig


class RunResponse(BaseModel):
    output: str
    usage: UsageRecord


class TestSuiteRequest(CredentialedRequest):
    prompt: str = Field(min_length=1)
    test_cases: List[str] = Field(min_length=1)
    llm_config: ModelConfig


class TestSuiteResponse(BaseModel):
    outputs: List[str]


class ChainRequest(CredentialedRequest):
    steps: List[ChainStep] = Field(min_length=1)


class ChainRunResponse(BaseModel):
    status: Literal["completed", "failed"]
    outputs: List[str]
    failed_step: Optional[int] = None
    error: Optional[str] = None
