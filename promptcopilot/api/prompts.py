"""Prompt compile/score/generate/run API routes"""

import logging

from fastapi import APIRouter, Depends

from ..config import Settings, get_settings
from ..core.compiler import compile_prompt
from ..core.engine.service import PromptWorkbench
from ..core.engine.variants import rank_variants
from ..core.exceptions import PromptCopilotError
from ..core.model import PromptScore
from ..core.scorer import score_prompt
from .deps import get_workbench, request_credentials, to_http_exception
from .schemas import (
    CompileRequest,
    CompileResponse,
    GenerateRequest,
    GenerateResponse,
    RunRequest,
    RunResponse,
    ScoreRequest,
    TestSuiteRequest,
    TestSuiteResponse,
    VariantsRequest,
    VariantsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/prompts", tags=["prompts"])


@router.post("/compile", response_model=CompileResponse)
async def compile_template_prompt(request: CompileRequest):
    """Assemble the template prompt for a configuration."""
    return CompileResponse(prompt=compile_prompt(request.config))


@router.post("/score", response_model=PromptScore)
async def score_heuristic(request: ScoreRequest):
    """Score a prompt with the local heuristic."""
    return score_prompt(request.prompt, request.config)


@router.post("/generate", response_model=GenerateResponse)
async def generate_prompt(
    request: GenerateRequest,
    workbench: PromptWorkbench = Depends(get_workbench),
    settings: Settings = Depends(get_settings),
):
    """Draft a prompt with the system model and score it.

    A scoring failure does not fail the request; ``score`` is null and
    ``score_error`` explains why.
    """
    try:
        outcome = await workbench.generate(request.config, request_credentials(request, settings))
    except PromptCopilotError as e:
        raise to_http_exception(e)

    return GenerateResponse(
        prompt=outcome.prompt,
        usage=outcome.usage,
        score=outcome.score,
        score_error=outcome.score_error,
        fallback=outcome.fallback,
    )


@router.post("/variants", response_model=VariantsResponse)
async def generate_variants(
    request: VariantsRequest,
    workbench: PromptWorkbench = Depends(get_workbench),
    settings: Settings = Depends(get_settings),
):
    """Generate one APE variant per rewrite style, in style order."""
    try:
        variants = await workbench.generate_variants(
            request.config, request_credentials(request, settings)
        )
    except PromptCopilotError as e:
        raise to_http_exception(e)

    ranked = rank_variants(variants)
    return VariantsResponse(
        variants=variants,
        best_variant_id=ranked[0].id if ranked else None,
    )


@router.post("/run", response_model=RunResponse)
async def run_prompt(
    request: RunRequest,
    workbench: PromptWorkbench = Depends(get_workbench),
    settings: Settings = Depends(get_settings),
):
    """Execute a prompt once with the caller's model."""
    try:
        result = await workbench.run_prompt(
            request.prompt, request.llm_config, request_credentials(request, settings)
        )
    except PromptCopilotError as e:
        raise to_http_exception(e)

    return RunResponse(output=result.text, usage=result.usage)


@router.post("/test-suite", response_model=TestSuiteResponse)
async def run_test_suite(
    request: TestSuiteRequest,
    workbench: PromptWorkbench = Depends(get_workbench),
    settings: Settings = Depends(get_settings),
):
    """Run a prompt once per test input."""
    try:
        outputs = await workbench.run_test_suite(
            request.prompt,
            request.test_cases,
            request.llm_config,
            request_credentials(request, settings),
        )
    except PromptCopilotError as e:
        logger.warning("Test suite failed: %s", e)
        raise to_http_exception(e)

    return TestSuiteResponse(outputs=outputs)
