"""Workflow (prompt chain) API routes"""

from fastapi import APIRouter, Depends

from ..config import Settings, get_settings
from ..core.engine.service import PromptWorkbench
from ..core.exceptions import PromptCopilotError
from .deps import get_workbench, request_credentials, to_http_exception
from .schemas import ChainRequest, ChainRunResponse

router = APIRouter(prefix="/api/chains", tags=["chains"])


@router.post("/execute", response_model=ChainRunResponse)
async def execute_chain(
    request: ChainRequest,
    workbench: PromptWorkbench = Depends(get_workbench),
    settings: Settings = Depends(get_settings),
):
    """Run chain steps in order.

    A failing step is reported in the body (status "failed") together with the
    outputs of the steps before it, not as an HTTP error.
    """
    try:
        run = await workbench.execute_chain(request.steps, request_credentials(request, settings))
    except PromptCopilotError as e:
        raise to_http_exception(e)

    return ChainRunResponse(
        status=run.status,
        outputs=run.outputs,
        failed_step=run.failed_step,
        error=run.error,
    )
