"""Shared API dependencies and error mapping"""

from collections import OrderedDict
from typing import Optional

from fastapi import Depends, Header, HTTPException

from ..config import Settings, get_settings
from ..core.catalog import TemplateCatalog, get_catalog
from ..core.engine.service import PromptWorkbench
from ..core.exceptions import (
    CatalogError,
    GenerationInProgressError,
    MissingCredentialError,
    PromptCopilotError,
    UpstreamError,
    ValidationError,
)
from ..core.llm.credentials import Credentials, resolve_credentials
from ..core.persistence import InMemoryPromptStore, InMemoryUsageSink, PromptStore, UsageSink
from .schemas import CredentialedRequest

DEFAULT_SESSION = "default"

_store_instance: PromptStore | None = None
_usage_sink_instance: UsageSink | None = None
_workbenches: "OrderedDict[str, PromptWorkbench]" = OrderedDict()


def get_prompt_store() -> PromptStore:
    """Get or create the history store (dependency injection for FastAPI)"""
    global _store_instance
    if _store_instance is None:
        _store_instance = InMemoryPromptStore()
    return _store_instance


def get_usage_sink() -> UsageSink:
    global _usage_sink_instance
    if _usage_sink_instance is None:
        _usage_sink_instance = InMemoryUsageSink()
    return _usage_sink_instance


def get_catalog_dependency() -> TemplateCatalog:
    return get_catalog()


def get_workbench(
    x_session_id: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    store: PromptStore = Depends(get_prompt_store),
    usage_sink: UsageSink = Depends(get_usage_sink),
) -> PromptWorkbench:
    """Get the workbench for the caller's session.

    Each session gets its own workbench so the in-flight guard is per session;
    history and usage are shared. At most ``settings.max_sessions`` idle
    workbenches are kept, least recently used evicted first.
    """
    session_id = x_session_id or DEFAULT_SESSION
    workbench = _workbenches.get(session_id)
    if workbench is None:
        workbench = PromptWorkbench(settings=settings, store=store, usage_sink=usage_sink)
        _workbenches[session_id] = workbench
        _evict_idle_workbenches(settings.max_sessions)
    else:
        _workbenches.move_to_end(session_id)
    return workbench


def _evict_idle_workbenches(limit: int) -> None:
    # Busy workbenches are skipped so a running action keeps its guard
    for session_id in list(_workbenches):
        if len(_workbenches) <= limit:
            return
        if not _workbenches[session_id].busy:
            del _workbenches[session_id]


def request_credentials(request: CredentialedRequest, settings: Settings) -> Credentials:
    return resolve_credentials(settings, request.api_keys, request.use_custom_keys)


def to_http_exception(error: PromptCopilotError) -> HTTPException:
    """Map an engine error onto its HTTP status."""
    if isinstance(error, MissingCredentialError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, (ValidationError, CatalogError)):
        return HTTPException(status_code=400, detail=f"Validation error: {str(error)}")
    if isinstance(error, GenerationInProgressError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, UpstreamError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
