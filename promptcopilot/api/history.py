"""Prompt history API routes"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException

from ..core.model import PromptRecord
from ..core.persistence import PromptStore
from .deps import get_prompt_store

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("", response_model=List[PromptRecord])
async def list_history(store: PromptStore = Depends(get_prompt_store)):
    """List saved prompts and workflows, newest first."""
    return await store.list()


@router.get("/{record_id}", response_model=PromptRecord)
async def get_history_record(record_id: str, store: PromptStore = Depends(get_prompt_store)):
    record = await store.fetch(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"History record '{record_id}' not found")
    return record


@router.delete("/{record_id}", status_code=204)
async def delete_history_record(record_id: str, store: PromptStore = Depends(get_prompt_store)):
    """Delete a saved prompt.

    Returns:
        204 No Content on success

    Raises:
        404: Record not found
    """
    if not await store.delete(record_id):
        raise HTTPException(status_code=404, detail=f"History record '{record_id}' not found")
