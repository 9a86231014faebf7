"""Template catalog API routes"""

from typing import Any
from fastapi import APIRouter, Depends

from ..core.catalog import TemplateCatalog
from ..core.model import PromptConfig
from .deps import get_catalog_dependency

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("")
async def get_catalog_entries(
    catalog: TemplateCatalog = Depends(get_catalog_dependency),
) -> dict[str, list[dict[str, Any]]]:
    """List every use case, technique, length mode and output format."""
    return catalog.to_dict()


@router.get("/default-config", response_model=PromptConfig)
async def get_default_config(catalog: TemplateCatalog = Depends(get_catalog_dependency)):
    """Configuration a new session starts with."""
    return catalog.default_config()
