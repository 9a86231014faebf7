"""Health check API routes"""

from typing import Any
from fastapi import APIRouter, Depends, HTTPException

from ..config import Settings, get_settings
from ..core.catalog import get_catalog
from ..core.llm.credentials import resolve_credentials
from ..core.model import Provider

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    """Health check endpoint.

    Returns:
        dict containing health status, catalog sizes, and which server-side
        provider keys are configured.

    Raises:
        HTTPException: 503 if the catalog cannot be loaded.
    """
    try:
        catalog = get_catalog()
        credentials = resolve_credentials(settings)
        return {
            "status": "healthy",
            "catalog": {
                "use_cases": len(catalog.use_cases),
                "techniques": len(catalog.techniques),
                "length_modes": len(catalog.length_modes),
                "output_formats": len(catalog.output_formats),
            },
            "system_model": {
                "provider": settings.system_provider.value,
                "model": settings.system_model,
            },
            "configured_providers": [p.value for p in Provider if credentials.has(p)],
        }
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Unhealthy: {str(e)}")
