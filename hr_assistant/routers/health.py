"""Health and readiness endpoints for deployment platforms."""
from fastapi import APIRouter, Depends
from sqlalchemy import text

from hr_assistant.dependencies import get_services
from hr_assistant.services import ServiceContainer
from utils.time import iso_utc

router = APIRouter()


@router.get("/health")
async def health(services: ServiceContainer = Depends(get_services)):
    """Simple liveness probe - always returns ok if service is running."""
    return {
        "status": "ok",
        "ts": iso_utc(),
        "llmEnabled": services.settings.llm_enabled,
        "extractor": services.extractor.__class__.__name__,
    }


@router.get("/readiness")
async def readiness(services: ServiceContainer = Depends(get_services)):
    """Readiness probe - checks database connectivity."""
    try:
        with services.session_factory() as db:
            db.execute(text("SELECT 1"))
        return {"ready": True, "ts": iso_utc(), "database": "connected"}
    except Exception as e:
        return {"ready": False, "ts": iso_utc(), "database": f"error: {str(e)}"}
