"""Liveness and readiness probes."""

from fastapi import APIRouter
from sqlalchemy import text

from taskcurator.config import get_settings
from taskcurator.db.session import DBSession

# Mounted at the application root for load balancers
probe_router = APIRouter(tags=["Health"])
router = APIRouter()


@probe_router.get("/health")
async def liveness() -> dict[str, str]:
    return {"status": "healthy", "version": get_settings().app_version}


@router.get("/health/ready")
async def readiness(db: DBSession) -> dict:
    """Report whether the database answers and which AI default is active.

    AI being off is not a failure: curation then runs on the fallback scorer.
    """
    settings = get_settings()
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {e}"

    checks["ai"] = (
        f"enabled ({settings.ai_primary_provider})" if settings.feature_ai_enabled else "disabled"
    )
    return {
        "status": "healthy" if checks["database"] == "healthy" else "unhealthy",
        "version": settings.app_version,
        "checks": checks,
    }
