"""API router package."""

from fastapi import APIRouter

from taskcurator.api.v1 import curation, health, tasks

router = APIRouter()

router.include_router(health.router, tags=["Health"])
router.include_router(tasks.router, prefix="/projects", tags=["Tasks"])
router.include_router(curation.router, prefix="/curation", tags=["Curation"])
