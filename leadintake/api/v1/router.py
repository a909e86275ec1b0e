from fastapi import APIRouter

from leadintake.api.v1.endpoints import health, leads, scoring

router = APIRouter(prefix="/api/v1")

router.include_router(leads.router)
router.include_router(scoring.router)
router.include_router(health.router)
