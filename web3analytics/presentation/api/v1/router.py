"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from web3analytics.presentation.api.v1.endpoints.health import router as health_router
from web3analytics.presentation.api.v1.endpoints.tracking import router as tracking_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(tracking_router)
