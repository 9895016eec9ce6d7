from fastapi import APIRouter

from leadpool.api.v1.endpoints import health, pools, records

router = APIRouter(prefix="/api/v1")

router.include_router(pools.router)
router.include_router(records.router)
router.include_router(health.router)
