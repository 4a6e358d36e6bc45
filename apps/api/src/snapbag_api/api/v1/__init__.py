from fastapi import APIRouter

from .endpoints import (
    health,
    observability,
    partner,
    scans,
    vouchers,
    wheel,
)

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(scans.router)
router.include_router(wheel.router)
router.include_router(vouchers.router)
router.include_router(partner.router)
router.include_router(observability.router)
