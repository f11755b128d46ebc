"""Versioned API router."""

from fastapi import APIRouter

from . import agreements, health, pricing, reservations

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(pricing.router)
router.include_router(reservations.router, prefix="/reservations", tags=["reservations"])
router.include_router(agreements.router, prefix="/agreements", tags=["agreements"])

__all__ = ["router"]
