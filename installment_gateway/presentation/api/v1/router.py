from fastapi import APIRouter

from .health import health_router
from .installments import installments_router

router = APIRouter()

router.include_router(health_router, tags=["Health"])
router.include_router(installments_router, tags=["Installments"])
