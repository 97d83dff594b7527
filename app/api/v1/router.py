from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Commission & Withdrawal Ledger
    commissions,
    projects,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Commission & Incentives ====================
api_router.include_router(
    commissions.router,
    prefix="/commissions",
    tags=["Commissions"]
)

# ==================== Projects ====================
api_router.include_router(
    projects.router,
    prefix="/projects",
    tags=["Projects"]
)
