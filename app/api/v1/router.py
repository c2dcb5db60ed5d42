from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Line & document pricing
    pricing,
    # Indent to order allocation
    indents,
    # Order submit, limits, approvals, numbering
    orders,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Pricing ====================
api_router.include_router(
    pricing.router,
    prefix="/pricing",
    tags=["Pricing"]
)

# ==================== Indents ====================
api_router.include_router(
    indents.router,
    prefix="/indents",
    tags=["Indents"]
)

# ==================== Orders ====================
api_router.include_router(
    orders.router,
    prefix="/orders",
    tags=["Orders"]
)
