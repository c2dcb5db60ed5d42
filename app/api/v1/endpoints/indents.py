"""
Indent API endpoints.

Creating an order from indents: merge their remaining quantities into
order lines, oldest indent first.
"""

import logging

from fastapi import APIRouter

from app.config import settings
from app.schemas.indent import AllocationRequest, AllocationResult
from app.services.indent_allocation import allocate_from_indents, validate_indent_ids

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/allocate", response_model=AllocationResult)
async def allocate(data: AllocationRequest):
    """
    Allocate indent lines to order lines (FIFO).

    - Lines of the same item are merged; per-indent splits are returned
      in allocationMap
    - siteId is filled when all contributing indents share one site
    - deliveryDate is filled for a single indent only
    - An empty lines list means nothing is left to order
    """
    validate_indent_ids([indent.id for indent in data.indents], settings.MAX_BULK_INDENTS)
    return allocate_from_indents(data.indents, data.existing_allocations)
