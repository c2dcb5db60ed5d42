"""
Pricing API endpoints.

Live recalculation for order forms:
- One line (discount, taxable, GST, total)
- Whole document (running totals, additional charges, amount in words)
"""

from fastapi import APIRouter

from app.schemas.pricing import (
    DocumentTotals,
    DocumentTotalsRequest,
    LineMetrics,
    LineMetricsRequest,
)
from app.services.document_totals import compute_document_totals
from app.services.line_pricing import compute_line_metrics

router = APIRouter()


@router.post("/line-metrics", response_model=LineMetrics)
async def line_metrics(data: LineMetricsRequest):
    """
    Price a single order line.

    The quantity used depends on the mode: qty, approved1Qty or approved2Qty.
    """
    return compute_line_metrics(data.line, data.mode, data.kind)


@router.post("/document-totals", response_model=DocumentTotals)
async def document_totals(data: DocumentTotalsRequest):
    """
    Price all lines and total the document.

    Additional charges only add to the grand total when their status is
    empty (free entry).
    """
    return compute_document_totals(data.lines, data.mode, data.kind, data.charges)
