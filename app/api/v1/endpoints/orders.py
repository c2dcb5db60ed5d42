"""
Order API endpoints.

Submit support for purchase and work orders:
- Submit payload normalisation
- Server limit-error parsing
- Site budget quantity check
- Approval status actions
- Order numbering
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from app.schemas.order import (
    ApprovalTransitionRequest,
    ApprovalTransitionResponse,
    BudgetCheckRequest,
    BudgetCheckResponse,
    LimitErrorRequest,
    NextNumberResponse,
    SubmitErrorResolution,
    SubmitPayloadRequest,
)
from app.services import approval_state_machine
from app.services.budget_validation import check_budget_quantities, format_budget_violations
from app.services.document_number import next_order_number
from app.services.limit_errors import resolve_submit_error
from app.services.order_payload import build_submit_payload

router = APIRouter()


# ==================== Submit ====================

@router.post("/submit-payload")
async def submit_payload(data: SubmitPayloadRequest):
    """
    Build the body for the order create/update call.

    Lines are repriced for the mode; approval modes add statusAction and the
    per-level approved quantities.
    """
    return build_submit_payload(data)


@router.post("/limit-errors", response_model=SubmitErrorResolution)
async def limit_errors(data: LimitErrorRequest):
    """
    Map a failed submit's error message onto the form rows.

    Recognised limit sections become row field errors plus a banner;
    anything else becomes a generic toast.
    """
    return resolve_submit_error(data.message, data.rows, data.mode, data.kind)


# ==================== Budget ====================

@router.post("/budget-check", response_model=BudgetCheckResponse)
async def budget_check(data: BudgetCheckRequest):
    """Check requested quantities against the site budget."""
    violations = check_budget_quantities(
        data.items, data.budget_qty_by_item, data.ordered_qty_by_item
    )
    return BudgetCheckResponse(
        violations=violations,
        message=format_budget_violations(violations) if violations else None,
    )


# ==================== Approval ====================

@router.post("/approval-transition", response_model=ApprovalTransitionResponse)
async def approval_transition(data: ApprovalTransitionRequest):
    """
    Apply approve1 / approve2 / complete / suspend / unsuspend.

    Returns 400 when the action is not allowed from the current status or
    the actor may not perform it.
    """
    return approval_state_machine.transition(data)


# ==================== Numbering ====================

@router.get("/next-number", response_model=NextNumberResponse)
async def next_number(
    site_code: Optional[str] = Query(None, alias="siteCode", description="Site code"),
    latest_number: Optional[str] = Query(None, alias="latestNumber", description="Last issued number"),
    on_date: Optional[date] = Query(None, alias="date", description="Order date (default: today)"),
):
    """Next order number for a site in the financial year of the date."""
    return next_order_number(site_code, latest_number, on_date)
