# Services module
from app.services.line_pricing import compute_line_metrics, prepare_line_for_mode
from app.services.document_totals import compute_document_totals, amount_in_words
from app.services.indent_allocation import allocate_from_indents, IndentAllocationError
from app.services.limit_errors import parse_limit_errors, resolve_submit_error
from app.services.order_payload import build_submit_payload
from app.services.order_form_session import OrderFormSession

# Approvals & numbering
from app.services.budget_validation import check_budget_quantities
from app.services.approval_state_machine import apply_status_action
from app.services.document_number import next_order_number, DocumentNumberError

__all__ = [
    "compute_line_metrics",
    "prepare_line_for_mode",
    "compute_document_totals",
    "amount_in_words",
    "allocate_from_indents",
    "IndentAllocationError",
    "parse_limit_errors",
    "resolve_submit_error",
    "build_submit_payload",
    "OrderFormSession",
    # Approvals & numbering
    "check_budget_quantities",
    "apply_status_action",
    "next_order_number",
    "DocumentNumberError",
]
