"""
Order Form Session.

Holds the state of one purchase/work order form while a user edits it and
wires the pricing, allocation, payload and error services together.

Rules:
- A new form starts with a single blank line
- Indent allocation runs only once the requested indents are all loaded,
  and at most once per session
- An empty allocation keeps the existing lines
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from app.schemas.indent import AllocationResult, AllocationSplit, Indent
from app.schemas.order import OrderHeader, SubmitErrorResolution, SubmitPayloadRequest
from app.schemas.pricing import (
    AdditionalChargesWire,
    ChargeStatus,
    DocumentTotals,
    FormMode,
    OrderKind,
    OrderLine,
)
from app.services.document_totals import CHARGE_FIELDS, compute_document_totals, echo_status_change
from app.services.indent_allocation import allocate_from_indents
from app.services.limit_errors import resolve_submit_error
from app.services.line_pricing import blank_line, prepare_line_for_mode
from app.services.order_payload import build_submit_payload

logger = logging.getLogger(__name__)


class OrderFormSession:
    """In-memory state of one order form."""

    def __init__(
        self,
        mode: FormMode = FormMode.CREATE,
        kind: OrderKind = OrderKind.PURCHASE_ORDER,
        header: Optional[OrderHeader] = None,
        lines: Optional[List[OrderLine]] = None,
        charges: Optional[AdditionalChargesWire] = None,
    ):
        self.mode = mode
        self.kind = kind
        self.header = header or OrderHeader()
        self.lines: List[OrderLine] = [
            prepare_line_for_mode(line, mode) for line in (lines or [blank_line()])
        ]
        self.charges = charges or AdditionalChargesWire()
        self.indent_ids: List[int] = []
        self.allocation_map: Dict[int, List[AllocationSplit]] = {}
        self.allocation_done = False
        self.last_error: Optional[SubmitErrorResolution] = None

    # ==================== Indents ====================

    @staticmethod
    def indents_ready(requested_ids: Iterable[int], loaded: List[Indent]) -> bool:
        """True when every requested indent has been fetched."""
        requested = set(requested_ids)
        return bool(requested) and requested <= {indent.id for indent in loaded}

    def apply_indent_allocation(
        self,
        indents: List[Indent],
        requested_ids: Optional[Iterable[int]] = None,
    ) -> Optional[AllocationResult]:
        """
        Fill the form from indents.

        Returns the allocation, or None when it did not run (already done,
        or the indents are not loaded yet).
        """
        if self.allocation_done:
            logger.warning("Indent allocation already applied to this form; ignoring")
            return None
        if requested_ids is not None and not self.indents_ready(requested_ids, indents):
            return None

        result = allocate_from_indents(indents)
        self.allocation_done = True
        self.indent_ids = list(result.indent_ids)

        if result.is_empty:
            logger.info("Indents %s have no remaining quantity", result.indent_ids)
            return result

        self.lines = list(result.lines)
        self.allocation_map = dict(result.allocation_map)

        autofill: Dict[str, Any] = {}
        if result.site_id is not None:
            autofill["site_id"] = result.site_id
        if result.delivery_date is not None:
            autofill["delivery_date"] = result.delivery_date
        if autofill:
            self.header = self.header.model_copy(update=autofill)
        return result

    # ==================== Editing ====================

    def add_line(self) -> OrderLine:
        line = blank_line()
        self.lines.append(line)
        return line

    def remove_line(self, index: int) -> None:
        del self.lines[index]
        if not self.lines:
            self.lines.append(blank_line())

    def update_line(self, index: int, **changes) -> OrderLine:
        """Replace fields of one line; values are re-validated leniently."""
        data = self.lines[index].model_dump()
        data.update(changes)
        self.lines[index] = OrderLine.model_validate(data)
        return self.lines[index]

    def set_charge_status(self, charge: str, status: Optional[ChargeStatus]) -> AdditionalChargesWire:
        """Change a charge's status, echoing fixed labels into its amount."""
        status_field, amount_field = CHARGE_FIELDS[charge]
        if status == ChargeStatus.MANUAL:
            status = None
        amount = echo_status_change(status, getattr(self.charges, amount_field))
        self.charges = self.charges.model_copy(
            update={status_field: status, amount_field: amount}
        )
        return self.charges

    def set_charge_amount(self, charge: str, amount: Optional[str]) -> AdditionalChargesWire:
        _, amount_field = CHARGE_FIELDS[charge]
        self.charges = self.charges.model_copy(update={amount_field: amount})
        return self.charges

    # ==================== Totals / Submit ====================

    def totals(self) -> DocumentTotals:
        return compute_document_totals(self.lines, self.mode, self.kind, self.charges)

    def submit_payload(self, ignore_budget: bool = False) -> Dict[str, Any]:
        request = SubmitPayloadRequest(
            mode=self.mode,
            kind=self.kind,
            header=self.header,
            lines=self.lines,
            charges=self.charges,
            ignore_budget=ignore_budget,
            indent_ids=self.indent_ids or None,
            allocation_map=self.allocation_map or None,
        )
        self.last_error = None
        return build_submit_payload(request)

    def handle_submit_error(self, message: str) -> SubmitErrorResolution:
        """Map a failed submit onto the form; kept until the next submit."""
        self.last_error = resolve_submit_error(message, self.lines, self.mode, self.kind)
        return self.last_error
