"""Pydantic schemas for order submission, server errors and approvals."""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import Field, field_validator

from app.core.enum_utils import normalize_to_uppercase, VALID_APPROVAL_STATUSES
from app.schemas.base import WireSchema, PassthroughSchema, Amount, LenientDecimal, OptionalLenientDecimal
from app.schemas.indent import AllocationSplit
from app.schemas.pricing import AdditionalChargesWire, ModeKindSchema, OrderLine


# ==================== Submit Payload Schemas ====================

class OrderHeader(PassthroughSchema):
    """
    Header fields of a purchase/work order form.

    Fields not listed here (dates, quotation, terms...) pass through untouched.
    """
    site_id: Optional[Any] = None
    vendor_id: Optional[Any] = None
    billing_address_id: Optional[Any] = None
    site_delivery_address_id: Optional[Any] = None
    payment_term_id: Optional[Any] = None
    payment_terms_in_days: Optional[Any] = None
    delivery_date: Optional[Any] = None
    po_status: Optional[str] = None


class SubmitPayloadRequest(ModeKindSchema):
    header: OrderHeader = Field(default_factory=OrderHeader)
    lines: List[OrderLine] = Field(default_factory=list)
    charges: AdditionalChargesWire = Field(default_factory=AdditionalChargesWire)
    # Approver chose to submit over budget
    ignore_budget: bool = False
    # Only for orders created from indents
    indent_ids: Optional[List[int]] = None
    allocation_map: Optional[Dict[int, List[AllocationSplit]]] = None


# ==================== Server Limit Error Schemas ====================

class LimitKind(str, Enum):
    ITEM = "ITEM"
    RATE = "RATE"
    VALUE = "VALUE"


class LimitViolation(WireSchema):
    kind: LimitKind
    item_key: str  # Item display name or item id, as the server wrote it
    ratio: str


class LimitErrorReport(WireSchema):
    """Limit sections found in one server error message."""
    matched: bool = False  # A limit phrase was present, even with no parsable pairs
    violations: List[LimitViolation] = Field(default_factory=list)


class FieldError(WireSchema):
    row_index: int
    field: str  # Wire field name on the row: approved1Qty, approved2Qty, rate, amount
    message: str


class LimitErrorRequest(ModeKindSchema):
    message: str = ""
    rows: List[OrderLine] = Field(default_factory=list)


class SubmitErrorResolution(WireSchema):
    """What the form shows for a failed submit."""
    matched: bool
    violations: List[LimitViolation] = Field(default_factory=list)
    field_errors: List[FieldError] = Field(default_factory=list)
    budget_error: Optional[str] = None  # Banner text when limits were hit
    toast_message: Optional[str] = None  # Generic error otherwise


# ==================== Site Budget Schemas ====================

class BudgetLine(WireSchema):
    item_id: int
    qty: LenientDecimal


class BudgetCheckRequest(WireSchema):
    items: List[BudgetLine] = Field(default_factory=list)
    budget_qty_by_item: Dict[int, LenientDecimal] = Field(default_factory=dict)
    ordered_qty_by_item: Dict[int, LenientDecimal] = Field(default_factory=dict)


class BudgetQtyViolation(WireSchema):
    item_id: int
    budget_qty: Amount
    ordered_qty: Amount
    available_qty: Amount
    requested_qty: Amount
    message: str


class BudgetCheckResponse(WireSchema):
    violations: List[BudgetQtyViolation] = Field(default_factory=list)
    message: Optional[str] = None


# ==================== Approval Workflow Schemas ====================

class ApprovalStatus(str, Enum):
    DRAFT = "DRAFT"
    APPROVED_LEVEL_1 = "APPROVED_LEVEL_1"
    APPROVED_LEVEL_2 = "APPROVED_LEVEL_2"
    COMPLETED = "COMPLETED"
    SUSPENDED = "SUSPENDED"


class StatusAction(str, Enum):
    APPROVE1 = "approve1"
    APPROVE2 = "approve2"
    COMPLETE = "complete"
    SUSPEND = "suspend"
    UNSUSPEND = "unsuspend"


class ApprovalState(WireSchema):
    """Approval fields of a stored order."""
    approval_status: ApprovalStatus = ApprovalStatus.DRAFT
    is_approved1: bool = False
    is_approved2: bool = False
    is_complete: bool = False
    is_suspended: bool = False
    created_by_id: Optional[int] = None
    approved1_by_id: Optional[int] = None
    approved2_by_id: Optional[int] = None
    completed_by_id: Optional[int] = None
    suspended_by_id: Optional[int] = None
    approved1_at: Optional[datetime] = None
    approved2_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    suspended_at: Optional[datetime] = None
    amount: LenientDecimal = Decimal("0")

    @field_validator('approval_status', mode='before')
    @classmethod
    def normalize_status(cls, v):
        return normalize_to_uppercase(v, VALID_APPROVAL_STATUSES)


class ApprovalTransitionRequest(WireSchema):
    state: ApprovalState
    action: StatusAction
    actor_id: int
    actor_can_approve_level_2: bool = False
    # Amount sent with the approval; falls back to the stored amount
    submitted_amount: OptionalLenientDecimal = None

    @field_validator('action', mode='before')
    @classmethod
    def normalize_action(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ApprovalTransitionResponse(WireSchema):
    state: ApprovalState
    action_label: str
    auto_approved_level_2: bool = False


# ==================== Document Number Schemas ====================

class FinancialYearInfo(WireSchema):
    start_date: date
    end_date: date
    label: str


class NextNumberResponse(WireSchema):
    order_number: str
    financial_year: FinancialYearInfo
